import pytest

from stringsim.config import get_preset
from stringsim.src.calibrate import continuous_mpp, fit_cell_params
from stringsim.src.curve import CellElectricalParams, build_full_curve


def test_continuous_mpp_bounds_sampled_mpp(lossy_params):
    v, i = continuous_mpp(lossy_params)
    sampled = build_full_curve(lossy_params, 1.0)
    assert 0 < v < lossy_params.voc
    assert 0 < i < lossy_params.isc
    # the sampled argmax can only be as good as the true optimum
    assert sampled.pmp <= v * i + 1e-9
    assert sampled.pmp == pytest.approx(v * i, rel=0.01)


def test_continuous_mpp_dark_cell(lossy_params):
    assert continuous_mpp(lossy_params, 0.0) == (0.0, 0.0)


def test_fit_reproduces_datasheet_pmp():
    p = get_preset("Maxeon Gen 3 (ME3)")
    params, info = fit_cell_params(p.voc, p.isc, p.vmp, p.imp)
    assert isinstance(params, CellElectricalParams)
    assert set(info) >= {"success", "message", "nfev", "cost", "n", "rs"}
    assert 1.0 <= params.n <= 2.0
    assert 1e-5 <= params.rs <= 0.05
    v, i = continuous_mpp(params)
    assert v * i == pytest.approx(p.vmp * p.imp, rel=0.05)


def test_fit_respects_bounds():
    params, info = fit_cell_params(0.68, 6.24, 0.57, 5.9, n0=5.0, rs0=1.0)
    assert 1.0 <= info["n"] <= 2.0
    assert 1e-5 <= info["rs"] <= 0.05
    assert params.n == info["n"]
