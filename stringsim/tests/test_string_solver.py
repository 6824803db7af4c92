import numpy as np
import pytest

from stringsim.src.bypassdiode import DEFAULT_FORWARD_DROP
from stringsim.src.string import (
    StringSimResult,
    StringTopology,
    cell_operating_states,
    ideal_string_power,
    solve_string,
)


def _flags(n, *positions):
    flags = [False] * n
    for p in positions:
        flags[p] = True
    return flags


def test_zero_cells_gives_zero_result():
    res = solve_string([])
    assert res.power == res.voltage == res.current == 0.0
    assert res.cells_bypassed == 0
    assert res.iv_curve.n_samples == 2
    assert np.all(res.iv_curve.current == 0.0)


def test_all_dark_string_gives_zero_result(make_curves):
    res = solve_string(make_curves([0.0] * 5), has_bypass=[True] * 5)
    assert res.power == 0.0
    assert res.bypassed_positions == ()


def test_ten_lit_cells_fill_factor(make_curves, cell_params):
    curves = make_curves([1.0] * 10)
    res = solve_string(curves)
    ratio = res.power / (10 * cell_params.voc * cell_params.isc)
    assert 0.80 <= ratio <= 0.95
    # series string of identical cells is ten single cells stacked
    assert res.power == pytest.approx(10 * curves[0].pmp, rel=0.01)
    assert res.cells_bypassed == 0
    assert res.power == pytest.approx(res.voltage * res.current)


def test_shaded_cell_without_bypass_kills_string(make_curves):
    ratios = [1.0] * 11
    ratios[3] = 0.0
    res = solve_string(make_curves(ratios), has_bypass=[False] * 11)
    assert res.power == pytest.approx(0.0, abs=1e-12)
    # the sweep is truncated right away but keeps two samples
    assert res.iv_curve.n_samples == 2


def test_shaded_cell_with_bypass_drops_one_cell(make_curves):
    ratios = [1.0] * 11
    ratios[3] = 0.0
    curves = make_curves(ratios)
    res = solve_string(curves, DEFAULT_FORWARD_DROP, _flags(11, 3))
    expected = 10 * curves[0].pmp - DEFAULT_FORWARD_DROP * res.current
    assert res.power == pytest.approx(expected, rel=0.02)
    assert res.cells_bypassed == 1
    assert res.bypassed_positions == (3,)
    assert [(s.start, s.end) for s in res.activated_segments] == [(3, 3)]


def test_partial_shade_prefers_bypassing_the_weak_cell(make_curves, cell_params):
    ratios = [1.0] * 10
    ratios[6] = 0.5
    curves = make_curves(ratios)
    with_diode = solve_string(curves, DEFAULT_FORWARD_DROP, _flags(10, 6))
    without = solve_string(curves, DEFAULT_FORWARD_DROP, [False] * 10)

    assert with_diode.power > without.power
    assert with_diode.current > curves[6].isc
    assert with_diode.cells_bypassed == 1
    # no diode: the string is pinned below the weak cell's Isc
    assert without.current <= curves[6].isc + 1e-9
    assert without.cells_bypassed == 0


def test_diode_that_never_conducts_changes_nothing(make_curves):
    curves = make_curves([1.0] * 6)
    plain = solve_string(curves)
    diodes = solve_string(curves, DEFAULT_FORWARD_DROP, [True] * 6)
    assert diodes.power == pytest.approx(plain.power)
    assert diodes.cells_bypassed == 0


def test_string_curve_is_monotone(make_curves):
    curves = make_curves([1.0, 0.9, 0.4, 1.0, 0.7, 1.0])
    res = solve_string(curves, DEFAULT_FORWARD_DROP, [True] * 6)
    curve = res.iv_curve
    assert curve.n_samples >= 2
    assert np.all(np.diff(curve.current) <= 1e-12)
    assert np.all(np.diff(curve.voltage) >= -1e-12)
    assert np.all(curve.power() <= res.power + 1e-9)
    assert curve.vmp == pytest.approx(res.voltage)
    assert curve.imp == pytest.approx(res.current)


def test_sample_count_is_configurable(make_curves):
    curves = make_curves([1.0] * 4)
    res = solve_string(curves, samples=50)
    assert res.iv_curve.n_samples <= 50
    assert res.power > 0


def test_cell_states_add_up_to_string_power(make_curves):
    ratios = [1.0] * 8
    ratios[2] = 0.0
    curves = make_curves(ratios)
    res = solve_string(curves, DEFAULT_FORWARD_DROP, _flags(8, 2))
    states = cell_operating_states(curves, res)

    assert states[2].is_bypassed
    assert states[2].voltage == pytest.approx(-DEFAULT_FORWARD_DROP)
    assert all(not s.is_bypassed and s.voltage > 0 for i, s in enumerate(states) if i != 2)
    assert sum(s.power for s in states) == pytest.approx(res.power, rel=1e-9)


def test_topology_helpers():
    topo = StringTopology.with_cell_diodes(["a", "b", "c"], [True, False, True], 0.5)
    assert topo.n_cells == 3
    assert topo.is_per_cell()
    assert topo.has_bypass_flags() == [True, False, True]
    assert topo.uniform_forward_drop() == 0.5
    assert StringTopology(["a"]).uniform_forward_drop() == DEFAULT_FORWARD_DROP


def test_result_to_dict_and_ideal_power():
    res = StringSimResult.zero()
    d = res.to_dict()
    assert d["power"] == 0.0 and d["bypassed_positions"] == []
    assert ideal_string_power(10, 0.58, 6.0) == pytest.approx(34.8)


def test_plot_string_iv_pv(tmp_path, make_curves):
    plt = pytest.importorskip("matplotlib.pyplot")

    ratios = [1.0] * 12
    ratios[5] = 0.3
    res = solve_string(make_curves(ratios), DEFAULT_FORWARD_DROP, _flags(12, 5))
    curve = res.iv_curve

    plt.figure(figsize=(6, 4))
    plt.plot(curve.voltage, curve.power(), label="String P-V (one cell at 30%)")
    plt.scatter([res.voltage], [res.power], marker="x", label=f"MPP ~ ({res.voltage:.3f} V, {res.current:.3f} A)")
    plt.xlabel("Voltage (V)")
    plt.ylabel("Power (W)")
    plt.grid(True)
    plt.legend()
    out = tmp_path / "string_pv.png"
    plt.tight_layout()
    plt.savefig(out)
    plt.close()
    assert out.exists()
