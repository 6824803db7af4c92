import pytest

from stringsim.models import (
    FullCurveModel,
    SimpleEstimateModel,
    StringPowerModel,
    available,
    build,
    catalog,
    get_class,
    register,
)
from stringsim.models import registry
from stringsim.models.registry import canonical_name


@pytest.mark.parametrize("name", ["full", "preview", "segment", "simple"])
def test_names_round_trip(name):
    model = build(name)
    assert isinstance(model, StringPowerModel)
    assert model.name == name
    assert name in available()


def test_aliases_and_case():
    assert get_class("fast") is SimpleEstimateModel
    assert get_class("Precise") is FullCurveModel
    assert get_class(" FULL ") is FullCurveModel
    assert canonical_name("FAST") == "simple"


def test_unknown_name_raises_key_error():
    with pytest.raises(KeyError) as exc:
        build("does-not-exist")
    assert "Available" in str(exc.value)


def test_build_forwards_kwargs():
    model = build("full", curve_samples=64, string_samples=90, series_resistance=False)
    assert model.get_config() == {"curve_samples": 64, "string_samples": 90, "series_resistance": False}


def test_catalog_describes_every_model():
    cat = catalog()
    assert set(cat) == set(available())
    for key, desc in cat.items():
        assert desc["key"] == key
        assert "fidelity" in desc
    assert {p["name"] for p in cat["full"]["params"]} == {"curve_samples", "string_samples", "series_resistance"}
    assert cat["simple"]["params"] == []


def test_register_rejects_non_models(monkeypatch):
    monkeypatch.setattr(registry, "_REGISTRY", dict(registry._REGISTRY))
    register("not_a_model", "stringsim.config", "CellPreset")
    with pytest.raises(TypeError):
        get_class("not_a_model")
    with pytest.raises(ValueError):
        register("", "x", "y")
