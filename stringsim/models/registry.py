"""
Model registry (lazy import)

Central place to look up and construct string power models by a short name.
Modules are imported on first use so a batch run that only needs the
estimate path never pulls in the curve builders.
"""
from importlib import import_module
from typing import Dict, Type

from .base import StringPowerModel

# name -> (module_path, class_name)
_REGISTRY = {
    "full":    ("stringsim.models.full", "FullCurveModel"),
    "preview": ("stringsim.models.full", "PreviewCurveModel"),
    "segment": ("stringsim.models.full", "SegmentCurveModel"),
    "simple":  ("stringsim.models.simple", "SimpleEstimateModel"),
}

# user-facing aliases -> canonical names
_ALIASES = {
    "fast": "simple",
    "precise": "full",
}


def register(name: str, module_path: str, class_name: str) -> None:
    """Add or override a registry entry.

    Example
    >>> register("my_model", "my_pkg.my_mod", "MyModel")
    """
    if not name:
        raise ValueError("name must be a non-empty string")
    _REGISTRY[name.lower()] = (module_path, class_name)


def canonical_name(name: str) -> str:
    key = name.strip().lower()
    return _ALIASES.get(key, key)


def get_class(name: str) -> Type[StringPowerModel]:
    """Resolve a registry name (with aliases) to a class object (lazy import)."""
    key = canonical_name(name)
    try:
        mod_path, cls_name = _REGISTRY[key]
    except KeyError as e:
        raise KeyError(
            f"Unknown string model '{name}'. Available: {list(_REGISTRY)}"
        ) from e

    cls = getattr(import_module(mod_path), cls_name)
    if not issubclass(cls, StringPowerModel):
        raise TypeError(f"Resolved class {cls} is not a subclass of StringPowerModel")
    return cls


def build(name: str, **kwargs) -> StringPowerModel:
    """Instantiate a model by name.

    Parameters
    name : str
        Registry key or alias (e.g., "full", "preview", "simple", "fast").
    **kwargs
        Constructor parameters forwarded to the model class.
    """
    return get_class(name)(**kwargs)


def catalog() -> Dict[str, dict]:
    """Instantiate each registered model with defaults and return its describe() dict."""
    out: Dict[str, dict] = {}
    for key in _REGISTRY:
        desc = build(key).describe() or {}
        base = {"key": key, "label": key.upper(), "params": []}
        base.update(desc)
        base["key"] = key
        out[key] = base
    return out


def available() -> Dict[str, str]:
    """Return a mapping of registry names -> "module:Class" strings."""
    return {k: f"{mod}:{cls}" for k, (mod, cls) in _REGISTRY.items()}


__all__ = ["build", "available", "register", "get_class", "catalog", "canonical_name"]
