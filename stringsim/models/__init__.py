"""
String power models package

Thin re-export layer for the public API. Models live in their own modules;
import from here for stability.
"""
from __future__ import annotations

from .types import StringConditions
from .base import StringPowerModel

# Models
from .full import FullCurveModel, PreviewCurveModel, SegmentCurveModel
from .simple import SimpleEstimateModel

# Registry helpers
from .registry import build, available, register, get_class, catalog

__all__ = [
    "StringConditions",
    "StringPowerModel",
    # models
    "FullCurveModel", "PreviewCurveModel", "SegmentCurveModel", "SimpleEstimateModel",
    # registry
    "build", "available", "register", "get_class", "catalog",
]
