"""
StringSim: series-string electrical simulation for solar arrays.

Core numerics live in ``stringsim.src``; the swappable string power models in
``stringsim.models``; presets and layout configs in ``stringsim.config``.
"""

__version__ = "0.1.0"
