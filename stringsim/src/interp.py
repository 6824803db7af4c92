from typing import Iterable, List, Sequence

from .curve import IVCurve

# brackets narrower than this are treated as a single point
MIN_BRACKET = 1e-9


def _lin_interp(xs: Sequence[float], ys: Sequence[float], x0: float, ascending: bool) -> float:
    """Binary search for the bracketing pair of ``x0`` in a monotone ``xs``,
    then interpolate linearly. Queries outside the range clamp to the ends.
    """
    n = len(xs)
    first, last = float(xs[0]), float(xs[n - 1])
    if ascending:
        if x0 <= first:
            return float(ys[0])
        if x0 >= last:
            return float(ys[n - 1])
    else:
        if x0 >= first:
            return float(ys[0])
        if x0 <= last:
            return float(ys[n - 1])

    lo, hi = 0, n - 1
    while lo < hi - 1:
        mid = (lo + hi) // 2
        if (x0 > xs[mid]) == ascending:
            lo = mid
        else:
            hi = mid

    dx = float(xs[hi]) - float(xs[lo])
    if abs(dx) < MIN_BRACKET:
        return float(ys[lo])

    t = (x0 - float(xs[lo])) / dx
    return t * float(ys[hi]) + (1.0 - t) * float(ys[lo])


def voltage_at_current(curve: IVCurve, current: float) -> float:
    """Cell voltage at ``current`` (the current array is descending)."""
    if curve.n_samples < 2:
        return 0.0
    return _lin_interp(curve.current, curve.voltage, float(current), ascending=False)


def current_at_voltage(curve: IVCurve, voltage: float) -> float:
    """Cell current at ``voltage`` (the voltage array is ascending)."""
    if curve.n_samples < 2:
        return 0.0
    return _lin_interp(curve.voltage, curve.current, float(voltage), ascending=True)


def voltages_at_current(curves: Iterable[IVCurve], current: float) -> List[float]:
    """V(I) of every curve at one shared series current."""
    return [voltage_at_current(c, current) for c in curves]
