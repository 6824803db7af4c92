import math
from typing import Dict, Tuple

import numpy as np
from scipy.optimize import least_squares, minimize_scalar

from .curve import CellElectricalParams, THERMAL_VOLTAGE, DARK_RATIO, _shifted_voc


def _model_point(params: CellElectricalParams, ratio: float, u: float) -> Tuple[float, float]:
    """(V, I) of the curve model at internal diode voltage ``u``."""
    iph = params.isc * ratio
    n_vt = max(params.n, 1e-6) * THERMAL_VOLTAGE
    voc_scaled = _shifted_voc(params.voc, n_vt, ratio)
    i = iph * (1.0 - math.exp(min((u - voc_scaled) / n_vt, 20.0)))
    i = min(max(i, 0.0), iph)
    v = max(u - i * params.rs, 0.0)
    return v, i


def continuous_mpp(params: CellElectricalParams, ratio: float = 1.0) -> Tuple[float, float]:
    """
    Maximum power point of the curve model without sampling error.
    Returns (Vmp, Imp); (0, 0) for a dark cell.
    """
    if ratio <= DARK_RATIO or params.isc <= 0:
        return 0.0, 0.0
    n_vt = max(params.n, 1e-6) * THERMAL_VOLTAGE
    voc_scaled = _shifted_voc(params.voc, n_vt, ratio)
    if voc_scaled <= 0:
        return 0.0, 0.0

    def neg_power(u):
        v, i = _model_point(params, ratio, float(u))
        return -v * i

    res = minimize_scalar(neg_power, bounds=(0.0, voc_scaled), method="bounded",
                          options={"xatol": 1e-9})
    return _model_point(params, ratio, float(res.x))


def fit_cell_params(
    voc: float,
    isc: float,
    vmp: float,
    imp: float,
    n0: float = 1.3,
    rs0: float = 0.003,
    n_bounds=(1.0, 2.0),
    rs_bounds=(1e-5, 0.05),
    max_nfev: int = 400,
) -> Tuple[CellElectricalParams, Dict]:
    """
    Fit diode ideality n and series resistance Rs so the model's MPP lands on
    the datasheet (Vmp, Imp). Voc and Isc are taken as given.

    Rs is optimised in log-space for positivity and conditioning.
    """
    vmp_ref = max(1e-12, abs(vmp))
    imp_ref = max(1e-12, abs(imp))

    def resid(x):
        n, log_rs = map(float, x)
        p = CellElectricalParams(voc=voc, isc=isc, vmp=vmp, imp=imp, n=n, rs=math.exp(log_rs))
        v_fit, i_fit = continuous_mpp(p)
        return np.array([(v_fit - vmp) / vmp_ref, (i_fit - imp) / imp_ref], dtype=float)

    lb = np.array([n_bounds[0], math.log(rs_bounds[0])])
    ub = np.array([n_bounds[1], math.log(rs_bounds[1])])
    x0 = np.array([n0, math.log(max(rs0, rs_bounds[0]))], dtype=float)
    # keep x0 strictly inside bounds
    x0 = np.minimum(np.maximum(x0, lb + 1e-9), ub - 1e-9)

    res = least_squares(resid, x0, bounds=(lb, ub), method="trf",
                        max_nfev=max_nfev, jac="2-point")

    n_fit, rs_fit = float(res.x[0]), float(math.exp(res.x[1]))
    params = CellElectricalParams(voc=voc, isc=isc, vmp=vmp, imp=imp, n=n_fit, rs=rs_fit)
    info = {
        "success": bool(res.success),
        "message": res.message,
        "nfev": int(res.nfev),
        "cost": float(res.cost),
        "n": n_fit,
        "rs": rs_fit,
    }
    return params, info
