import math
from dataclasses import dataclass

import numpy as np

k = 1.380649e-23  # J/K
q = 1.602176634e-19  # C
T_CELL_K = 300.0  # nominal cell temperature for the curve model

# thermal voltage k*T/q (~0.0259 V)
THERMAL_VOLTAGE = k * T_CELL_K / q
# coarser Vt used by the preview curve
SIMPLE_THERMAL_VOLTAGE = 0.026
# preview curve knee is softened by this factor
SIMPLE_KNEE_SOFTNESS = 10.0

FULL_SAMPLES = 200
SIMPLE_SAMPLES = 50

DARK_RATIO = 0.001       # at or below: cell is dark
LOG_VOC_RATIO = 0.01     # above: apply the logarithmic Voc shift
EXPONENT_CAP = 20.0


@dataclass(frozen=True)
class CellElectricalParams:
    """Static datasheet parameters for one cell preset (STC)."""

    voc: float          # V
    isc: float          # A
    vmp: float          # V
    imp: float          # A
    n: float = 1.3      # diode ideality
    rs: float = 0.0     # ohm


@dataclass(frozen=True)
class IVCurve:
    """Sampled I-V characteristic.

    ``current`` is non-increasing and ``voltage`` non-decreasing, so sample 0
    is the short-circuit end and the last sample the open-circuit end.
    """

    current: np.ndarray
    voltage: np.ndarray
    voc: float = 0.0
    isc: float = 0.0
    vmp: float = 0.0
    imp: float = 0.0

    def __post_init__(self):
        cur = np.array(self.current, dtype=float)
        vol = np.array(self.voltage, dtype=float)
        cur.setflags(write=False)
        vol.setflags(write=False)
        object.__setattr__(self, "current", cur)
        object.__setattr__(self, "voltage", vol)

    @property
    def n_samples(self) -> int:
        return int(self.current.size)

    @property
    def pmp(self) -> float:
        return self.vmp * self.imp

    @property
    def fill_factor(self) -> float:
        if self.isc <= 0 or self.voc <= 0:
            return 0.0
        return self.pmp / (self.isc * self.voc)

    def power(self) -> np.ndarray:
        return self.current * self.voltage


def dark_curve() -> IVCurve:
    """Two-sample all-zero curve for a cell receiving no light."""
    return IVCurve(current=np.zeros(2), voltage=np.zeros(2))


def _clamp_ratio(ratio: float) -> float:
    return min(max(float(ratio), 0.0), 1.0)


def _shifted_voc(voc: float, n_vt: float, ratio: float) -> float:
    """Voc' = Voc + n*Vt*ln(G/G_stc), only for ratios where the log is meaningful."""
    if ratio > LOG_VOC_RATIO:
        return max(voc + n_vt * math.log(ratio), 0.0)
    return voc


def _argmax_power(current: np.ndarray, voltage: np.ndarray) -> int:
    # first strict maximum; all-zero power -> sample 0
    max_power = 0.0
    mp_idx = 0
    for idx, p in enumerate(current * voltage):
        if p > max_power:
            max_power = p
            mp_idx = idx
    return mp_idx


def build_simple_curve(params: CellElectricalParams, ratio: float, samples: int = SIMPLE_SAMPLES) -> IVCurve:
    """Fast preview curve.

    Exponential approximation anchored at Isc*ratio and the log-adjusted Voc,
    with a deliberately soft knee. Good enough for low-fidelity previews.
    """
    ratio = _clamp_ratio(ratio)
    if ratio <= DARK_RATIO:
        return dark_curve()

    n = max(int(samples), 2)
    iph = params.isc * ratio
    # near-dark preview cells get no voltage at all
    voc_scaled = _shifted_voc(params.voc, SIMPLE_THERMAL_VOLTAGE, ratio) if ratio > LOG_VOC_RATIO else 0.0

    voltage = np.linspace(0.0, voc_scaled, n)
    if voc_scaled > 0 and iph > 0:
        vt = SIMPLE_THERMAL_VOLTAGE * max(params.n, 1e-6) * SIMPLE_KNEE_SOFTNESS
        current = iph * (1.0 - np.exp((voltage - voc_scaled) / vt))
        current = np.clip(current, 0.0, iph)
    else:
        current = np.zeros(n)

    mp_idx = _argmax_power(current, voltage)
    return IVCurve(
        current=current,
        voltage=voltage,
        voc=voc_scaled,
        isc=iph,
        vmp=float(voltage[mp_idx]),
        imp=float(current[mp_idx]),
    )


def build_full_curve(
    params: CellElectricalParams,
    ratio: float,
    samples: int = FULL_SAMPLES,
    series_resistance: bool = True,
) -> IVCurve:
    """Single-diode curve evenly sampled in voltage from 0 to the adjusted Voc.

    I = Iph * (1 - exp((V - Voc') / (n*Vt))), with an optional first-order
    series-resistance correction V <- V - I*Rs applied per sample.
    """
    ratio = _clamp_ratio(ratio)
    if ratio <= DARK_RATIO:
        return dark_curve()

    n = max(int(samples), 2)
    iph = params.isc * ratio
    n_vt = max(params.n, 1e-6) * THERMAL_VOLTAGE
    voc_scaled = _shifted_voc(params.voc, n_vt, ratio)

    v_grid = np.linspace(0.0, voc_scaled, n)
    exponent = np.minimum((v_grid - voc_scaled) / n_vt, EXPONENT_CAP)
    current = iph * (1.0 - np.exp(exponent))

    voltage = v_grid
    rs = float(params.rs)
    if series_resistance and rs > 0:
        drop = np.where(current > 0, current * rs, 0.0)
        voltage = np.maximum(v_grid - drop, 0.0)

    current = np.clip(current, 0.0, iph)

    mp_idx = _argmax_power(current, voltage)
    return IVCurve(
        current=current,
        voltage=voltage,
        voc=voc_scaled,
        isc=iph,
        vmp=float(voltage[mp_idx]),
        imp=float(current[mp_idx]),
    )


# ------ scalar helpers used by the batch paths ------

def cell_photocurrent(isc_stc: float, irradiance: float, cos_angle: float) -> float:
    """Photo-generated current (A) for a cell facing the sun at ``cos_angle``."""
    if cos_angle <= 0 or irradiance <= 0:
        return 0.0
    return isc_stc * (irradiance / 1000.0) * cos_angle


def scaled_vmp(params: CellElectricalParams, ratio: float) -> float:
    """Datasheet Vmp shifted logarithmically with irradiance, kept below Voc'."""
    ratio = _clamp_ratio(ratio)
    if ratio <= LOG_VOC_RATIO:
        return 0.0
    n_vt = max(params.n, 1e-6) * THERMAL_VOLTAGE
    voc_scaled = _shifted_voc(params.voc, n_vt, ratio)
    vmp = max(params.vmp + n_vt * math.log(ratio), 0.0)
    return min(vmp, voc_scaled)


def cell_voltage_at_current(params: CellElectricalParams, current: float, ratio: float) -> float:
    """Closed-form V(I) of the simplified single-diode model.

    Returns -inf once the operating current reaches the photo-current (the
    cell would be driven into reverse bias).
    """
    ratio = _clamp_ratio(ratio)
    if ratio <= DARK_RATIO or params.isc <= 0:
        return 0.0

    iph = params.isc * ratio
    if current >= iph:
        return float("-inf")

    frac = 1.0 - current / iph
    if frac <= 0:
        return float("-inf")

    n_vt = max(params.n, 1e-6) * THERMAL_VOLTAGE
    voc_scaled = _shifted_voc(params.voc, n_vt, ratio)
    voltage = voc_scaled + n_vt * math.log(frac)
    return voltage if voltage > 0 else 0.0
