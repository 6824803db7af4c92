import itertools

import numpy as np
import pytest

from stringsim.src.bypassdiode import BypassDiode, BypassSegment, is_per_cell, segments_from_flags
from stringsim.src.interp import voltage_at_current
from stringsim.src.string import solve_string
from stringsim.src.substring import (
    SegmentBypassResolver,
    order_segments,
    resolve_bypass,
    resolve_segments,
    segment_voltage,
)

OUTER = BypassSegment(0, 9, 0.35)
INNER = BypassSegment(4, 6, 0.35)
LIT_ISC = 6.0
SHADED_ISC = 0.5


def _iscs(*shaded, n=10):
    iscs = [LIT_ISC] * n
    for p in shaded:
        iscs[p] = SHADED_ISC
    return iscs


def test_nested_only_inner_activates_for_inner_shade():
    res = resolve_bypass(_iscs(5), [OUTER, INNER], current=3.0)
    assert res.weak == frozenset({5})
    assert res.activated == (INNER,)
    assert res.bypassed == frozenset({4, 5, 6})
    assert res.stranded == frozenset()
    assert res.total_drop == pytest.approx(0.35)


def test_nested_both_activate_when_outer_only_cell_is_shaded():
    res = resolve_bypass(_iscs(2, 5), [OUTER, INNER], current=3.0)
    assert res.weak == frozenset({2, 5})
    assert set(res.activated) == {INNER, OUTER}
    assert res.bypassed == frozenset(range(10))
    assert res.total_drop == pytest.approx(0.70)


def test_smaller_inactive_segment_takes_precedence():
    # outer is active for position 1, inner stays idle, so 4..6 keep producing
    res = resolve_bypass(_iscs(1), [OUTER, INNER], current=3.0)
    assert res.activated == (OUTER,)
    assert res.bypassed == frozenset({0, 1, 2, 3, 7, 8, 9})


def test_below_every_isc_nothing_conducts():
    res = resolve_bypass(_iscs(2, 5), [OUTER, INNER], current=0.1)
    assert res.weak == frozenset()
    assert res.activated == ()
    assert res.bypassed == frozenset()


def test_uncovered_weak_cell_is_stranded():
    res = resolve_bypass(_iscs(8), [INNER], current=3.0)
    assert res.stranded == frozenset({8})
    assert res.activated == ()


def test_resolution_ignores_segment_order():
    segments = [OUTER, INNER, BypassSegment(0, 2, 0.35), BypassSegment(7, 9, 0.35)]
    iscs = _iscs(1, 5, 8)
    expected = resolve_bypass(iscs, segments, 3.0)
    for perm in itertools.permutations(segments):
        assert resolve_bypass(iscs, list(perm), 3.0) == expected


def test_equal_size_tie_goes_to_lowest_start():
    left = BypassSegment(2, 4, 0.35)
    right = BypassSegment(3, 5, 0.35)
    assert order_segments([right, left]) == [left, right]
    res = resolve_bypass(_iscs(3, n=8), [right, left], current=3.0)
    assert res.activated == (left,)
    assert res.bypassed == frozenset({2, 3, 4})


def test_duplicate_segments_collapse():
    res = resolve_bypass(_iscs(5), [INNER, INNER, OUTER], current=3.0)
    assert res.activated == (INNER,)
    assert res.total_drop == pytest.approx(0.35)


def test_no_segments_matches_plain_string(make_curves):
    curves = make_curves([1.0, 1.0, 0.6, 1.0, 1.0])
    seg = resolve_segments(curves, [])
    plain = solve_string(curves)
    assert seg.power == pytest.approx(plain.power, rel=0.01)
    assert seg.cells_bypassed == 0


def test_full_sample_count_is_kept(make_curves):
    ratios = [1.0] * 6
    ratios[2] = 0.0
    res = resolve_segments(make_curves(ratios), [], samples=120)
    # no truncation, even though the string is dead
    assert res.iv_curve.n_samples == 120
    assert res.power == 0.0


def test_single_cell_segments_agree_with_node_solver(make_curves):
    ratios = [1.0, 1.0, 0.0, 1.0, 0.3, 1.0, 1.0, 1.0]
    flags = [False, False, True, False, True, False, False, False]
    curves = make_curves(ratios)
    node = solve_string(curves, 0.35, flags)
    seg = resolve_segments(curves, segments_from_flags(flags, 0.35))
    assert seg.power == pytest.approx(node.power, rel=0.01)
    assert seg.bypassed_positions == node.bypassed_positions


def test_multi_cell_segment_removes_whole_group(make_curves, cell_params):
    ratios = [1.0] * 12
    ratios[1] = 0.0
    curves = make_curves(ratios)
    segs = [BypassSegment(0, 3, 0.35), BypassSegment(4, 7, 0.35), BypassSegment(8, 11, 0.35)]
    res = resolve_segments(curves, segs)
    assert res.bypassed_positions == (0, 1, 2, 3)
    assert res.activated_segments == (segs[0],)
    assert res.cells_bypassed == 4
    expected = 8 * curves[0].pmp - 0.35 * res.current
    assert res.power == pytest.approx(expected, rel=0.02)


def test_nested_string_power(make_curves):
    ratios = [1.0] * 10
    ratios[5] = 0.0
    curves = make_curves(ratios)
    res = resolve_segments(curves, [OUTER, INNER])
    assert res.bypassed_positions == (4, 5, 6)
    assert res.activated_segments == (INNER,)
    assert res.power == pytest.approx(7 * curves[0].pmp - 0.35 * res.current, rel=0.02)


def test_segment_voltage_is_non_increasing(make_curves):
    curves = make_curves([1.0, 0.8, 0.5, 1.0, 0.2, 1.0, 0.9, 1.0, 1.0, 0.6])
    res = resolve_segments(curves, [OUTER, INNER, BypassSegment(0, 2, 0.35)])
    assert np.all(np.diff(res.iv_curve.voltage) >= -1e-12)
    assert res.power >= 0.0


def test_resolver_reuses_layout(make_curves):
    resolver = SegmentBypassResolver([INNER, OUTER], n_cells=10, samples=80)
    assert resolver.segments == [INNER, OUTER]
    ratios = [1.0] * 10
    ratios[5] = 0.0
    curves = make_curves(ratios)
    a = resolver.solve(curves)
    b = resolve_segments(curves, [OUTER, INNER], samples=80)
    assert a.power == pytest.approx(b.power)
    assert resolver.resolve([c.isc for c in curves], 3.0).activated == (INNER,)


def test_segment_helpers():
    assert INNER.size == 3
    assert INNER.covers(4) and INNER.covers(6) and not INNER.covers(7)
    assert not is_per_cell([INNER])
    assert is_per_cell(segments_from_flags([True, False, True]))
    assert not is_per_cell([BypassSegment(0, 0, 0.3), BypassSegment(1, 1, 0.5)])


def test_bypass_diode_clamp():
    d = BypassDiode(0.4, series_resistance=0.01)
    assert d.v_at_i(2.0) == pytest.approx(-0.42)
    assert d.v_at_i(-1.0) == pytest.approx(-0.4)
    assert d.activation_condition(-1.0, 2.0)
    assert not d.activation_condition(0.5, 2.0)
    assert d.clamp(-1.0, 2.0) == pytest.approx(-0.42)
    assert d.clamp(0.5, 2.0) == pytest.approx(0.5)


def test_segment_voltage_drops_out_bypassed_cells(make_curves):
    curves = make_curves([1.0, 1.0, 0.05, 1.0])
    seg = BypassSegment(1, 2, 0.4)
    i = 3.0
    res = resolve_bypass([c.isc for c in curves], [seg], current=i)
    assert res.bypassed == frozenset({1, 2})
    expected = voltage_at_current(curves[0], i) + voltage_at_current(curves[3], i) + seg.diode().v_at_i(i)
    assert segment_voltage(curves, res, i) == pytest.approx(expected)
    assert seg.diode().v_at_i(i) == pytest.approx(-0.4)


def test_stranded_cell_blocks_segment_voltage(make_curves):
    curves = make_curves([1.0, 0.05])
    res = resolve_bypass([c.isc for c in curves], [BypassSegment(0, 0, 0.35)], current=3.0)
    assert res.stranded == frozenset({1})
    assert segment_voltage(curves, res, 3.0) == float("-inf")
