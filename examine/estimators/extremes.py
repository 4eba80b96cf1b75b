"""Extreme-value listing with Tukey-fence classification."""
from __future__ import annotations

from typing import Callable, List, Optional, Sequence, Tuple

from ..primitives.frequency import frequency_table
from ..primitives.percentile import select_percentile
from ..types import (
    ExtremeEntry,
    ExtremeKind,
    ExtremeValues,
    Fences,
    FrequencyTable,
    ObservationSet,
    PercentileRule,
    TieStatus,
)

FENCE_STEP = 1.5
DEFAULT_EXTREME_COUNT = 5

_Case = Tuple[int, float]  # (case_index, value)


def tukey_fences(q1: float, q3: float) -> Fences:
    step = FENCE_STEP * (q3 - q1)
    return Fences(
        lower_inner=q1 - step,
        upper_inner=q3 + step,
        lower_outer=q1 - 2 * step,
        upper_outer=q3 + 2 * step,
    )


def classify(value: float, fences: Fences) -> ExtremeKind:
    if value < fences.lower_outer or value > fences.upper_outer:
        return ExtremeKind.EXTREME
    if value < fences.lower_inner or value > fences.upper_inner:
        return ExtremeKind.OUTLIER
    return ExtremeKind.NORMAL


def _pick(source: Sequence[_Case], predicate: Callable[[float], bool], count: int) -> List[_Case]:
    picked: List[_Case] = []
    for case in source:
        if len(picked) == count:
            break
        if predicate(case[1]):
            picked.append(case)
    return picked


def _fill(picked: List[_Case], source: Sequence[_Case], count: int) -> List[_Case]:
    """Top up with the next cases by value, skipping case indexes already listed."""
    seen = {case_index for case_index, _ in picked}
    for case_index, value in source:
        if len(picked) >= count:
            break
        if case_index not in seen:
            picked.append((case_index, value))
            seen.add(case_index)
    return picked


def _is_partial_tie(picked: Sequence[_Case], source: Sequence[_Case]) -> bool:
    """True when the last listed value continues just past the selection window."""
    if not picked:
        return False
    last_case, last_value = picked[-1]
    for pos, (case, _) in enumerate(source):
        if case == last_case:
            return pos + 1 < len(source) and source[pos + 1][1] == last_value
    return False


def _entries(
    picked: Sequence[_Case],
    source: Sequence[_Case],
    fences: Optional[Fences],
) -> Tuple[ExtremeEntry, ...]:
    partial = _is_partial_tie(picked, source)
    out = []
    for i, (case, value) in enumerate(picked):
        tie = TieStatus.PARTIAL_TIE if partial and i == len(picked) - 1 else TieStatus.INCLUDED
        kind = classify(value, fences) if fences is not None else None
        out.append(ExtremeEntry(case_index=case, value=value, kind=kind, tie=tie))
    return tuple(out)


def extreme_values(
    obs: ObservationSet,
    count: int = DEFAULT_EXTREME_COUNT,
    freq: Optional[FrequencyTable] = None,
) -> Optional[ExtremeValues]:
    """The `count` highest and lowest cases, classified against Tukey fences.

    Quartiles use the waverage rule. Beyond-outer-fence cases are listed
    first, then cases between the fences, then the next cases by value. With
    a zero IQR the listing is a plain top/bottom `count` without fences.
    Returns None when there are no observations.
    """
    if count < 1:
        raise ValueError(f"extreme count must be >= 1, got {count}")
    if len(obs) == 0:
        return None
    freq = freq if freq is not None else frequency_table(obs)

    cases: List[_Case] = [
        (int(case), float(value)) for case, value in zip(obs.case_indexes, obs.values)
    ]
    ascending = sorted(cases, key=lambda c: c[1])
    descending = sorted(cases, key=lambda c: c[1], reverse=True)
    is_truncated = count > len(cases)

    q1 = select_percentile(freq, 25, PercentileRule.WAVERAGE)
    q3 = select_percentile(freq, 75, PercentileRule.WAVERAGE)
    if q1 is None or q3 is None:
        return None

    if q3 - q1 == 0:
        lowest = ascending[:count]
        highest = descending[:count]
        return ExtremeValues(
            highest=_entries(highest, descending, None),
            lowest=_entries(lowest, ascending, None),
            fences=None,
            is_truncated=is_truncated,
        )

    fences = tukey_fences(q1, q3)

    highest = _pick(descending, lambda v: v > fences.upper_outer, count)
    if len(highest) < count:
        between = _pick(descending, lambda v: fences.upper_inner < v <= fences.upper_outer, count)
        highest.extend(between[:count - len(highest)])
    highest = _fill(highest, descending, count)

    lowest = _pick(ascending, lambda v: v < fences.lower_outer, count)
    if len(lowest) < count:
        between = _pick(ascending, lambda v: fences.lower_outer <= v < fences.lower_inner, count)
        lowest.extend(between[:count - len(lowest)])
    lowest = _fill(lowest, ascending, count)

    return ExtremeValues(
        highest=_entries(highest, descending, fences),
        lowest=_entries(lowest, ascending, fences),
        fences=fences,
        is_truncated=is_truncated,
    )
