import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Mapping, NamedTuple, Optional, Sequence

import numpy as np

from .grades import SubjectRecord, round_2dp_half_up

logger = logging.getLogger(__name__)

MAX_SUBJECTS_PER_TERM = 10

HONORS_TERMS = ["Term 1", "Term 2", "Term 3"]
YEARS = ["Year 1", "Year 2", "Year 3", "Year 4"]
LATIN_TERM_LAYOUT = [[f"{year} {term}" for term in HONORS_TERMS] for year in YEARS]


# ------------------------
# Results
# ------------------------
@dataclass(frozen=True)
class Aggregate:
    total_units: float = 0.0
    total_honor_points: float = 0.0
    gpa: float = 0.0
    repeat_count: int = 0


EMPTY_AGGREGATE = Aggregate()


class Eligibility(Enum):
    INSUFFICIENT_UNITS = "insufficient_units"
    TOO_MANY_REPEATS = "too_many_repeats"
    ELIGIBLE = "eligible"
    NOT_ELIGIBLE = "not_eligible"


class LatinHonor(Enum):
    SUMMA_CUM_LAUDE = "Summa Cum Laude"
    MAGNA_CUM_LAUDE = "Magna Cum Laude"
    CUM_LAUDE = "Cum Laude"
    NONE = "No Latin Honor"


class HonorsPolicy(NamedTuple):
    unit_threshold: float
    repeat_threshold: int


TERM_HONORS = HonorsPolicy(unit_threshold=36, repeat_threshold=2)
LATIN_HONORS = HonorsPolicy(unit_threshold=144, repeat_threshold=8)

HONORS_GPA_MIN = 3.0
HONORS_GPA_MAX = 4.0

# Highest band first; lower edges are inclusive.
LATIN_HONOR_BANDS = [
    (3.85, LatinHonor.SUMMA_CUM_LAUDE),
    (3.70, LatinHonor.MAGNA_CUM_LAUDE),
    (3.50, LatinHonor.CUM_LAUDE),
]


# ------------------------
# Core logic
# ------------------------
def compute_term_aggregate(records: Iterable[SubjectRecord]) -> Aggregate:
    """
    Roll up one term's subject rows.

    Incomplete rows (blank code or grade, zero units) and NATSER rows are
    left out. GPA is total honor points over total units, kept at full
    precision; round only for display.
    """
    valid = [r for r in records if r.is_valid]
    if not valid:
        return EMPTY_AGGREGATE

    units = np.array([r.units for r in valid], dtype=float)
    points = np.array([r.honor_points for r in valid], dtype=float)

    total_units = float(units.sum())
    total_points = float(points.sum())
    gpa = total_points / total_units if total_units > 0 else 0.0
    repeats = sum(1 for r in valid if r.is_repeat)

    return Aggregate(
        total_units=total_units,
        total_honor_points=total_points,
        gpa=gpa,
        repeat_count=repeats,
    )


def compute_group_aggregate(aggregates: Sequence[Aggregate]) -> Aggregate:
    """
    Combine term (or year) aggregates into a higher level.

    GPA is the plain mean of member GPAs, so every member weighs the same
    regardless of its unit load, and a member with no valid rows pulls the
    mean down with a GPA of 0. Units, honor points and repeats are summed.
    """
    if len(aggregates) == 0:
        return EMPTY_AGGREGATE

    gpas = np.array([a.gpa for a in aggregates], dtype=float)
    return Aggregate(
        total_units=float(sum(a.total_units for a in aggregates)),
        total_honor_points=float(sum(a.total_honor_points for a in aggregates)),
        gpa=float(gpas.mean()),
        repeat_count=int(sum(a.repeat_count for a in aggregates)),
    )


def compute_year_aggregate(terms: Iterable[Iterable[SubjectRecord]]) -> Aggregate:
    """Pool every term's rows for a year and aggregate them as one set."""
    pooled: List[SubjectRecord] = []
    for records in terms:
        pooled.extend(records)
    return compute_term_aggregate(pooled)


def year_of(term_name: str) -> str:
    """
    Year key for a term name: "Year 2 Term 3" -> "Year 2".

    Names without a "Term" token fall back to their first word.
    """
    tokens = term_name.split()
    for i, token in enumerate(tokens):
        if token.lower() == "term" and i > 0:
            return " ".join(tokens[:i])
    return tokens[0] if tokens else ""


def group_terms_by_year(
    terms: Mapping[str, Sequence[SubjectRecord]],
) -> Dict[str, List[Sequence[SubjectRecord]]]:
    groups: Dict[str, List[Sequence[SubjectRecord]]] = {}
    for term_name, records in terms.items():
        groups.setdefault(year_of(term_name), []).append(records)
    return groups


def evaluate_honors_eligibility(
    aggregate: Aggregate,
    unit_threshold: float,
    repeat_threshold: int,
) -> Eligibility:
    # First failing check wins
    if aggregate.total_units < unit_threshold:
        return Eligibility.INSUFFICIENT_UNITS
    if aggregate.repeat_count > repeat_threshold:
        return Eligibility.TOO_MANY_REPEATS
    if HONORS_GPA_MIN <= aggregate.gpa <= HONORS_GPA_MAX:
        return Eligibility.ELIGIBLE
    return Eligibility.NOT_ELIGIBLE


def classify_latin_honor(overall_gpa: float) -> LatinHonor:
    for lower_edge, honor in LATIN_HONOR_BANDS:
        if overall_gpa >= lower_edge:
            return honor
    return LatinHonor.NONE


def describe_eligibility(verdict: Optional[Eligibility], policy: HonorsPolicy) -> str:
    if verdict is None:
        return "-"
    if verdict is Eligibility.INSUFFICIENT_UNITS:
        return "No, not enough units"
    if verdict is Eligibility.TOO_MANY_REPEATS:
        return f"No, more than {policy.repeat_threshold} R grades"
    if verdict is Eligibility.ELIGIBLE:
        return "Yes"
    return "No"


# ------------------------
# Summaries (what the calculator pages show)
# ------------------------
def term_honors_summary(terms: Mapping[str, Sequence[SubjectRecord]]):
    """
    terms: term name -> subject rows, e.g. {"Term 1": [...], "Term 2": [...]}

    Every term present counts toward the mean GPA, including empty ones.
    """
    term_stats = {name: compute_term_aggregate(records) for name, records in terms.items()}

    if len(term_stats) == 0:
        overall = EMPTY_AGGREGATE
        verdict = None
    else:
        overall = compute_group_aggregate(list(term_stats.values()))
        verdict = evaluate_honors_eligibility(
            overall,
            unit_threshold=TERM_HONORS.unit_threshold,
            repeat_threshold=TERM_HONORS.repeat_threshold,
        )

    logger.debug("Term honors: %d terms, gpa=%.4f, verdict=%s", len(term_stats), overall.gpa, verdict)

    return {
        "term_stats": term_stats,
        "overall": overall,
        "gpa": overall.gpa,
        "gpa_rounded": round_2dp_half_up(overall.gpa),
        "verdict": verdict,
        "verdict_label": describe_eligibility(verdict, TERM_HONORS),
    }


def latin_honors_summary(
    terms: Mapping[str, Sequence[SubjectRecord]],
    years: Sequence[str] = YEARS,
):
    """
    terms: term name -> subject rows, named "Year N Term M"
    years: the year keys that make up the degree (four by default)

    Each year pools its terms' rows. The overall GPA is the mean of the year
    GPAs across all listed years; a year with nothing entered counts as 0.
    """
    grouped = group_terms_by_year(terms)
    year_stats = {year: compute_year_aggregate(grouped.get(year, [])) for year in years}

    has_entries = any(a.total_units > 0 for a in year_stats.values())
    if not has_entries:
        overall = EMPTY_AGGREGATE
        verdict = None
        honor = None
    else:
        overall = compute_group_aggregate(list(year_stats.values()))
        verdict = evaluate_honors_eligibility(
            overall,
            unit_threshold=LATIN_HONORS.unit_threshold,
            repeat_threshold=LATIN_HONORS.repeat_threshold,
        )
        honor = classify_latin_honor(overall.gpa) if verdict is Eligibility.ELIGIBLE else None

    ignored = sorted(set(grouped) - set(years))
    if ignored:
        logger.debug("Latin honors: ignoring terms outside %s: %s", list(years), ignored)

    if verdict is None:
        label = "-"
    elif verdict is Eligibility.ELIGIBLE:
        label = honor.value
    elif verdict is Eligibility.NOT_ELIGIBLE:
        label = LatinHonor.NONE.value
    else:
        label = describe_eligibility(verdict, LATIN_HONORS)

    return {
        "year_stats": year_stats,
        "overall": overall,
        "gpa": overall.gpa,
        "gpa_rounded": round_2dp_half_up(overall.gpa),
        "verdict": verdict,
        "latin_honor": honor,
        "latin_honor_label": label,
    }
