import math
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Union

from .grades import parse_float

SCALE_A_MAX = 4.0
SCALE_A_PASSING = 1.0
SCALE_B_MIN = 1.0
SCALE_B_MAX = 6.0
SCALE_B_REPEAT = 5.0
SCALE_B_WITHDRAWAL = 6.0
PERCENTAGE_MIN = 0.0
PERCENTAGE_MAX = 100.0


class ConversionError(ValueError):
    pass


class TerminalState(Enum):
    REPEAT = "repeat"
    AUTHORIZED_WITHDRAWAL = "authorized_withdrawal"


@dataclass(frozen=True)
class Bracket:
    scale_a: float
    scale_b: float
    percentage_min: int
    percentage_max: int
    remark: str
    honors_label: Optional[str] = None


@dataclass(frozen=True)
class ConversionResult:
    scale_a: Union[float, str]
    scale_b: float
    percentage_min: Optional[int]
    percentage_max: Optional[int]
    remark: str
    honors_label: Optional[str] = None
    terminal: Optional[TerminalState] = None


# Ordered best to worst: scale A descending, scale B ascending.
CONVERSION_TABLE: List[Bracket] = [
    Bracket(4.00, 1.00, 95, 100, "Excellent", "Summa Cum Laude"),
    Bracket(3.50, 1.25, 91, 94, "Very Good", "Magna Cum Laude"),
    Bracket(3.00, 1.50, 87, 90, "Good", "Cum Laude"),
    Bracket(2.50, 1.75, 83, 86, "Above Satisfactory"),
    Bracket(2.00, 2.00, 79, 82, "Satisfactory"),
    Bracket(1.50, 2.50, 75, 78, "Fair"),
    Bracket(1.00, 3.00, 70, 74, "Pass"),
]

REPEAT_RESULT = ConversionResult(
    scale_a="R",
    scale_b=SCALE_B_REPEAT,
    percentage_min=0,
    percentage_max=69,
    remark="Repeat",
    terminal=TerminalState.REPEAT,
)

WITHDRAWAL_RESULT = ConversionResult(
    scale_a="A.W.",
    scale_b=SCALE_B_WITHDRAWAL,
    percentage_min=None,
    percentage_max=None,
    remark="Authorized Withdrawal",
    terminal=TerminalState.AUTHORIZED_WITHDRAWAL,
)

REPEAT_TOKENS = ("R",)
WITHDRAWAL_TOKENS = ("A.W.", "AW")


def _from_bracket(
    bracket: Bracket,
    scale_a: Optional[float] = None,
    scale_b: Optional[float] = None,
) -> ConversionResult:
    return ConversionResult(
        scale_a=bracket.scale_a if scale_a is None else scale_a,
        scale_b=bracket.scale_b if scale_b is None else scale_b,
        percentage_min=bracket.percentage_min,
        percentage_max=bracket.percentage_max,
        remark=bracket.remark,
        honors_label=bracket.honors_label,
    )


def _require_number(value, scale: str, allow_infinite: bool = False) -> float:
    number = parse_float(value)
    if number is None and allow_infinite:
        try:
            number = float(str(value).strip())
        except ValueError:
            number = None
        if number is not None and math.isnan(number):
            number = None
    if number is None:
        raise ConversionError(f"{scale} grade must be a number (got {value!r}).")
    return number


def convert_from_scale_a(value: Union[str, float]) -> ConversionResult:
    """
    Convert an APC grade (0.0-4.0) to the UP grade and percentage range.

    Grades between two table rows get a linearly interpolated UP grade;
    the percentage range and remark come from the nearer row, the better
    row on an exact midpoint. Below 1.0 is a repeat. "R" and "A.W." map
    straight to their terminal states.
    """
    if isinstance(value, str):
        token = value.strip().upper()
        if token in REPEAT_TOKENS:
            return REPEAT_RESULT
        if token in WITHDRAWAL_TOKENS:
            return WITHDRAWAL_RESULT

    # Anything above 4.0, infinity included, clamps to 4.0
    grade = _require_number(value, "APC", allow_infinite=True)
    if grade < 0:
        raise ConversionError(f"APC grade cannot be negative (got {grade}).")
    grade = min(grade, SCALE_A_MAX)

    for i, current in enumerate(CONVERSION_TABLE):
        if grade == current.scale_a:
            return _from_bracket(current)

        if i < len(CONVERSION_TABLE) - 1:
            nxt = CONVERSION_TABLE[i + 1]
            if nxt.scale_a < grade < current.scale_a:
                ratio = (current.scale_a - grade) / (current.scale_a - nxt.scale_a)
                scale_b = current.scale_b + ratio * (nxt.scale_b - current.scale_b)
                midpoint = (current.scale_a + nxt.scale_a) / 2
                bracket = current if grade >= midpoint else nxt
                return _from_bracket(bracket, scale_a=grade, scale_b=scale_b)

    # Only grades under the lowest passing row are left
    return REPEAT_RESULT


def convert_from_scale_b(value: Union[str, float]) -> ConversionResult:
    """UP grade (1.0-6.0) to APC grade; mirror of convert_from_scale_a."""
    grade = _require_number(value, "UP")
    if grade < SCALE_B_MIN or grade > SCALE_B_MAX:
        raise ConversionError(
            f"UP grade must be between {SCALE_B_MIN} and {SCALE_B_MAX} (got {grade})."
        )

    if grade == SCALE_B_REPEAT:
        return REPEAT_RESULT
    if grade == SCALE_B_WITHDRAWAL:
        return WITHDRAWAL_RESULT

    for i, current in enumerate(CONVERSION_TABLE):
        if grade == current.scale_b:
            return _from_bracket(current)

        if i < len(CONVERSION_TABLE) - 1:
            nxt = CONVERSION_TABLE[i + 1]
            if current.scale_b < grade < nxt.scale_b:
                ratio = (grade - current.scale_b) / (nxt.scale_b - current.scale_b)
                scale_a = current.scale_a - ratio * (current.scale_a - nxt.scale_a)
                midpoint = (current.scale_b + nxt.scale_b) / 2
                bracket = current if grade <= midpoint else nxt
                return _from_bracket(bracket, scale_a=scale_a, scale_b=grade)

    # Worse than 3.0 is failing; keep the UP grade that was entered
    return ConversionResult(
        scale_a=0.0,
        scale_b=grade,
        percentage_min=REPEAT_RESULT.percentage_min,
        percentage_max=REPEAT_RESULT.percentage_max,
        remark=REPEAT_RESULT.remark,
        terminal=TerminalState.REPEAT,
    )


def convert_from_percentage(value: Union[str, float]) -> Optional[ConversionResult]:
    """
    Percentage to both grade scales by range lookup.

    Returns None when no row covers the percentage (below 70, or between
    two integer ranges such as 94.5).
    """
    percentage = _require_number(value, "Percentage")
    if percentage < PERCENTAGE_MIN or percentage > PERCENTAGE_MAX:
        raise ConversionError(
            f"Percentage must be between {PERCENTAGE_MIN:g} and {PERCENTAGE_MAX:g} (got {percentage:g})."
        )

    for bracket in CONVERSION_TABLE:
        if bracket.percentage_min <= percentage <= bracket.percentage_max:
            return _from_bracket(bracket)
    return None


def format_percentage(result: ConversionResult) -> str:
    if result.terminal is TerminalState.REPEAT:
        return "< 70%"
    if result.percentage_min is None:
        return "—"
    return f"{result.percentage_min}-{result.percentage_max}%"
