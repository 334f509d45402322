import math
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Optional, Union

EXEMPT_PREFIX = "NATSER"
REPEAT_TOKEN = "R"
NO_GRADE_TOKENS = ("NG", "N")


# ------------------------
# Grade tokens
# ------------------------
class GradeKind(Enum):
    NUMERIC = "numeric"
    REPEAT = "repeat"
    NO_GRADE = "no_grade"


@dataclass(frozen=True)
class Grade:
    kind: GradeKind
    value: float = 0.0

    @property
    def is_repeat(self) -> bool:
        return self.kind is GradeKind.REPEAT


def round_2dp_half_up(x: float) -> float:
    return float(Decimal(str(x)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def parse_float(value: Union[str, float, int, None]) -> Optional[float]:
    """Lenient float parse; returns None for blanks, junk, NaN and infinities."""
    if value is None:
        return None
    try:
        number = float(str(value).strip())
    except ValueError:
        return None
    if not math.isfinite(number):
        return None
    return number


def parse_grade_token(token: Union[str, float, int, None]) -> Optional[Grade]:
    """
    Normalize a raw grade entry.

    Returns None for a blank entry (row not filled in yet). "R" is a repeat,
    "NG"/"N" is no grade yet, anything else is read as a number with
    unparseable input counting as 0.
    """
    if token is None:
        return None
    text = str(token).strip()
    if not text:
        return None

    upper = text.upper()
    if upper == REPEAT_TOKEN:
        return Grade(GradeKind.REPEAT)
    if upper in NO_GRADE_TOKENS:
        return Grade(GradeKind.NO_GRADE)

    value = parse_float(text)
    return Grade(GradeKind.NUMERIC, value if value is not None else 0.0)


def is_exempt(code: Optional[str]) -> bool:
    return (code or "").strip().upper().startswith(EXEMPT_PREFIX)


# ------------------------
# Subject rows
# ------------------------
@dataclass(frozen=True)
class SubjectRecord:
    code: str
    units: float
    grade_token: str

    @property
    def grade(self) -> Optional[Grade]:
        return parse_grade_token(self.grade_token)

    @property
    def exempt(self) -> bool:
        return is_exempt(self.code)

    @property
    def is_repeat(self) -> bool:
        grade = self.grade
        return grade is not None and grade.is_repeat

    @property
    def is_valid(self) -> bool:
        """Counts toward aggregates: filled in, positive units, not NATSER."""
        return (
            bool((self.code or "").strip())
            and self.grade is not None
            and self.units > 0
            and not self.exempt
        )

    @property
    def honor_points(self) -> float:
        grade = self.grade
        if self.exempt or grade is None or grade.kind is not GradeKind.NUMERIC:
            return 0.0
        return grade.value * self.units
