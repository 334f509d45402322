from .aggregation import (
    Aggregate,
    Eligibility,
    LatinHonor,
    compute_group_aggregate,
    compute_term_aggregate,
    evaluate_honors_eligibility,
    classify_latin_honor,
)
from .conversion import (
    ConversionError,
    ConversionResult,
    convert_from_percentage,
    convert_from_scale_a,
    convert_from_scale_b,
)
from .grades import SubjectRecord, parse_grade_token

__version__ = "1.0.0"
