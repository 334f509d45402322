import json
import logging
from typing import Dict, Iterable, List, Mapping, Sequence

import pandas as pd

from .grades import SubjectRecord, parse_float

logger = logging.getLogger(__name__)

FRAME_COLUMNS = ["Code", "Units", "Grade", "Honor Points"]
CSV_COLUMNS = ["term", "code", "units", "grade"]
COLUMN_ALIASES = {
    "unit": "units",
    "subject": "code",
    "subject code": "code",
    "subjectcode": "code",
}

# ------------------------
# Stored rows (saved term data)
# ------------------------

def _units(value) -> float:
    units = parse_float(value)
    return units if units is not None else 0.0


def _text(value) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and pd.isna(value):
        return ""
    return str(value)


def records_from_rows(rows: Iterable[Mapping]) -> List[SubjectRecord]:
    """
    Rows look like {"subjectCode": ..., "unit": ..., "grade": ..., "honorPoints": ...}.
    Stored honor points are ignored; they are always recomputed.
    """
    records = []
    for row in rows:
        if not isinstance(row, Mapping):
            continue
        records.append(
            SubjectRecord(
                code=_text(row.get("subjectCode")),
                units=_units(row.get("unit")),
                grade_token=_text(row.get("grade")),
            )
        )
    return records


def rows_from_records(records: Iterable[SubjectRecord]) -> List[dict]:
    return [
        {
            "subjectCode": r.code,
            "unit": r.units,
            "grade": r.grade_token,
            "honorPoints": r.honor_points,
        }
        for r in records
    ]


def dump_terms(terms: Mapping[str, Sequence[SubjectRecord]]) -> str:
    return json.dumps({name: rows_from_records(records) for name, records in terms.items()})


def load_terms(text: str) -> Dict[str, List[SubjectRecord]]:
    """Parse saved term data; anything unreadable gives an empty mapping."""
    try:
        data = json.loads(text)
    except (TypeError, ValueError) as e:
        logger.warning("Failed to parse saved term data: %s", e)
        return {}

    if not isinstance(data, dict):
        logger.warning("Saved term data is not an object (got %s)", type(data).__name__)
        return {}

    terms = {}
    for name, rows in data.items():
        if not isinstance(rows, list):
            logger.debug("Skipping term %r: rows are not a list", name)
            continue
        terms[str(name)] = records_from_rows(rows)
    logger.debug("Loaded %d terms", len(terms))
    return terms


def split_known_terms(
    terms: Mapping[str, Sequence[SubjectRecord]],
    known: Sequence[str],
):
    """
    Keep only the terms a calculator has an editor for.

    Returns (kept, dropped names) so the caller can say what was left out.
    """
    kept = {name: list(records) for name, records in terms.items() if name in known}
    dropped = [name for name in terms if name not in known]
    if dropped:
        logger.warning("Ignoring terms outside %s: %s", list(known), dropped)
    return kept, dropped


# ------------------------
# Data editor frames (UI-side)
# ------------------------

def records_to_frame(records: Sequence[SubjectRecord]) -> pd.DataFrame:
    df = pd.DataFrame(
        [
            {"Code": r.code, "Units": r.units, "Grade": r.grade_token, "Honor Points": r.honor_points}
            for r in records
        ],
        columns=FRAME_COLUMNS,
    )
    return df


def frame_to_records(df: pd.DataFrame) -> List[SubjectRecord]:
    records = []
    for _, row in df.iterrows():
        records.append(
            SubjectRecord(
                code=_text(row.get("Code")),
                units=_units(row.get("Units")),
                grade_token=_text(row.get("Grade")),
            )
        )
    return records


# ------------------------
# CSV helpers
# ------------------------

def _normalise_cols(df: pd.DataFrame) -> pd.DataFrame:
    df = df.copy()
    df.columns = [str(c).strip().lower() for c in df.columns]
    return df.rename(columns={k: v for k, v in COLUMN_ALIASES.items() if v not in df.columns})


def read_csv_upload(uploaded_file) -> pd.DataFrame:
    # Keep grades as text so "R" and "NG" survive
    df = pd.read_csv(uploaded_file, dtype=str, keep_default_na=False)
    return _normalise_cols(df)


def validate_terms_csv(df: pd.DataFrame) -> pd.DataFrame:
    df = _normalise_cols(df)
    missing = set(CSV_COLUMNS) - set(df.columns)
    if missing:
        raise ValueError(f"Missing columns: {sorted(missing)}. Expected: Term, Code, Units, Grade.")
    return df[CSV_COLUMNS].copy()


def parse_terms_csv(df: pd.DataFrame) -> Dict[str, List[SubjectRecord]]:
    terms: Dict[str, List[SubjectRecord]] = {}
    for _, row in df.iterrows():
        term = _text(row.get("term")).strip()
        if not term:
            continue
        terms.setdefault(term, []).append(
            SubjectRecord(
                code=_text(row.get("code")),
                units=_units(row.get("units")),
                grade_token=_text(row.get("grade")),
            )
        )
    return terms


def terms_to_csv(terms: Mapping[str, Sequence[SubjectRecord]]) -> str:
    rows = [
        {"term": name, "code": r.code, "units": r.units, "grade": r.grade_token}
        for name, records in terms.items()
        for r in records
    ]
    return pd.DataFrame(rows, columns=CSV_COLUMNS).to_csv(index=False)
