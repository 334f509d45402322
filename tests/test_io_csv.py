import io
import json

import pandas as pd
import pytest

from honors_checker.grades import SubjectRecord
from honors_checker.io_csv import (
    dump_terms,
    frame_to_records,
    load_terms,
    parse_terms_csv,
    read_csv_upload,
    records_from_rows,
    records_to_frame,
    split_known_terms,
    terms_to_csv,
    validate_terms_csv,
)


def test_load_saved_rows_recomputes_honor_points():
    saved = json.dumps(
        {
            "Term 1": [
                {"subjectCode": "IT101", "unit": 3, "grade": "3.5", "honorPoints": 999},
                {"subjectCode": "", "unit": 0, "grade": "", "honorPoints": 0},
            ]
        }
    )
    terms = load_terms(saved)
    assert list(terms) == ["Term 1"]
    assert terms["Term 1"][0] == SubjectRecord("IT101", 3.0, "3.5")
    assert terms["Term 1"][0].honor_points == 10.5


@pytest.mark.parametrize("text", ["not json", "[1, 2]", "null", ""])
def test_load_unreadable_data(text):
    assert load_terms(text) == {}


def test_load_skips_non_list_terms():
    terms = load_terms(json.dumps({"Term 1": "oops", "Term 2": []}))
    assert terms == {"Term 2": []}


def test_dump_uses_stored_row_shape():
    data = json.loads(dump_terms({"Term 1": [SubjectRecord("IT101", 3, "R")]}))
    assert data == {"Term 1": [{"subjectCode": "IT101", "unit": 3, "grade": "R", "honorPoints": 0.0}]}


def test_rows_with_bad_units():
    records = records_from_rows([{"subjectCode": "A", "unit": "three", "grade": "4"}, "junk"])
    assert records == [SubjectRecord("A", 0.0, "4")]


def test_frame_bridge():
    records = [SubjectRecord("IT101", 3, "4.0"), SubjectRecord("IT102", 2, "NG")]
    df = records_to_frame(records)
    assert list(df.columns) == ["Code", "Units", "Grade", "Honor Points"]
    assert df["Honor Points"].tolist() == [12.0, 0.0]
    assert frame_to_records(df) == [SubjectRecord("IT101", 3.0, "4.0"), SubjectRecord("IT102", 2.0, "NG")]


def test_frame_with_missing_cells():
    df = pd.DataFrame([{"Code": None, "Units": float("nan"), "Grade": None}])
    assert frame_to_records(df) == [SubjectRecord("", 0.0, "")]


def test_csv_upload():
    upload = io.StringIO("Term,Subject Code,Unit,Grade\nTerm 1,IT101,3,R\nTerm 1,IT102,3,3.5\nTerm 2,IT201,3,NG\n,X,3,4\n")
    df = validate_terms_csv(read_csv_upload(upload))
    terms = parse_terms_csv(df)

    assert list(terms) == ["Term 1", "Term 2"]
    assert terms["Term 1"][0] == SubjectRecord("IT101", 3.0, "R")
    assert terms["Term 2"][0].grade_token == "NG"


def test_csv_missing_columns():
    with pytest.raises(ValueError, match="grade"):
        validate_terms_csv(pd.DataFrame({"term": ["Term 1"], "code": ["A"], "units": [3]}))


def test_csv_export_reads_back():
    terms = {"Year 1 Term 1": [SubjectRecord("IT101", 3.0, "4.0")]}
    text = terms_to_csv(terms)
    parsed = parse_terms_csv(validate_terms_csv(read_csv_upload(io.StringIO(text))))
    assert parsed == terms


def test_restore_drops_terms_without_editor():
    restored = load_terms(
        json.dumps(
            {
                "Term 1": [{"subjectCode": "IT101", "unit": 3, "grade": "4.0"}],
                "Term 4": [{"subjectCode": "IT401", "unit": 3, "grade": "1.0"}],
            }
        )
    )
    kept, dropped = split_known_terms(restored, ["Term 1", "Term 2", "Term 3"])

    assert kept == {"Term 1": [SubjectRecord("IT101", 3.0, "4.0")]}
    assert dropped == ["Term 4"]


def test_restore_keeps_everything_known():
    terms = {"Term 2": [SubjectRecord("IT201", 3.0, "R")]}
    assert split_known_terms(terms, ["Term 1", "Term 2"]) == (terms, [])
