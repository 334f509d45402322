import pytest

from honors_checker.conversion import (
    CONVERSION_TABLE,
    ConversionError,
    REPEAT_RESULT,
    TerminalState,
    WITHDRAWAL_RESULT,
    convert_from_percentage,
    convert_from_scale_a,
    convert_from_scale_b,
    format_percentage,
)


# ------------------------
# APC (scale A)
# ------------------------
def test_top_bracket():
    result = convert_from_scale_a(4.0)
    assert result.scale_b == 1.00
    assert (result.percentage_min, result.percentage_max) == (95, 100)
    assert result.remark == "Excellent"
    assert result.honors_label == "Summa Cum Laude"
    assert result.terminal is None


def test_above_four_is_clamped():
    assert convert_from_scale_a("4.5") == convert_from_scale_a(4.0)
    assert convert_from_scale_a("inf") == convert_from_scale_a(4.0)
    assert convert_from_scale_a(float("inf")) == convert_from_scale_a(4.0)


def test_every_bracket_matches_exactly():
    for bracket in CONVERSION_TABLE:
        result = convert_from_scale_a(bracket.scale_a)
        assert result.scale_b == bracket.scale_b
        assert result.remark == bracket.remark


def test_interpolated_midpoint_takes_better_bracket():
    result = convert_from_scale_a(3.75)
    assert result.scale_a == 3.75
    assert result.scale_b == pytest.approx(1.125)
    assert (result.percentage_min, result.percentage_max) == (95, 100)
    assert result.honors_label == "Summa Cum Laude"


def test_interpolated_nearer_bracket():
    result = convert_from_scale_a(3.6)
    assert result.scale_b == pytest.approx(1.2)
    assert result.remark == "Very Good"

    result = convert_from_scale_a(1.2)
    assert result.scale_b == pytest.approx(2.8)
    assert result.remark == "Pass"
    assert result.honors_label is None


def test_below_passing_is_repeat():
    assert convert_from_scale_a(0.99) == REPEAT_RESULT
    assert convert_from_scale_a(0) == REPEAT_RESULT


@pytest.mark.parametrize("token", ["R", "r"])
def test_repeat_token(token):
    assert convert_from_scale_a(token).terminal is TerminalState.REPEAT


@pytest.mark.parametrize("token", ["A.W.", "a.w.", "AW"])
def test_withdrawal_token(token):
    result = convert_from_scale_a(token)
    assert result == WITHDRAWAL_RESULT
    assert result.scale_b == 6.0


@pytest.mark.parametrize("value", [-1, "-0.5", "abc", "", "nan", "-inf"])
def test_scale_a_rejects(value):
    with pytest.raises(ConversionError):
        convert_from_scale_a(value)


# ------------------------
# UP (scale B)
# ------------------------
def test_scale_b_exact():
    result = convert_from_scale_b("1.25")
    assert result.scale_a == 3.5
    assert result.remark == "Very Good"


def test_scale_b_interpolated():
    result = convert_from_scale_b(2.25)
    assert result.scale_a == pytest.approx(1.75)
    # Midpoint goes to the better bracket
    assert result.remark == "Satisfactory"

    result = convert_from_scale_b(2.4)
    assert result.scale_a == pytest.approx(1.6)
    assert result.remark == "Fair"


def test_scale_b_terminal_states():
    assert convert_from_scale_b(5.0) == REPEAT_RESULT
    assert convert_from_scale_b("6") == WITHDRAWAL_RESULT


@pytest.mark.parametrize("value", [3.5, 4.99, "5.5"])
def test_scale_b_failing_keeps_entered_grade(value):
    result = convert_from_scale_b(value)
    assert result.terminal is TerminalState.REPEAT
    assert result.scale_b == float(value)
    assert result.scale_a == 0.0
    assert (result.percentage_min, result.percentage_max) == (0, 69)
    assert result.remark == "Repeat"


@pytest.mark.parametrize("value", [0.99, 6.01, "x"])
def test_scale_b_rejects(value):
    with pytest.raises(ConversionError):
        convert_from_scale_b(value)


@pytest.mark.parametrize("a", [1.0, 1.3, 2.2, 2.75, 3.1, 3.75, 4.0])
def test_round_trip_a_to_b_to_a(a):
    b = convert_from_scale_a(a).scale_b
    assert convert_from_scale_b(b).scale_a == pytest.approx(a, abs=1e-9)


# ------------------------
# Percentage
# ------------------------
def test_percentage_lookup():
    result = convert_from_percentage(92)
    assert result.scale_a == 3.5
    assert result.scale_b == 1.25

    assert convert_from_percentage("100").scale_a == 4.0
    assert convert_from_percentage(70).remark == "Pass"


def test_percentage_without_bracket():
    assert convert_from_percentage(69) is None
    assert convert_from_percentage(0) is None
    assert convert_from_percentage(94.5) is None


@pytest.mark.parametrize("value", [-1, 100.5, "ninety"])
def test_percentage_rejects(value):
    with pytest.raises(ConversionError):
        convert_from_percentage(value)


def test_format_percentage():
    assert format_percentage(convert_from_scale_a(3.0)) == "87-90%"
    assert format_percentage(REPEAT_RESULT) == "< 70%"
    assert format_percentage(WITHDRAWAL_RESULT) == "—"
