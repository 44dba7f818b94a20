import pytest

from santadraw.engine import DrawEngine, DrawError, DrawErrorCode
from santadraw.services.draw_flow import (
    DRAW_ALREADY_COMPLETED,
    DrawFlowError,
    run_group_draw,
    status_for,
    validate_group_draw,
)


def test_validation_report_for_open_group():
    report = validate_group_draw(["a", "b", "c", "d"], [("a", "b"), ("b", "a")])
    assert report.is_valid
    assert report.can_draw
    assert report.participant_count == 4
    assert report.exclusion_rule_count == 1
    assert report.errors == []
    assert report.warnings == []


def test_completed_draw_is_valid_but_cannot_run_again():
    report = validate_group_draw(["a", "b", "c"], draw_completed=True)
    assert report.is_valid
    assert not report.can_draw
    assert report.warnings == [DRAW_ALREADY_COMPLETED]


def test_validation_report_lists_starved_participants():
    report = validate_group_draw(["a", "b", "c", "d"], [("a", "b"), ("a", "d"), ("b", "d")])
    assert not report.is_valid
    assert not report.can_draw
    assert report.errors == ["ExclusionRulesPreventValidAssignment"]
    assert set(report.unmatched) == {"a", "b", "d"}


def test_validation_report_for_small_group():
    report = validate_group_draw(["a", "b"])
    assert report.errors == ["MinimumParticipantsRequired"]
    assert report.participant_count == 2


def test_validation_report_for_malformed_exclusions():
    report = validate_group_draw(["a", "b", "c"], [7])
    assert not report.is_valid
    assert not report.can_draw
    assert report.errors == ["InvalidInput"]
    assert report.exclusion_rule_count == 0
    assert report.participant_count == 3


def test_run_group_draw_returns_assignment():
    outcome = run_group_draw(["a", "b", "c", "d"], [("a", "b")], seed=5, engine=DrawEngine(max_attempts=5))
    assert outcome.succeeded
    assert outcome.assignment["a"] != "b"


def test_run_group_draw_refuses_completed_draw():
    with pytest.raises(DrawFlowError, match="already been completed"):
        run_group_draw(["a", "b", "c"], draw_completed=True)


def test_run_group_draw_reports_failure_as_value():
    outcome = run_group_draw(["a", "b"], seed=1)
    assert not outcome.succeeded
    assert status_for(outcome.error) == 422


@pytest.mark.parametrize(
    "code, status",
    [
        (DrawErrorCode.INVALID_INPUT, 400),
        (DrawErrorCode.MINIMUM_PARTICIPANTS_REQUIRED, 422),
        (DrawErrorCode.EXCLUSION_RULES_PREVENT_VALID_ASSIGNMENT, 422),
        (DrawErrorCode.ASSIGNMENT_REPAIR_EXHAUSTED, 503),
    ],
)
def test_status_for_error_codes(code, status):
    assert status_for(DrawError(code, "message")) == status
