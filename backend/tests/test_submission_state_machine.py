"""Unit тесты для таблицы переходов и каскада статусов подачи."""

from __future__ import annotations

from dataclasses import dataclass

import pytest

from app.core.errors import InvalidTransitionError
from app.db.enums import ReviewPath, StudyStatus, SubmissionStatus as S
from app.services.submission_state_machine import (
    INITIAL_STATUS,
    TRANSITIONS,
    can_transition,
    cascade_study_status,
    is_terminal,
    path_for_status,
    replay_history,
    validate_transition,
)

ALLOWED = {
    (S.DRAFT, S.READY_TO_SUBMIT),
    (S.READY_TO_SUBMIT, S.SUBMITTED),
    (S.SUBMITTED, S.PRE_REVIEW),
    (S.PRE_REVIEW, S.MODIFICATIONS_REQUESTED),
    (S.PRE_REVIEW, S.EXEMPT_DETERMINATION),
    (S.PRE_REVIEW, S.EXPEDITED_APPROVED),
    (S.PRE_REVIEW, S.MEETING_SCHEDULED),
    (S.PRE_REVIEW, S.NOT_APPROVED),
    (S.MODIFICATIONS_REQUESTED, S.RESUBMITTED),
    (S.RESUBMITTED, S.PRE_REVIEW),
    (S.MEETING_SCHEDULED, S.APPROVED),
    (S.MEETING_SCHEDULED, S.CONDITIONALLY_APPROVED),
    (S.MEETING_SCHEDULED, S.DEFERRED),
    (S.MEETING_SCHEDULED, S.NOT_APPROVED),
    (S.CONDITIONALLY_APPROVED, S.APPROVED),
    (S.DEFERRED, S.MEETING_SCHEDULED),
}


@dataclass
class Step:
    from_status: S | None
    to_status: S


class TestTransitionTable:
    """Замкнутость таблицы переходов."""

    def test_every_status_has_entry(self):
        assert set(TRANSITIONS) == set(S)

    @pytest.mark.parametrize("current", list(S))
    def test_closure_over_all_pairs(self, current):
        """Разрешены ровно перечисленные пары, всё остальное отклоняется."""
        for target in S:
            assert can_transition(current, target) == ((current, target) in ALLOWED)

    def test_validate_rejects_with_from_and_to(self):
        with pytest.raises(InvalidTransitionError) as exc_info:
            validate_transition(S.DRAFT, S.APPROVED)
        assert exc_info.value.code == "invalid_transition"
        assert exc_info.value.details == {"from_status": "DRAFT", "to_status": "APPROVED"}

    def test_self_transition_not_allowed(self):
        for status in S:
            assert not can_transition(status, status)

    def test_no_multi_step_shortcuts(self):
        assert not can_transition(S.DRAFT, S.SUBMITTED)
        assert not can_transition(S.SUBMITTED, S.APPROVED)

    def test_terminal_statuses(self):
        terminal = {s for s in S if is_terminal(s)}
        assert terminal == {
            S.EXEMPT_DETERMINATION,
            S.EXPEDITED_APPROVED,
            S.APPROVED,
            S.NOT_APPROVED,
        }

    def test_initial_status_is_draft(self):
        assert INITIAL_STATUS == S.DRAFT


class TestCascade:
    """Каскад статуса подачи на статус исследования."""

    @pytest.mark.parametrize(
        "target",
        [S.APPROVED, S.EXPEDITED_APPROVED, S.EXEMPT_DETERMINATION],
    )
    def test_approval_activates_study(self, target):
        assert cascade_study_status(target) == StudyStatus.ACTIVE

    def test_not_approved_closes_study(self):
        assert cascade_study_status(S.NOT_APPROVED) == StudyStatus.CLOSED

    def test_intermediate_statuses_do_not_cascade(self):
        untouched = set(S) - {
            S.APPROVED,
            S.EXPEDITED_APPROVED,
            S.EXEMPT_DETERMINATION,
            S.NOT_APPROVED,
        }
        for status in untouched:
            assert cascade_study_status(status) is None

    def test_path_auto_selection(self):
        assert path_for_status(S.EXPEDITED_APPROVED) == ReviewPath.EXPEDITED
        assert path_for_status(S.EXEMPT_DETERMINATION) == ReviewPath.EXEMPT
        assert path_for_status(S.APPROVED) is None
        assert path_for_status(S.MEETING_SCHEDULED) is None


class TestReplayHistory:
    def test_replay_reaches_final_status(self):
        steps = [
            Step(None, S.DRAFT),
            Step(S.DRAFT, S.READY_TO_SUBMIT),
            Step(S.READY_TO_SUBMIT, S.SUBMITTED),
            Step(S.SUBMITTED, S.PRE_REVIEW),
            Step(S.PRE_REVIEW, S.MODIFICATIONS_REQUESTED),
            Step(S.MODIFICATIONS_REQUESTED, S.RESUBMITTED),
            Step(S.RESUBMITTED, S.PRE_REVIEW),
            Step(S.PRE_REVIEW, S.MEETING_SCHEDULED),
            Step(S.MEETING_SCHEDULED, S.DEFERRED),
            Step(S.DEFERRED, S.MEETING_SCHEDULED),
            Step(S.MEETING_SCHEDULED, S.CONDITIONALLY_APPROVED),
            Step(S.CONDITIONALLY_APPROVED, S.APPROVED),
        ]
        assert replay_history(steps) == S.APPROVED

    def test_replay_requires_synthetic_first_entry(self):
        with pytest.raises(InvalidTransitionError):
            replay_history([Step(S.DRAFT, S.READY_TO_SUBMIT)])

    def test_replay_rejects_broken_chain(self):
        steps = [
            Step(None, S.DRAFT),
            Step(S.DRAFT, S.READY_TO_SUBMIT),
            Step(S.SUBMITTED, S.PRE_REVIEW),
        ]
        with pytest.raises(InvalidTransitionError):
            replay_history(steps)

    def test_replay_rejects_forbidden_step(self):
        steps = [Step(None, S.DRAFT), Step(S.DRAFT, S.APPROVED)]
        with pytest.raises(InvalidTransitionError):
            replay_history(steps)

    def test_replay_empty_history(self):
        with pytest.raises(ValueError):
            replay_history([])
