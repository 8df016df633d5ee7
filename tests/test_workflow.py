"""Approval state machine and routing policy — pure transitions."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone

import pytest

from leaveflow.common.constants import (
    ApprovalLevel,
    ApprovalOutcome,
    RequestStatus,
    UserRole,
)
from leaveflow.common.exceptions import InvalidTransition, ValidationException
from leaveflow.requests.workflow import (
    ApprovalPolicy,
    ApprovalState,
    ApprovalStateMachine,
    initial_status,
)

NOW = datetime(2024, 3, 1, 10, 0, tzinfo=timezone.utc)
TWO_LEVEL = (ApprovalLevel.manager, ApprovalLevel.hr)


def _state(route=TWO_LEVEL, status=RequestStatus.pending) -> ApprovalState:
    return ApprovalState(request_id="REQ-1", status=status, route=route)


def _apply(state: ApprovalState, transition) -> ApprovalState:
    return replace(
        state,
        status=transition.status,
        approvals=state.approvals + (transition.record,),
    )


class TestApprovalPolicy:

    def test_default_routes(self):
        policy = ApprovalPolicy()
        assert policy.route_for(UserRole.employee) == TWO_LEVEL
        assert policy.route_for(UserRole.manager) == (ApprovalLevel.hr, ApprovalLevel.superadmin)
        assert policy.route_for(UserRole.hr) == (ApprovalLevel.superadmin,)
        assert policy.route_for(UserRole.superadmin) == ()

    @pytest.mark.parametrize("role", [UserRole.intern, UserRole.di, UserRole.dm, UserRole.associate])
    def test_auxiliary_roles_route_like_employee(self, role):
        assert ApprovalPolicy().route_for(role) == TWO_LEVEL

    def test_custom_routing_table(self):
        policy = ApprovalPolicy({"employee": ["hr"], "manager": []})
        assert policy.route_for(UserRole.employee) == (ApprovalLevel.hr,)
        assert policy.route_for(UserRole.intern) == (ApprovalLevel.hr,)
        assert policy.route_for(UserRole.manager) == ()

    def test_unrouted_role_falls_back_to_employee(self):
        policy = ApprovalPolicy({"employee": ["manager"]})
        assert policy.route_for(UserRole.hr) == (ApprovalLevel.manager,)

    def test_empty_route_is_approved_at_creation(self):
        assert initial_status(()) == RequestStatus.approved
        assert initial_status(TWO_LEVEL) == RequestStatus.pending


class TestApprove:

    def test_levels_approve_in_order(self):
        state = _state()
        assert ApprovalStateMachine.next_level(state) == ApprovalLevel.manager

        first = ApprovalStateMachine.approve(state, ApprovalLevel.manager, "M1", "Maya", NOW)
        assert first.status == RequestStatus.pending
        assert not first.is_final
        assert first.record.sequence == 1
        state = _apply(state, first)
        assert ApprovalStateMachine.next_level(state) == ApprovalLevel.hr

        second = ApprovalStateMachine.approve(state, ApprovalLevel.hr, "H1", "Hari", NOW)
        assert second.status == RequestStatus.approved
        assert second.is_final
        assert second.record.sequence == 2
        state = _apply(state, second)
        assert ApprovalStateMachine.next_level(state) is None

    def test_out_of_order_level_rejected(self):
        with pytest.raises(InvalidTransition) as exc_info:
            ApprovalStateMachine.approve(_state(), ApprovalLevel.hr, "H1", "Hari", NOW)
        assert exc_info.value.status_code == 409
        assert exc_info.value.extra["expected_level"] == "manager"

    def test_duplicate_approval_rejected(self):
        state = _state()
        state = _apply(
            state, ApprovalStateMachine.approve(state, ApprovalLevel.manager, "M1", "Maya", NOW),
        )
        with pytest.raises(InvalidTransition):
            ApprovalStateMachine.approve(state, ApprovalLevel.manager, "M1", "Maya", NOW)

    def test_approved_request_is_terminal(self):
        state = _state(route=(ApprovalLevel.superadmin,))
        state = _apply(
            state,
            ApprovalStateMachine.approve(state, ApprovalLevel.superadmin, "S1", "Sam", NOW),
        )
        assert state.status == RequestStatus.approved
        with pytest.raises(InvalidTransition) as exc_info:
            ApprovalStateMachine.approve(state, ApprovalLevel.superadmin, "S1", "Sam", NOW)
        assert exc_info.value.extra["request_status"] == "approved"

    def test_level_outside_route_rejected(self):
        with pytest.raises(InvalidTransition):
            ApprovalStateMachine.approve(
                _state(), ApprovalLevel.superadmin, "S1", "Sam", NOW,
            )


class TestReject:

    def test_reject_is_terminal(self):
        state = _state()
        transition = ApprovalStateMachine.reject(
            state, ApprovalLevel.manager, "M1", "Maya", "  Release week  ", NOW,
        )
        assert transition.status == RequestStatus.rejected
        assert transition.is_final
        assert transition.record.outcome == ApprovalOutcome.rejected
        assert transition.record.rejection_reason == "Release week"

        state = _apply(state, transition)
        assert ApprovalStateMachine.next_level(state) is None
        with pytest.raises(InvalidTransition):
            ApprovalStateMachine.approve(state, ApprovalLevel.hr, "H1", "Hari", NOW)

    def test_reject_at_second_level(self):
        state = _state()
        state = _apply(
            state, ApprovalStateMachine.approve(state, ApprovalLevel.manager, "M1", "Maya", NOW),
        )
        transition = ApprovalStateMachine.reject(
            state, ApprovalLevel.hr, "H1", "Hari", "Headcount", NOW,
        )
        assert transition.status == RequestStatus.rejected
        assert transition.record.sequence == 2

    def test_reason_required(self):
        with pytest.raises(ValidationException) as exc_info:
            ApprovalStateMachine.reject(_state(), ApprovalLevel.manager, "M1", "Maya", "   ", NOW)
        assert "reason" in exc_info.value.errors

    def test_wrong_level_checked_before_reason(self):
        with pytest.raises(InvalidTransition):
            ApprovalStateMachine.reject(_state(), ApprovalLevel.hr, "H1", "Hari", "", NOW)
