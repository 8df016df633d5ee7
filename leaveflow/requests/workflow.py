"""Multi-level approval state machine.

Every request carries an ordered route of approval levels, chosen from the
requester's role when it is submitted. Levels must approve in order; the
request becomes ``approved`` once the last level approves and ``rejected``
as soon as any level rejects. Terminal requests accept no further actions.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Mapping, Optional, Sequence

from leaveflow.common.constants import (
    DEFAULT_APPROVAL_ROUTING,
    ROUTING_ROLE,
    ApprovalLevel,
    ApprovalOutcome,
    RequestStatus,
    UserRole,
)
from leaveflow.common.exceptions import InvalidTransition, ValidationException

logger = logging.getLogger(__name__)


# ── Routing policy ──────────────────────────────────────────────────

class ApprovalPolicy:
    """Maps a requester role to its ordered approval route."""

    def __init__(
        self,
        routing: Optional[Mapping[UserRole, Sequence[ApprovalLevel]]] = None,
    ) -> None:
        source = DEFAULT_APPROVAL_ROUTING if routing is None else routing
        self.routing: dict[UserRole, tuple[ApprovalLevel, ...]] = {
            UserRole(role): tuple(ApprovalLevel(level) for level in levels)
            for role, levels in source.items()
        }

    def route_for(self, role: UserRole) -> tuple[ApprovalLevel, ...]:
        if role in self.routing:
            return self.routing[role]
        mapped = ROUTING_ROLE.get(role, UserRole.employee)
        if mapped not in self.routing:
            logger.warning("No approval route for role %s; using the employee route", role.value)
            mapped = UserRole.employee
        return self.routing.get(mapped, ())


# ── State ───────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Decision:
    """An approval record as the state machine sees it."""

    sequence: int
    level: ApprovalLevel
    outcome: ApprovalOutcome
    approver_id: str
    approver_name: str
    decided_at: datetime
    rejection_reason: Optional[str] = None


@dataclass(frozen=True)
class ApprovalState:
    request_id: str
    status: RequestStatus
    route: tuple[ApprovalLevel, ...]
    approvals: tuple[Decision, ...] = field(default_factory=tuple)

    @classmethod
    def from_request(cls, request) -> "ApprovalState":
        """Build from a ``LeaveRequest`` ORM row (approvals loaded)."""
        return cls(
            request_id=request.id,
            status=request.status,
            route=request.route,
            approvals=tuple(
                Decision(
                    sequence=record.sequence,
                    level=record.level,
                    outcome=record.outcome,
                    approver_id=record.approver_id,
                    approver_name=record.approver_name,
                    decided_at=record.decided_at,
                    rejection_reason=record.rejection_reason,
                )
                for record in request.approvals
            ),
        )


@dataclass(frozen=True)
class Transition:
    record: Decision
    status: RequestStatus

    @property
    def is_final(self) -> bool:
        return self.status != RequestStatus.pending


def initial_status(route: Sequence[ApprovalLevel]) -> RequestStatus:
    """A request with an empty route is approved at creation."""
    return RequestStatus.pending if route else RequestStatus.approved


# ═════════════════════════════════════════════════════════════════════
# ApprovalStateMachine
# ═════════════════════════════════════════════════════════════════════


class ApprovalStateMachine:
    """Pure transitions over ``ApprovalState``; persistence is the caller's job."""

    @staticmethod
    def next_level(state: ApprovalState) -> Optional[ApprovalLevel]:
        """First route level without an approved record, or ``None``."""
        if state.status != RequestStatus.pending:
            return None
        approved = {
            d.level for d in state.approvals if d.outcome == ApprovalOutcome.approved
        }
        for level in state.route:
            if level not in approved:
                return level
        return None

    @staticmethod
    def _check(state: ApprovalState, level: ApprovalLevel) -> None:
        if state.status != RequestStatus.pending:
            raise InvalidTransition(
                f"Request '{state.request_id}' is already {state.status.value}.",
                request_status=state.status.value,
            )
        expected = ApprovalStateMachine.next_level(state)
        if expected != level:
            raise InvalidTransition(
                (
                    f"Request '{state.request_id}' is awaiting "
                    f"{expected.value if expected else 'no'} approval, "
                    f"not {level.value}."
                ),
                request_status=state.status.value,
                expected_level=expected.value if expected else None,
            )

    @staticmethod
    def approve(
        state: ApprovalState,
        level: ApprovalLevel,
        approver_id: str,
        approver_name: str,
        now: datetime,
    ) -> Transition:
        ApprovalStateMachine._check(state, level)
        record = Decision(
            sequence=len(state.approvals) + 1,
            level=level,
            outcome=ApprovalOutcome.approved,
            approver_id=approver_id,
            approver_name=approver_name,
            decided_at=now,
        )
        status = (
            RequestStatus.approved if level == state.route[-1] else RequestStatus.pending
        )
        return Transition(record=record, status=status)

    @staticmethod
    def reject(
        state: ApprovalState,
        level: ApprovalLevel,
        approver_id: str,
        approver_name: str,
        reason: str,
        now: datetime,
    ) -> Transition:
        ApprovalStateMachine._check(state, level)
        if not reason or not reason.strip():
            raise ValidationException({"reason": ["A rejection reason is required."]})
        record = Decision(
            sequence=len(state.approvals) + 1,
            level=level,
            outcome=ApprovalOutcome.rejected,
            approver_id=approver_id,
            approver_name=approver_name,
            decided_at=now,
            rejection_reason=reason.strip(),
        )
        return Transition(record=record, status=RequestStatus.rejected)
