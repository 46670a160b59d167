"""
Application lifecycle.

The status state machine in one place: which transitions exist, which
statuses are terminal, and while which statuses a student may still change
their documents.
"""

from admissions.modules.applications.exceptions import InvalidTransitionError
from admissions.modules.applications.models import ApplicationStatus

# Forward-only. Administrative overrides are not modelled.
VALID_STATUS_TRANSITIONS: dict[ApplicationStatus, frozenset[ApplicationStatus]] = {
    ApplicationStatus.DRAFT: frozenset({ApplicationStatus.SUBMITTED}),
    ApplicationStatus.SUBMITTED: frozenset({ApplicationStatus.FROZEN}),
    ApplicationStatus.FROZEN: frozenset({ApplicationStatus.UNDER_REVIEW}),
    ApplicationStatus.UNDER_REVIEW: frozenset(
        {ApplicationStatus.APPROVED, ApplicationStatus.REJECTED}
    ),
    # Terminal states - no transitions allowed
    ApplicationStatus.APPROVED: frozenset(),
    ApplicationStatus.REJECTED: frozenset(),
}

TERMINAL_STATUSES: frozenset[ApplicationStatus] = frozenset(
    status for status, targets in VALID_STATUS_TRANSITIONS.items() if not targets
)

# Documents can be uploaded or replaced until final submission
EDITABLE_STATUSES: frozenset[ApplicationStatus] = frozenset(
    {ApplicationStatus.DRAFT, ApplicationStatus.SUBMITTED}
)

DECISION_STATUSES: frozenset[ApplicationStatus] = frozenset(
    {ApplicationStatus.APPROVED, ApplicationStatus.REJECTED}
)


def is_editable(status: ApplicationStatus) -> bool:
    """Whether a student may still upload or replace documents."""
    return status in EDITABLE_STATUSES


def is_terminal(status: ApplicationStatus) -> bool:
    return status in TERMINAL_STATUSES


def can_transition(current: ApplicationStatus, new: ApplicationStatus) -> bool:
    return new in VALID_STATUS_TRANSITIONS.get(current, frozenset())


def ensure_transition(current: ApplicationStatus, new: ApplicationStatus) -> None:
    """
    Raise unless ``current -> new`` is a valid transition.

    Raises:
        InvalidTransitionError: naming both statuses and the valid targets
    """
    if not can_transition(current, new):
        raise InvalidTransitionError(
            current, new, VALID_STATUS_TRANSITIONS.get(current, frozenset())
        )
