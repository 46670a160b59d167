"""
Status presentation.

Label, color, icon, description and progress for each status, and the
progress timeline shown to students. Everything that renders a status reads
it from ``STATUS_DISPLAY``.
"""

from dataclasses import dataclass
from datetime import datetime

from admissions.modules.applications.models import (
    Application,
    ApplicationStatus,
    StatusHistoryEntry,
)


@dataclass(frozen=True)
class StatusDisplay:
    label: str
    color: str
    icon: str
    description: str
    progress: int


STATUS_DISPLAY: dict[ApplicationStatus, StatusDisplay] = {
    ApplicationStatus.DRAFT: StatusDisplay(
        label="Draft",
        color="secondary",
        icon="fas fa-edit",
        description="Application is being filled out",
        progress=20,
    ),
    ApplicationStatus.SUBMITTED: StatusDisplay(
        label="Submitted",
        color="info",
        icon="fas fa-paper-plane",
        description="Application submitted for review",
        progress=40,
    ),
    ApplicationStatus.FROZEN: StatusDisplay(
        label="Final Submission",
        color="primary",
        icon="fas fa-lock",
        description="Application frozen for review",
        progress=50,
    ),
    ApplicationStatus.UNDER_REVIEW: StatusDisplay(
        label="Under Review",
        color="warning",
        icon="fas fa-eye",
        description="Application is being reviewed by admissions",
        progress=75,
    ),
    ApplicationStatus.APPROVED: StatusDisplay(
        label="Approved",
        color="success",
        icon="fas fa-check-circle",
        description="Application approved! Congratulations!",
        progress=100,
    ),
    ApplicationStatus.REJECTED: StatusDisplay(
        label="Rejected",
        color="danger",
        icon="fas fa-times-circle",
        description="Application has been rejected",
        progress=100,
    ),
}


@dataclass(frozen=True)
class TimelineStep:
    key: str
    title: str
    completed: bool
    completed_at: datetime | None = None


def _reached_at(
    history: list[StatusHistoryEntry], statuses: set[ApplicationStatus]
) -> datetime | None:
    for entry in history:
        if entry.to_status in statuses:
            return entry.changed_at
    return None


def build_timeline(
    application: Application, history: list[StatusHistoryEntry]
) -> list[TimelineStep]:
    """
    Progress steps for an application, oldest first.

    A step is completed once the history shows the application reached it.
    The timestamps on the application row are used when history is missing
    a step.
    """
    submitted_at = _reached_at(history, {ApplicationStatus.SUBMITTED}) or application.submitted_at
    frozen_at = _reached_at(history, {ApplicationStatus.FROZEN}) or application.frozen_at
    review_at = _reached_at(history, {ApplicationStatus.UNDER_REVIEW}) or application.reviewed_at
    decided_at = (
        _reached_at(history, {ApplicationStatus.APPROVED, ApplicationStatus.REJECTED})
        or application.decided_at
    )

    decision_title = "Decision Made"
    if application.status in (ApplicationStatus.APPROVED, ApplicationStatus.REJECTED):
        decision_title = f"Decision Made: {STATUS_DISPLAY[application.status].label}"

    return [
        TimelineStep("created", "Application Created", True, application.created_at),
        TimelineStep("submitted", "Application Submitted", submitted_at is not None, submitted_at),
        TimelineStep("frozen", "Final Submission", frozen_at is not None, frozen_at),
        TimelineStep("under_review", "Under Review", review_at is not None, review_at),
        TimelineStep("decision", decision_title, decided_at is not None, decided_at),
    ]
