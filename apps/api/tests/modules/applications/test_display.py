"""
Unit tests for status display attributes and the progress timeline.
"""

from datetime import UTC, datetime
from types import SimpleNamespace

from admissions.modules.applications.display import STATUS_DISPLAY, build_timeline
from admissions.modules.applications.models import ApplicationStatus as S


def _entry(from_status, to_status, day):
    return SimpleNamespace(
        from_status=from_status,
        to_status=to_status,
        changed_at=datetime(2025, 6, day, tzinfo=UTC),
    )


class TestStatusDisplay:
    def test_every_status_has_display_attributes(self):
        assert set(STATUS_DISPLAY) == set(S)

    def test_progress_never_decreases_along_the_lifecycle(self):
        order = [S.DRAFT, S.SUBMITTED, S.FROZEN, S.UNDER_REVIEW, S.APPROVED]
        progress = [STATUS_DISPLAY[s].progress for s in order]
        assert progress == sorted(progress)
        assert STATUS_DISPLAY[S.REJECTED].progress == 100

    def test_frozen_label(self):
        assert STATUS_DISPLAY[S.FROZEN].label == "Final Submission"
        assert STATUS_DISPLAY[S.FROZEN].icon == "fas fa-lock"


class TestBuildTimeline:
    def test_draft_has_only_creation_completed(self, make_application):
        app = make_application(S.DRAFT)

        steps = build_timeline(app, [])

        assert [s.key for s in steps] == [
            "created",
            "submitted",
            "frozen",
            "under_review",
            "decision",
        ]
        assert [s.completed for s in steps] == [True, False, False, False, False]
        assert steps[0].completed_at == app.created_at

    def test_steps_follow_history(self, make_application):
        app = make_application(S.UNDER_REVIEW)
        history = [
            _entry(S.DRAFT, S.SUBMITTED, 2),
            _entry(S.SUBMITTED, S.FROZEN, 3),
            _entry(S.FROZEN, S.UNDER_REVIEW, 4),
        ]

        steps = build_timeline(app, history)

        assert [s.completed for s in steps] == [True, True, True, True, False]
        assert steps[2].completed_at == datetime(2025, 6, 3, tzinfo=UTC)
        assert steps[4].title == "Decision Made"

    def test_decision_title_names_outcome(self, make_application):
        app = make_application(S.REJECTED)
        history = [
            _entry(S.DRAFT, S.SUBMITTED, 2),
            _entry(S.SUBMITTED, S.FROZEN, 3),
            _entry(S.FROZEN, S.UNDER_REVIEW, 4),
            _entry(S.UNDER_REVIEW, S.REJECTED, 5),
        ]

        steps = build_timeline(app, history)

        assert steps[4].completed
        assert steps[4].title == "Decision Made: Rejected"
        assert steps[4].completed_at == datetime(2025, 6, 5, tzinfo=UTC)

    def test_falls_back_to_row_timestamps(self, make_application):
        submitted = datetime(2025, 6, 10, tzinfo=UTC)
        app = make_application(S.SUBMITTED, submitted_at=submitted)

        steps = build_timeline(app, [])

        assert steps[1].completed
        assert steps[1].completed_at == submitted
