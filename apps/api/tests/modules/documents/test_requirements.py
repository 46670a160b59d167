"""
Unit tests for the requirement matrix and the completeness gate.
"""

from uuid import uuid4

from admissions.core.config import settings
from admissions.modules.documents.requirements import (
    VerificationState,
    build_requirement_matrix,
    evaluate_completeness,
    verification_state,
)
from conftest import make_certificate_type, make_document, make_requirement


class TestBuildRequirementMatrix:
    def test_joins_documents_by_certificate_type(self):
        income = make_certificate_type("Income Certificate", allowed_extensions=["PDF"])
        caste = make_certificate_type("Caste Certificate")
        app_id = uuid4()
        doc = make_document(app_id, income)

        rows = build_requirement_matrix(
            [make_requirement(income), make_requirement(caste, is_required=False)],
            [doc],
        )

        assert [r.certificate_name for r in rows] == ["Caste Certificate", "Income Certificate"]
        caste_row, income_row = rows
        assert income_row.is_uploaded
        assert income_row.document.document_id == doc.id
        assert income_row.allowed_extensions == ["pdf"]
        assert caste_row.is_missing
        assert not caste_row.is_required

    def test_ordered_by_display_order_then_name(self):
        a = make_certificate_type("A Certificate")
        b = make_certificate_type("B Certificate")
        c = make_certificate_type("C Certificate")

        rows = build_requirement_matrix(
            [
                make_requirement(c, display_order=1),
                make_requirement(b, display_order=2),
                make_requirement(a, display_order=2),
            ],
            [],
        )

        assert [r.certificate_name for r in rows] == [
            "C Certificate",
            "A Certificate",
            "B Certificate",
        ]

    def test_inactive_certificate_types_are_dropped(self):
        retired = make_certificate_type("Old Form", is_active=False)
        current = make_certificate_type("New Form")

        rows = build_requirement_matrix(
            [make_requirement(retired), make_requirement(current)], []
        )

        assert [r.certificate_name for r in rows] == ["New Form"]

    def test_documents_for_unrequested_types_are_ignored(self):
        requested = make_certificate_type("Marksheet")
        stray = make_certificate_type("Stray")

        rows = build_requirement_matrix(
            [make_requirement(requested)], [make_document(uuid4(), stray)]
        )

        assert len(rows) == 1
        assert rows[0].is_missing

    def test_defaults_for_unconfigured_constraints(self):
        cert = make_certificate_type("Photo")

        (row,) = build_requirement_matrix([make_requirement(cert)], [])

        assert set(row.allowed_extensions) == settings.default_allowed_extensions_set
        assert row.max_file_size_bytes == settings.max_upload_size_bytes

    def test_size_limit_from_certificate_type(self):
        cert = make_certificate_type("Photo", max_file_size_mb=2)

        (row,) = build_requirement_matrix([make_requirement(cert)], [])

        assert row.max_file_size_bytes == 2 * 1024 * 1024


class TestEvaluateCompleteness:
    def test_complete_when_every_required_row_has_a_document(self):
        income = make_certificate_type("Income Certificate")
        caste = make_certificate_type("Caste Certificate")
        rows = build_requirement_matrix(
            [make_requirement(income), make_requirement(caste, is_required=False)],
            [make_document(uuid4(), income)],
        )

        report = evaluate_completeness(rows)

        assert report.is_complete
        assert report.missing_required == []
        assert report.required_total == 1
        assert report.required_uploaded == 1
        assert report.required_verified == 0
        assert report.optional_uploaded == 0

    def test_missing_required_names_reported(self):
        income = make_certificate_type("Income Certificate")
        marks = make_certificate_type("12th Marksheet")
        rows = build_requirement_matrix(
            [make_requirement(income, display_order=1), make_requirement(marks, display_order=2)],
            [make_document(uuid4(), marks, is_verified=True)],
        )

        report = evaluate_completeness(rows)

        assert not report.is_complete
        assert report.missing_required == ["Income Certificate"]
        assert report.required_verified == 1

    def test_missing_optional_does_not_block(self):
        caste = make_certificate_type("Caste Certificate")
        rows = build_requirement_matrix([make_requirement(caste, is_required=False)], [])

        assert evaluate_completeness(rows).is_complete

    def test_empty_requirement_set_is_complete(self):
        report = evaluate_completeness([])

        assert report.is_complete
        assert report.required_total == 0


class TestVerificationState:
    def test_pending(self):
        doc = make_document(uuid4(), make_certificate_type("X"))
        assert verification_state(doc) == VerificationState.PENDING

    def test_verified(self):
        doc = make_document(
            uuid4(), make_certificate_type("X"), is_verified=True, verified_by=uuid4()
        )
        assert verification_state(doc) == VerificationState.VERIFIED

    def test_reviewed_but_not_verified_is_rejected(self):
        doc = make_document(uuid4(), make_certificate_type("X"), verified_by=uuid4())
        assert verification_state(doc) == VerificationState.REJECTED
