from __future__ import annotations

from conftest import FakePage

from harrier.config import Settings
from harrier.core.verifier import SubmissionVerifier, classify_page_text


def test_classify_success_wins_over_error_terms() -> None:
    outcome = classify_page_text("Thank you! Any error on our side will be emailed.")
    assert outcome.status == "success"
    assert outcome.matched_term == "thank you"


def test_classify_validation_error() -> None:
    outcome = classify_page_text("Email is required")
    assert outcome.status == "validation_error"
    assert outcome.matched_term == "is required"


def test_classify_without_vocabulary_is_indeterminate() -> None:
    assert classify_page_text("Senior Engineer - Acme").status == "indeterminate"


def test_submit_clicks_control_and_reads_confirmation() -> None:
    page = FakePage(buttons=["Back", "Submit Application"], body_after_submit="Application submitted")
    outcome = SubmissionVerifier(Settings()).submit(page, ["submit application", "submit"])

    assert outcome.status == "success"
    assert outcome.submit_label == "submit application"
    assert page.clicked == ["Submit Application"]
    assert page.called("click")[0]["scroll"] is True


def test_submit_without_control_is_indeterminate() -> None:
    page = FakePage(buttons=["Back"])
    outcome = SubmissionVerifier(Settings()).submit(page)
    assert outcome.status == "indeterminate"
    assert "not found" in outcome.message
