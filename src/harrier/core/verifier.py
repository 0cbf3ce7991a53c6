from __future__ import annotations

import logging
from typing import Any

from playwright.sync_api import Error as PlaywrightError

from harrier.config import Settings, get_settings
from harrier.detection.scripts import CLICK_BUTTON_BY_TEXT
from harrier.types import SubmissionOutcome

logger = logging.getLogger(__name__)

SUBMIT_PHRASES = ["submit application", "submit", "apply", "send"]
SUCCESS_TERMS = (
    "thank you",
    "thanks for applying",
    "application submitted",
    "successfully submitted",
    "received your application",
    "application received",
    "application has been received",
    "submitted",
)
ERROR_TERMS = (
    "required field",
    "is required",
    "please fill",
    "invalid",
    "error",
)


def classify_page_text(text: str) -> SubmissionOutcome:
    """Success vocabulary wins over error vocabulary; no match is indeterminate."""
    lowered = " ".join((text or "").lower().split())
    for term in SUCCESS_TERMS:
        if term in lowered:
            return SubmissionOutcome(status="success", matched_term=term)
    for term in ERROR_TERMS:
        if term in lowered:
            return SubmissionOutcome(status="validation_error", matched_term=term)
    return SubmissionOutcome(status="indeterminate", message="no success or error vocabulary matched")


class SubmissionVerifier:
    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()

    def submit(self, page: Any, phrases: list[str] | None = None) -> SubmissionOutcome:
        clicked = page.evaluate(CLICK_BUTTON_BY_TEXT, {"phrases": phrases or SUBMIT_PHRASES, "scroll": True})
        if not clicked:
            logger.warning("No submit control found url=%s", page.url)
            return SubmissionOutcome(status="indeterminate", message="submit control not found")

        logger.info("Clicked submit control label=%s", clicked)
        page.wait_for_timeout(self.settings.browser_submit_settle_ms)
        try:
            text = page.inner_text("body", timeout=self.settings.selector_timeout_ms)
        except PlaywrightError as exc:
            logger.warning("Could not read page after submit: %s", exc)
            return SubmissionOutcome(
                status="indeterminate",
                submit_label=clicked,
                message=f"page unreadable after submit: {exc}",
            )

        outcome = classify_page_text(text)
        outcome.submit_label = clicked
        if outcome.status == "validation_error":
            logger.warning("Submission rejected by form validation term=%s url=%s", outcome.matched_term, page.url)
        else:
            logger.info("Submission outcome=%s term=%s", outcome.status, outcome.matched_term)
        return outcome
