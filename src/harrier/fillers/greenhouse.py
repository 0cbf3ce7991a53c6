from __future__ import annotations

import logging
from typing import Any

from playwright.sync_api import Error as PlaywrightError

from harrier.detection.scripts import FIND_COMBOBOX_QUESTIONS, PICK_LISTBOX_OPTION
from harrier.errors import FieldNotFound
from harrier.fillers.base import FormFiller, Question
from harrier.types import ApplicantProfile, yes_no

logger = logging.getLogger(__name__)

TYPEAHEAD_CHARS = 3
OPTION_WAIT_MS = 300


class GreenhouseFiller(FormFiller):
    """Greenhouse uses searchable comboboxes for country, EEO and yes/no questions."""

    platform = "greenhouse"
    submit_phrases = ["submit application", "submit"]

    def choice_questions(self, profile: ApplicantProfile) -> list[Question]:
        # EEO answers go through the comboboxes in fill_widgets.
        keep = ("work_authorization", "sponsorship_required")
        return [q for q in super().choice_questions(profile) if q.name in keep]

    def fill_widgets(self, page: Any, profile: ApplicantProfile, skip: set[str]) -> list[str]:
        answers = profile.answers
        comboboxes = [
            ("country", "#country", profile.country),
            ("gender", "#gender", answers.gender),
            ("hispanic_latino", "#hispanic_ethnicity", answers.hispanic_latino),
            ("veteran_status", "#veteran_status", answers.veteran_status),
            ("disability_status", "#disability_status", answers.disability_status),
        ]
        filled: list[str] = []
        for name, locator, value in comboboxes:
            if not value or name in skip:
                continue
            try:
                self.pick_combobox(page, locator, value, name)
            except FieldNotFound as exc:
                logger.info("%s", exc)
                continue
            filled.append(name)

        for question in page.evaluate(FIND_COMBOBOX_QUESTIONS, {}) or []:
            label = (question.get("label") or "").lower()
            if "authorized" in label or "work in the" in label:
                name, value = "work_authorization", yes_no(answers.work_authorized)
            elif "sponsor" in label or "visa" in label:
                name, value = "sponsorship_required", yes_no(answers.sponsorship_required)
            else:
                continue
            if not value or name in skip or name in filled:
                continue
            try:
                self.pick_combobox(page, question["locator"], value, name, typeahead=False)
            except FieldNotFound as exc:
                logger.info("%s", exc)
                continue
            filled.append(name)
        return filled

    def pick_combobox(self, page: Any, locator: str, value: str, name: str, *, typeahead: bool = True) -> str:
        control = page.locator(locator)
        if control.count() == 0:
            raise FieldNotFound(name)
        try:
            control.first.click(timeout=self.settings.selector_timeout_ms)
            if typeahead:
                control.first.press_sequentially(value[:TYPEAHEAD_CHARS], delay=50)
            page.wait_for_timeout(OPTION_WAIT_MS)
        except PlaywrightError as exc:
            raise FieldNotFound(name) from exc

        picked = page.evaluate(PICK_LISTBOX_OPTION, {"answer": value})
        if not picked:
            control.first.press("Escape")
            raise FieldNotFound(name)
        logger.info("Picked combobox option name=%s option=%s", name, picked)
        return picked
