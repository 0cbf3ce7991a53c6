from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, ClassVar

from playwright.sync_api import Error as PlaywrightError

from harrier.config import Settings, get_settings
from harrier.core.artifacts import download_resume
from harrier.detection.scripts import FILL_FORM
from harrier.errors import FieldNotFound, UploadFailure
from harrier.types import ApplicantProfile, DetectedField, FillResult, Platform, ResumeArtifact, yes_no

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Question:
    """A labelled question answered by text entry or by picking an option."""

    name: str
    phrases: tuple[str, ...]
    answer: str

    def payload(self) -> dict[str, Any]:
        return {"name": self.name, "phrases": list(self.phrases), "answer": self.answer}


def eeo_questions(profile: ApplicantProfile) -> list[Question]:
    answers = profile.answers
    return [
        Question("gender", ("gender",), answers.gender),
        Question("race", ("race", "ethnicity"), answers.race),
        Question("hispanic_latino", ("hispanic", "latino"), answers.hispanic_latino),
        Question("veteran_status", ("veteran",), answers.veteran_status),
        Question("disability_status", ("disability",), answers.disability_status),
    ]


class FormFiller:
    """Shared fill contract; platform variants override the question sets and widgets."""

    platform: ClassVar[Platform] = "generic"
    submit_phrases: ClassVar[list[str]] = ["submit application", "submit", "apply", "send"]

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()

    def fill(self, page: Any, fields: list[DetectedField], profile: ApplicantProfile) -> FillResult:
        resolved = {item.logical_name for item in fields}
        payload = []
        for item in fields:
            if item.kind == "file":
                continue
            value = profile.value_for(item.logical_name)
            if value:
                payload.append({"name": item.logical_name, "locator": item.locator, "value": value})

        text = [q.payload() for q in self.text_questions(profile) if q.answer and q.name not in resolved]
        choices = [q.payload() for q in self.choice_questions(profile) if q.answer and q.name not in resolved]

        raw = page.evaluate(FILL_FORM, {"fields": payload, "text": text, "choices": choices}) or {}
        filled: list[str] = []
        missing: list[str] = []
        for group in ("fields", "text", "choices"):
            for item in raw.get(group, []):
                name = item.get("name", "")
                if item.get("ok"):
                    filled.append(name)
                else:
                    missing.append(name)
                    logger.info("%s (%s)", FieldNotFound(name), item.get("reason", ""))

        for name in self.fill_widgets(page, profile, skip=set(filled)):
            filled.append(name)

        resume_uploaded = False
        if profile.resume is not None:
            resume_field = next((item for item in fields if item.logical_name == "resume"), None)
            if resume_field is None:
                missing.append("resume")
                logger.warning("%s", FieldNotFound("resume"))
            else:
                self.upload_resume(page, resume_field.locator, profile.resume)
                resume_uploaded = True
                filled.append("resume")

        filled = list(dict.fromkeys(name for name in filled if name))
        missing = [name for name in dict.fromkeys(missing) if name and name not in filled]
        count = len(filled)
        logger.info(
            "Filled %d fields platform=%s names=%s missing=%s",
            count,
            self.platform,
            ",".join(filled),
            ",".join(missing),
        )
        return FillResult(
            fields_filled_count=count,
            filled_field_names=filled,
            missing_field_names=missing,
            resume_uploaded=resume_uploaded,
            meets_threshold=count >= self.settings.min_filled_fields,
        )

    def text_questions(self, profile: ApplicantProfile) -> list[Question]:
        return [
            Question(
                "why_this_role",
                ("what made you apply", "why do you want", "why are you interested"),
                profile.answers.why_this_role,
            ),
        ]

    def choice_questions(self, profile: ApplicantProfile) -> list[Question]:
        answers = profile.answers
        return [
            Question(
                "work_authorization",
                ("legally authorized to work", "authorized to work", "eligible to work"),
                yes_no(answers.work_authorized),
            ),
            Question(
                "sponsorship_required",
                ("require employer sponsorship", "require sponsorship", "visa sponsorship"),
                yes_no(answers.sponsorship_required),
            ),
            *eeo_questions(profile),
        ]

    def fill_widgets(self, page: Any, profile: ApplicantProfile, skip: set[str]) -> list[str]:
        """Hook for widgets that need real input events. Returns filled names."""
        return []

    def upload_resume(self, page: Any, locator: str, resume: ResumeArtifact) -> None:
        path = download_resume(resume, timeout_sec=self.settings.resume_download_timeout_sec)
        try:
            page.set_input_files(locator, str(path), timeout=self.settings.selector_timeout_ms)
        except PlaywrightError as exc:
            raise UploadFailure(f"could not attach resume to {locator}: {exc}") from exc
        finally:
            path.unlink(missing_ok=True)
        logger.info("Attached resume locator=%s", locator)
