from __future__ import annotations

from harrier.fillers.base import FormFiller, Question
from harrier.types import ApplicantProfile, yes_no


class LeverFiller(FormFiller):
    """Lever lists each question in an ``li`` and renders EEO answers as selects."""

    platform = "lever"
    submit_phrases = ["submit application", "submit"]

    def choice_questions(self, profile: ApplicantProfile) -> list[Question]:
        answers = profile.answers
        return [
            Question("gender", ("gender",), answers.gender),
            Question("race", ("race", "ethnicity"), answers.race),
            Question("veteran_status", ("veteran",), answers.veteran_status),
            Question("disability_status", ("disability",), answers.disability_status),
            Question(
                "work_authorization",
                ("authorized to work", "legally authorized"),
                yes_no(answers.work_authorized),
            ),
            Question(
                "sponsorship_required",
                ("require sponsorship", "visa sponsorship", "require employer sponsorship"),
                yes_no(answers.sponsorship_required),
            ),
        ]
