from __future__ import annotations

from harrier.fillers.base import FormFiller, Question
from harrier.types import ApplicantProfile, yes_no


class WorkableFiller(FormFiller):
    platform = "workable"
    submit_phrases = ["submit application", "submit", "apply"]

    def choice_questions(self, profile: ApplicantProfile) -> list[Question]:
        answers = profile.answers
        return [
            Question(
                "work_authorization",
                ("authorized to work", "eligible to work", "right to work"),
                yes_no(answers.work_authorized),
            ),
            Question(
                "sponsorship_required",
                ("require sponsorship", "visa sponsorship", "sponsorship"),
                yes_no(answers.sponsorship_required),
            ),
        ]
