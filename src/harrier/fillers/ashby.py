from __future__ import annotations

from harrier.fillers.base import FormFiller, Question, eeo_questions
from harrier.types import ApplicantProfile, yes_no


class AshbyFiller(FormFiller):
    """Ashby renders yes/no questions as button groups and the rest as radios."""

    platform = "ashby"
    submit_phrases = ["submit application", "submit"]

    def text_questions(self, profile: ApplicantProfile) -> list[Question]:
        answers = profile.answers
        return [
            Question(
                "fintech_experience_description",
                ("describe your experience", "if so please describe"),
                answers.fintech_experience_description,
            ),
            Question(
                "why_this_role",
                ("what made you apply", "why this role", "why are you interested"),
                answers.why_this_role,
            ),
            Question(
                "university_name",
                ("which one did you earn your degree", "which university"),
                profile.university,
            ),
            Question("visa_type", ("what type of visa", "type of visa"), answers.visa_type),
            Question("pronouns", ("your pronouns", "pronouns"), answers.pronouns),
        ]

    def choice_questions(self, profile: ApplicantProfile) -> list[Question]:
        answers = profile.answers
        return [
            Question("work_authorization", ("legally authorized to work",), yes_no(answers.work_authorized)),
            Question("fintech_experience", ("fintech, payments, crypto",), yes_no(answers.fintech_experience)),
            Question("willing_to_work_hybrid", ("hybrid role",), yes_no(answers.willing_to_work_hybrid)),
            Question("open_to_relocation", ("open to relocation",), yes_no(answers.open_to_relocation)),
            Question("able_to_work_in_office", ("able to show up",), yes_no(answers.able_to_work_in_office)),
            Question(
                "university_graduate",
                ("graduate from a 4 year university",),
                "Yes" if profile.university else "No",
            ),
            Question(
                "sponsorship_required",
                ("require employer sponsorship",),
                yes_no(answers.sponsorship_required),
            ),
            Question(
                "years_of_experience",
                ("years of industry experience",),
                answers.years_of_experience,
            ),
            *eeo_questions(profile),
        ]
