from __future__ import annotations

from typing import Any, Literal, get_args

from pydantic import BaseModel, ConfigDict, Field, field_validator

Platform = Literal["ashby", "greenhouse", "lever", "workable", "generic"]
AttemptStatus = Literal["pending", "applied", "requires_manual_review", "rejected"]
SubmissionStatus = Literal["success", "validation_error", "indeterminate"]
DetectionSource = Literal["static", "label", "vision"]
FieldKind = Literal["text", "email", "tel", "url", "textarea", "select", "file"]
LogicalField = Literal[
    "first_name",
    "last_name",
    "full_name",
    "email",
    "phone",
    "location",
    "resume",
    "linkedin",
    "github",
    "twitter",
    "portfolio",
    "cover_letter",
    "current_company",
    "current_title",
    "years_of_experience",
    "work_authorization",
    "sponsorship_required",
    "university",
    "how_did_you_hear",
    "why_this_role",
    "gender",
    "race",
    "veteran_status",
    "disability_status",
]

LOGICAL_FIELDS: tuple[str, ...] = get_args(LogicalField)


class Position(BaseModel):
    x: float = 0.0
    y: float = 0.0


class DetectedField(BaseModel):
    logical_name: LogicalField
    locator: str
    confidence: float = 0.0
    visible_label: str = ""
    position: Position = Field(default_factory=Position)
    kind: FieldKind = "text"
    source: DetectionSource = "static"

    @field_validator("confidence")
    @classmethod
    def validate_confidence(cls, value: float) -> float:
        if value < 0 or value > 1:
            raise ValueError("confidence must be between 0 and 1")
        return value


class FieldResolution(BaseModel):
    fields: list[DetectedField] = Field(default_factory=list)
    form_hash: str = ""
    used_cache: bool = False
    vision_invoked: bool = False

    def names(self) -> list[str]:
        return [item.logical_name for item in self.fields]

    def get(self, logical_name: str) -> DetectedField | None:
        for item in self.fields:
            if item.logical_name == logical_name:
                return item
        return None


class ApplicationTarget(BaseModel):
    model_config = ConfigDict(frozen=True)

    url: str
    job_id: int


class ResumeArtifact(BaseModel):
    model_config = ConfigDict(frozen=True)

    url: str
    content_type: str = "application/pdf"

    @property
    def suffix(self) -> str:
        return {
            "application/pdf": ".pdf",
            "application/msword": ".doc",
            "application/vnd.openxmlformats-officedocument.wordprocessingml.document": ".docx",
            "text/plain": ".txt",
        }.get(self.content_type.lower(), ".pdf")


class ProfileLinks(BaseModel):
    model_config = ConfigDict(frozen=True)

    linkedin: str = ""
    github: str = ""
    twitter: str = ""
    portfolio: str = ""


class QuestionnaireAnswers(BaseModel):
    model_config = ConfigDict(frozen=True)

    work_authorized: bool | None = None
    sponsorship_required: bool | None = None
    years_of_experience: str = ""
    willing_to_work_hybrid: bool | None = None
    open_to_relocation: bool | None = None
    able_to_work_in_office: bool | None = None
    fintech_experience: bool | None = None
    fintech_experience_description: str = ""
    why_this_role: str = ""
    how_did_you_hear: str = ""
    gender: str = ""
    race: str = ""
    hispanic_latino: str = ""
    veteran_status: str = ""
    disability_status: str = ""
    pronouns: str = ""
    visa_type: str = ""


def yes_no(value: bool | None) -> str:
    if value is None:
        return ""
    return "Yes" if value else "No"


class ApplicantProfile(BaseModel):
    """Applicant data as snapshotted for one attempt. Never mutated by the engine."""

    model_config = ConfigDict(frozen=True)

    full_name: str
    email: str
    phone: str = ""
    location: str = ""
    country: str = "United States"
    links: ProfileLinks = Field(default_factory=ProfileLinks)
    current_company: str = ""
    current_title: str = ""
    employment_summary: str = ""
    university: str = ""
    degree: str = ""
    cover_letter: str = ""
    answers: QuestionnaireAnswers = Field(default_factory=QuestionnaireAnswers)
    resume: ResumeArtifact | None = None

    @property
    def first_name(self) -> str:
        parts = self.full_name.split()
        return parts[0] if parts else ""

    @property
    def last_name(self) -> str:
        return " ".join(self.full_name.split()[1:])

    def value_for(self, logical_name: str) -> str:
        """Text value for a logical field, or "" when the profile has nothing to write."""
        answers = self.answers
        values = {
            "first_name": self.first_name,
            "last_name": self.last_name,
            "full_name": self.full_name,
            "email": self.email,
            "phone": self.phone,
            "location": self.location,
            "linkedin": self.links.linkedin,
            "github": self.links.github,
            "twitter": self.links.twitter,
            "portfolio": self.links.portfolio,
            "cover_letter": self.cover_letter,
            "current_company": self.current_company,
            "current_title": self.current_title,
            "years_of_experience": answers.years_of_experience,
            "work_authorization": yes_no(answers.work_authorized),
            "sponsorship_required": yes_no(answers.sponsorship_required),
            "university": self.university,
            "how_did_you_hear": answers.how_did_you_hear,
            "why_this_role": answers.why_this_role,
            "gender": answers.gender,
            "race": answers.race,
            "veteran_status": answers.veteran_status,
            "disability_status": answers.disability_status,
        }
        return values.get(logical_name, "") or ""


class FillResult(BaseModel):
    fields_filled_count: int = 0
    filled_field_names: list[str] = Field(default_factory=list)
    missing_field_names: list[str] = Field(default_factory=list)
    resume_uploaded: bool = False
    meets_threshold: bool = False


class SubmissionOutcome(BaseModel):
    status: SubmissionStatus
    matched_term: str = ""
    submit_label: str = ""
    message: str = ""


class ApplyResult(BaseModel):
    success: bool
    attempt_id: int | None = None
    fields_filled_count: int = 0
    filled_field_names: list[str] = Field(default_factory=list)
    message: str = ""
    screenshot_path: str | None = None
    platform: str = "generic"
    used_cache: bool = False
    low_confidence: bool = False
    requires_manual_review: bool = False
    error_kind: str = ""


class BatchJobLine(BaseModel):
    job_id: int
    url: str
    status: AttemptStatus
    message: str = ""


class BatchNotification(BaseModel):
    user_id: int
    succeeded: int = 0
    failed: int = 0
    manual_review: int = 0
    jobs: list[BatchJobLine] = Field(default_factory=list)

    @property
    def title(self) -> str:
        return f"Applied to {self.succeeded} of {len(self.jobs)} jobs"


class ManualReviewNotification(BaseModel):
    user_id: int
    attempt_id: int
    job_id: int
    url: str
    reason: str = ""


class RetrySweepResult(BaseModel):
    processed: int = 0
    succeeded: int = 0
    rescheduled: int = 0
    exhausted: int = 0
    errors: int = 0


class ModelResponse(BaseModel):
    content: str
    raw: dict[str, Any] = Field(default_factory=dict)


class ProxyStats(BaseModel):
    total: int = 0
    active: int = 0
    exhausted: int = 0
    current_id: int | None = None
