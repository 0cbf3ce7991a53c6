from __future__ import annotations

import pytest
from pydantic import ValidationError

from harrier.types import ApplicantProfile, DetectedField, ResumeArtifact


def test_value_for_splits_name_and_maps_answers(profile: ApplicantProfile) -> None:
    assert profile.value_for("first_name") == "Ada"
    assert profile.value_for("last_name") == "Lovelace"
    assert profile.value_for("linkedin") == "https://linkedin.com/in/ada"
    assert profile.value_for("work_authorization") == "Yes"
    assert profile.value_for("sponsorship_required") == "No"
    assert profile.value_for("race") == ""
    assert profile.value_for("not_a_field") == ""


def test_profile_snapshot_round_trips_through_json(profile_with_resume: ApplicantProfile) -> None:
    restored = ApplicantProfile.model_validate(profile_with_resume.model_dump(mode="json"))
    assert restored == profile_with_resume
    assert restored.resume is not None
    assert restored.resume.suffix == ".pdf"


def test_profile_is_immutable(profile: ApplicantProfile) -> None:
    with pytest.raises(ValidationError):
        profile.email = "other@example.com"


def test_resume_suffix_follows_content_type() -> None:
    docx = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
    assert ResumeArtifact(url="https://x/cv", content_type=docx).suffix == ".docx"


def test_detected_field_confidence_bounds() -> None:
    with pytest.raises(ValidationError):
        DetectedField(logical_name="email", locator="#email", confidence=1.5)
