from __future__ import annotations

import logging
import re
from typing import Any

from playwright.sync_api import Error as PlaywrightError
from pydantic import BaseModel, Field, ValidationError, field_validator

from harrier.errors import VisionAnalysisFailure
from harrier.llm.router import LLMRouter
from harrier.types import LOGICAL_FIELDS, DetectedField, FieldKind, Position

logger = logging.getLogger(__name__)

FIELD_NAME_ALIASES = {
    "name": "full_name",
    "resume_url": "resume",
    "cv": "resume",
    "linkedin_url": "linkedin",
    "github_url": "github",
    "twitter_url": "twitter",
    "portfolio_url": "portfolio",
    "website": "portfolio",
    "phone_number": "phone",
    "sponsorship": "sponsorship_required",
    "race_ethnicity": "race",
    "veteran": "veteran_status",
    "disability": "disability_status",
}
CAMEL_RE = re.compile(r"(?<!^)(?=[A-Z])")
SEPARATOR_RE = re.compile(r"[\s\-_]+")


class VisionField(BaseModel):
    field_name: str
    label: str = ""
    selector: str
    confidence: float = 0.5
    position: Position = Field(default_factory=Position)

    @field_validator("selector")
    @classmethod
    def validate_selector(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("selector must not be empty")
        return value


def normalize_field_name(name: str) -> str:
    snake = SEPARATOR_RE.sub("_", CAMEL_RE.sub("_", name.strip())).lower()
    return FIELD_NAME_ALIASES.get(snake, snake)


def infer_kind(logical_name: str, selector: str) -> FieldKind:
    lowered = selector.lower().replace("'", '"')
    if logical_name == "resume" or 'type="file"' in lowered:
        return "file"
    if lowered.startswith("textarea"):
        return "textarea"
    if lowered.startswith("select"):
        return "select"
    if logical_name == "email":
        return "email"
    if logical_name == "phone":
        return "tel"
    return "text"


def parse_vision_payload(data: Any) -> list[DetectedField]:
    """Validate a model response; items outside the vocabulary are dropped."""
    if not isinstance(data, dict) or not isinstance(data.get("fields"), list):
        raise VisionAnalysisFailure("vision payload has no 'fields' list")

    best: dict[str, DetectedField] = {}
    for raw in data["fields"]:
        if not isinstance(raw, dict):
            continue
        if "field_name" not in raw and "fieldName" in raw:
            raw = {**raw, "field_name": raw["fieldName"]}
        try:
            item = VisionField.model_validate(raw)
        except ValidationError:
            logger.debug("Skipping invalid vision field: %s", raw)
            continue

        logical_name = normalize_field_name(item.field_name)
        if logical_name not in LOGICAL_FIELDS:
            logger.debug("Skipping vision field outside vocabulary: %s", item.field_name)
            continue

        detected = DetectedField(
            logical_name=logical_name,
            locator=item.selector,
            confidence=max(0.0, min(1.0, item.confidence)),
            visible_label=item.label,
            position=item.position,
            kind=infer_kind(logical_name, item.selector),
            source="vision",
        )
        current = best.get(logical_name)
        if current is None or detected.confidence > current.confidence:
            best[logical_name] = detected

    return list(best.values())


class VisionFieldDetector:
    def __init__(self, router: LLMRouter | None = None):
        self.router = router or LLMRouter()

    def analyze(self, page: Any, platform: str) -> list[DetectedField]:
        if not self.router.is_available():
            raise VisionAnalysisFailure("no vision provider configured")
        try:
            image = page.screenshot(full_page=True, type="png")
        except PlaywrightError as exc:
            raise VisionAnalysisFailure(f"screenshot failed: {exc}") from exc

        data = self.router.detect_form_fields(image_png=image, platform=platform, form_url=page.url)
        fields = parse_vision_payload(data)
        logger.info("Vision detected %d fields platform=%s url=%s", len(fields), platform, page.url)
        return fields
