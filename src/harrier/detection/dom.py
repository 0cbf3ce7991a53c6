from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from pydantic import ValidationError

from harrier.detection.scripts import LABEL_TRAVERSAL, RESOLVE_STATIC
from harrier.detection.selectors import ordered_entries
from harrier.types import DetectedField, DetectionSource

logger = logging.getLogger(__name__)

STATIC_CONFIDENCE = 0.9

# Table kinds that override a plain "text" input type.
TYPED_TEXT_KINDS = ("email", "tel", "url")

LABEL_PHRASES: dict[str, list[str]] = {
    "first_name": ["first name", "given name", "preferred first name"],
    "last_name": ["last name", "surname", "family name"],
    "full_name": ["full name", "your name", "legal name"],
    "email": ["email"],
    "phone": ["phone", "mobile"],
    "location": ["current location", "location", "city", "where are you based"],
    "resume": ["resume", "résumé", "cv"],
    "linkedin": ["linkedin"],
    "github": ["github"],
    "twitter": ["twitter", "x profile"],
    "portfolio": ["portfolio", "website", "personal site"],
    "cover_letter": ["cover letter", "additional information"],
    "current_company": ["current company", "current employer", "company"],
    "current_title": ["current title", "job title", "current role"],
    "years_of_experience": ["years of experience", "years of industry experience"],
    "work_authorization": ["legally authorized", "authorized to work", "work authorization"],
    "sponsorship_required": ["sponsorship"],
    "university": ["university", "school", "college"],
    "how_did_you_hear": ["how did you hear"],
    "why_this_role": ["what made you apply", "why do you want", "why are you interested"],
    "gender": ["gender"],
    "race": ["race", "ethnicity"],
    "veteran_status": ["veteran"],
    "disability_status": ["disability"],
}


def to_detected_fields(raw_items: Any, *, source: DetectionSource, default_confidence: float) -> list[DetectedField]:
    fields: list[DetectedField] = []
    for raw in raw_items or []:
        if not isinstance(raw, dict):
            continue
        try:
            fields.append(
                DetectedField(
                    logical_name=raw.get("name"),
                    locator=raw.get("locator") or "",
                    confidence=raw.get("confidence", default_confidence),
                    visible_label=raw.get("label") or "",
                    position=raw.get("position") or {},
                    kind=raw.get("kind") or "text",
                    source=source,
                )
            )
        except ValidationError:
            logger.debug("Skipping malformed %s match: %s", source, raw)
    return [item for item in fields if item.locator]


def resolve_static(page: Any, platform: str) -> list[DetectedField]:
    """Tier 1: first visible match per field from the platform's selector table."""
    entries = ordered_entries(platform)
    candidates = [{"name": name, "selectors": list(entry.selectors)} for name, entry in entries]
    kinds = {name: entry.kind for name, entry in entries}
    raw = page.evaluate(RESOLVE_STATIC, {"candidates": candidates}) or []
    matches = []
    for item in raw:
        if isinstance(item, dict) and item.get("kind", "text") == "text":
            declared = kinds.get(item.get("name"))
            if declared in TYPED_TEXT_KINDS:
                item = {**item, "kind": declared}
        matches.append(item)
    return to_detected_fields(matches, source="static", default_confidence=STATIC_CONFIDENCE)


def resolve_by_labels(
    page: Any,
    names: Iterable[str],
    claimed_locators: Iterable[str] = (),
) -> list[DetectedField]:
    """Tier 2: pair visible label text with the nearest input.

    Confidence is 1.0 for an explicit ``for`` association, 0.95 for an input
    nested in the label and 0.7 for container or sibling proximity.
    """
    targets = [{"name": name, "phrases": LABEL_PHRASES[name]} for name in names if name in LABEL_PHRASES]
    if not targets:
        return []
    raw = page.evaluate(LABEL_TRAVERSAL, {"targets": targets, "claimed": list(claimed_locators)})
    return to_detected_fields(raw, source="label", default_confidence=0.7)
