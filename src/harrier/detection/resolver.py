from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import Any

from pydantic import ValidationError
from sqlalchemy.orm import Session

from harrier.config import Settings, get_settings
from harrier.db.repositories import Repository
from harrier.db.session import SessionLocal
from harrier.detection.dom import LABEL_PHRASES, resolve_by_labels, resolve_static
from harrier.detection.form_hash import compute_form_hash
from harrier.detection.vision import VisionFieldDetector
from harrier.errors import VisionAnalysisFailure
from harrier.types import DetectedField, FieldResolution

logger = logging.getLogger(__name__)

ESSENTIAL_FIELDS = ("email", "resume")
NAME_FIELDS = ("full_name", "first_name")


def merge_fields(*groups: Iterable[DetectedField]) -> list[DetectedField]:
    """Merge by logical name, keeping the higher-confidence match."""
    merged: dict[str, DetectedField] = {}
    for group in groups:
        for item in group:
            current = merged.get(item.logical_name)
            if current is None or item.confidence > current.confidence:
                merged[item.logical_name] = item
    return list(merged.values())


def needs_escalation(fields: list[DetectedField], min_fields: int) -> bool:
    names = {item.logical_name for item in fields}
    if len(names) < min_fields:
        return True
    if any(name not in names for name in ESSENTIAL_FIELDS):
        return True
    return not any(name in names for name in NAME_FIELDS)


def cached_fields(payload: Any) -> list[DetectedField]:
    fields: list[DetectedField] = []
    for raw in payload or []:
        try:
            fields.append(DetectedField.model_validate(raw))
        except ValidationError:
            logger.debug("Skipping unreadable cached field: %s", raw)
    return fields


class FieldResolver:
    def __init__(
        self,
        settings: Settings | None = None,
        vision: VisionFieldDetector | None = None,
        session_factory: Callable[[], Session] = SessionLocal,
    ):
        self.settings = settings or get_settings()
        self.vision = vision or VisionFieldDetector()
        self.session_factory = session_factory

    def resolve_fields(self, platform: str, page: Any) -> FieldResolution:
        static = resolve_static(page, platform)
        found = {item.logical_name for item in static}
        missing = [name for name in LABEL_PHRASES if name not in found]
        labelled = resolve_by_labels(page, missing, claimed_locators=[item.locator for item in static])
        fields = merge_fields(static, labelled)
        form_hash = compute_form_hash(page.content())
        logger.info(
            "Resolved fields platform=%s static=%d label=%d hash=%s",
            platform,
            len(static),
            len(labelled),
            form_hash[:8],
        )

        if not needs_escalation(fields, self.settings.min_filled_fields):
            return FieldResolution(fields=fields, form_hash=form_hash)

        return self._escalate(platform, page, form_hash, fields, touch=True)

    def pre_analyze_page(self, platform: str, page: Any) -> FieldResolution:
        """Populate the mapping cache for the page's form without filling it."""
        form_hash = compute_form_hash(page.content())
        return self._escalate(platform, page, form_hash, [], touch=False)

    def record_outcome(self, platform: str, form_hash: str, success: bool) -> None:
        if not form_hash:
            return
        with self.session_factory() as session:
            Repository(session).record_mapping_outcome(platform, form_hash, success)

    def _escalate(
        self,
        platform: str,
        page: Any,
        form_hash: str,
        fields: list[DetectedField],
        *,
        touch: bool,
    ) -> FieldResolution:
        with self.session_factory() as session:
            repo = Repository(session)
            mapping = repo.get_mapping(platform, form_hash)
            if mapping is not None:
                if touch:
                    repo.touch_mapping(platform, form_hash)
                cached = cached_fields(mapping.fields_json)
                logger.info(
                    "Using cached mapping platform=%s hash=%s fields=%d",
                    platform,
                    form_hash[:8],
                    len(cached),
                )
                return FieldResolution(fields=merge_fields(fields, cached), form_hash=form_hash, used_cache=True)

        try:
            detected = self.vision.analyze(page, platform)
        except VisionAnalysisFailure as exc:
            logger.warning("Vision analysis failed platform=%s hash=%s: %s", platform, form_hash[:8], exc)
            return FieldResolution(fields=fields, form_hash=form_hash, vision_invoked=True)

        if detected:
            with self.session_factory() as session:
                Repository(session).save_mapping(
                    platform, form_hash, detected, form_url=page.url, usage_count=1 if touch else 0
                )
            logger.info("Cached vision mapping platform=%s hash=%s", platform, form_hash[:8])

        return FieldResolution(
            fields=merge_fields(fields, detected),
            form_hash=form_hash,
            vision_invoked=True,
        )
