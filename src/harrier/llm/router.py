from __future__ import annotations

import logging
from typing import Any

from harrier.config import Settings, get_settings
from harrier.errors import VisionAnalysisFailure
from harrier.llm.prompts import FIELD_DETECTION_SCHEMA, build_field_detection_prompt
from harrier.llm.providers import LLMProvider, ProviderPool

logger = logging.getLogger(__name__)


class LLMRouter:
    def __init__(self, settings: Settings | None = None, pool: ProviderPool | None = None):
        self.settings = settings or get_settings()
        self.pool = pool or ProviderPool(self.settings)

    def detect_form_fields(self, *, image_png: bytes, platform: str, form_url: str) -> dict[str, Any]:
        """Ask a vision model for the form's fields.

        Raises VisionAnalysisFailure when no configured provider returns a
        JSON object.
        """
        prompt = build_field_detection_prompt(platform=platform, form_url=form_url)
        errors: list[str] = []

        for provider in self._providers():
            if not self._is_configured(provider):
                continue
            try:
                data = provider.complete_vision_json(
                    model=provider.config.model,
                    prompt=prompt,
                    image_png=image_png,
                    schema=FIELD_DETECTION_SCHEMA,
                )
            except Exception as exc:
                logger.warning("Vision call failed provider=%s error=%s", provider.config.name, exc)
                errors.append(f"{provider.config.name}: {exc}")
                continue
            if data:
                return data
            logger.warning("Vision call returned no JSON provider=%s", provider.config.name)
            errors.append(f"{provider.config.name}: empty payload")

        if not errors:
            raise VisionAnalysisFailure("no vision provider configured")
        raise VisionAnalysisFailure("; ".join(errors))

    def is_available(self) -> bool:
        return any(self._is_configured(provider) for provider in self._providers())

    def _providers(self) -> list[LLMProvider]:
        if self.settings.llm_router_vision_provider == "local":
            return [self.pool.local(), self.pool.openai()]
        return [self.pool.openai(), self.pool.local()]

    def _is_configured(self, provider: LLMProvider) -> bool:
        if provider.config.name == "openai":
            return bool(self.settings.openai_api_key)
        if provider.config.name == "local":
            return self.settings.local_llm_enabled
        return False
