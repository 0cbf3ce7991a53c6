from __future__ import annotations

import base64
import json
import logging
from dataclasses import dataclass
from typing import Any

from openai import OpenAI

from harrier.config import Settings
from harrier.types import ModelResponse

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ProviderConfig:
    name: str
    base_url: str
    api_key: str
    timeout_sec: int
    model: str = ""


class LLMProvider:
    def __init__(self, config: ProviderConfig):
        self.config = config
        self.client = OpenAI(
            base_url=config.base_url,
            api_key=config.api_key,
            timeout=float(config.timeout_sec),
        )

    def complete_vision(
        self,
        *,
        model: str,
        prompt: str,
        image_png: bytes,
        schema: dict[str, Any] | None = None,
    ) -> ModelResponse:
        messages = [
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": prompt},
                    {"type": "image_url", "image_url": {"url": png_data_url(image_png)}},
                ],
            }
        ]
        if schema is None:
            return self._chat(model=model, messages=messages, response_format=None)

        try:
            return self._chat(
                model=model,
                messages=messages,
                response_format={"type": "json_schema", "json_schema": schema},
            )
        except Exception as exc:
            if not self._is_unsupported_response_format(exc):
                raise

            logger.warning(
                "Structured output unavailable for provider=%s base_url=%s; "
                "retrying without response_format (%s)",
                self.config.name,
                self.config.base_url,
                exc,
            )
            return self._chat(model=model, messages=messages, response_format=None)

    def complete_vision_json(
        self,
        *,
        model: str,
        prompt: str,
        image_png: bytes,
        schema: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        response = self.complete_vision(model=model, prompt=prompt, image_png=image_png, schema=schema)
        return parse_json(response.content)

    def _chat(
        self,
        *,
        model: str,
        messages: list[dict[str, Any]],
        response_format: dict[str, Any] | None,
    ) -> ModelResponse:
        kwargs: dict[str, Any] = {"model": model, "messages": messages}
        if response_format is not None:
            kwargs["response_format"] = response_format
        response = self.client.chat.completions.create(**kwargs)

        text = self._extract_chat_text(response)
        raw = response.model_dump() if hasattr(response, "model_dump") else {}
        if not isinstance(raw, dict):
            raw = {"raw": raw}
        raw["structured"] = response_format is not None
        return ModelResponse(content=text, raw=raw)

    @staticmethod
    def _extract_chat_text(response: Any) -> str:
        choices = getattr(response, "choices", None) or []
        if not choices:
            return ""

        message = getattr(choices[0], "message", None)
        if message is None:
            return ""

        content = getattr(message, "content", "")
        if isinstance(content, str):
            return content
        if content is None:
            return ""
        return str(content)

    @staticmethod
    def _is_unsupported_response_format(exc: Exception) -> bool:
        status_code = getattr(exc, "status_code", None)
        message = str(exc).strip().lower()
        if status_code not in (400, 422, None):
            return False
        return "response_format" in message or "json_schema" in message


def png_data_url(image_png: bytes) -> str:
    return "data:image/png;base64," + base64.b64encode(image_png).decode("ascii")


def parse_json(content: str) -> dict[str, Any]:
    candidate = content.strip()
    if not candidate:
        return {}

    if "```" in candidate:
        parts = candidate.split("```")
        for part in parts:
            part = part.strip()
            if part.startswith("json"):
                part = part[4:].strip()
            if part.startswith("{") and part.endswith("}"):
                candidate = part
                break
    elif not candidate.startswith("{"):
        start = candidate.find("{")
        end = candidate.rfind("}")
        if start != -1 and end > start:
            candidate = candidate[start : end + 1]

    try:
        value = json.loads(candidate)
        return value if isinstance(value, dict) else {}
    except json.JSONDecodeError:
        logger.warning("Failed to parse JSON model output")
        return {}


class ProviderPool:
    def __init__(self, settings: Settings):
        self.settings = settings
        self._openai: LLMProvider | None = None
        self._local: LLMProvider | None = None

    def openai(self) -> LLMProvider:
        if self._openai is None:
            self._openai = LLMProvider(
                ProviderConfig(
                    name="openai",
                    base_url=self.settings.openai_base_url,
                    api_key=self.settings.openai_api_key,
                    timeout_sec=self.settings.openai_timeout_sec,
                    model=self.settings.openai_model_vision,
                )
            )
        return self._openai

    def local(self) -> LLMProvider:
        if self._local is None:
            self._local = LLMProvider(
                ProviderConfig(
                    name="local",
                    base_url=self.settings.local_llm_base_url,
                    api_key=self.settings.local_llm_api_key,
                    timeout_sec=self.settings.local_llm_timeout_sec,
                    model=self.settings.local_llm_model_vision,
                )
            )
        return self._local
