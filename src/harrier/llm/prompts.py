from __future__ import annotations

from harrier.types import LOGICAL_FIELDS

FIELD_DETECTION_PROMPT = """
You are analysing a screenshot of a job application form.
Identify every input the applicant is expected to fill.

Return strict JSON with one key:
- fields: array of objects with keys:
  - field_name: one of [{field_names}]
  - label: the visible label text next to the input
  - selector: a CSS selector that uniquely targets the input element
  - confidence: number (0..1)
  - position: object with keys x and y, the centre of the input as a
    percentage (0..100) of the page width and height

Rules:
- Only report inputs you can see. Never invent fields.
- Use "resume" for the file upload control that takes a CV or resume.
- Prefer selectors built from name, type or aria-label attributes over
  generated ids.
- Skip fields whose meaning does not match the vocabulary.

ATS platform: {platform}
Form URL: {form_url}
""".strip()


def build_field_detection_prompt(*, platform: str, form_url: str) -> str:
    return FIELD_DETECTION_PROMPT.format(
        field_names=", ".join(LOGICAL_FIELDS),
        platform=platform,
        form_url=form_url,
    )


FIELD_DETECTION_SCHEMA = {
    "name": "form_field_detection",
    "strict": True,
    "schema": {
        "type": "object",
        "properties": {
            "fields": {
                "type": "array",
                "items": {
                    "type": "object",
                    "properties": {
                        "field_name": {"type": "string", "enum": list(LOGICAL_FIELDS)},
                        "label": {"type": "string"},
                        "selector": {"type": "string"},
                        "confidence": {"type": "number"},
                        "position": {
                            "type": "object",
                            "properties": {"x": {"type": "number"}, "y": {"type": "number"}},
                            "required": ["x", "y"],
                            "additionalProperties": False,
                        },
                    },
                    "required": ["field_name", "label", "selector", "confidence", "position"],
                    "additionalProperties": False,
                },
            }
        },
        "required": ["fields"],
        "additionalProperties": False,
    },
}
