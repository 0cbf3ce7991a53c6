from __future__ import annotations

from conftest import ASHBY_STATIC, FakePage, static_match

from harrier.config import Settings
from harrier.db.repositories import Repository
from harrier.db.session import SessionLocal
from harrier.detection.form_hash import compute_form_hash
from harrier.detection.resolver import FieldResolver
from harrier.errors import VisionAnalysisFailure
from harrier.types import DetectedField

CUSTOM_FORM = """
<form class="apply">
  <div><span>Your email</span><input name="q_1"></div>
  <div><span>Name</span><input name="q_2"></div>
  <div><span>CV</span><input type="file" name="q_3"></div>
</form>
"""


class FakeVision:
    def __init__(self, fields: list[DetectedField] | None = None, error: Exception | None = None):
        self.fields = fields or []
        self.error = error
        self.calls = 0

    def analyze(self, page, platform: str) -> list[DetectedField]:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.fields


def vision_fields() -> list[DetectedField]:
    return [
        DetectedField(logical_name="email", locator='input[name="q_1"]', confidence=0.8, source="vision"),
        DetectedField(logical_name="full_name", locator='input[name="q_2"]', confidence=0.8, source="vision"),
        DetectedField(
            logical_name="resume", locator='input[name="q_3"]', confidence=0.7, kind="file", source="vision"
        ),
    ]


def custom_page() -> FakePage:
    return FakePage(
        url="https://careers.acme.com/jobs/1/apply",
        html=CUSTOM_FORM,
        static=[static_match("email", 'input[type="email"]', "email")],
    )


def test_sufficient_static_coverage_skips_cache_and_vision() -> None:
    vision = FakeVision(vision_fields())
    resolver = FieldResolver(Settings(), vision=vision, session_factory=SessionLocal)

    resolution = resolver.resolve_fields("ashby", FakePage(static=ASHBY_STATIC))

    assert vision.calls == 0
    assert resolution.used_cache is False
    assert resolution.vision_invoked is False
    assert {"full_name", "email", "resume"} <= set(resolution.names())
    with SessionLocal() as db:
        assert Repository(db).list_mappings() == []


def test_vision_result_is_cached_and_reused_for_same_form() -> None:
    vision = FakeVision(vision_fields())
    resolver = FieldResolver(Settings(), vision=vision, session_factory=SessionLocal)

    first = resolver.resolve_fields("generic", custom_page())
    second = resolver.resolve_fields("generic", custom_page())

    assert vision.calls == 1
    assert first.vision_invoked is True and first.used_cache is False
    assert second.used_cache is True and second.vision_invoked is False
    assert set(second.names()) == {"email", "full_name", "resume"}
    # Static match outranks the cached vision locator for the same field.
    assert second.get("email").locator == 'input[type="email"]'

    with SessionLocal() as db:
        mapping = Repository(db).get_mapping("generic", compute_form_hash(CUSTOM_FORM))
        assert mapping is not None
        assert mapping.usage_count == 2
        assert mapping.company_domain == "careers.acme.com"


def test_vision_failure_degrades_to_partial_fields() -> None:
    vision = FakeVision(error=VisionAnalysisFailure("no vision provider configured"))
    resolver = FieldResolver(Settings(), vision=vision, session_factory=SessionLocal)

    resolution = resolver.resolve_fields("generic", custom_page())

    assert resolution.names() == ["email"]
    assert resolution.vision_invoked is True
    with SessionLocal() as db:
        assert Repository(db).list_mappings() == []


def test_pre_analyze_populates_cache_without_counting_usage() -> None:
    vision = FakeVision(vision_fields())
    resolver = FieldResolver(Settings(), vision=vision, session_factory=SessionLocal)

    resolver.pre_analyze_page("generic", custom_page())
    resolver.pre_analyze_page("generic", custom_page())

    assert vision.calls == 1
    with SessionLocal() as db:
        mapping = Repository(db).get_mapping("generic", compute_form_hash(CUSTOM_FORM))
        assert mapping.usage_count == 0
        assert mapping.last_used_at is None


def test_first_use_of_pre_analysed_mapping_can_reach_full_success_rate() -> None:
    vision = FakeVision(vision_fields())
    resolver = FieldResolver(Settings(), vision=vision, session_factory=SessionLocal)
    resolver.pre_analyze_page("generic", custom_page())
    resolver.record_outcome("generic", compute_form_hash(CUSTOM_FORM), success=True)

    resolution = resolver.resolve_fields("generic", custom_page())
    resolver.record_outcome("generic", resolution.form_hash, success=True)

    assert resolution.used_cache is True
    assert vision.calls == 1
    with SessionLocal() as db:
        mapping = Repository(db).get_mapping("generic", resolution.form_hash)
        assert (mapping.usage_count, mapping.success_count) == (1, 1)
        assert mapping.success_rate == 1.0


def test_record_outcome_updates_success_rate() -> None:
    resolver = FieldResolver(Settings(), vision=FakeVision(vision_fields()), session_factory=SessionLocal)
    first = resolver.resolve_fields("generic", custom_page())
    resolver.resolve_fields("generic", custom_page())

    resolver.record_outcome("generic", first.form_hash, success=True)
    resolver.record_outcome("generic", first.form_hash, success=False)

    with SessionLocal() as db:
        mapping = Repository(db).get_mapping("generic", first.form_hash)
        assert mapping.success_count == 1
        assert mapping.success_rate == 0.5
