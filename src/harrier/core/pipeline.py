from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from harrier.browser.platforms import detect_page_platform
from harrier.browser.session import BrowserSessionFactory, detect_blocker, navigate, open_application_form
from harrier.config import Settings, get_settings
from harrier.core.artifacts import save_screenshot
from harrier.core.verifier import SubmissionVerifier
from harrier.detection.resolver import FieldResolver
from harrier.errors import (
    BlockedByVerification,
    EngineError,
    NavigationTimeout,
    SubmissionIndeterminate,
    SubmissionValidationError,
)
from harrier.fillers import get_filler
from harrier.fillers.base import FormFiller
from harrier.proxy.manager import ProxyManager, get_proxy_manager
from harrier.types import ApplicantProfile, ApplicationTarget, ApplyResult, FieldResolution, FillResult

logger = logging.getLogger(__name__)


class ApplicationPipeline:
    """Drives one browser session from job URL to verified submission."""

    def __init__(
        self,
        settings: Settings | None = None,
        sessions: BrowserSessionFactory | None = None,
        proxies: ProxyManager | None = None,
        resolver: FieldResolver | None = None,
        verifier: SubmissionVerifier | None = None,
        filler_factory: Callable[[str, Settings], FormFiller] = get_filler,
    ):
        self.settings = settings or get_settings()
        self.sessions = sessions or BrowserSessionFactory(self.settings)
        self.proxies = proxies or get_proxy_manager()
        self.resolver = resolver or FieldResolver(self.settings)
        self.verifier = verifier or SubmissionVerifier(self.settings)
        self.filler_factory = filler_factory

    def run(self, target: ApplicationTarget, profile: ApplicantProfile) -> ApplyResult:
        logger.info("Starting application job_id=%s url=%s", target.job_id, target.url)
        proxy_url = self.proxies.get_proxy_url()
        try:
            with self.sessions.open_page(proxy_url) as page:
                return self._run_on_page(page, target, profile)
        except Exception as exc:
            logger.exception("Browser session failed job_id=%s", target.job_id)
            return ApplyResult(success=False, message=f"Browser session failed: {exc}", error_kind="unexpected")

    def pre_analyze(self, url: str) -> FieldResolution:
        """Open the form and warm the mapping cache without filling anything."""
        with self.sessions.open_page(self.proxies.get_proxy_url()) as page:
            navigate(page, url, self.settings)
            open_application_form(page, self.settings)
            platform = detect_page_platform(page)
            return self.resolver.pre_analyze_page(platform, page)

    def _run_on_page(self, page: Any, target: ApplicationTarget, profile: ApplicantProfile) -> ApplyResult:
        platform = "generic"
        resolution: FieldResolution | None = None
        filled: FillResult | None = None

        def finish(**values: Any) -> ApplyResult:
            screenshot = self._screenshot(page, target)
            return ApplyResult(
                platform=platform,
                used_cache=resolution.used_cache if resolution else False,
                fields_filled_count=filled.fields_filled_count if filled else 0,
                filled_field_names=filled.filled_field_names if filled else [],
                screenshot_path=screenshot,
                **values,
            )

        try:
            try:
                navigate(page, target.url, self.settings)
            except NavigationTimeout:
                self.proxies.report_failure()
                raise

            blocker = detect_blocker(page)
            if blocker:
                self.proxies.report_failure()
                raise BlockedByVerification(f"page requires manual handling: {blocker}")
            self.proxies.report_success()

            if not open_application_form(page, self.settings):
                logger.info("Application form not revealed job_id=%s, resolving on current page", target.job_id)
            platform = detect_page_platform(page)
            resolution = self.resolver.resolve_fields(platform, page)
            filler = self.filler_factory(platform, self.settings)
            filled = filler.fill(page, resolution.fields, profile)

            low_confidence = filled.fields_filled_count == 0
            if low_confidence:
                logger.warning("No fields filled job_id=%s platform=%s", target.job_id, platform)
                if not self.settings.submit_when_no_fields:
                    return finish(
                        success=False,
                        low_confidence=True,
                        requires_manual_review=True,
                        message="No fields could be filled; held for manual review",
                        error_kind="low_confidence",
                    )

            outcome = self.verifier.submit(page, filler.submit_phrases)
            success = outcome.status == "success"
            if resolution.used_cache or resolution.vision_invoked:
                self.resolver.record_outcome(platform, resolution.form_hash, success)

            if outcome.status == "validation_error":
                raise SubmissionValidationError(outcome.matched_term)
            if outcome.status == "indeterminate":
                raise SubmissionIndeterminate(outcome.message or "submission could not be confirmed")

            logger.info(
                "Application submitted job_id=%s platform=%s fields=%d",
                target.job_id,
                platform,
                filled.fields_filled_count,
            )
            return finish(
                success=True,
                low_confidence=low_confidence,
                message=f"Application submitted ({filled.fields_filled_count} fields filled)",
            )
        except BlockedByVerification as exc:
            logger.warning("Blocked job_id=%s: %s", target.job_id, exc)
            return finish(success=False, requires_manual_review=True, message=str(exc), error_kind=exc.kind)
        except EngineError as exc:
            logger.warning("Application failed job_id=%s kind=%s: %s", target.job_id, exc.kind, exc)
            return finish(
                success=False,
                low_confidence=bool(filled and filled.fields_filled_count == 0),
                message=str(exc),
                error_kind=exc.kind,
            )
        except Exception as exc:
            logger.exception("Application crashed job_id=%s", target.job_id)
            return finish(success=False, message=f"Automation failed: {exc}", error_kind="unexpected")

    def _screenshot(self, page: Any, target: ApplicationTarget) -> str | None:
        if not self.settings.save_screenshots:
            return None
        return save_screenshot(page, self.settings.artifact_dir, f"job-{target.job_id}")
