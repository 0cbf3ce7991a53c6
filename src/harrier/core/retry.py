from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

from harrier.config import Settings, get_settings
from harrier.db.repositories import Repository
from harrier.types import ApplicantProfile, ApplicationTarget, ApplyResult, RetrySweepResult

if TYPE_CHECKING:
    from harrier.core.service import ApplicationService

logger = logging.getLogger(__name__)


def compute_next_retry(retry_count: int, from_time: datetime, settings: Settings | None = None) -> datetime:
    """``from_time + min(base * 2**retry_count, max)`` minutes."""
    settings = settings or get_settings()
    delay = min(settings.retry_base_delay_min * 2**retry_count, settings.retry_max_delay_min)
    return from_time + timedelta(minutes=delay)


class RetryProcessor:
    def __init__(self, session: Session, service: ApplicationService, settings: Settings | None = None):
        self.settings = settings or get_settings()
        self.repo = Repository(session)
        self.service = service

    def sweep(self, now: datetime | None = None) -> RetrySweepResult:
        now = now or datetime.now(UTC)
        due = self.repo.list_due_attempts(now, self.settings.retry_ceiling, self.settings.retry_batch_size)
        logger.info("Found %d attempts due for retry", len(due))

        result = RetrySweepResult()
        for attempt in due:
            result.processed += 1
            attempt_id = attempt.id
            try:
                profile = ApplicantProfile.model_validate(attempt.profile_snapshot_json)
                target = ApplicationTarget(url=attempt.url, job_id=attempt.job_id)
                logger.info("Retrying attempt_id=%s retry=%d", attempt_id, attempt.retry_count + 1)
                outcome = self.service.pipeline.run(target, profile)
                status = self.service.record_result(attempt_id, outcome, now=now, retry=True)
            except Exception as exc:
                logger.exception("Retry failed attempt_id=%s", attempt_id)
                self.repo.session.rollback()
                result.errors += 1
                if self._record_crash(attempt_id, exc, now) == "requires_manual_review":
                    result.exhausted += 1
                continue

            if status == "applied":
                result.succeeded += 1
            elif status == "pending":
                result.rescheduled += 1
            else:
                result.exhausted += 1

        logger.info(
            "Retry sweep processed=%d succeeded=%d rescheduled=%d exhausted=%d errors=%d",
            result.processed,
            result.succeeded,
            result.rescheduled,
            result.exhausted,
            result.errors,
        )
        return result

    def _record_crash(self, attempt_id: int, exc: Exception, now: datetime) -> str | None:
        """Count an unexpected crash as a failed retry so it backs off or hits the ceiling."""
        failure = ApplyResult(success=False, message=f"Automation failed: {exc}", error_kind="unexpected")
        try:
            return self.service.record_result(attempt_id, failure, now=now, retry=True)
        except Exception:
            logger.exception("Could not record crashed retry attempt_id=%s", attempt_id)
            self.repo.session.rollback()
            return None


def run_worker(
    sweep: Callable[[], RetrySweepResult],
    interval_sec: int,
    stop_event: threading.Event,
) -> None:
    """Call ``sweep`` every ``interval_sec`` until ``stop_event`` is set."""
    logger.info("Retry worker started interval=%ss", interval_sec)
    while not stop_event.is_set():
        try:
            sweep()
        except Exception:
            logger.exception("Retry sweep crashed")
        stop_event.wait(timeout=interval_sec)
    logger.info("Retry worker stopped")
