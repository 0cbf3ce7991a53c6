from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

from sqlalchemy.orm import Session

from harrier.config import Settings, get_settings
from harrier.core.collaborators import CreditLedger, LoggingCreditLedger, LoggingNotifier, Notifier
from harrier.core.pipeline import ApplicationPipeline
from harrier.core.retry import compute_next_retry
from harrier.db.models import ApplicationAttempt
from harrier.db.repositories import Repository, note_line
from harrier.types import (
    ApplicantProfile,
    ApplicationTarget,
    ApplyResult,
    BatchJobLine,
    BatchNotification,
    ManualReviewNotification,
)

logger = logging.getLogger(__name__)


def serialize_attempt(attempt: ApplicationAttempt) -> dict[str, Any]:
    return {
        "id": attempt.id,
        "user_id": attempt.user_id,
        "job_id": attempt.job_id,
        "url": attempt.url,
        "status": attempt.status,
        "platform": attempt.platform,
        "fields_filled_count": attempt.fields_filled_count,
        "retry_count": attempt.retry_count,
        "next_retry_at": attempt.next_retry_at.isoformat() if attempt.next_retry_at else None,
        "low_confidence": attempt.low_confidence,
        "notes": attempt.notes,
    }


class ApplicationService:
    """Records attempts around pipeline runs and owns their status transitions."""

    def __init__(
        self,
        session: Session,
        pipeline: ApplicationPipeline | None = None,
        ledger: CreditLedger | None = None,
        notifier: Notifier | None = None,
        settings: Settings | None = None,
    ):
        self.session = session
        self.settings = settings or get_settings()
        self.repo = Repository(session)
        self.pipeline = pipeline or ApplicationPipeline(self.settings)
        self.ledger = ledger or LoggingCreditLedger()
        self.notifier = notifier or LoggingNotifier()

    def apply_now(self, user_id: int, target: ApplicationTarget, profile: ApplicantProfile) -> ApplyResult:
        attempt = self.repo.create_attempt(user_id, target, profile)
        logger.info("Created attempt_id=%s user_id=%s job_id=%s", attempt.id, user_id, target.job_id)
        result = self.pipeline.run(target, profile)
        result.attempt_id = attempt.id
        self.record_result(attempt.id, result)
        return result

    def apply_batch(
        self,
        user_id: int,
        targets: list[ApplicationTarget],
        profile: ApplicantProfile,
    ) -> BatchNotification:
        summary = BatchNotification(user_id=user_id)
        for target in targets:
            result = self.apply_now(user_id, target, profile)
            attempt = self.repo.get_attempt(result.attempt_id) if result.attempt_id else None
            status = attempt.status if attempt is not None else "pending"
            if status == "applied":
                summary.succeeded += 1
            elif status == "requires_manual_review":
                summary.manual_review += 1
            else:
                summary.failed += 1
            summary.jobs.append(
                BatchJobLine(job_id=target.job_id, url=target.url, status=status, message=result.message)
            )

        logger.info("Batch finished user_id=%s %s", user_id, summary.title)
        self.notifier.batch_summary(summary)
        return summary

    def record_result(
        self,
        attempt_id: int,
        result: ApplyResult,
        *,
        now: datetime | None = None,
        retry: bool = False,
    ) -> str:
        """Move a pending attempt to its next state and return the resulting status.

        Every write is conditional on the attempt still being ``pending``, so
        a concurrent writer that got there first wins and the ledger is only
        debited by whoever actually applied the transition.
        """
        attempt = self.repo.get_attempt(attempt_id)
        if attempt is None:
            raise ValueError(f"attempt {attempt_id} not found")
        now = now or datetime.now(UTC)

        retry_count = attempt.retry_count + 1 if retry else attempt.retry_count
        label = f"Retry {retry_count}" if retry else "Attempt"
        note = note_line(label, result.message)
        values: dict[str, Any] = {
            "platform": result.platform,
            "fields_filled_count": result.fields_filled_count,
            "filled_field_names_json": result.filled_field_names,
            "low_confidence": result.low_confidence,
            "screenshot_path": result.screenshot_path or "",
        }
        if retry:
            values["retry_count"] = retry_count
            values["last_retry_at"] = now

        if result.success:
            values.update(status="applied", next_retry_at=None)
            if self.repo.transition_pending_attempt(attempt_id, values, note):
                self.ledger.debit(
                    attempt.user_id,
                    self.settings.credits_per_application,
                    f"Applied to job {attempt.job_id}",
                )
        elif result.requires_manual_review or retry_count >= self.settings.retry_ceiling:
            reason = result.message if result.requires_manual_review else f"retries exhausted: {result.message}"
            values.update(status="requires_manual_review", next_retry_at=None)
            if self.repo.transition_pending_attempt(attempt_id, values, note):
                self.notifier.manual_review(
                    ManualReviewNotification(
                        user_id=attempt.user_id,
                        attempt_id=attempt_id,
                        job_id=attempt.job_id,
                        url=attempt.url,
                        reason=reason,
                    )
                )
        else:
            values["next_retry_at"] = compute_next_retry(retry_count, now, self.settings)
            self.repo.transition_pending_attempt(attempt_id, values, note)

        self.session.refresh(attempt)
        logger.info(
            "Attempt attempt_id=%s status=%s retry_count=%s next_retry_at=%s",
            attempt_id,
            attempt.status,
            attempt.retry_count,
            attempt.next_retry_at,
        )
        return attempt.status

    def cancel(self, attempt_id: int, reason: str = "cancelled by user") -> bool:
        """Stop scheduling retries for a pending attempt."""
        changed = self.repo.transition_pending_attempt(
            attempt_id,
            {"status": "rejected", "next_retry_at": None},
            note_line("Cancelled", reason),
        )
        if not changed:
            logger.info("Attempt attempt_id=%s was not pending; nothing to cancel", attempt_id)
        return changed
