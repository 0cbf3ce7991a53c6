from __future__ import annotations

from datetime import UTC, datetime, timedelta

from conftest import FakePipeline

from harrier.config import Settings
from harrier.core.retry import RetryProcessor
from harrier.core.service import ApplicationService
from harrier.db.repositories import Repository
from harrier.db.session import SessionLocal
from harrier.types import ApplicationTarget, ApplyResult

NOW = datetime(2026, 3, 2, 12, 0, tzinfo=UTC)
SUBMITTED = ApplyResult(success=True, platform="ashby", fields_filled_count=6, message="Application submitted")
FAILED = ApplyResult(
    success=False,
    message="form validation error: is required",
    error_kind="submission_validation_error",
)


def naive(value: datetime | None) -> datetime | None:
    return value.replace(tzinfo=None) if value else None


def schedule(db, profile, job_id: int, *, due_at: datetime, retry_count: int = 0) -> int:
    repo = Repository(db)
    target = ApplicationTarget(url=f"https://jobs.ashbyhq.com/acme/{job_id}", job_id=job_id)
    attempt = repo.create_attempt(3, target, profile)
    repo.transition_pending_attempt(attempt.id, {"next_retry_at": due_at, "retry_count": retry_count})
    return attempt.id


def processor_for(db, pipeline, ledger, notifier) -> RetryProcessor:
    settings = Settings()
    service = ApplicationService(db, pipeline=pipeline, ledger=ledger, notifier=notifier, settings=settings)
    return RetryProcessor(db, service, settings)


def test_due_attempt_is_retried_and_applied(profile, ledger, notifier) -> None:
    with SessionLocal() as db:
        attempt_id = schedule(db, profile, 1, due_at=NOW - timedelta(minutes=5))
        result = processor_for(db, FakePipeline(SUBMITTED), ledger, notifier).sweep(NOW)

        attempt = Repository(db).get_attempt(attempt_id)
        assert (result.processed, result.succeeded) == (1, 1)
        assert attempt.status == "applied"
        assert attempt.retry_count == 1
        assert naive(attempt.last_retry_at) == naive(NOW)
        assert attempt.next_retry_at is None
        assert "[Retry 1] Application submitted" in attempt.notes
        assert len(ledger.debits) == 1


def test_failed_retry_backs_off_exponentially(profile, ledger, notifier) -> None:
    with SessionLocal() as db:
        attempt_id = schedule(db, profile, 1, due_at=NOW - timedelta(minutes=1), retry_count=1)
        result = processor_for(db, FakePipeline(FAILED), ledger, notifier).sweep(NOW)

        attempt = Repository(db).get_attempt(attempt_id)
        assert result.rescheduled == 1
        assert attempt.status == "pending"
        assert attempt.retry_count == 2
        assert naive(attempt.next_retry_at) == naive(NOW + timedelta(minutes=120))
        assert notifier.reviews == []


def test_last_allowed_retry_escalates_to_manual_review(profile, ledger, notifier) -> None:
    with SessionLocal() as db:
        attempt_id = schedule(db, profile, 1, due_at=NOW - timedelta(minutes=1), retry_count=2)
        result = processor_for(db, FakePipeline(FAILED), ledger, notifier).sweep(NOW)

        attempt = Repository(db).get_attempt(attempt_id)
        assert result.exhausted == 1
        assert attempt.status == "requires_manual_review"
        assert attempt.retry_count == 3
        assert attempt.next_retry_at is None
        assert notifier.reviews[0].attempt_id == attempt_id
        assert notifier.reviews[0].reason.startswith("retries exhausted")


def test_sweep_skips_future_and_exhausted_attempts(profile, ledger, notifier) -> None:
    with SessionLocal() as db:
        schedule(db, profile, 1, due_at=NOW + timedelta(minutes=10))
        schedule(db, profile, 2, due_at=NOW - timedelta(minutes=10), retry_count=3)
        pipeline = FakePipeline()
        result = processor_for(db, pipeline, ledger, notifier).sweep(NOW)

    assert result.processed == 0
    assert pipeline.runs == []


def test_one_crashing_attempt_does_not_stop_the_sweep(profile, ledger, notifier) -> None:
    with SessionLocal() as db:
        first = schedule(db, profile, 1, due_at=NOW - timedelta(minutes=20))
        second = schedule(db, profile, 2, due_at=NOW - timedelta(minutes=10))
        pipeline = FakePipeline(RuntimeError("browser crashed"), SUBMITTED)
        result = processor_for(db, pipeline, ledger, notifier).sweep(NOW)

        repo = Repository(db)
        assert (result.processed, result.errors, result.succeeded) == (2, 1, 1)
        crashed = repo.get_attempt(first)
        assert crashed.status == "pending"
        assert crashed.retry_count == 1
        assert naive(crashed.next_retry_at) == naive(NOW + timedelta(minutes=60))
        assert "[Retry 1] Automation failed: browser crashed" in crashed.notes
        assert repo.get_attempt(second).status == "applied"


def test_crashing_attempt_reaches_manual_review_at_the_ceiling(profile, ledger, notifier) -> None:
    with SessionLocal() as db:
        attempt_id = schedule(db, profile, 1, due_at=NOW - timedelta(minutes=1), retry_count=2)
        result = processor_for(db, FakePipeline(RuntimeError("browser crashed")), ledger, notifier).sweep(NOW)

        attempt = Repository(db).get_attempt(attempt_id)
        assert (result.errors, result.exhausted) == (1, 1)
        assert attempt.status == "requires_manual_review"
        assert attempt.retry_count == 3
        assert notifier.reviews[0].reason == "retries exhausted: Automation failed: browser crashed"


def test_crashing_attempt_stops_being_due_so_others_get_their_turn(profile, ledger, notifier) -> None:
    with SessionLocal() as db:
        first = schedule(db, profile, 1, due_at=NOW - timedelta(minutes=20))
        second = schedule(db, profile, 2, due_at=NOW - timedelta(minutes=10))
        settings = Settings(retry_batch_size=1)
        service = ApplicationService(
            db,
            pipeline=FakePipeline(RuntimeError("browser crashed"), SUBMITTED),
            ledger=ledger,
            notifier=notifier,
            settings=settings,
        )
        processor = RetryProcessor(db, service, settings)

        processor.sweep(NOW)
        processor.sweep(NOW)

        repo = Repository(db)
        assert [target.job_id for target, _ in service.pipeline.runs] == [1, 2]
        assert repo.get_attempt(first).retry_count == 1
        assert repo.get_attempt(second).status == "applied"
