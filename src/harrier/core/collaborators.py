from __future__ import annotations

import logging
from typing import Protocol

from harrier.types import BatchNotification, ManualReviewNotification

logger = logging.getLogger(__name__)


class CreditLedger(Protocol):
    def debit(self, user_id: int, amount: int, reason: str) -> None: ...


class Notifier(Protocol):
    def batch_summary(self, notification: BatchNotification) -> None: ...

    def manual_review(self, notification: ManualReviewNotification) -> None: ...


class LoggingCreditLedger:
    """Stand-in ledger for deployments without a billing service."""

    def debit(self, user_id: int, amount: int, reason: str) -> None:
        logger.info("Ledger debit user_id=%s amount=%s reason=%s", user_id, amount, reason)


class LoggingNotifier:
    def batch_summary(self, notification: BatchNotification) -> None:
        logger.info(
            "%s user_id=%s succeeded=%d failed=%d manual_review=%d",
            notification.title,
            notification.user_id,
            notification.succeeded,
            notification.failed,
            notification.manual_review,
        )
        for line in notification.jobs:
            logger.info("  job_id=%s status=%s url=%s %s", line.job_id, line.status, line.url, line.message)

    def manual_review(self, notification: ManualReviewNotification) -> None:
        logger.warning(
            "Attempt %s needs manual review user_id=%s job_id=%s url=%s reason=%s",
            notification.attempt_id,
            notification.user_id,
            notification.job_id,
            notification.url,
            notification.reason,
        )
