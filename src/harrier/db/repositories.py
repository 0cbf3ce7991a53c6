from __future__ import annotations

from datetime import UTC, datetime
from typing import Any
from urllib.parse import urlparse

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from harrier.db.models import ApplicationAttempt, ATSFormMapping
from harrier.types import ApplicantProfile, ApplicationTarget, DetectedField


def note_line(label: str, message: str) -> str:
    return f"[{label}] {message}\n"


class Repository:
    def __init__(self, session: Session):
        self.session = session

    # Form mapping cache

    def get_mapping(self, platform: str, form_hash: str) -> ATSFormMapping | None:
        statement = select(ATSFormMapping).where(
            ATSFormMapping.ats_platform == platform,
            ATSFormMapping.form_hash == form_hash,
        )
        return self.session.scalar(statement)

    def touch_mapping(self, platform: str, form_hash: str) -> None:
        self.session.execute(
            update(ATSFormMapping)
            .where(ATSFormMapping.ats_platform == platform, ATSFormMapping.form_hash == form_hash)
            .values(usage_count=ATSFormMapping.usage_count + 1, last_used_at=datetime.now(UTC))
        )
        self.session.commit()

    def save_mapping(
        self,
        platform: str,
        form_hash: str,
        fields: list[DetectedField],
        form_url: str = "",
        screenshot_path: str = "",
        usage_count: int = 1,
    ) -> ATSFormMapping:
        payload = [item.model_dump(mode="json") for item in fields]
        mapping = ATSFormMapping(
            ats_platform=platform,
            form_hash=form_hash,
            fields_json=payload,
            form_url=form_url,
            company_domain=urlparse(form_url).netloc if form_url else "",
            screenshot_path=screenshot_path,
            usage_count=usage_count,
            last_used_at=datetime.now(UTC) if usage_count else None,
        )
        self.session.add(mapping)
        try:
            self.session.commit()
        except IntegrityError:
            # Another writer analysed the same form first; keep the newer field list.
            self.session.rollback()
            values: dict[str, Any] = {"fields_json": payload}
            if usage_count:
                values.update(usage_count=ATSFormMapping.usage_count + usage_count, last_used_at=datetime.now(UTC))
            self.session.execute(
                update(ATSFormMapping)
                .where(ATSFormMapping.ats_platform == platform, ATSFormMapping.form_hash == form_hash)
                .values(**values)
            )
            self.session.commit()
            existing = self.get_mapping(platform, form_hash)
            if existing is None:
                raise
            self.session.refresh(existing)
            return existing

        self.session.refresh(mapping)
        return mapping

    def record_mapping_outcome(self, platform: str, form_hash: str, success: bool) -> None:
        increment = 1 if success else 0
        self.session.execute(
            update(ATSFormMapping)
            .where(
                ATSFormMapping.ats_platform == platform,
                ATSFormMapping.form_hash == form_hash,
                ATSFormMapping.usage_count > 0,
            )
            .values(
                success_count=ATSFormMapping.success_count + increment,
                success_rate=(ATSFormMapping.success_count + increment) * 1.0 / ATSFormMapping.usage_count,
            )
        )
        self.session.commit()

    def list_mappings(self, platform: str | None = None, limit: int = 50) -> list[ATSFormMapping]:
        statement = select(ATSFormMapping).order_by(ATSFormMapping.usage_count.desc()).limit(limit)
        if platform:
            statement = statement.where(ATSFormMapping.ats_platform == platform)
        return list(self.session.scalars(statement).all())

    # Application attempts

    def create_attempt(
        self,
        user_id: int,
        target: ApplicationTarget,
        profile: ApplicantProfile,
    ) -> ApplicationAttempt:
        attempt = ApplicationAttempt(
            user_id=user_id,
            job_id=target.job_id,
            url=target.url,
            profile_snapshot_json=profile.model_dump(mode="json"),
            status="pending",
        )
        self.session.add(attempt)
        self.session.commit()
        self.session.refresh(attempt)
        return attempt

    def get_attempt(self, attempt_id: int) -> ApplicationAttempt | None:
        return self.session.get(ApplicationAttempt, attempt_id)

    def list_attempts(self, status: str | None = None, limit: int = 50) -> list[ApplicationAttempt]:
        statement = select(ApplicationAttempt).order_by(ApplicationAttempt.id.desc()).limit(limit)
        if status:
            statement = statement.where(ApplicationAttempt.status == status)
        return list(self.session.scalars(statement).all())

    def count_attempts_by_status(self) -> dict[str, int]:
        statement = select(ApplicationAttempt.status, func.count()).group_by(ApplicationAttempt.status)
        return {status: count for status, count in self.session.execute(statement).all()}

    def list_due_attempts(self, now: datetime, ceiling: int, limit: int) -> list[ApplicationAttempt]:
        statement = (
            select(ApplicationAttempt)
            .where(
                ApplicationAttempt.status == "pending",
                ApplicationAttempt.next_retry_at.is_not(None),
                ApplicationAttempt.next_retry_at <= now,
                ApplicationAttempt.retry_count < ceiling,
            )
            .order_by(ApplicationAttempt.next_retry_at.asc())
            .limit(limit)
        )
        return list(self.session.scalars(statement).all())

    def transition_pending_attempt(self, attempt_id: int, values: dict[str, Any], note: str = "") -> bool:
        """Apply `values` only while the attempt is still pending.

        Returns False when another writer already moved the attempt out of
        `pending`, in which case nothing is changed.
        """
        if note:
            values = {**values, "notes": ApplicationAttempt.notes + note}
        result = self.session.execute(
            update(ApplicationAttempt)
            .where(ApplicationAttempt.id == attempt_id, ApplicationAttempt.status == "pending")
            .values(updated_at=datetime.now(UTC), **values)
            .execution_options(synchronize_session=False)
        )
        self.session.commit()
        changed = result.rowcount == 1
        if changed:
            attempt = self.session.get(ApplicationAttempt, attempt_id)
            if attempt is not None:
                self.session.refresh(attempt)
        return changed
