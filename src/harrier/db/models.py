from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Float,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from harrier.db.base import Base, TimestampMixin


class ATSFormMapping(TimestampMixin, Base):
    __tablename__ = "ats_form_mappings"
    __table_args__ = (UniqueConstraint("ats_platform", "form_hash", name="uq_ats_form_mapping"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    ats_platform: Mapped[str] = mapped_column(String(40), nullable=False, index=True)
    form_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    fields_json: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list, nullable=False)
    form_url: Mapped[str] = mapped_column(String(1000), default="", nullable=False)
    company_domain: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    screenshot_path: Mapped[str] = mapped_column(String(1000), default="", nullable=False)
    usage_count: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    success_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    success_rate: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    last_used_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class ApplicationAttempt(TimestampMixin, Base):
    __tablename__ = "application_attempts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    job_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    url: Mapped[str] = mapped_column(String(1000), nullable=False)
    profile_snapshot_json: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict, nullable=False)
    status: Mapped[str] = mapped_column(String(40), default="pending", nullable=False, index=True)
    platform: Mapped[str] = mapped_column(String(40), default="", nullable=False)
    fields_filled_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    filled_field_names_json: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    retry_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_retry_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    next_retry_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True, index=True)
    low_confidence: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    notes: Mapped[str] = mapped_column(Text, default="", nullable=False)
    screenshot_path: Mapped[str] = mapped_column(String(1000), default="", nullable=False)
