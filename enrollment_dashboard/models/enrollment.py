from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import JSON, Column
from sqlmodel import SQLModel, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Enrollment(SQLModel, table=True):
    """
    A single enrollment submission (lead or recruiter).

    Notes:
    - payload keeps the raw form/import submission; key names vary between
      sources, so readers go through services.enrollment_records.parse_payload.
    - traffic_source is the referral code of whoever referred this person,
      as captured by the enrollment form link.
    """

    __tablename__ = "enrollments"

    id: Optional[int] = Field(default=None, primary_key=True)

    name: Optional[str] = Field(default=None, index=True)
    phone: Optional[str] = Field(default=None, index=True)
    city: Optional[str] = Field(default=None)
    email: Optional[str] = Field(default=None, index=True)

    traffic_source: Optional[str] = Field(default=None, index=True)

    # Normalized own referral code (recruiters only), derived from payload
    own_code: Optional[str] = Field(default=None, index=True)

    payload: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))

    created_at: datetime = Field(default_factory=utcnow, index=True)
