"""
Abstract row shared by projects, equipment and activity entries.

Ids are 15-character hex strings so they can be passed around in URLs and
storage paths unchanged.
"""
import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from projecthub.db.base import Base


def new_row_id() -> str:
    return uuid.uuid4().hex[:15]


def utc_timestamp() -> datetime:
    return datetime.now(timezone.utc)


class BaseModel(Base):
    __abstract__ = True

    id: Mapped[str] = mapped_column(String(15), primary_key=True, default=new_row_id)
    # Listings order by creation time, newest first
    created: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_timestamp, nullable=False)
    updated: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_timestamp,
        onupdate=utc_timestamp,
        nullable=False,
    )
