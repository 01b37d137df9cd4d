from datetime import datetime

from sqlalchemy import DateTime, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from academy.core.time_provider import default_time_provider
from academy.db import Base


def _utc_now() -> datetime:
    return default_time_provider.utc_now().replace(tzinfo=None)


class StoredRecord(Base):
    __tablename__ = 'records'
    __table_args__ = (
        UniqueConstraint('collection', 'record_id', name='uq_records_collection_record_id'),
        Index('ix_records_collection_created', 'collection', 'created_at'),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    collection: Mapped[str] = mapped_column(String(64), index=True)
    record_id: Mapped[str] = mapped_column(String(40), index=True)
    payload: Mapped[str] = mapped_column(Text, default='{}')
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now, onupdate=_utc_now)
