"""Story model: the expanded narrative for a spark (1:1)."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Text, Uuid

from sparkforge.db.base import Base


class Story(Base):
    __tablename__ = "stories"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    spark_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("sparks.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    content = Column(Text, nullable=False, default="")

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    last_auto_saved_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
