"""
MindWell Database Models
SQLAlchemy ORM models.

All datetime columns use DateTime(timezone=True) for proper UTC handling.
"""

from datetime import datetime
from sqlalchemy import String, Text, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from mindwell.core.database import Base
from mindwell.core.utc import utc_now


DateTimeTZ = DateTime(timezone=True)


class KeyValueEntry(Base):
    """
    One opaque JSON blob stored under a fixed string key.

    Keys are namespaced per feature, e.g. `text_analysis_history`,
    `@chat_messages`, `@affirmation_streak`.
    """
    __tablename__ = "kv_entries"

    key: Mapped[str] = mapped_column(String(128), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTimeTZ, default=utc_now, onupdate=utc_now
    )

    def __repr__(self) -> str:
        return f"<KeyValueEntry {self.key} ({len(self.value)} chars)>"
