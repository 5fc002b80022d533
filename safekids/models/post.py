"""Post model — hazard reports, searchable through a generated tsvector column."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Computed, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.dialects.postgresql import TSVECTOR, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from safekids.models.base import Base
from safekids.models.user import User


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Post(Base):
    """A hazard report. `search_vector` is maintained by PostgreSQL itself."""

    __tablename__ = "posts"
    __table_args__ = (
        Index("ix_posts_search_vector", "search_vector", postgresql_using="gin"),
        Index("ix_posts_created_at", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    author_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False,
    )
    text: Mapped[str] = mapped_column(String(2000), nullable=False)
    image: Mapped[str] = mapped_column(String(512), nullable=False)
    likes_count: Mapped[int] = mapped_column(Integer, nullable=False, insert_default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_now,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_now, onupdate=_now,
    )
    # 'simple' keeps Hebrew and English tokens unstemmed
    search_vector: Mapped[str] = mapped_column(
        TSVECTOR,
        Computed("to_tsvector('simple', coalesce(text, ''))", persisted=True),
    )

    author: Mapped[User] = relationship(lazy="raise")
