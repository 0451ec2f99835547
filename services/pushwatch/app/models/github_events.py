from datetime import datetime

from sqlalchemy import JSON, DateTime, Index, Integer, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from ..db import Base
from .mixins import TimestampMixin


class GithubEvent(TimestampMixin, Base):
    """One accepted push delivery. Rows are append-only."""

    __tablename__ = "github_events"
    __table_args__ = (
        # Serves the "latest push for a pusher" lookup
        Index("ix_github_events_pusher_commit", "pusher_name", "commit_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    pusher_name: Mapped[str] = mapped_column(String(255), nullable=False)
    pusher_email: Mapped[str] = mapped_column(String(255), nullable=False)
    payload: Mapped[dict] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"), nullable=False, default=dict
    )
    commit_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    def __repr__(self) -> str:
        return f"<GithubEvent id={self.id} pusher={self.pusher_name!r} commit_at={self.commit_at}>"
