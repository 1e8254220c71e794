"""Version model — metadata record for one archived landing snapshot."""

from datetime import datetime, timezone

from sqlalchemy import String, DateTime, Text, Integer, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from src.database import Base


class Version(Base):
    __tablename__ = "versions"
    __table_args__ = (
        UniqueConstraint("landing_id", "sequence_number", name="uq_versions_landing_sequence"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    landing_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    sequence_number: Mapped[int] = mapped_column(Integer, nullable=False)
    description: Mapped[str] = mapped_column(Text, default="")
    tag: Mapped[str] = mapped_column(String(100), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=True)
    size_bytes: Mapped[int] = mapped_column(Integer, default=0)
    linked_audit_id: Mapped[str] = mapped_column(String(64), nullable=True)

    @property
    def is_protected(self) -> bool:
        return bool(self.tag)
