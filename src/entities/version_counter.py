"""VersionCounter model — per-landing high-water mark for version sequence numbers."""

from sqlalchemy import String, Integer
from sqlalchemy.orm import Mapped, mapped_column

from src.database import Base


class VersionCounter(Base):
    __tablename__ = "version_counters"

    landing_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    last_sequence: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
