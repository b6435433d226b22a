"""Reference photos attached to a catalog entry."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gestion_proyectos.db.session import Base


class NormaRepoEvidence(Base):
    """Example image of a catalog item; ``thumb_path`` is empty when no thumbnail was made."""

    __tablename__ = "normas_repo_evidencias"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    norma_repo_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("normas_repo.id", ondelete="CASCADE"), nullable=False, index=True
    )
    comentario: Mapped[str | None] = mapped_column(Text, nullable=True)
    image_path: Mapped[str] = mapped_column(String(1024), nullable=False)
    thumb_path: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    mime_type: Mapped[str | None] = mapped_column(String(64), nullable=True)
    size_bytes: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=lambda: datetime.now(timezone.utc), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    norma: Mapped["NormaRepo"] = relationship("NormaRepo", back_populates="reference_images")
