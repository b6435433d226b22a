"""Norma catalog model (regulatory non-compliance items)."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gestion_proyectos.db.session import Base


class NormaRepo(Base):
    """Catalog entry that evidence can be linked to."""

    __tablename__ = "normas_repo"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    codigo: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    titulo: Mapped[str] = mapped_column(Text, nullable=False)
    descripcion: Mapped[str | None] = mapped_column(Text, nullable=True)
    categoria: Mapped[str | None] = mapped_column(String(255), nullable=True)
    subcategoria: Mapped[str | None] = mapped_column(String(255), nullable=True)
    incumplimiento: Mapped[str | None] = mapped_column(Text, nullable=True)
    severidad: Mapped[str | None] = mapped_column(String(32), nullable=True)
    etiquetas: Mapped[str | None] = mapped_column(Text, nullable=True)
    fuente: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=lambda: datetime.now(timezone.utc), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    evidence_links: Mapped[list["EvidenceNormaLink"]] = relationship(
        "EvidenceNormaLink", back_populates="norma", passive_deletes=True
    )
    reference_images: Mapped[list["NormaRepoEvidence"]] = relationship(
        "NormaRepoEvidence",
        back_populates="norma",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
