"""Evidence model: uploaded photo tied to a project and optionally a task."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gestion_proyectos.db.session import Base


class Evidence(Base):
    """Photographic evidence. ``group_key`` is derived from task + normalized comment."""

    __tablename__ = "evidencias"
    __table_args__ = (
        CheckConstraint("categoria IN ('OK', 'LEVE', 'CRITICO')", name="ck_evidencias_categoria"),
        Index("ix_evidencias_proyecto_created", "proyecto_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    proyecto_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("proyectos.id", ondelete="CASCADE"), nullable=False
    )
    tarea_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("tareas.id", ondelete="SET NULL"), nullable=True
    )
    categoria: Mapped[str] = mapped_column(String(10), default="OK", nullable=False)
    evidence_type: Mapped[str] = mapped_column(String(20), default="GENERAL", nullable=False)
    comentario: Mapped[str | None] = mapped_column(Text, nullable=True)
    image_path: Mapped[str] = mapped_column(String(1024), nullable=False)
    file_hash: Mapped[str | None] = mapped_column(String(64), nullable=True)
    mime_type: Mapped[str | None] = mapped_column(String(64), nullable=True)
    size_bytes: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_by: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("usuarios.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=lambda: datetime.now(timezone.utc), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    group_key: Mapped[str | None] = mapped_column(Text, nullable=True, index=True)

    proyecto: Mapped["Project"] = relationship("Project", back_populates="evidencias")
    norma_links: Mapped[list["EvidenceNormaLink"]] = relationship(
        "EvidenceNormaLink", back_populates="evidencia", passive_deletes=True
    )
