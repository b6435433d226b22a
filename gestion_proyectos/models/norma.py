"""Norma document library: reference PDFs/texts and their project/task links."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from gestion_proyectos.db.session import Base


class Norma(Base):
    """Uploaded reference document. ``texto_extraido`` feeds the library search."""

    __tablename__ = "normas"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    titulo: Mapped[str] = mapped_column(String(200), nullable=False)
    descripcion: Mapped[str | None] = mapped_column(Text, nullable=True)
    etiquetas: Mapped[str | None] = mapped_column(String(500), nullable=True)
    file_path: Mapped[str] = mapped_column(String(1024), nullable=False)
    file_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    mime_type: Mapped[str] = mapped_column(String(64), nullable=False)
    size_bytes: Mapped[int] = mapped_column(Integer, nullable=False)
    texto_extraido: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=lambda: datetime.now(timezone.utc), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )


class ProjectNorma(Base):
    __tablename__ = "proyecto_normas"

    proyecto_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("proyectos.id", ondelete="CASCADE"), primary_key=True
    )
    norma_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("normas.id", ondelete="CASCADE"), primary_key=True, index=True
    )


class TaskNorma(Base):
    __tablename__ = "tarea_normas"

    tarea_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("tareas.id", ondelete="CASCADE"), primary_key=True
    )
    norma_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("normas.id", ondelete="CASCADE"), primary_key=True, index=True
    )
