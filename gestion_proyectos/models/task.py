"""Task model."""

from __future__ import annotations

from datetime import date, datetime, timezone

from sqlalchemy import CheckConstraint, Date, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gestion_proyectos.db.session import Base

TASK_PRIORITIES = ("Baja", "Media", "Alta")


class Task(Base):
    """Work item inside a project."""

    __tablename__ = "tareas"
    __table_args__ = (
        CheckConstraint("prioridad IN ('Baja', 'Media', 'Alta')", name="ck_tareas_prioridad"),
        CheckConstraint("progreso >= 0 AND progreso <= 100", name="ck_tareas_progreso"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    proyecto_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("proyectos.id", ondelete="CASCADE"), nullable=False, index=True
    )
    fase_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("fases.id", ondelete="SET NULL"), nullable=True
    )
    nombre: Mapped[str] = mapped_column(String(255), nullable=False)
    descripcion: Mapped[str | None] = mapped_column(Text, nullable=True)
    responsable: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("usuarios.id", ondelete="SET NULL"), nullable=True
    )
    prioridad: Mapped[str] = mapped_column(String(10), default="Media", nullable=False)
    estado: Mapped[str] = mapped_column(String(20), default="Pendiente", nullable=False)
    fecha_limite: Mapped[date | None] = mapped_column(Date, nullable=True)
    progreso: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=lambda: datetime.now(timezone.utc), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    proyecto: Mapped["Project"] = relationship("Project", back_populates="tareas")
    comentarios: Mapped[list["Comment"]] = relationship(
        "Comment",
        back_populates="tarea",
        cascade="all, delete-orphan",
        order_by="Comment.fecha_comentario",
    )
