"""Comment model."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gestion_proyectos.db.session import Base


class Comment(Base):
    """Comment left by a user on a task."""

    __tablename__ = "comentarios"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tarea_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("tareas.id", ondelete="CASCADE"), nullable=False, index=True
    )
    usuario_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("usuarios.id", ondelete="SET NULL"), nullable=True
    )
    comentario: Mapped[str] = mapped_column(String(1000), nullable=False)
    fecha_comentario: Mapped[datetime] = mapped_column(
        DateTime, default=lambda: datetime.now(timezone.utc), nullable=False
    )

    tarea: Mapped["Task"] = relationship("Task", back_populates="comentarios")
