"""Phase model."""

from __future__ import annotations

from sqlalchemy import CheckConstraint, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gestion_proyectos.db.session import Base

PHASE_STATES = ("Pendiente", "En progreso", "Completado")
DEFAULT_PHASES = ("Planificación", "Ejecución", "Cierre")


class Phase(Base):
    """Project phase (Planificación, Ejecución, Cierre)."""

    __tablename__ = "fases"
    __table_args__ = (
        CheckConstraint(
            "estado IN ('Pendiente', 'En progreso', 'Completado')", name="ck_fases_estado"
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    proyecto_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("proyectos.id", ondelete="CASCADE"), nullable=False, index=True
    )
    nombre: Mapped[str] = mapped_column(String(100), nullable=False)
    orden: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    estado: Mapped[str] = mapped_column(String(20), default="Pendiente", nullable=False)

    proyecto: Mapped["Project"] = relationship("Project", back_populates="fases")
