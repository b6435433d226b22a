"""Project model."""

from __future__ import annotations

from datetime import date, datetime, timezone

from sqlalchemy import Date, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gestion_proyectos.db.session import Base


class Project(Base):
    """Inspection project; owns phases, tasks and evidence."""

    __tablename__ = "proyectos"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    codigo: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)
    nombre: Mapped[str] = mapped_column(String(255), nullable=False)
    cliente: Mapped[str | None] = mapped_column(String(255), nullable=True)
    cedula_juridica: Mapped[str | None] = mapped_column(String(20), nullable=True)
    descripcion: Mapped[str | None] = mapped_column(Text, nullable=True)
    estado: Mapped[str] = mapped_column(String(32), default="Activo", nullable=False)
    fecha_verificacion: Mapped[date | None] = mapped_column(Date, nullable=True)
    fecha_inicio: Mapped[date | None] = mapped_column(Date, nullable=True)
    fecha_fin: Mapped[date | None] = mapped_column(Date, nullable=True)
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

    fases: Mapped[list["Phase"]] = relationship(
        "Phase",
        back_populates="proyecto",
        cascade="all, delete-orphan",
        order_by="Phase.orden",
    )
    tareas: Mapped[list["Task"]] = relationship(
        "Task", back_populates="proyecto", cascade="all, delete-orphan"
    )
    evidencias: Mapped[list["Evidence"]] = relationship(
        "Evidence", back_populates="proyecto", passive_deletes=True
    )
