"""Evidence ↔ norma catalog link model."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gestion_proyectos.db.session import Base


class EvidenceNormaLink(Base):
    """At most one row per (evidence, norma); re-attaching updates it in place."""

    __tablename__ = "evidencias_normas_repo"
    __table_args__ = (
        CheckConstraint(
            "clasificacion IN ('OK', 'LEVE', 'CRITICO')",
            name="ck_evidencias_normas_repo_clasificacion",
        ),
    )

    evidencia_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("evidencias.id", ondelete="CASCADE"), primary_key=True
    )
    norma_repo_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("normas_repo.id", ondelete="CASCADE"), primary_key=True, index=True
    )
    clasificacion: Mapped[str] = mapped_column(String(10), default="LEVE", nullable=False)
    observacion: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=lambda: datetime.now(timezone.utc), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    evidencia: Mapped["Evidence"] = relationship("Evidence", back_populates="norma_links")
    norma: Mapped["NormaRepo"] = relationship("NormaRepo", back_populates="evidence_links")
