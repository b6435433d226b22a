"""norma document library, project/task links and catalog reference images

Revision ID: 002
Revises: 001
Create Date: 2025-11-12

"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "002"
down_revision: str | None = "001"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "normas_repo_evidencias",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("norma_repo_id", sa.Integer(), nullable=False),
        sa.Column("comentario", sa.Text(), nullable=True),
        sa.Column("image_path", sa.String(length=1024), nullable=False),
        sa.Column("thumb_path", sa.String(length=1024), nullable=True),
        sa.Column("mime_type", sa.String(length=64), nullable=True),
        sa.Column("size_bytes", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["norma_repo_id"], ["normas_repo.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_normas_repo_evidencias_norma_repo_id", "normas_repo_evidencias", ["norma_repo_id"]
    )

    op.create_table(
        "normas",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("titulo", sa.String(length=200), nullable=False),
        sa.Column("descripcion", sa.Text(), nullable=True),
        sa.Column("etiquetas", sa.String(length=500), nullable=True),
        sa.Column("file_path", sa.String(length=1024), nullable=False),
        sa.Column("file_name", sa.String(length=255), nullable=True),
        sa.Column("mime_type", sa.String(length=64), nullable=False),
        sa.Column("size_bytes", sa.Integer(), nullable=False),
        sa.Column("texto_extraido", sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "proyecto_normas",
        sa.Column("proyecto_id", sa.Integer(), nullable=False),
        sa.Column("norma_id", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["proyecto_id"], ["proyectos.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["norma_id"], ["normas.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("proyecto_id", "norma_id"),
    )
    op.create_index("ix_proyecto_normas_norma_id", "proyecto_normas", ["norma_id"])

    op.create_table(
        "tarea_normas",
        sa.Column("tarea_id", sa.Integer(), nullable=False),
        sa.Column("norma_id", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["tarea_id"], ["tareas.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["norma_id"], ["normas.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("tarea_id", "norma_id"),
    )
    op.create_index("ix_tarea_normas_norma_id", "tarea_normas", ["norma_id"])


def downgrade() -> None:
    op.drop_index("ix_tarea_normas_norma_id", table_name="tarea_normas")
    op.drop_table("tarea_normas")
    op.drop_index("ix_proyecto_normas_norma_id", table_name="proyecto_normas")
    op.drop_table("proyecto_normas")
    op.drop_table("normas")
    op.drop_index("ix_normas_repo_evidencias_norma_repo_id", table_name="normas_repo_evidencias")
    op.drop_table("normas_repo_evidencias")
