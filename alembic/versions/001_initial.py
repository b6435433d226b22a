"""initial schema: users, projects, tasks, evidence and norma catalog

Revision ID: 001
Revises:
Create Date: 2025-10-01

"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "usuarios",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("nombre", sa.String(length=255), nullable=False),
        sa.Column("usuario", sa.String(length=100), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("rol", sa.String(length=20), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("usuario"),
        sa.UniqueConstraint("email"),
    )

    op.create_table(
        "proyectos",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("codigo", sa.String(length=32), nullable=False),
        sa.Column("nombre", sa.String(length=255), nullable=False),
        sa.Column("cliente", sa.String(length=255), nullable=True),
        sa.Column("cedula_juridica", sa.String(length=20), nullable=True),
        sa.Column("descripcion", sa.Text(), nullable=True),
        sa.Column("estado", sa.String(length=32), nullable=False),
        sa.Column("fecha_verificacion", sa.Date(), nullable=True),
        sa.Column("fecha_inicio", sa.Date(), nullable=True),
        sa.Column("fecha_fin", sa.Date(), nullable=True),
        sa.Column("created_by", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["created_by"], ["usuarios.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("codigo"),
    )

    op.create_table(
        "fases",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("proyecto_id", sa.Integer(), nullable=False),
        sa.Column("nombre", sa.String(length=100), nullable=False),
        sa.Column("orden", sa.Integer(), nullable=False),
        sa.Column("estado", sa.String(length=20), nullable=False),
        sa.CheckConstraint(
            "estado IN ('Pendiente', 'En progreso', 'Completado')", name="ck_fases_estado"
        ),
        sa.ForeignKeyConstraint(["proyecto_id"], ["proyectos.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_fases_proyecto_id", "fases", ["proyecto_id"])

    op.create_table(
        "tareas",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("proyecto_id", sa.Integer(), nullable=False),
        sa.Column("fase_id", sa.Integer(), nullable=True),
        sa.Column("nombre", sa.String(length=255), nullable=False),
        sa.Column("descripcion", sa.Text(), nullable=True),
        sa.Column("responsable", sa.Integer(), nullable=True),
        sa.Column("prioridad", sa.String(length=10), nullable=False),
        sa.Column("estado", sa.String(length=20), nullable=False),
        sa.Column("fecha_limite", sa.Date(), nullable=True),
        sa.Column("progreso", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("prioridad IN ('Baja', 'Media', 'Alta')", name="ck_tareas_prioridad"),
        sa.CheckConstraint("progreso >= 0 AND progreso <= 100", name="ck_tareas_progreso"),
        sa.ForeignKeyConstraint(["proyecto_id"], ["proyectos.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["fase_id"], ["fases.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["responsable"], ["usuarios.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_tareas_proyecto_id", "tareas", ["proyecto_id"])

    op.create_table(
        "comentarios",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("tarea_id", sa.Integer(), nullable=False),
        sa.Column("usuario_id", sa.Integer(), nullable=True),
        sa.Column("comentario", sa.String(length=1000), nullable=False),
        sa.Column("fecha_comentario", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["tarea_id"], ["tareas.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["usuario_id"], ["usuarios.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_comentarios_tarea_id", "comentarios", ["tarea_id"])

    op.create_table(
        "evidencias",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("proyecto_id", sa.Integer(), nullable=False),
        sa.Column("tarea_id", sa.Integer(), nullable=True),
        sa.Column("categoria", sa.String(length=10), nullable=False),
        sa.Column("evidence_type", sa.String(length=20), nullable=False),
        sa.Column("comentario", sa.Text(), nullable=True),
        sa.Column("image_path", sa.String(length=1024), nullable=False),
        sa.Column("file_hash", sa.String(length=64), nullable=True),
        sa.Column("mime_type", sa.String(length=64), nullable=True),
        sa.Column("size_bytes", sa.Integer(), nullable=True),
        sa.Column("created_by", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.Column("group_key", sa.Text(), nullable=True),
        sa.CheckConstraint(
            "categoria IN ('OK', 'LEVE', 'CRITICO')", name="ck_evidencias_categoria"
        ),
        sa.ForeignKeyConstraint(["proyecto_id"], ["proyectos.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["tarea_id"], ["tareas.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["created_by"], ["usuarios.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_evidencias_proyecto_created", "evidencias", ["proyecto_id", "created_at"])
    op.create_index("ix_evidencias_group_key", "evidencias", ["group_key"])

    op.create_table(
        "normas_repo",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("codigo", sa.String(length=64), nullable=True),
        sa.Column("titulo", sa.Text(), nullable=False),
        sa.Column("descripcion", sa.Text(), nullable=True),
        sa.Column("categoria", sa.String(length=255), nullable=True),
        sa.Column("subcategoria", sa.String(length=255), nullable=True),
        sa.Column("incumplimiento", sa.Text(), nullable=True),
        sa.Column("severidad", sa.String(length=32), nullable=True),
        sa.Column("etiquetas", sa.Text(), nullable=True),
        sa.Column("fuente", sa.String(length=255), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_normas_repo_codigo", "normas_repo", ["codigo"])

    op.create_table(
        "evidencias_normas_repo",
        sa.Column("evidencia_id", sa.Integer(), nullable=False),
        sa.Column("norma_repo_id", sa.Integer(), nullable=False),
        sa.Column("clasificacion", sa.String(length=10), nullable=False),
        sa.Column("observacion", sa.Text(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "clasificacion IN ('OK', 'LEVE', 'CRITICO')",
            name="ck_evidencias_normas_repo_clasificacion",
        ),
        sa.ForeignKeyConstraint(["evidencia_id"], ["evidencias.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["norma_repo_id"], ["normas_repo.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("evidencia_id", "norma_repo_id"),
    )
    op.create_index(
        "ix_evidencias_normas_repo_norma_repo_id", "evidencias_normas_repo", ["norma_repo_id"]
    )


def downgrade() -> None:
    op.drop_index("ix_evidencias_normas_repo_norma_repo_id", table_name="evidencias_normas_repo")
    op.drop_table("evidencias_normas_repo")
    op.drop_index("ix_normas_repo_codigo", table_name="normas_repo")
    op.drop_table("normas_repo")
    op.drop_index("ix_evidencias_group_key", table_name="evidencias")
    op.drop_index("ix_evidencias_proyecto_created", table_name="evidencias")
    op.drop_table("evidencias")
    op.drop_index("ix_comentarios_tarea_id", table_name="comentarios")
    op.drop_table("comentarios")
    op.drop_index("ix_tareas_proyecto_id", table_name="tareas")
    op.drop_table("tareas")
    op.drop_index("ix_fases_proyecto_id", table_name="fases")
    op.drop_table("fases")
    op.drop_table("proyectos")
    op.drop_table("usuarios")
