"""Catalog persistence: identity-preserving upsert, CRUD and filtered listing."""

from __future__ import annotations

import math
import re
from typing import Any, Iterable

from sqlalchemy import Integer, case, cast, func, or_
from sqlalchemy.orm import Query, Session

from gestion_proyectos.models import NormaRepo
from gestion_proyectos.schemas.norma_repo import NormaRepoCreate, NormaRepoUpdate
from gestion_proyectos.services.catalog.images import reference_files, remove_reference_files

NORMA_FIELDS = (
    "codigo",
    "titulo",
    "descripcion",
    "categoria",
    "subcategoria",
    "incumplimiento",
    "severidad",
    "etiquetas",
    "fuente",
)
MAX_LIMIT = 2000
DEFAULT_LIMIT = 50

_KEYWORD_SPLIT_RE = re.compile(r"[\s,;]+")
_NUMERIC_CATEGORY_RE = re.compile(r"^\d+\.?$")
_TRUTHY = {"1", "true", "yes"}


def _clean(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _blank(column):
    return func.coalesce(column, "")


def _folded(column):
    return func.lower(func.trim(func.coalesce(column, "")))


# ── Upsert ───────────────────────────────────────────────────────────


def find_existing(db: Session, data: dict[str, Any]) -> NormaRepo | None:
    """Match by codigo, then the exact tuple, then a case-insensitive (titulo, fuente)."""
    codigo = _clean(data.get("codigo"))
    if codigo:
        match = db.query(NormaRepo).filter(NormaRepo.codigo == codigo).first()
        if match is not None:
            return match

    titulo = _clean(data.get("titulo"))
    if not titulo:
        return None
    categoria = _clean(data.get("categoria")) or ""
    subcategoria = _clean(data.get("subcategoria")) or ""
    fuente = _clean(data.get("fuente")) or ""

    match = (
        db.query(NormaRepo)
        .filter(
            NormaRepo.titulo == titulo,
            _blank(NormaRepo.categoria) == categoria,
            _blank(NormaRepo.subcategoria) == subcategoria,
            _blank(NormaRepo.fuente) == fuente,
        )
        .order_by(NormaRepo.id)
        .first()
    )
    if match is not None:
        return match

    return (
        db.query(NormaRepo)
        .filter(
            _folded(NormaRepo.titulo) == titulo.lower(),
            _folded(NormaRepo.fuente) == fuente.lower(),
        )
        .order_by(NormaRepo.id)
        .first()
    )


def _apply(norma: NormaRepo, data: dict[str, Any]) -> None:
    for field in NORMA_FIELDS:
        value = _clean(data.get(field))
        if value is not None:
            setattr(norma, field, value)


def upsert_norma(db: Session, data: dict[str, Any]) -> tuple[NormaRepo, bool]:
    """Insert or update a catalog entry. Flushes, does not commit.

    Returns ``(norma, created)``. An update only overwrites fields present
    and non-empty in ``data``; the row id never changes.
    """
    existing = find_existing(db, data)
    if existing is not None:
        _apply(existing, data)
        db.flush()
        return existing, False
    if not _clean(data.get("titulo")):
        raise ValueError("titulo es obligatorio")
    norma = NormaRepo()
    _apply(norma, data)
    db.add(norma)
    db.flush()
    return norma, True


# ── CRUD ─────────────────────────────────────────────────────────────


def get_norma(db: Session, norma_id: int) -> NormaRepo | None:
    return db.query(NormaRepo).filter(NormaRepo.id == norma_id).first()


def create_norma(db: Session, data: NormaRepoCreate) -> NormaRepo:
    norma = NormaRepo()
    _apply(norma, data.model_dump())
    db.add(norma)
    db.commit()
    db.refresh(norma)
    return norma


def update_norma(db: Session, norma_id: int, data: NormaRepoUpdate) -> NormaRepo | None:
    norma = get_norma(db, norma_id)
    if norma is None:
        return None
    _apply(norma, data.model_dump(exclude_unset=True))
    db.commit()
    db.refresh(norma)
    return norma


def delete_norma(db: Session, norma_id: int) -> bool:
    """Delete an entry; evidence links and reference photos go with it (FK cascade).

    Reference photo files are removed afterwards, best-effort.
    """
    norma = get_norma(db, norma_id)
    if norma is None:
        return False
    files = reference_files(db, norma_id)
    db.delete(norma)
    db.commit()
    remove_reference_files(files)
    return True


# ── Listing ──────────────────────────────────────────────────────────


def _category_prefix():
    dot = func.instr(NormaRepo.categoria, ".")
    return case(
        (dot > 0, func.substr(NormaRepo.categoria, 1, dot - 1)),
        else_=NormaRepo.categoria,
    )


def keywords(search: str | None) -> list[str]:
    return [k for k in _KEYWORD_SPLIT_RE.split(search or "") if k]


def filter_normas(
    query: Query,
    *,
    search: str | None = None,
    categoria: str | None = None,
    severidad: str | None = None,
) -> Query:
    for keyword in keywords(search):
        pattern = f"%{keyword}%"
        query = query.filter(
            or_(
                NormaRepo.titulo.like(pattern),
                NormaRepo.descripcion.like(pattern),
                NormaRepo.incumplimiento.like(pattern),
                NormaRepo.etiquetas.like(pattern),
                NormaRepo.codigo.like(pattern),
            )
        )
    categoria = _clean(categoria)
    if categoria:
        if _NUMERIC_CATEGORY_RE.match(categoria):
            query = query.filter(_category_prefix() == categoria.rstrip("."))
        else:
            query = query.filter(NormaRepo.categoria.like(f"%{categoria}%"))
    severidad = _clean(severidad)
    if severidad:
        query = query.filter(NormaRepo.severidad.like(f"%{severidad}%"))
    return query


def natural_order(query: Query) -> Query:
    """Empty categories last, then "2." before "10.", then text."""
    empty_last = case(
        (or_(NormaRepo.categoria.is_(None), NormaRepo.categoria == ""), 1), else_=0
    )
    return query.order_by(
        empty_last,
        cast(_category_prefix(), Integer),
        NormaRepo.categoria,
        NormaRepo.titulo,
        NormaRepo.created_at.desc(),
    )


def resolve_limit(limit: int | None, all_flag: str | None) -> int:
    if all_flag is not None and all_flag.strip().lower() in _TRUTHY:
        return MAX_LIMIT
    if not limit or limit < 1:
        return DEFAULT_LIMIT
    return min(limit, MAX_LIMIT)


def list_normas(
    db: Session,
    *,
    search: str | None = None,
    categoria: str | None = None,
    severidad: str | None = None,
    page: int = 1,
    limit: int = DEFAULT_LIMIT,
) -> tuple[list[NormaRepo], int, int]:
    """One page of the filtered catalog: ``(items, total, total_pages)``."""
    page = max(page, 1)
    query = filter_normas(
        db.query(NormaRepo), search=search, categoria=categoria, severidad=severidad
    )
    total = query.count()
    items = natural_order(query).offset((page - 1) * limit).limit(limit).all()
    return items, total, max(1, math.ceil(total / limit))


def normas_for_report(
    db: Session,
    *,
    ids: Iterable[int] | None = None,
    search: str | None = None,
    categoria: str | None = None,
    severidad: str | None = None,
) -> list[NormaRepo]:
    """Explicit ids win over filters; both come back in natural order."""
    query = db.query(NormaRepo)
    if ids is not None:
        query = query.filter(NormaRepo.id.in_(list(ids)))
    else:
        query = filter_normas(query, search=search, categoria=categoria, severidad=severidad)
    return natural_order(query).all()


def parse_ids(raw: str | None) -> list[int] | None:
    """``"3, 5,x"`` -> ``[3, 5]``. None when no ids were given at all."""
    if raw is None or not raw.strip():
        return None
    ids = []
    for part in raw.split(","):
        part = part.strip()
        if part.isdigit() and int(part) > 0:
            ids.append(int(part))
    return ids
