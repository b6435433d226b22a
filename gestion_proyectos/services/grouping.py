"""Evidence grouping: derive group keys and cluster evidence rows.

A group is a virtual cluster of evidence sharing task id and normalized
comment. The key is stored on upload and recomputed here for rows that
predate the ``group_key`` column; both paths go through ``build_group_key``.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Protocol

MAX_PREVIEW_IMAGES = 3

_INSTITUTIONAL_TAG_RE = re.compile(r"^\s*\[(INSTITUCION|PORTADA)\]\s*", re.IGNORECASE)
_WHITESPACE_RE = re.compile(r"\s+")
_GROUP_KEY_RE = re.compile(r"^t(\d+)\|c(.*)$", re.DOTALL)


class EvidenceRow(Protocol):
    id: int
    tarea_id: int | None
    comentario: str | None
    categoria: str
    evidence_type: str
    image_path: str
    group_key: str | None
    created_at: datetime


def normalize_comment(comentario: str | None) -> str:
    """Strip a leading [INSTITUCION]/[PORTADA] tag, collapse whitespace, trim."""
    if not comentario:
        return ""
    text = _INSTITUTIONAL_TAG_RE.sub("", str(comentario), count=1)
    return _WHITESPACE_RE.sub(" ", text).strip()


def is_institutional(comentario: str | None) -> bool:
    """True when the raw comment starts with an institutional tag."""
    return bool(comentario) and _INSTITUTIONAL_TAG_RE.match(str(comentario)) is not None


def build_group_key(tarea_id: int | None, comentario: str | None) -> str:
    """Return ``t{taskIdOrZero}|c{normalizedComment}``."""
    return f"t{int(tarea_id) if tarea_id else 0}|c{normalize_comment(comentario)}"


def parse_group_key(group_key: str) -> tuple[int | None, str] | None:
    """Split a group key into (tarea_id or None, normalized comment). None if malformed."""
    match = _GROUP_KEY_RE.match(group_key or "")
    if match is None:
        return None
    tarea_id = int(match.group(1))
    return (tarea_id or None, match.group(2))


def group_key_of(row: EvidenceRow) -> str:
    """Stored key, or the derived one for rows without it."""
    return row.group_key or build_group_key(row.tarea_id, row.comentario)


@dataclass
class EvidenceGroup:
    """Aggregated view of one group."""

    group_key: str
    proyecto_id: int | None
    tarea_id: int | None
    comentario: str
    tipo: str | None
    categoria: str | None
    evidencia_ids: list[int] = field(default_factory=list)
    images: list[str] = field(default_factory=list)
    last_created_at: datetime | None = None
    normas_count: int = 0

    @property
    def count(self) -> int:
        return len(self.evidencia_ids)


def group_evidences(
    rows: Iterable[EvidenceRow],
    image_url: Callable[[str], str] = lambda path: path,
    max_images: int = MAX_PREVIEW_IMAGES,
) -> list[EvidenceGroup]:
    """Bucket rows by group key, preserving first-seen order.

    Rows are expected newest first. Institutional-tagged rows are skipped;
    each group keeps every evidence id and at most ``max_images`` previews.
    """
    groups: dict[str, EvidenceGroup] = {}
    for row in rows:
        if is_institutional(row.comentario):
            continue
        key = group_key_of(row)
        group = groups.get(key)
        if group is None:
            group = EvidenceGroup(
                group_key=key,
                proyecto_id=getattr(row, "proyecto_id", None),
                tarea_id=row.tarea_id,
                comentario=normalize_comment(row.comentario),
                tipo=row.evidence_type,
                categoria=row.categoria,
                last_created_at=row.created_at,
            )
            groups[key] = group
        group.evidencia_ids.append(row.id)
        if len(group.images) < max_images and row.image_path:
            group.images.append(image_url(row.image_path))
    return list(groups.values())


def count_distinct_normas(
    groups: Iterable[EvidenceGroup], links: Iterable[tuple[int, int]]
) -> None:
    """Set ``normas_count`` on each group from (evidencia_id, norma_repo_id) pairs.

    A norma linked through several evidence rows of the same group counts once.
    """
    by_evidence: dict[int, set[int]] = {}
    for evidencia_id, norma_repo_id in links:
        by_evidence.setdefault(evidencia_id, set()).add(norma_repo_id)
    for group in groups:
        normas: set[int] = set()
        for evidencia_id in group.evidencia_ids:
            normas |= by_evidence.get(evidencia_id, set())
        group.normas_count = len(normas)
