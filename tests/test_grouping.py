"""Group key derivation and in-memory grouping (no database)."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from gestion_proyectos.services.grouping import (
    build_group_key,
    count_distinct_normas,
    group_evidences,
    is_institutional,
    normalize_comment,
    parse_group_key,
)


@dataclass
class _Row:
    id: int
    tarea_id: int | None
    comentario: str | None
    categoria: str = "OK"
    evidence_type: str = "GENERAL"
    image_path: str = ""
    group_key: str | None = None
    created_at: datetime = datetime(2025, 1, 1)
    proyecto_id: int = 1


def _rows_newest_first(*specs: tuple[int | None, str | None]) -> list[_Row]:
    base = datetime(2025, 10, 23, 12, 0, 0)
    rows = [
        _Row(id=i, tarea_id=t, comentario=c, image_path=f"evidencias/{i}.png",
             created_at=base + timedelta(minutes=i))
        for i, (t, c) in enumerate(specs, start=1)
    ]
    return list(reversed(rows))


class TestNormalizeComment:
    def test_collapses_whitespace_and_trims(self):
        assert normalize_comment("  Grieta   en\tmuro \n") == "Grieta en muro"

    def test_strips_leading_institutional_tag(self):
        assert normalize_comment("[INSTITUCION] Fachada") == "Fachada"
        assert normalize_comment("[portada]   Fachada") == "Fachada"

    def test_tag_in_the_middle_is_kept(self):
        assert normalize_comment("Fachada [PORTADA]") == "Fachada [PORTADA]"

    def test_empty(self):
        assert normalize_comment(None) == ""
        assert normalize_comment("   ") == ""


class TestGroupKey:
    def test_format(self):
        assert build_group_key(5, "Grieta en muro") == "t5|cGrieta en muro"

    def test_missing_task_is_zero(self):
        assert build_group_key(None, "x") == "t0|cx"
        assert build_group_key(0, "x") == "t0|cx"

    def test_tag_and_whitespace_variants_collapse(self):
        assert build_group_key(5, "[INSTITUCION]  Grieta  en muro") == build_group_key(
            5, "Grieta en muro "
        )

    def test_different_task_different_key(self):
        assert build_group_key(5, "Grieta") != build_group_key(6, "Grieta")

    def test_parse_round_trip(self):
        assert parse_group_key("t5|cGrieta en muro") == (5, "Grieta en muro")
        assert parse_group_key("t0|c") == (None, "")

    def test_parse_malformed(self):
        assert parse_group_key("not-a-key") is None


class TestIsInstitutional:
    def test_detects_leading_tags(self):
        assert is_institutional("[INSTITUCION] Logo")
        assert is_institutional("  [PORTADA] Fachada")

    def test_plain_comment(self):
        assert not is_institutional("Grieta en muro")
        assert not is_institutional(None)


class TestGroupEvidences:
    def test_three_rows_same_key_form_one_group(self):
        rows = _rows_newest_first((5, "Grieta en muro"), (5, "Grieta  en muro"), (5, " Grieta en muro"))
        groups = group_evidences(rows)
        assert len(groups) == 1
        assert groups[0].count == 3
        assert len(groups[0].images) == 3

    def test_preview_images_are_capped(self):
        rows = _rows_newest_first(*[(5, "Grieta")] * 5)
        groups = group_evidences(rows)
        assert groups[0].count == 5
        assert len(groups[0].images) == 3
        assert groups[0].evidencia_ids == [5, 4, 3, 2, 1]

    def test_institutional_rows_are_skipped(self):
        rows = _rows_newest_first((5, "[INSTITUCION] Grieta"), (5, "Grieta"))
        groups = group_evidences(rows)
        assert len(groups) == 1
        assert groups[0].evidencia_ids == [2]

    def test_groups_keep_first_seen_order(self):
        rows = _rows_newest_first((1, "viejo"), (2, "nuevo"))
        groups = group_evidences(rows)
        assert [g.group_key for g in groups] == ["t2|cnuevo", "t1|cviejo"]

    def test_stored_key_wins_over_recomputed(self):
        row = _Row(id=1, tarea_id=5, comentario="otra cosa", group_key="t5|cGrieta")
        assert group_evidences([row])[0].group_key == "t5|cGrieta"

    def test_image_url_callback(self):
        rows = _rows_newest_first((1, "x"))
        groups = group_evidences(rows, image_url=lambda p: "/uploads/" + p)
        assert groups[0].images == ["/uploads/evidencias/1.png"]


class TestCountDistinctNormas:
    def test_union_across_group_members(self):
        rows = _rows_newest_first((5, "a"), (5, "a"), (6, "b"))
        groups = group_evidences(rows)
        links = [(1, 10), (2, 10), (2, 11), (3, 10)]
        count_distinct_normas(groups, links)
        by_key = {g.group_key: g.normas_count for g in groups}
        assert by_key == {"t5|ca": 2, "t6|cb": 1}

    def test_group_without_links(self):
        groups = group_evidences(_rows_newest_first((5, "a")))
        count_distinct_normas(groups, [])
        assert groups[0].normas_count == 0
