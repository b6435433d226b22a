"""Severity ranking and max-severity merge."""

from __future__ import annotations

import pytest

from gestion_proyectos.services.severity import Severity, max_severity


class TestSeverity:
    def test_rank_order(self):
        assert Severity.OK.rank < Severity.LEVE.rank < Severity.CRITICO.rank

    @pytest.mark.parametrize("raw", ["critico", " CRITICO ", "Critico"])
    def test_parse_is_case_insensitive(self, raw):
        assert Severity.parse(raw) is Severity.CRITICO

    def test_parse_unknown_returns_default(self):
        assert Severity.parse("GRAVE") is None
        assert Severity.parse("GRAVE", Severity.LEVE) is Severity.LEVE
        assert Severity.parse(None, Severity.OK) is Severity.OK


class TestMaxSeverity:
    def test_higher_candidate_wins(self):
        assert max_severity(Severity.LEVE, Severity.CRITICO) is Severity.CRITICO

    def test_lower_candidate_loses(self):
        assert max_severity(Severity.CRITICO, Severity.OK) is Severity.CRITICO

    def test_tie_keeps_current(self):
        assert max_severity(Severity.LEVE, Severity.LEVE) is Severity.LEVE

    def test_none_handling(self):
        assert max_severity(None, Severity.OK) is Severity.OK
        assert max_severity(Severity.OK, None) is Severity.OK
