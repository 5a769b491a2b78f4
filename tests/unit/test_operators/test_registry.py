"""
Unit tests for scheme tables and name resolution.
"""

import pytest

from gridops.operators.registry import (
    FIRST,
    FIRST_STAGGERED,
    FLUX,
    FLUX_STAGGERED,
    SECOND,
    SECOND_STAGGERED,
    UPWIND,
    UPWIND_STAGGERED,
    DiffMethod,
    OperatorClass,
    SchemeKind,
    SchemeTable,
    describe_method,
    table_for,
)
from gridops.utils.exceptions import UnsatisfiableRequestError

M = DiffMethod


class TestTables:
    """Table contents and ordering."""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        ("table", "methods"),
        [
            (FIRST, (M.C2, M.W2, M.W3, M.C4, M.S2, M.FFT)),
            (SECOND, (M.C2, M.C4, M.FFT)),
            (UPWIND, (M.U1, M.C2, M.U4, M.W3, M.C4, M.PPM)),
            (FLUX, (M.SPLIT, M.U1, M.C2, M.C4, M.NND)),
            (FIRST_STAGGERED, (M.C2, M.C4)),
            (SECOND_STAGGERED, (M.C4,)),
            (UPWIND_STAGGERED, (M.U1,)),
            (FLUX_STAGGERED, (M.SPLIT, M.U1)),
        ],
    )
    def test_table_methods(self, table, methods):
        assert table.methods == methods
        assert table.default.method is methods[0]

    @pytest.mark.unit
    def test_table_for(self):
        assert table_for(OperatorClass.UPWIND) is UPWIND
        assert table_for(OperatorClass.FIRST, staggered=True) is FIRST_STAGGERED

    @pytest.mark.unit
    def test_scheme_kinds_and_widths(self):
        assert FIRST.lookup(M.FFT).kind is SchemeKind.SPECTRAL
        assert FLUX.lookup(M.SPLIT).kind is SchemeKind.SPLIT
        assert UPWIND.lookup(M.PPM).kind is SchemeKind.PPM
        assert FIRST.lookup(M.C2).width == 1
        assert FIRST.lookup(M.C4).width == 2

    @pytest.mark.unit
    def test_lookup_falls_back_to_default(self):
        assert FIRST.lookup(M.NND).method is M.C2
        assert SECOND_STAGGERED.lookup(M.C2).method is M.C4

    @pytest.mark.unit
    def test_empty_table_is_unsatisfiable(self):
        with pytest.raises(UnsatisfiableRequestError):
            _ = SchemeTable("empty", []).default

    @pytest.mark.unit
    def test_describe_method(self):
        assert describe_method(M.C4) == "Fourth order central (C4)"
        assert M.PPM.description == "Piecewise Parabolic Method"


class TestResolve:
    """User-supplied names to implemented methods."""

    @pytest.mark.unit
    @pytest.mark.parametrize("name", ["C4", "c4", " C4 "])
    def test_exact_match_is_case_insensitive(self, name):
        assert FIRST.resolve(name) is M.C4

    @pytest.mark.unit
    def test_empty_name_gives_default(self):
        assert FIRST.resolve("") is M.C2
        assert FLUX.resolve("") is M.SPLIT

    @pytest.mark.unit
    def test_type_match_takes_last_implemented(self):
        assert FIRST.resolve("C3") is M.C4
        assert UPWIND.resolve("U2") is M.U4

    @pytest.mark.unit
    def test_type_match_on_longer_name(self):
        assert FLUX.resolve("S2") is M.SPLIT

    @pytest.mark.unit
    def test_unimplemented_exact_name_uses_type_match(self):
        # W2 is not an upwind scheme; W3 is
        assert UPWIND.resolve("W2") is M.W3

    @pytest.mark.unit
    @pytest.mark.parametrize("name", ["X9", "U1", "NND"])
    def test_no_match_gives_default(self, name):
        assert FIRST.resolve(name) is M.C2
