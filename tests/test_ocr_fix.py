"""
Tests for the OCR auto-fix pass.

The pass is a pure function over strings: it must only touch the given
ranges, only substitute characters present in the table, and leave its
input untouched.
"""

import pytest
from mrzlens.modules.ocr_fix import (
    FIX_NUMERIC,
    FIX_ALPHA,
    fix_characters,
    fix_type_code,
    apply_ocr_fixes,
)


# =============================================================================
# TEST fix_characters
# =============================================================================

class TestFixCharacters:

    @pytest.mark.parametrize("char, expected", [
        ("O", "0"), ("Q", "0"), ("D", "0"),
        ("I", "1"), ("L", "1"),
        ("Z", "2"), ("S", "5"), ("B", "8"),
    ])
    def test_numeric_table(self, char, expected):
        fixed, _ = fix_characters(char, [(0, 1)], FIX_NUMERIC)
        assert fixed == expected

    @pytest.mark.parametrize("char, expected", [
        ("0", "O"), ("1", "I"), ("2", "Z"), ("5", "S"), ("8", "B"),
    ])
    def test_alpha_table(self, char, expected):
        fixed, _ = fix_characters(char, [(0, 1)], FIX_ALPHA)
        assert fixed == expected

    def test_only_inside_ranges(self):
        fixed, changes = fix_characters("OOOO", [(1, 3)], FIX_NUMERIC)
        assert fixed == "O00O"
        assert changes == [(1, "O", "0"), (2, "O", "0")]

    def test_unmapped_characters_pass_through(self):
        fixed, changes = fix_characters("74<8X22", [(0, 7)], FIX_NUMERIC)
        assert fixed == "74<8X22"
        assert changes == []

    def test_idempotent(self):
        once, _ = fix_characters("74O8I22", [(0, 7)], FIX_NUMERIC)
        twice, changes = fix_characters(once, [(0, 7)], FIX_NUMERIC)
        assert once == twice == "7408122"
        assert changes == []

    def test_range_past_end_is_ignored(self):
        fixed, _ = fix_characters("OO", [(1, 50)], FIX_NUMERIC)
        assert fixed == "O0"


# =============================================================================
# TEST fix_type_code
# =============================================================================

class TestFixTypeCode:

    def test_p_zero_becomes_po(self):
        line, log = fix_type_code("P0CHNZHANG")
        assert line == "POCHNZHANG"
        assert log == "L1 Type [P0 -> PO]"

    def test_other_codes_untouched(self):
        assert fix_type_code("P<UTO") == ("P<UTO", None)


# =============================================================================
# TEST apply_ocr_fixes
# =============================================================================

class TestApplyOcrFixes:

    def test_does_not_modify_input(self):
        lines = ["P0UTO", "74O8122"]
        fixed, _ = apply_ocr_fixes(lines, numeric=((1, 0, 7),), alpha=(), type_code=True)
        assert lines == ["P0UTO", "74O8122"]
        assert fixed == ["POUTO", "7408122"]

    def test_logs_each_substitution(self):
        _, logs = apply_ocr_fixes(["X<UTO", "74O8I22"], numeric=((1, 0, 7),), alpha=())
        assert logs == ["L2[2] O -> 0", "L2[4] I -> 1"]

    def test_alpha_ranges(self):
        fixed, _ = apply_ocr_fixes(["P<UTOER1KSS0N"], numeric=(), alpha=((0, 5, 13),))
        assert fixed == ["P<UTOERIKSSON"]

    def test_missing_line_is_skipped(self):
        fixed, logs = apply_ocr_fixes(["X<UTO"], numeric=((2, 0, 5),), alpha=())
        assert fixed == ["X<UTO"]
        assert logs == []

    def test_type_code_left_alone_by_default(self):
        fixed, logs = apply_ocr_fixes(["P0C123456788"], numeric=(), alpha=())
        assert fixed == ["P0C123456788"]
        assert logs == []
