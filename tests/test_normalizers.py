# tests/test_normalizers.py

"""
Tests for text normalization and similarity scoring.
"""

import pytest

from app.core.normalizers import (
    coerce_text,
    is_signature_present,
    normalize,
    similarity,
)


class TestNormalize:
    """Test normalization for comparison."""

    def test_lowercases_and_collapses_whitespace(self):
        assert normalize("  John   Q.  Public ") == "john q. public"

    def test_tabs_and_newlines_collapse(self):
        assert normalize("Jane\t\nDoe") == "jane doe"

    def test_none_is_empty(self):
        assert normalize(None) == ""

    def test_numbers_are_stringified(self):
        assert normalize(12345) == "12345"

    @pytest.mark.parametrize("value", ["  A  b ", "JANE DOE", "", "x\ty", "1 Elm St."])
    def test_idempotent(self, value):
        assert normalize(normalize(value)) == normalize(value)


class TestSimilarity:
    """Test the similarity score rules in priority order."""

    def test_identical_after_normalization(self):
        assert similarity("Jane Doe", "  jane   DOE") == 1.0

    def test_empty_side_scores_zero(self):
        assert similarity("Jane Doe", "") == 0.0
        assert similarity("", "Jane Doe") == 0.0
        assert similarity(None, "Jane Doe") == 0.0

    def test_both_empty_scores_zero(self):
        """Two blanks are not a match."""
        assert similarity("", "") == 0.0
        assert similarity("   ", None) == 0.0

    def test_containment_scores_point_nine(self):
        assert similarity("123 Main Street", "Main Street") == 0.9
        assert similarity("Main Street", "123 Main Street") == 0.9

    def test_word_overlap(self):
        # {john, q, public} vs {john, public}
        assert similarity("John Q Public", "John Public") == pytest.approx(2 / 3)

    def test_word_order_does_not_matter(self):
        assert similarity("Doe Jane", "Jane Doe") == 1.0

    def test_no_shared_words(self):
        assert similarity("Jane Doe", "John Smith") == 0.0

    @pytest.mark.parametrize("a,b", [
        ("Jane Doe", "Jane Smith"),
        ("1 Elm St", "1 Elm Street Apt 4"),
        ("Springfield", "springfield"),
        ("", "Jane"),
        ("John Q Public", "John Public"),
    ])
    def test_symmetric_and_bounded(self, a, b):
        score = similarity(a, b)
        assert score == similarity(b, a)
        assert 0.0 <= score <= 1.0


class TestCoerceText:
    """Test raw cell conversion."""

    def test_integral_float_drops_decimal(self):
        assert coerce_text(12345.0) == "12345"

    def test_fractional_float_kept(self):
        assert coerce_text(1.5) == "1.5"

    def test_none_is_empty(self):
        assert coerce_text(None) == ""

    def test_strips_strings(self):
        assert coerce_text("  Springfield ") == "Springfield"


class TestSignaturePresent:
    """Test the boolean-ish signature flag."""

    @pytest.mark.parametrize("value", ["Yes", "y", "TRUE", "1", "x", "Signed", True])
    def test_present(self, value):
        assert is_signature_present(value) is True

    @pytest.mark.parametrize("value", ["No", "", None, False, "0", "unsigned"])
    def test_absent(self, value):
        assert is_signature_present(value) is False
