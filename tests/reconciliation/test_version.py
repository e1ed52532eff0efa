"""
Tests for the version ordinal codec.

Covers encoding, ordering against segment-wise comparison, the ignored 4th
segment and every rejection path.
"""

import pytest

from reconciliation.version import (
    SEGMENT_MAX,
    ZERO,
    InvalidVersion,
    Ordering,
    VersionOrdinal,
    compare,
    encode,
    truncate3,
)


class TestEncode:
    """Tests for encode()."""

    def test_first_segment_most_significant(self):
        """'1.2.3.4' packs as 0x0001000200030004."""
        assert encode("1.2.3.4").value == 0x0001_0002_0003_0004

    def test_missing_trailing_segments_are_zero(self):
        assert encode("1.2") == encode("1.2.0.0")
        assert encode("7") == encode("7.0.0.0")

    def test_empty_string_is_zero(self):
        assert encode("") == ZERO

    def test_max_segment_accepted(self):
        assert encode("65535.65535.65535.65535").segments == (SEGMENT_MAX,) * 4

    def test_segment_over_max_rejected(self):
        with pytest.raises(InvalidVersion, match="Segment index 2 of version 1.0.65536 is more than 65535"):
            encode("1.0.65536")

    @pytest.mark.parametrize("version", ["1.a.0", "1..2", "1.2.", "-1.0", " 1.0", "1.0 beta"])
    def test_non_numeric_segment_rejected(self, version):
        with pytest.raises(InvalidVersion, match="is not a number"):
            encode(version)

    def test_more_than_four_segments_rejected(self):
        with pytest.raises(InvalidVersion, match="at most 4"):
            encode("1.2.3.4.5")

    def test_invalid_version_is_value_error(self):
        with pytest.raises(ValueError):
            encode("x")

    def test_str_round_trips_canonical_form(self):
        assert str(encode("1.2")) == "1.2.0.0"


class TestCompare:
    """Tests for compare() and ordering."""

    @pytest.mark.parametrize("a,b", [
        ("1.2.3.4", "1.2.3.5"),
        ("1.2.3.65535", "1.2.4.0"),
        ("0.9", "1.0"),
        ("1.9.9.9", "2"),
        ("10.0", "10.0.0.1"),
    ])
    def test_agrees_with_segment_wise_comparison(self, a, b):
        """Lower versions compare LESS, and the reverse compares GREATER."""
        assert compare(encode(a), encode(b)) == Ordering.LESS
        assert compare(encode(b), encode(a)) == Ordering.GREATER

    def test_equal_versions(self):
        assert compare(encode("3.1"), encode("3.1.0.0")) == Ordering.EQUAL

    @pytest.mark.parametrize("version", ["0.0.0.1", "1", "65535.0.0.0"])
    def test_empty_is_lowest(self, version):
        assert compare(encode(""), encode(version)) == Ordering.LESS

    def test_ordinals_are_orderable(self):
        assert sorted([encode("2.0"), encode("1.5"), encode("1.10")]) == [
            encode("1.5"), encode("1.10"), encode("2.0")
        ]


class TestTruncate3:
    """Tests for truncate3()."""

    def test_drops_fourth_segment(self):
        assert truncate3(encode("1.2.3.4")) == encode("1.2.3")

    def test_fourth_segment_only_change_is_equal_after_truncation(self):
        assert truncate3(encode("1.2.3.4")) == truncate3(encode("1.2.3.9"))
        assert encode("1.2.3.4") != encode("1.2.3.9")

    def test_returns_version_ordinal(self):
        assert isinstance(truncate3(VersionOrdinal(0xFFFF)), VersionOrdinal)
        assert truncate3(VersionOrdinal(0xFFFF)) == ZERO
