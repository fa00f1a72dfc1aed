"""
Tests for pagination helpers.
"""

import pytest

from library_api.pagination import MAX_INT64, PageRequest, parse_positive_int


class TestParsePositiveInt:
    """Test cases for lenient query integer parsing."""

    @pytest.mark.parametrize("raw,expected", [
        ("3", 3),
        (" 3", 3),
        ("+4", 4),
        ("3abc", 3),
        ("3.7", 3),
        ("abc", 7),
        ("", 7),
        (None, 7),
        ("0", 7),
        ("-2", 7),
    ])
    def test_parse(self, raw, expected):
        assert parse_positive_int(raw, 7) == expected

    def test_no_upper_bound(self):
        assert parse_positive_int("100000", 10) == 100000

    @pytest.mark.parametrize("raw", [
        str(MAX_INT64 + 1),
        "100000000000000000000",
        "9" * 5000,
    ])
    def test_beyond_int64_uses_default(self, raw):
        assert parse_positive_int(raw, 7) == 7

    def test_largest_int64(self):
        assert parse_positive_int(str(MAX_INT64), 7) == MAX_INT64
        assert parse_positive_int("000" + str(MAX_INT64), 7) == MAX_INT64


class TestPageRequest:
    """Test cases for PageRequest."""

    def test_defaults(self):
        request = PageRequest.from_query()
        assert request.page == 1
        assert request.limit == 10
        assert request.skip == 0

    def test_skip(self):
        assert PageRequest.from_query("3", "20").skip == 40

    def test_overflowing_skip_uses_first_page(self):
        request = PageRequest.from_query(str(2 ** 40), str(2 ** 40))

        assert request.page == 1
        assert request.limit == 2 ** 40
        assert request.skip == 0

    def test_largest_skip_kept(self):
        request = PageRequest.from_query("2", str(MAX_INT64))
        assert request.skip == MAX_INT64

    @pytest.mark.parametrize("total,limit,pages", [
        (0, 10, 0),
        (1, 10, 1),
        (10, 10, 1),
        (11, 10, 2),
        (25, 1, 25),
    ])
    def test_total_pages(self, total, limit, pages):
        assert PageRequest(limit=limit).total_pages(total) == pages
