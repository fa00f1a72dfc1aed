"""
Pagination helpers for book listings.
"""

import math
import re
from dataclasses import dataclass
from typing import Optional

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10

# Largest value the driver can encode (signed 64-bit)
MAX_INT64 = 2 ** 63 - 1

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def parse_positive_int(raw: Optional[str], default: int) -> int:
    """
    Leniently read a positive integer from query text.

    The leading integer of the text is used ("3abc" -> 3). Missing text,
    text without a leading integer, values below 1 and values beyond a
    signed 64-bit integer give ``default``.
    """
    if raw is None:
        return default
    match = _LEADING_INT.match(raw)
    if not match:
        return default
    digits = match.group(1)
    if len(digits.lstrip("+-").lstrip("0")) > len(str(MAX_INT64)):
        return default
    value = int(digits)
    return value if 1 <= value <= MAX_INT64 else default


@dataclass(frozen=True)
class PageRequest:
    """A resolved page of a listing."""
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT

    @classmethod
    def from_query(cls, page: Optional[str] = None, limit: Optional[str] = None) -> "PageRequest":
        """Build a page request from raw query parameters, never failing."""
        page_number = parse_positive_int(page, DEFAULT_PAGE)
        page_size = parse_positive_int(limit, DEFAULT_LIMIT)
        if (page_number - 1) * page_size > MAX_INT64:
            # The offset would not fit the driver's integer type
            page_number = DEFAULT_PAGE
        return cls(page=page_number, limit=page_size)

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit

    def total_pages(self, total: int) -> int:
        return math.ceil(total / self.limit)
