"""Collaborator interfaces the charge calculator reads from.

The database repository implements all three; tests inject fakes.
"""

from typing import Optional, Protocol

from hockey_gateway.domain.models import DiscountCode


class DiscountCodeLookup(Protocol):
    def get_by_code(self, code: str) -> Optional[DiscountCode]:
        """Return the code matching the normalized string, or None"""
        ...


class CodeUsageCounter(Protocol):
    def count_code_uses(self, user_id: str, discount_code_id: str) -> int:
        """Number of usage records for this user and code"""
        ...


class SeasonalUsageLedger(Protocol):
    def total_used(self, user_id: str, discount_category_id: str, season_id: str) -> int:
        """Sum of amount_saved for this user, category and season"""
        ...
