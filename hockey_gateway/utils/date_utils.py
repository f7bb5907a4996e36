"""Date manipulation utilities"""

from datetime import date, timedelta
from typing import List, Optional


def installment_due_dates(start: date, count: int, interval_days: int) -> List[date]:
    """Due dates for count installments, the first on start"""
    return [start + timedelta(days=i * interval_days) for i in range(count)]


def is_within_window(day: date, valid_from: Optional[date], valid_until: Optional[date]) -> bool:
    """True when day falls inside an optional inclusive [from, until] window"""
    if valid_from is not None and day < valid_from:
        return False
    if valid_until is not None and day > valid_until:
        return False
    return True
