"""Currency conversion and pagination helpers"""

import math

from ..config import LKR_PER_USD


def convert_to_usd(lkr_amount: float, exchange_rate: float = LKR_PER_USD) -> float:
    """Convert LKR to USD, rounded to cents"""
    return round(lkr_amount / exchange_rate, 2)


def convert_to_lkr(usd_amount: float, exchange_rate: float = LKR_PER_USD) -> float:
    return round(usd_amount * exchange_rate, 2)


def format_currency(amount: float, currency: str = "LKR") -> str:
    if currency == "LKR":
        return f"Rs. {amount:,.2f}"
    return f"${amount:.2f}"


def pagination_data(page: int, limit: int, total: int) -> dict:
    """Pagination metadata returned alongside paged lists"""
    return {
        "currentPage": page,
        "totalPages": math.ceil(total / limit) if limit else 0,
        "limit": limit,
        "total": total,
        "hasNext": page * limit < total,
        "hasPrev": page > 1,
    }
