"""Aggregate statistics over an expense collection.

Every function here is pure: it takes the JSON form of the expenses (a list
of dicts as returned by the API) and recomputes from scratch. A record with a
missing or non-numeric amount counts as zero rather than corrupting the
totals.
"""
import logging
import math
import re
from datetime import date, datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)

UNKNOWN_MONTH = "Unknown"
UNCATEGORIZED = "Uncategorized"
NO_CATEGORY = "None"

_MONTH_RE = re.compile(r"^(\d{4}-\d{2})")


def amount_of(expense: Mapping[str, Any]) -> float:
    """Returns the record's amount as a float, or 0.0 when it is missing or unusable."""
    value = expense.get("amount")
    if isinstance(value, bool) or value is None:
        number = None
    elif isinstance(value, (int, float)):
        number = float(value)
    else:
        try:
            number = float(str(value).strip())
        except ValueError:
            number = None
    if number is None or not math.isfinite(number):
        logger.debug(f"Treating amount {value!r} of expense {expense.get('id', 'N/A')} as 0")
        return 0.0
    return number


def month_of(expense: Mapping[str, Any]) -> str:
    """The YYYY-MM slice of the record's date, or 'Unknown'."""
    raw = expense.get("date")
    if isinstance(raw, (date, datetime)):
        raw = raw.isoformat()
    if not isinstance(raw, str):
        return UNKNOWN_MONTH
    match = _MONTH_RE.match(raw)
    return match.group(1) if match else UNKNOWN_MONTH


def total_amount(expenses: Iterable[Mapping[str, Any]]) -> float:
    return sum(amount_of(e) for e in expenses)


def totals_by_category(expenses: Iterable[Mapping[str, Any]]) -> Dict[str, float]:
    # dicts keep insertion order, which top_category relies on for ties
    totals: Dict[str, float] = {}
    for e in expenses:
        category = e.get("category") or UNCATEGORIZED
        totals[category] = totals.get(category, 0.0) + amount_of(e)
    return totals


def totals_by_month(expenses: Iterable[Mapping[str, Any]]) -> Dict[str, float]:
    totals: Dict[str, float] = {}
    for e in expenses:
        month = month_of(e)
        totals[month] = totals.get(month, 0.0) + amount_of(e)
    return totals


def top_category(by_category: Mapping[str, float]) -> Tuple[str, float]:
    """
    Category with the largest total. Ties keep the first one seen, and
    nothing above zero yields ('None', 0).
    """
    top_name, top_amount = NO_CATEGORY, 0.0
    for name, amount in by_category.items():
        if amount > top_amount:
            top_name, top_amount = name, amount
    return top_name, top_amount


def chart_data(by_category: Mapping[str, float]) -> List[Dict[str, Any]]:
    """Series for a category pie chart."""
    return [{"name": name, "value": value} for name, value in by_category.items()]


def budget_usage(by_category: Mapping[str, float], budgets: Mapping[str, Any]) -> Dict[str, Dict[str, Any]]:
    """How much of each budgeted category's limit has been spent."""
    usage = {}
    for category, limit in budgets.items():
        limit = amount_of({"amount": limit})
        spent = by_category.get(category, 0.0)
        usage[category] = {
            "limit": limit,
            "spent": spent,
            "remaining": limit - spent,
            "over_budget": spent > limit,
        }
    return usage


def compute_stats(
    expenses: Iterable[Mapping[str, Any]],
    budgets: Optional[Mapping[str, Any]] = None,
    today: Optional[date] = None,
) -> Dict[str, Any]:
    """Everything the dashboard shows, computed in one go."""
    expenses = list(expenses)
    today = today or datetime.now(timezone.utc).date()

    by_category = totals_by_category(expenses)
    by_month = totals_by_month(expenses)
    top_name, top_amount = top_category(by_category)

    return {
        "count": len(expenses),
        "total": total_amount(expenses),
        "by_category": by_category,
        "by_month": by_month,
        "chart_data": chart_data(by_category),
        "top_category": top_name,
        "top_category_amount": top_amount,
        "this_month": by_month.get(today.isoformat()[:7], 0.0),
        "budgets": budget_usage(by_category, budgets or {}),
    }
