"""Storage interface shared by the expense store backends."""
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Optional

from models.expense import Expense, ExpenseIn, lenient_amount
from utils.exceptions import ValidationFailure

logger = logging.getLogger(__name__)

SORTABLE_FIELDS = ['date', 'category', 'description', 'amount']


def check_sort(sort_by: Optional[str], sort_order: int) -> None:
    if sort_by is not None and sort_by not in SORTABLE_FIELDS:
        raise ValidationFailure(f"Invalid sort_by field '{sort_by}'. Allowed fields: {', '.join(SORTABLE_FIELDS)}")
    if sort_order not in (1, -1):
        raise ValidationFailure("Invalid sort_order value. Use 1 for ascending or -1 for descending.")


def sort_expenses(expenses: List[Expense], sort_by: str, sort_order: int = -1) -> List[Expense]:
    """Sorts expense models in memory. Python's sort is stable, so equal keys keep their order."""
    check_sort(sort_by, sort_order)

    def key(expense: Expense):
        value = getattr(expense, sort_by)
        if value is None:
            # missing values sort together, apart from real ones
            return (False, 0 if sort_by == 'amount' else '')
        if sort_by == 'date':
            # dates and leftover date text compare as ISO strings
            return (True, str(value))
        return (True, value)

    return sorted(expenses, key=key, reverse=sort_order == -1)


def clean_budgets(raw: Mapping[str, Any]) -> Dict[str, float]:
    """Drops stored budget entries whose limit is not a usable number."""
    budgets = {}
    for category, value in raw.items():
        amount = lenient_amount(value)
        if amount is None:
            logger.warning(f"Ignoring budget for '{category}' with unusable limit {value!r}.")
            continue
        budgets[category] = amount
    return budgets


class ExpenseStore(ABC):
    """
    Persists expense records and the category -> budget mapping.

    Implementations raise StorageUnavailable when the backing medium fails,
    and NotFound when an update references a missing record. Deletes of
    missing records are no-ops.
    """

    backend_name = "abstract"

    async def connect(self) -> None:
        """Prepares the backing medium. Called once at application startup."""

    async def close(self) -> None:
        """Releases resources. Called once at application shutdown."""

    @abstractmethod
    async def list_expenses(self, sort_by: Optional[str] = None, sort_order: int = -1) -> List[Expense]:
        ...

    @abstractmethod
    async def create_expense(self, fields: ExpenseIn) -> Expense:
        ...

    @abstractmethod
    async def update_expense(self, expense_id: str, fields: ExpenseIn) -> Expense:
        ...

    @abstractmethod
    async def delete_expense(self, expense_id: str) -> None:
        ...

    @abstractmethod
    async def delete_all_expenses(self) -> int:
        ...

    @abstractmethod
    async def list_budgets(self) -> Dict[str, float]:
        ...

    @abstractmethod
    async def set_budget(self, category: str, amount: float) -> Dict[str, float]:
        ...

    @abstractmethod
    async def delete_budget(self, category: str) -> None:
        ...

    def describe(self) -> Dict[str, Any]:
        return {"backend": self.backend_name}
