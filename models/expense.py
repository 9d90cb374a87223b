"""Pydantic models for expense and budget data"""
import math
from numbers import Real
from pydantic import BaseModel, field_validator
from datetime import date, datetime
from typing import Any, Optional, Union

CATEGORIES = [
    'Housing', 'Food', 'Transportation', 'Utilities',
    'Insurance', 'Health', 'Entertainment', 'Other'
]


def coerce_amount(value: Any) -> float:
    """
    Converts an incoming amount to a float.

    Accepts ints, floats and numeric strings. Anything else (booleans, empty
    strings, NaN, infinities, other types) raises ValueError.
    """
    if isinstance(value, bool):
        raise ValueError("amount must be a number, not a boolean")
    if isinstance(value, str):
        text = value.strip()
        if not text:
            raise ValueError("amount must not be empty")
        try:
            number = float(text)
        except ValueError:
            raise ValueError(f"amount '{value}' is not a number")
    elif isinstance(value, Real):
        number = float(value)
    else:
        raise ValueError(f"amount of type {type(value).__name__} is not a number")

    if not math.isfinite(number):
        raise ValueError("amount must be a finite number")
    return number


class ExpenseIn(BaseModel):
    """
    Fields a client supplies when creating or replacing an expense.
    Identifiers are always assigned by the store, so none is accepted here.
    """
    date: date
    category: str
    description: str
    amount: float

    @field_validator('amount', mode='before')
    @classmethod
    def _coerce_amount(cls, value: Any) -> float:
        return coerce_amount(value)


def lenient_amount(value: Any) -> Optional[float]:
    """Stored amounts that coerce_amount would reject read back as None."""
    if value is None:
        return None
    try:
        return coerce_amount(value)
    except ValueError:
        return None


# ISO dates parse to date, anything else older versions saved stays text
DateOrText = Union[date, str]


class Expense(BaseModel):
    """
    Represents a single stored expense.

    Reading is lenient: records written by earlier versions of the app
    (null amounts from a failed number parse, unchecked date strings, no
    category) are returned as they are instead of being dropped.
    """
    id: str
    date: Optional[DateOrText] = None
    category: Optional[str] = None
    description: Optional[str] = None
    amount: Optional[float] = None
    created_at: Optional[datetime] = None

    @field_validator('date', mode='before')
    @classmethod
    def _parse_date(cls, value: Any) -> Any:
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, str):
            try:
                return date.fromisoformat(value)
            except ValueError:
                return value
        return value

    @field_validator('amount', mode='before')
    @classmethod
    def _lenient_amount(cls, value: Any) -> Optional[float]:
        return lenient_amount(value)

    class Config:
        populate_by_name = True
        from_attributes = True


class BudgetIn(BaseModel):
    """A spending limit for one category."""
    category: str
    amount: float

    @field_validator('category')
    @classmethod
    def _category_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("category must not be blank")
        return value

    @field_validator('amount', mode='before')
    @classmethod
    def _coerce_amount(cls, value: Any) -> float:
        return coerce_amount(value)
