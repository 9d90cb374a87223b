"""Flat-file expense store: two JSON documents rewritten on every mutation."""
import asyncio
import json
import logging
import os
import tempfile
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from models.expense import Expense, ExpenseIn
from services.store import ExpenseStore, check_sort, clean_budgets, sort_expenses
from utils.exceptions import NotFound, StorageUnavailable

logger = logging.getLogger(__name__)

EXPENSES_FILE = "expenses.json"
BUDGETS_FILE = "budgets.json"


class JsonFileStore(ExpenseStore):
    """
    Keeps expenses in `expenses.json` (an array, most recent first) and
    budgets in `budgets.json` (a flat category -> number object).

    Every read-modify-write happens under one asyncio.Lock and files are
    replaced atomically, so concurrent requests in this process cannot
    lose each other's changes.
    """

    backend_name = "file"

    def __init__(self, data_dir: str):
        self.data_dir = Path(data_dir)
        self.expenses_path = self.data_dir / EXPENSES_FILE
        self.budgets_path = self.data_dir / BUDGETS_FILE
        self._lock = asyncio.Lock()

    async def connect(self) -> None:
        logger.info(f"Using flat-file storage in '{self.data_dir}'")
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            if not self.expenses_path.exists():
                self._write_json(self.expenses_path, [])
            if not self.budgets_path.exists():
                self._write_json(self.budgets_path, {})
        except OSError as e:
            logger.error(f"Could not initialise data directory '{self.data_dir}': {e}")
            raise StorageUnavailable(f"Could not initialise data directory: {e}")

    # --- Low level file helpers ---

    def _read_json(self, path: Path, expected_type: type) -> Any:
        """Reads and decodes one JSON file. Raises StorageUnavailable on any failure."""
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Error reading {path}: {e}")
            raise StorageUnavailable(f"Could not read {path.name}: {e}")
        if not isinstance(data, expected_type):
            logger.error(f"Unexpected content in {path}: expected {expected_type.__name__}")
            raise StorageUnavailable(f"{path.name} is corrupt")
        return data

    def _write_json(self, path: Path, data: Any) -> None:
        """Writes to a temporary file in the same directory, then swaps it into place."""
        tmp_path = None
        try:
            fd, tmp_path = tempfile.mkstemp(dir=str(path.parent), prefix=f".{path.name}.", suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, default=str)
            os.replace(tmp_path, path)
        except OSError as e:
            logger.error(f"Error writing {path}: {e}")
            if tmp_path is not None and os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise StorageUnavailable(f"Could not write {path.name}: {e}")

    def _load_records(self) -> List[Dict[str, Any]]:
        return self._read_json(self.expenses_path, list)

    @staticmethod
    def _to_models(records: List[Dict[str, Any]]) -> List[Expense]:
        """Records without a usable id cannot be addressed, so they are the only ones skipped."""
        expenses = []
        for record in records:
            try:
                expenses.append(Expense(**record))
            except (ValidationError, TypeError) as e:
                record_id = record.get("id", "N/A") if isinstance(record, dict) else "N/A"
                logger.error(f"Skipping invalid expense record {record_id}: {e}")
        return expenses

    # --- Expenses ---

    async def list_expenses(self, sort_by: Optional[str] = None, sort_order: int = -1) -> List[Expense]:
        check_sort(sort_by, sort_order)
        try:
            records = self._load_records()
        except StorageUnavailable:
            # Listing degrades to an empty collection instead of failing the request
            logger.warning("Returning an empty expense list because the expenses file could not be read.")
            return []
        expenses = self._to_models(records)
        if sort_by:
            expenses = sort_expenses(expenses, sort_by, sort_order)
        logger.info(f"Fetched {len(expenses)} expenses from {self.expenses_path.name}.")
        return expenses

    async def create_expense(self, fields: ExpenseIn) -> Expense:
        async with self._lock:
            records = self._load_records()
            existing_ids = {r.get("id") for r in records if isinstance(r, dict)}
            new_id = uuid.uuid4().hex
            while new_id in existing_ids:
                new_id = uuid.uuid4().hex
            expense = Expense(id=new_id, created_at=datetime.now(timezone.utc), **fields.model_dump())
            records.insert(0, expense.model_dump(mode="json"))
            self._write_json(self.expenses_path, records)
        logger.info(f"Created expense {expense.id} ({expense.category}, {expense.amount}).")
        return expense

    async def update_expense(self, expense_id: str, fields: ExpenseIn) -> Expense:
        async with self._lock:
            records = self._load_records()
            for index, record in enumerate(records):
                if isinstance(record, dict) and record.get("id") == expense_id:
                    updated = Expense(id=expense_id, created_at=record.get("created_at"), **fields.model_dump())
                    records[index] = updated.model_dump(mode="json")
                    self._write_json(self.expenses_path, records)
                    logger.info(f"Updated expense {expense_id}.")
                    return updated
        logger.warning(f"Update requested for unknown expense {expense_id}.")
        raise NotFound("Expense not found")

    async def delete_expense(self, expense_id: str) -> None:
        async with self._lock:
            records = self._load_records()
            remaining = [r for r in records if not (isinstance(r, dict) and r.get("id") == expense_id)]
            if len(remaining) == len(records):
                logger.info(f"Delete requested for unknown expense {expense_id}; nothing to do.")
                return
            self._write_json(self.expenses_path, remaining)
        logger.info(f"Deleted expense {expense_id}.")

    async def delete_all_expenses(self) -> int:
        async with self._lock:
            records = self._load_records()
            self._write_json(self.expenses_path, [])
        logger.warning(f"Deleted all {len(records)} expenses from {self.expenses_path.name}.")
        return len(records)

    # --- Budgets ---

    async def list_budgets(self) -> Dict[str, float]:
        try:
            return clean_budgets(self._read_json(self.budgets_path, dict))
        except StorageUnavailable:
            logger.warning("Returning no budgets because the budgets file could not be read.")
            return {}

    async def set_budget(self, category: str, amount: float) -> Dict[str, float]:
        async with self._lock:
            budgets = self._read_json(self.budgets_path, dict)
            budgets[category] = amount
            self._write_json(self.budgets_path, budgets)
        logger.info(f"Budget for '{category}' set to {amount}.")
        return clean_budgets(budgets)

    async def delete_budget(self, category: str) -> None:
        async with self._lock:
            budgets = self._read_json(self.budgets_path, dict)
            if category not in budgets:
                logger.info(f"No budget for '{category}'; nothing to delete.")
                return
            del budgets[category]
            self._write_json(self.budgets_path, budgets)
        logger.info(f"Deleted budget for '{category}'.")

    def describe(self) -> Dict[str, Any]:
        return {"backend": self.backend_name, "data_dir": str(self.data_dir)}
