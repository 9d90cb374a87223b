"""MongoDB expense store: one document per expense, one per budget."""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from bson import ObjectId
from bson.errors import InvalidId
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection
from pydantic import ValidationError
from pymongo import ReturnDocument
from pymongo.errors import PyMongoError

from models.expense import Expense, ExpenseIn
from services.store import ExpenseStore, check_sort, clean_budgets
from utils.exceptions import NotFound, StorageUnavailable

logger = logging.getLogger(__name__)


def _to_object_id(expense_id: str) -> Optional[ObjectId]:
    """Returns None for strings that cannot be an ObjectId; such ids match nothing."""
    try:
        return ObjectId(expense_id)
    except (InvalidId, TypeError):
        return None


def _document_from_fields(fields: ExpenseIn) -> Dict[str, Any]:
    doc = fields.model_dump()
    # BSON has no date type, store midnight datetimes
    doc['date'] = datetime.combine(fields.date, datetime.min.time())
    return doc


def _expense_from_document(doc: Dict[str, Any]) -> Expense:
    """Converts ObjectId and datetime fields of a stored document into an Expense."""
    doc = dict(doc)
    if '_id' in doc:
        doc['id'] = str(doc.pop('_id'))
    if isinstance(doc.get('date'), datetime):
        doc['date'] = doc['date'].date()
    return Expense(**doc)


class MongoExpenseStore(ExpenseStore):
    """
    Stores expenses in the `expenses` collection and budgets in `budgets`
    (document `_id` is the category name).

    Either pass ready collections (tests do this) or a connection URI,
    in which case `connect()` creates the client and pings the server.
    """

    backend_name = "mongo"

    def __init__(
        self,
        uri: Optional[str] = None,
        db_name: str = "expense_tracker",
        expenses_collection: Optional[AsyncIOMotorCollection] = None,
        budgets_collection: Optional[AsyncIOMotorCollection] = None,
    ):
        self.uri = uri
        self.db_name = db_name
        self.client: Optional[AsyncIOMotorClient] = None
        self.expenses = expenses_collection
        self.budgets = budgets_collection

    async def connect(self) -> None:
        if self.expenses is not None and self.budgets is not None:
            return
        logger.info(f"Connecting to MongoDB database '{self.db_name}'...")
        try:
            self.client = AsyncIOMotorClient(self.uri, serverSelectionTimeoutMS=5000)
            await self.client.admin.command('ping')
        except PyMongoError as e:
            logger.error(f"Failed to connect to MongoDB: {e}")
            if self.client is not None:
                self.client.close()
                self.client = None
            raise StorageUnavailable(f"Could not connect to MongoDB: {e}")
        db = self.client[self.db_name]
        self.expenses = db.get_collection("expenses")
        self.budgets = db.get_collection("budgets")
        logger.info(f"Successfully connected to MongoDB database: {self.db_name}")

    async def close(self) -> None:
        if self.client is not None:
            logger.info("Closing MongoDB connection...")
            self.client.close()
            self.client = None
            logger.info("MongoDB connection closed.")

    # --- Expenses ---

    async def list_expenses(self, sort_by: Optional[str] = None, sort_order: int = -1) -> List[Expense]:
        """Fetches all expenses, date descending unless another sort is given."""
        sort_by = sort_by or 'date'
        check_sort(sort_by, sort_order)
        logger.info(f"Fetching all expenses, sorting by {sort_by} ({'desc' if sort_order == -1 else 'asc'})...")
        expenses = []
        try:
            cursor = self.expenses.find().sort(sort_by, sort_order)
            async for doc in cursor:
                try:
                    expenses.append(_expense_from_document(doc))
                except ValidationError as e:
                    logger.error(f"Data validation error for document ID {doc.get('_id', 'N/A')}: {e}")
                    continue
        except PyMongoError as e:
            logger.error(f"Database error fetching expenses: {e}")
            raise StorageUnavailable(f"Database error fetching expenses: {e}")
        logger.info(f"Fetched {len(expenses)} expenses successfully.")
        return expenses

    async def create_expense(self, fields: ExpenseIn) -> Expense:
        doc = _document_from_fields(fields)
        doc['created_at'] = datetime.now(timezone.utc)
        try:
            result = await self.expenses.insert_one(doc)
        except PyMongoError as e:
            logger.error(f"Database error inserting expense: {e}")
            raise StorageUnavailable(f"Database error inserting expense: {e}")
        doc['_id'] = result.inserted_id
        logger.info(f"Created expense {result.inserted_id} ({fields.category}, {fields.amount}).")
        return _expense_from_document(doc)

    async def update_expense(self, expense_id: str, fields: ExpenseIn) -> Expense:
        oid = _to_object_id(expense_id)
        updated = None
        if oid is not None:
            try:
                # $set keeps _id and created_at untouched
                updated = await self.expenses.find_one_and_update(
                    {'_id': oid},
                    {'$set': _document_from_fields(fields)},
                    return_document=ReturnDocument.AFTER,
                )
            except PyMongoError as e:
                logger.error(f"Database error updating expense {expense_id}: {e}")
                raise StorageUnavailable(f"Database error updating expense: {e}")
        if updated is None:
            logger.warning(f"Update requested for unknown expense {expense_id}.")
            raise NotFound("Expense not found")
        logger.info(f"Updated expense {expense_id}.")
        return _expense_from_document(updated)

    async def delete_expense(self, expense_id: str) -> None:
        oid = _to_object_id(expense_id)
        if oid is None:
            logger.info(f"Delete requested for malformed id '{expense_id}'; nothing to do.")
            return
        try:
            result = await self.expenses.delete_one({'_id': oid})
        except PyMongoError as e:
            logger.error(f"Database error deleting expense {expense_id}: {e}")
            raise StorageUnavailable(f"Database error deleting expense: {e}")
        logger.info(f"Delete of expense {expense_id} removed {result.deleted_count} document(s).")

    async def delete_all_expenses(self) -> int:
        logger.warning(f"Attempting to delete ALL documents from collection '{self.expenses.name}'.")
        try:
            result = await self.expenses.delete_many({})
        except PyMongoError as e:
            logger.error(f"Database error during delete_many operation: {e}")
            raise StorageUnavailable(f"Database error deleting expenses: {e}")
        logger.info(f"Successfully deleted {result.deleted_count} documents from collection '{self.expenses.name}'.")
        return result.deleted_count

    # --- Budgets ---

    async def list_budgets(self) -> Dict[str, float]:
        raw = {}
        try:
            async for doc in self.budgets.find():
                raw[str(doc['_id'])] = doc.get('amount')
        except PyMongoError as e:
            logger.error(f"Database error fetching budgets: {e}")
            raise StorageUnavailable(f"Database error fetching budgets: {e}")
        return clean_budgets(raw)

    async def set_budget(self, category: str, amount: float) -> Dict[str, float]:
        try:
            await self.budgets.update_one({'_id': category}, {'$set': {'amount': amount}}, upsert=True)
        except PyMongoError as e:
            logger.error(f"Database error setting budget for '{category}': {e}")
            raise StorageUnavailable(f"Database error setting budget: {e}")
        logger.info(f"Budget for '{category}' set to {amount}.")
        return await self.list_budgets()

    async def delete_budget(self, category: str) -> None:
        try:
            await self.budgets.delete_one({'_id': category})
        except PyMongoError as e:
            logger.error(f"Database error deleting budget for '{category}': {e}")
            raise StorageUnavailable(f"Database error deleting budget: {e}")
        logger.info(f"Deleted budget for '{category}'.")

    def describe(self) -> Dict[str, Any]:
        return {"backend": self.backend_name, "database": self.db_name}
