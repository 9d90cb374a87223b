"""API routes for expenses, budgets and statistics"""
from fastapi import APIRouter, HTTPException, Depends, Request, Query, Response
from typing import List, Annotated, Dict, Optional, Any
from models.expense import Expense, ExpenseIn, BudgetIn, CATEGORIES
from services.store import ExpenseStore
from services import stats_service, export_service
from utils.exceptions import NotFound, StorageUnavailable, ValidationFailure
import logging

router = APIRouter()
logger = logging.getLogger(__name__)

# --- Dependency Function ---
def get_store(request: Request) -> ExpenseStore:
    """Dependency to get the expense store attached to the application at startup."""
    store = getattr(request.app.state, "store", None)
    if store is None:
        logger.error("Expense store not found in application state. Check storage configuration.")
        raise HTTPException(status_code=503, detail="Storage service not available.")
    return store

# Type hint for the dependency
StoreDep = Annotated[ExpenseStore, Depends(get_store)]

# --- Expenses ---

@router.get("/expenses", response_model=List[Expense], summary="Get All Expenses", description="Retrieves all expense records. Without sort_by the backend's natural order is used.")
async def get_expenses(
    store: StoreDep,
    sort_by: Optional[str] = Query(None, description="Field to sort by (e.g. 'date', 'amount')."),
    sort_order: int = Query(-1, description="Sort order: 1 for ascending, -1 for descending."),
) -> List[Expense]:
    logger.info(f"GET /expenses endpoint called. sort_by='{sort_by}' sort_order={sort_order}")
    try:
        return await store.list_expenses(sort_by=sort_by, sort_order=sort_order)
    except ValidationFailure as e:
        raise HTTPException(status_code=400, detail=e.message)
    except StorageUnavailable as e:
        logger.error(f"Storage error fetching expenses: {e}")
        raise HTTPException(status_code=503, detail=e.message)
    except Exception as e:
        logger.exception(f"Unexpected error fetching expenses: {e}")
        raise HTTPException(status_code=500, detail="An unexpected server error occurred while fetching expenses.")

@router.post("/expenses", response_model=Expense, status_code=201, summary="Create Expense")
async def create_expense(store: StoreDep, expense: ExpenseIn) -> Expense:
    logger.info(f"POST /expenses endpoint called: {expense.date} {expense.category} {expense.amount}")
    try:
        return await store.create_expense(expense)
    except StorageUnavailable as e:
        logger.error(f"Storage error creating expense: {e}")
        raise HTTPException(status_code=503, detail=e.message)
    except Exception as e:
        logger.exception(f"Unexpected error creating expense: {e}")
        raise HTTPException(status_code=500, detail="An unexpected server error occurred while creating the expense.")

# Registered before the /expenses/{expense_id} routes
@router.get("/expenses/export", summary="Export Expenses as CSV")
async def export_expenses(store: StoreDep) -> Response:
    logger.info("GET /expenses/export endpoint called.")
    try:
        expenses = await store.list_expenses()
        content = export_service.export_csv(e.model_dump(mode="json") for e in expenses)
    except StorageUnavailable as e:
        logger.error(f"Storage error exporting expenses: {e}")
        raise HTTPException(status_code=503, detail=e.message)
    except Exception as e:
        logger.exception(f"Unexpected error exporting expenses: {e}")
        raise HTTPException(status_code=500, detail="An unexpected server error occurred while exporting expenses.")
    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": 'attachment; filename="expenses.csv"'},
    )

@router.put("/expenses/{expense_id}", response_model=Expense, summary="Replace Expense")
async def update_expense(store: StoreDep, expense_id: str, expense: ExpenseIn) -> Expense:
    logger.info(f"PUT /expenses/{expense_id} endpoint called.")
    try:
        return await store.update_expense(expense_id, expense)
    except NotFound as e:
        raise HTTPException(status_code=404, detail=e.message)
    except StorageUnavailable as e:
        logger.error(f"Storage error updating expense {expense_id}: {e}")
        raise HTTPException(status_code=503, detail=e.message)
    except Exception as e:
        logger.exception(f"Unexpected error updating expense {expense_id}: {e}")
        raise HTTPException(status_code=500, detail="An unexpected server error occurred while updating the expense.")

@router.delete("/expenses/{expense_id}", status_code=204, summary="Delete Expense", description="Deleting an unknown id is not an error.")
async def delete_expense(store: StoreDep, expense_id: str) -> Response:
    logger.info(f"DELETE /expenses/{expense_id} endpoint called.")
    try:
        await store.delete_expense(expense_id)
    except StorageUnavailable as e:
        logger.error(f"Storage error deleting expense {expense_id}: {e}")
        raise HTTPException(status_code=503, detail=e.message)
    except Exception as e:
        logger.exception(f"Unexpected error deleting expense {expense_id}: {e}")
        raise HTTPException(status_code=500, detail="An unexpected server error occurred while deleting the expense.")
    return Response(status_code=204)

@router.delete("/expenses", summary="Delete All Expenses", description="Deletes all expense records. Use with caution!")
async def delete_all_expenses(store: StoreDep) -> Dict[str, Any]:
    logger.warning("DELETE /expenses endpoint called. This will clear every expense.")
    try:
        deleted_count = await store.delete_all_expenses()
    except StorageUnavailable as e:
        logger.error(f"Storage error deleting all expenses: {e}")
        raise HTTPException(status_code=503, detail=e.message)
    except Exception as e:
        logger.exception(f"Unexpected error deleting all expenses: {e}")
        raise HTTPException(status_code=500, detail="An unexpected server error occurred while deleting expenses.")
    return {"status": "success", "deleted_count": deleted_count}

# --- Budgets ---

@router.get("/budgets", response_model=Dict[str, float], summary="Get Budgets")
async def get_budgets(store: StoreDep) -> Dict[str, float]:
    logger.info("GET /budgets endpoint called.")
    try:
        return await store.list_budgets()
    except StorageUnavailable as e:
        logger.error(f"Storage error fetching budgets: {e}")
        raise HTTPException(status_code=503, detail=e.message)
    except Exception as e:
        logger.exception(f"Unexpected error fetching budgets: {e}")
        raise HTTPException(status_code=500, detail="An unexpected server error occurred while fetching budgets.")

@router.post("/budgets", response_model=Dict[str, float], summary="Set Budget", description="Creates or overwrites the budget for one category and returns every budget.")
async def set_budget(store: StoreDep, budget: BudgetIn) -> Dict[str, float]:
    logger.info(f"POST /budgets endpoint called: {budget.category} = {budget.amount}")
    try:
        return await store.set_budget(budget.category, budget.amount)
    except StorageUnavailable as e:
        logger.error(f"Storage error setting budget for '{budget.category}': {e}")
        raise HTTPException(status_code=503, detail=e.message)
    except Exception as e:
        logger.exception(f"Unexpected error setting budget for '{budget.category}': {e}")
        raise HTTPException(status_code=500, detail="An unexpected server error occurred while setting the budget.")

@router.delete("/budgets/{category}", status_code=204, summary="Delete Budget")
async def delete_budget(store: StoreDep, category: str) -> Response:
    logger.info(f"DELETE /budgets/{category} endpoint called.")
    try:
        await store.delete_budget(category)
    except StorageUnavailable as e:
        logger.error(f"Storage error deleting budget for '{category}': {e}")
        raise HTTPException(status_code=503, detail=e.message)
    return Response(status_code=204)

# --- Statistics & metadata ---

@router.get("/stats", summary="Expense Statistics", description="Totals per category and per month, top category, current month total and budget usage.")
async def get_stats(store: StoreDep) -> Dict[str, Any]:
    logger.info("GET /stats endpoint called.")
    try:
        expenses = await store.list_expenses()
        budgets = await store.list_budgets()
        return stats_service.compute_stats([e.model_dump(mode="json") for e in expenses], budgets)
    except StorageUnavailable as e:
        logger.error(f"Storage error computing statistics: {e}")
        raise HTTPException(status_code=503, detail=e.message)
    except Exception as e:
        logger.exception(f"Unexpected error computing statistics: {e}")
        raise HTTPException(status_code=500, detail="An unexpected server error occurred while computing statistics.")

@router.get("/categories", response_model=List[str], summary="Known Categories")
async def get_categories() -> List[str]:
    return CATEGORIES

@router.get("/health", summary="Health Check")
async def health(store: StoreDep) -> Dict[str, Any]:
    return {"status": "ok", **store.describe()}
