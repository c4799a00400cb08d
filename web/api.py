"""FastAPI backend for the finance tracker."""
from typing import Optional, List
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Depends, Query
from fastapi.responses import Response
from pydantic import BaseModel

from finance_tracker.api.finance_service import FinanceService
from finance_tracker.config import DEFAULT_PAGE_LIMIT


# Global service instance (for production use)
_service: Optional[FinanceService] = None


def get_service() -> FinanceService:
    """Dependency to get the finance service."""
    global _service
    if _service is None:
        _service = FinanceService()
        _service.__enter__()
    return _service


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage service lifecycle."""
    yield
    # Cleanup on shutdown
    global _service
    if _service is not None:
        _service.__exit__(None, None, None)
        _service = None


app = FastAPI(
    title="Finance Tracker API",
    description="Income and expense tracking with recurring series and savings goals",
    version="1.0.0",
    lifespan=lifespan
)


# === Pydantic Models ===

class SeriesCreate(BaseModel):
    name: str
    amount: float = 0
    type: str = "expense"  # income, expense
    category_id: Optional[str] = None
    category_name: Optional[str] = None
    owner_id: Optional[str] = None
    owner_type: str = "shared"  # individual, shared
    frequency: str = "monthly"  # daily, weekly, bi-weekly, monthly
    start_date: str
    end_date: Optional[str] = None
    anchor_day: Optional[int] = None  # Defaults to the start date's day


class SeriesUpdate(BaseModel):
    name: Optional[str] = None
    amount: Optional[float] = None
    type: Optional[str] = None
    category_id: Optional[str] = None
    category_name: Optional[str] = None
    owner_id: Optional[str] = None
    owner_type: Optional[str] = None
    frequency: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    anchor_day: Optional[int] = None


class PauseRequest(BaseModel):
    pause_from: Optional[str] = None  # Defaults to today


class ResumeRequest(BaseModel):
    resume_from: Optional[str] = None  # Defaults to today


class TransactionCreate(BaseModel):
    date: str
    name: str
    amount: float = 0
    type: str = "expense"
    category_id: Optional[str] = None
    category_name: Optional[str] = None
    owner_id: Optional[str] = None
    owner_type: str = "shared"
    has_receipt: bool = False


class TransactionUpdate(BaseModel):
    date: Optional[str] = None
    name: Optional[str] = None
    amount: Optional[float] = None
    type: Optional[str] = None
    category_id: Optional[str] = None
    category_name: Optional[str] = None
    owner_id: Optional[str] = None
    owner_type: Optional[str] = None
    has_receipt: Optional[bool] = None


class GoalCreate(BaseModel):
    title: str
    target_amount: float
    deadline: Optional[str] = None
    owner_id: Optional[str] = None
    owner_type: str = "shared"
    icon: str = "target"
    color: str = "slate"  # slate, amber, stone, red


class FundsRequest(BaseModel):
    amount: float


class TransactionListResponse(BaseModel):
    transactions: List[dict]
    total: int


# Update fields that may be sent but not cleared with null
SERIES_REQUIRED_FIELDS = ("name", "amount", "type", "owner_type", "frequency", "start_date")
TRANSACTION_REQUIRED_FIELDS = ("date", "name", "amount", "type", "owner_type", "has_receipt")


def _reject_nulls(updates: dict, required) -> dict:
    """Raise 400 when a body sets a required field to null."""
    nulls = [name for name in required if name in updates and updates[name] is None]
    if nulls:
        raise HTTPException(status_code=400, detail=f"Fields cannot be null: {', '.join(nulls)}")
    return updates


# === Category Endpoints ===

@app.get("/api/categories")
def get_categories(
    type: Optional[str] = Query(None, pattern="^(income|expense)$"),
    service: FinanceService = Depends(get_service)
):
    """Get the category catalogue."""
    return service.get_categories(type)


@app.get("/api/categories/{category_id}")
def get_category(category_id: str, service: FinanceService = Depends(get_service)):
    """Get a single category by ID."""
    category = service.get_category(category_id)
    if category is None:
        raise HTTPException(status_code=404, detail="Category not found")
    return category


# === Recurring Series Endpoints ===

@app.get("/api/recurring")
def list_series(
    status: Optional[str] = Query(None, pattern="^(active|paused)$"),
    service: FinanceService = Depends(get_service)
):
    """List recurring series, newest first."""
    return service.list_series(status=status)


@app.post("/api/recurring")
def create_series(series: SeriesCreate, service: FinanceService = Depends(get_service)):
    """Create a recurring series and materialize its occurrences."""
    try:
        return service.create_series(series.model_dump())
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@app.get("/api/recurring/stats")
def get_recurring_stats(service: FinanceService = Depends(get_service)):
    """Get series counts and the generation horizon."""
    return service.get_recurring_stats()


@app.post("/api/recurring/sync")
def sync_all_series(service: FinanceService = Depends(get_service)):
    """Reconcile every series against today's horizon."""
    return service.sync_all_series()


@app.get("/api/recurring/{series_id}")
def get_series(series_id: int, service: FinanceService = Depends(get_service)):
    """Get a single series by ID."""
    series = service.get_series(series_id)
    if series is None:
        raise HTTPException(status_code=404, detail="Series not found")
    return series


@app.put("/api/recurring/{series_id}")
def update_series(
    series_id: int,
    updates: SeriesUpdate,
    service: FinanceService = Depends(get_service)
):
    """Update a series. Only fields sent in the body are changed."""
    try:
        changes = _reject_nulls(updates.model_dump(exclude_unset=True), SERIES_REQUIRED_FIELDS)
        series = service.update_series(series_id, changes)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if series is None:
        raise HTTPException(status_code=404, detail="Series not found")
    return series


@app.delete("/api/recurring/{series_id}")
def delete_series(series_id: int, service: FinanceService = Depends(get_service)):
    """Delete a series with all its occurrences and exceptions."""
    counts = service.delete_series(series_id)
    if counts is None:
        raise HTTPException(status_code=404, detail="Series not found")
    return {"success": True, "deleted": counts}


@app.post("/api/recurring/{series_id}/pause")
def pause_series(
    series_id: int,
    request: Optional[PauseRequest] = None,
    service: FinanceService = Depends(get_service)
):
    """Pause a series. Future occurrences are removed and skipped."""
    pause_from = request.pause_from if request else None
    try:
        series = service.pause_series(series_id, pause_from)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if series is None:
        raise HTTPException(status_code=404, detail="Series not found")
    return series


@app.post("/api/recurring/{series_id}/resume")
def resume_series(
    series_id: int,
    request: Optional[ResumeRequest] = None,
    service: FinanceService = Depends(get_service)
):
    """Resume a paused series."""
    resume_from = request.resume_from if request else None
    try:
        series = service.resume_series(series_id, resume_from)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if series is None:
        raise HTTPException(status_code=404, detail="Series not found")
    return series


@app.post("/api/recurring/{series_id}/sync")
def sync_series(series_id: int, service: FinanceService = Depends(get_service)):
    """Reconcile one series."""
    summary = service.sync_series(series_id)
    if summary is None:
        raise HTTPException(status_code=404, detail="Series not found")
    return summary


@app.get("/api/recurring/{series_id}/occurrences")
def get_series_occurrences(series_id: int, service: FinanceService = Depends(get_service)):
    """Get the stored occurrences of a series."""
    occurrences = service.get_series_occurrences(series_id)
    if occurrences is None:
        raise HTTPException(status_code=404, detail="Series not found")
    return occurrences


@app.get("/api/recurring/{series_id}/exceptions")
def get_series_exceptions(series_id: int, service: FinanceService = Depends(get_service)):
    """Get the manual-delete and pause-skip exceptions of a series."""
    exceptions = service.get_series_exceptions(series_id)
    if exceptions is None:
        raise HTTPException(status_code=404, detail="Series not found")
    return exceptions


@app.get("/api/recurring/{series_id}/schedule")
def get_series_schedule(
    series_id: int,
    start: str = Query(..., description="First date (YYYY-MM-DD)"),
    end: str = Query(..., description="Last date (YYYY-MM-DD)"),
    service: FinanceService = Depends(get_service)
):
    """Preview the dates a series produces in a window."""
    try:
        dates = service.get_series_schedule(series_id, start, end)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if dates is None:
        raise HTTPException(status_code=404, detail="Series not found")
    return {"series_id": series_id, "start": start, "end": end, "dates": dates}


# === Transaction Endpoints ===

@app.get("/api/transactions", response_model=TransactionListResponse)
def get_transactions(
    limit: int = Query(DEFAULT_PAGE_LIMIT, ge=1, le=500),
    offset: int = Query(0, ge=0),
    type: Optional[str] = Query(None, pattern="^(income|expense)$"),
    recurrence_id: Optional[int] = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    service: FinanceService = Depends(get_service)
):
    """Get paginated list of transactions with optional filtering."""
    return service.get_transactions(
        type_=type,
        recurrence_id=recurrence_id,
        start_date=start_date,
        end_date=end_date,
        limit=limit,
        offset=offset
    )


@app.post("/api/transactions")
def add_transaction(txn: TransactionCreate, service: FinanceService = Depends(get_service)):
    """Add a one-time transaction."""
    try:
        return service.add_transaction(txn.model_dump())
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@app.get("/api/transactions/export")
def export_transactions(
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    service: FinanceService = Depends(get_service)
):
    """Download transactions as CSV."""
    content = service.export_transactions_csv(start_date, end_date)
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=transactions.csv"}
    )


@app.get("/api/transactions/{txn_id}")
def get_transaction(txn_id: int, service: FinanceService = Depends(get_service)):
    """Get a single transaction by ID."""
    txn = service.get_transaction(txn_id)
    if txn is None:
        raise HTTPException(status_code=404, detail="Transaction not found")
    return txn


@app.put("/api/transactions/{txn_id}")
def update_transaction(
    txn_id: int,
    updates: TransactionUpdate,
    service: FinanceService = Depends(get_service)
):
    """Update a one-time transaction. Series occurrences are edited via their series."""
    try:
        changes = _reject_nulls(updates.model_dump(exclude_unset=True), TRANSACTION_REQUIRED_FIELDS)
        txn = service.update_transaction(txn_id, changes)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if txn is None:
        raise HTTPException(status_code=404, detail="Transaction not found")
    return txn


@app.delete("/api/transactions/{txn_id}")
def delete_transaction(txn_id: int, service: FinanceService = Depends(get_service)):
    """Delete a transaction. A deleted series occurrence is not regenerated."""
    success = service.delete_transaction(txn_id)
    if not success:
        raise HTTPException(status_code=404, detail="Transaction not found")
    return {"success": True}


@app.get("/api/summary")
def get_summary(
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    service: FinanceService = Depends(get_service)
):
    """Get income, expense and net totals."""
    return service.get_summary(start_date, end_date)


# === Savings Goals Endpoints ===

@app.get("/api/goals")
def list_goals(
    status: Optional[str] = Query(None, pattern="^(active|completed)$"),
    service: FinanceService = Depends(get_service)
):
    """List savings goals, newest first."""
    return service.list_goals(status=status)


@app.post("/api/goals")
def add_goal(goal: GoalCreate, service: FinanceService = Depends(get_service)):
    """Create a savings goal."""
    try:
        return service.add_goal(goal.model_dump())
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@app.get("/api/goals/{goal_id}")
def get_goal(goal_id: int, service: FinanceService = Depends(get_service)):
    """Get a single savings goal."""
    goal = service.get_goal(goal_id)
    if goal is None:
        raise HTTPException(status_code=404, detail="Goal not found")
    return goal


@app.post("/api/goals/{goal_id}/funds")
def add_funds(
    goal_id: int,
    request: FundsRequest,
    service: FinanceService = Depends(get_service)
):
    """Add money to a goal. Reaching the target completes it."""
    try:
        goal = service.add_funds(goal_id, request.amount)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if goal is None:
        raise HTTPException(status_code=404, detail="Goal not found")
    return goal


@app.delete("/api/goals/{goal_id}")
def delete_goal(goal_id: int, service: FinanceService = Depends(get_service)):
    """Delete a savings goal."""
    if not service.delete_goal(goal_id):
        raise HTTPException(status_code=404, detail="Goal not found")
    return {"success": True}


# === Admin Endpoints ===

@app.post("/api/admin/reset")
def reset_all_data(service: FinanceService = Depends(get_service)):
    """Delete all series, transactions and goals. Categories are kept.

    This is a destructive operation and cannot be undone.
    """
    counts = service.reset_all_data()
    return {"success": True, "deleted": counts}
