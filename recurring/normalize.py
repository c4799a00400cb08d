"""Input coercion for series, transactions and goals, and row-to-model mapping."""
import math
from typing import Any, Dict, Mapping, Optional

from finance_tracker.config import (
    DEFAULT_CATEGORIES,
    DEFAULT_FREQUENCY,
    DEFAULT_GOAL_COLOR,
    DEFAULT_GOAL_ICON,
    EXCEPTION_KINDS,
    FALLBACK_CATEGORY_IDS,
    GOAL_COLORS,
    ONE_TIME_FREQUENCY,
    OWNER_TYPES,
    RECURRING_FREQUENCIES,
    SERIES_STATUSES,
    TRANSACTION_TYPES,
)
from finance_tracker.recurring.dates import clamp_anchor_day, parse_iso_date
from finance_tracker.recurring.models import (
    MANUAL_DELETE,
    Occurrence,
    RecurringSeries,
    SeriesException,
)

_CATEGORIES_BY_ID = {c["id"]: c for c in DEFAULT_CATEGORIES}


def coerce_type(value: Any) -> str:
    return value if value in TRANSACTION_TYPES else "expense"


def coerce_frequency(value: Any) -> str:
    return value if value in RECURRING_FREQUENCIES else DEFAULT_FREQUENCY


def coerce_status(value: Any) -> str:
    return value if value in SERIES_STATUSES else "active"


def coerce_owner_type(value: Any) -> str:
    return value if value in OWNER_TYPES else "shared"


def coerce_exception_kind(value: Any) -> str:
    return value if value in EXCEPTION_KINDS else MANUAL_DELETE


def coerce_amount(value: Any) -> float:
    """Finite, non-negative float; anything else becomes 0."""
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(amount) or amount < 0:
        return 0.0
    return amount


def resolve_category(
    type_: str,
    category_id: Optional[str] = None,
    category_name: Optional[str] = None
) -> Dict[str, str]:
    """Find the catalogue category for a transaction type.

    Lookup order: exact id of the same type, then case-insensitive name or
    id within the type, then the type's fallback category.
    """
    by_id = _CATEGORIES_BY_ID.get(category_id) if category_id else None
    if by_id and by_id["type"] == type_:
        return by_id

    if category_name:
        wanted = category_name.strip().lower()
        for category in DEFAULT_CATEGORIES:
            if category["type"] != type_:
                continue
            if category["name"].lower() == wanted or category["id"].lower() == wanted:
                return category

    return _CATEGORIES_BY_ID[FALLBACK_CATEGORY_IDS[type_]]


def normalize_series_input(data: Mapping[str, Any]) -> Dict[str, Any]:
    """Validate and coerce user input for creating or editing a series.

    Args:
        data: Raw fields (name, amount, type, category_id, category_name,
            owner_id, owner_type, frequency, start_date, end_date, status,
            anchor_day)

    Returns:
        Dict of normalized series fields (without id)

    Raises:
        ValueError: If the name is empty or the dates are invalid
    """
    name = (data.get("name") or "").strip()
    if not name:
        raise ValueError("Name cannot be empty.")

    start_date = data.get("start_date")
    start = parse_iso_date(start_date)
    if start is None:
        raise ValueError(f"Invalid start date: {start_date!r}")

    end_date = data.get("end_date") or None
    if end_date is not None:
        end = parse_iso_date(end_date)
        if end is None:
            raise ValueError(f"Invalid end date: {end_date!r}")
        if end < start:
            raise ValueError("End date must be on or after the start date.")

    type_ = coerce_type(data.get("type"))
    category = resolve_category(type_, data.get("category_id"), data.get("category_name"))
    anchor_day = data.get("anchor_day")
    if anchor_day is None:
        anchor_day = start.day

    return {
        "name": name,
        "amount": coerce_amount(data.get("amount")),
        "type": type_,
        "category_id": category["id"],
        "category_name": category["name"],
        "owner_id": data.get("owner_id"),
        "owner_type": coerce_owner_type(data.get("owner_type")),
        "frequency": coerce_frequency(data.get("frequency")),
        "start_date": start_date,
        "end_date": end_date,
        "status": coerce_status(data.get("status")),
        "anchor_day": clamp_anchor_day(anchor_day),
    }


def normalize_transaction_input(data: Mapping[str, Any]) -> Dict[str, Any]:
    """Validate and coerce a manually entered one-time transaction.

    Raises:
        ValueError: If the name is empty or the date is invalid
    """
    name = (data.get("name") or "").strip()
    if not name:
        raise ValueError("Name cannot be empty.")
    if parse_iso_date(data.get("date")) is None:
        raise ValueError(f"Invalid date: {data.get('date')!r}")

    type_ = coerce_type(data.get("type"))
    category = resolve_category(type_, data.get("category_id"), data.get("category_name"))
    return {
        "name": name,
        "amount": coerce_amount(data.get("amount")),
        "type": type_,
        "category_id": category["id"],
        "category_name": category["name"],
        "owner_id": data.get("owner_id"),
        "owner_type": coerce_owner_type(data.get("owner_type")),
        "date": data["date"],
        "frequency": ONE_TIME_FREQUENCY,
        "recurrence_id": None,
        "occurrence_date": None,
        "has_receipt": bool(data.get("has_receipt")),
    }


def coerce_goal_color(value: Any) -> str:
    return value if value in GOAL_COLORS else DEFAULT_GOAL_COLOR


def normalize_goal_input(data: Mapping[str, Any]) -> Dict[str, Any]:
    """Validate and coerce a new savings goal. Goals start active with nothing saved.

    Raises:
        ValueError: If the title is empty, the target is not positive or the
            deadline is invalid
    """
    title = (data.get("title") or "").strip()
    if not title:
        raise ValueError("Title cannot be empty.")

    target_amount = coerce_amount(data.get("target_amount"))
    if target_amount <= 0:
        raise ValueError("Target amount must be greater than zero.")

    deadline = data.get("deadline") or None
    if deadline is not None and parse_iso_date(deadline) is None:
        raise ValueError(f"Invalid deadline: {deadline!r}")

    return {
        "title": title,
        "target_amount": target_amount,
        "saved_amount": 0.0,
        "deadline": deadline,
        "owner_id": data.get("owner_id"),
        "owner_type": coerce_owner_type(data.get("owner_type")),
        "status": "active",
        "icon": data.get("icon") or DEFAULT_GOAL_ICON,
        "color": coerce_goal_color(data.get("color")),
    }


def series_from_row(row: Mapping[str, Any]) -> RecurringSeries:
    """Build a RecurringSeries from a stored row, tolerating bad values."""
    start_date = row["start_date"] if isinstance(row["start_date"], str) else ""
    anchor_day = row["anchor_day"]
    if anchor_day is None:
        parsed = parse_iso_date(start_date)
        anchor_day = parsed.day if parsed else 1
    return RecurringSeries(
        id=row["id"],
        name=row["name"] or "",
        amount=coerce_amount(row["amount"]),
        type=coerce_type(row["type"]),
        category_id=row["category_id"],
        category_name=row["category_name"],
        owner_id=row["owner_id"],
        owner_type=coerce_owner_type(row["owner_type"]),
        frequency=coerce_frequency(row["frequency"]),
        start_date=start_date,
        end_date=row["end_date"] if isinstance(row["end_date"], str) else None,
        anchor_day=anchor_day,
        status=coerce_status(row["status"]),
        paused_from=row["paused_from"] if isinstance(row["paused_from"], str) else None,
    )


def occurrence_from_row(row: Mapping[str, Any]) -> Occurrence:
    return Occurrence(
        id=row["id"],
        date=row["date"],
        occurrence_date=row["occurrence_date"],
        recurrence_id=row["recurrence_id"],
        name=row["name"],
        amount=row["amount"],
        type=row["type"],
        category_id=row["category_id"],
        category_name=row["category_name"],
        owner_id=row["owner_id"],
        owner_type=row["owner_type"],
        frequency=row["frequency"],
    )


def exception_from_row(row: Mapping[str, Any]) -> Optional[SeriesException]:
    if not row["recurrence_id"] or not row["date"]:
        return None
    return SeriesException(
        recurrence_id=row["recurrence_id"],
        date=row["date"],
        kind=coerce_exception_kind(row["kind"]),
    )
