"""Data shapes shared by the recurring engine and its storage adapter."""
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from finance_tracker.config import ONE_TIME_FREQUENCY
from finance_tracker.recurring.dates import clamp_anchor_day

MANUAL_DELETE = "manual-delete"
PAUSE_SKIP = "pause-skip"

# Suffix used in the deterministic exception key
_EXCEPTION_KEY_SUFFIX = {
    MANUAL_DELETE: "manual",
    PAUSE_SKIP: "pause",
}


@dataclass
class RecurringSeries:
    """A repeating income or expense definition."""
    id: int
    name: str
    amount: float
    type: str               # 'income' | 'expense'
    category_id: str
    owner_id: Optional[str]
    owner_type: str         # 'individual' | 'shared'
    frequency: str          # 'daily' | 'weekly' | 'bi-weekly' | 'monthly'
    start_date: str         # 'YYYY-MM-DD'
    anchor_day: int         # 1-31, monthly only
    status: str = "active"  # 'active' | 'paused'
    end_date: Optional[str] = None
    category_name: Optional[str] = None
    paused_from: Optional[str] = None  # First date no longer kept while paused

    def __post_init__(self):
        self.anchor_day = clamp_anchor_day(self.anchor_day)

    @property
    def is_paused(self) -> bool:
        return self.status == "paused"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class Occurrence:
    """One materialized transaction belonging to a series."""
    date: str
    occurrence_date: Optional[str]
    recurrence_id: Optional[int]
    name: str
    amount: float
    type: str
    category_id: str
    category_name: Optional[str]
    owner_id: Optional[str]
    owner_type: str
    frequency: str = ONE_TIME_FREQUENCY
    id: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class SeriesException:
    """Suppresses generation of one series occurrence on one date."""
    recurrence_id: int
    date: str
    kind: str  # 'manual-delete' | 'pause-skip'

    @property
    def key(self) -> str:
        return f"{self.recurrence_id}_{self.date}_{_EXCEPTION_KEY_SUFFIX.get(self.kind, 'manual')}"

    def to_dict(self) -> Dict[str, Any]:
        return {**asdict(self), "key": self.key}


@dataclass
class OccurrenceUpdate:
    occurrence_id: int
    changes: Dict[str, Any]


@dataclass
class ReconcilePlan:
    """Create/update/delete operations that bring a series' rows in line."""
    to_create: List[Occurrence] = field(default_factory=list)
    to_update: List[OccurrenceUpdate] = field(default_factory=list)
    to_delete: List[int] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.to_create or self.to_update or self.to_delete)

    def summary(self) -> Dict[str, int]:
        return {
            "created": len(self.to_create),
            "updated": len(self.to_update),
            "deleted": len(self.to_delete),
        }
