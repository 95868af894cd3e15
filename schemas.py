# schemas.py

from enum import Enum
from typing import Dict, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, Field, field_validator, model_validator


# -----------------------------
# Metadata (read-only to the interpreter)
# -----------------------------
class ColumnType(str, Enum):
    TEXT = "text"
    NUMBER = "number"
    DATE = "date"
    DATETIME = "datetime"
    TIME = "time"
    DATE_RANGE = "date_range"

    @property
    def is_temporal(self) -> bool:
        return self in (ColumnType.DATE, ColumnType.DATETIME, ColumnType.TIME, ColumnType.DATE_RANGE)


class ColumnRef(BaseModel):
    element_key: str
    display_name: str
    user_label: str
    column_type: ColumnType = ColumnType.TEXT
    sms_in: bool = True
    sms_label: Optional[str] = None
    persisted: bool = True

    model_config = {"frozen": True, "from_attributes": True}

    @property
    def response_label(self) -> str:
        """Short label used in replies: the SMS label if set, else the display name."""
        return self.sms_label or self.display_name


class TableRef(BaseModel):
    table_id: str
    display_name: str
    kind: str = "data"
    access_control_table_id: Optional[str] = None
    columns: List[ColumnRef] = Field(default_factory=list)

    model_config = {"from_attributes": True}

    def column_by_user_label(self, label: str) -> Optional[ColumnRef]:
        for c in self.columns:
            if c.user_label == label:
                return c
        return None

    def column_by_display_name(self, name: str) -> Optional[ColumnRef]:
        for c in self.columns:
            if c.display_name == name:
                return c
        return None


class ShortcutDefinition(BaseModel):
    name: str
    input_pattern: str
    output_pattern: str


# -----------------------------
# Constraints
# -----------------------------
class Comparator(str, Enum):
    EQ = "="
    LT = "<"
    GT = ">"
    GTE = ">="
    NE = "!="


class Comparison(BaseModel):
    comparator: Comparator
    value: str

    model_config = {"frozen": True}


class Constraint(BaseModel):
    column: ColumnRef
    comparator: Comparator
    value: str

    model_config = {"frozen": True}


class OrConstraint(BaseModel):
    """Either comparison may hold, e.g. "before start OR at/after end"."""
    column: ColumnRef
    first: Comparison
    second: Comparison

    model_config = {"frozen": True}


AnyConstraint = Union[Constraint, OrConstraint]


# -----------------------------
# Interval endpoints
# -----------------------------
class BoundKind(str, Enum):
    UNBOUNDED_LOW = "unbounded_low"
    UNBOUNDED_HIGH = "unbounded_high"
    BOUNDED = "bounded"


class Bound(BaseModel):
    kind: BoundKind
    value: Optional[str] = None

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _value_matches_kind(self):
        if (self.kind == BoundKind.BOUNDED) != (self.value is not None):
            raise ValueError("only bounded endpoints carry a value")
        return self

    @classmethod
    def low(cls) -> "Bound":
        return cls(kind=BoundKind.UNBOUNDED_LOW)

    @classmethod
    def high(cls) -> "Bound":
        return cls(kind=BoundKind.UNBOUNDED_HIGH)

    @classmethod
    def at(cls, value: str) -> "Bound":
        return cls(kind=BoundKind.BOUNDED, value=value)

    @property
    def is_bounded(self) -> bool:
        return self.kind == BoundKind.BOUNDED

    def sort_key(self) -> Tuple[int, str]:
        order = {BoundKind.UNBOUNDED_LOW: 0, BoundKind.BOUNDED: 1, BoundKind.UNBOUNDED_HIGH: 2}
        return order[self.kind], self.value or ""


class RawRange(BaseModel):
    """A date range in canonical sortable form; either end may be unbounded."""
    start: Bound
    end: Bound

    model_config = {"frozen": True}


class FreeInterval(BaseModel):
    """A gap in the schedule; None means open towards that side."""
    start: Optional[str] = None
    end: Optional[str] = None

    model_config = {"frozen": True}


# -----------------------------
# Parsed commands
# -----------------------------
class Ordering(BaseModel):
    column: ColumnRef
    descending: bool = False

    model_config = {"frozen": True}


class FreeSlotRequest(BaseModel):
    column: ColumnRef
    min_duration_seconds: int

    model_config = {"frozen": True}


class AddCommand(BaseModel):
    kind: Literal["add"] = "add"
    # element_key -> canonical value
    values: Dict[str, str] = Field(default_factory=dict)


class QueryCommand(BaseModel):
    kind: Literal["query"] = "query"
    projections: Tuple[ColumnRef, ...] = ()
    ordering: Optional[Ordering] = None
    constraints: Tuple[AnyConstraint, ...] = ()
    free_slot: Optional[FreeSlotRequest] = None

    model_config = {"frozen": True}


ParsedCommand = Union[AddCommand, QueryCommand]


# -----------------------------
# HTTP payloads
# -----------------------------
class InboundMessage(BaseModel):
    message: str
    phone_number: str = Field(alias="from")

    model_config = {"populate_by_name": True}

    @field_validator("message", "phone_number")
    @classmethod
    def _strip(cls, v: str) -> str:
        return v.strip()

    @field_validator("phone_number")
    @classmethod
    def _non_empty(cls, v: str) -> str:
        if not v:
            raise ValueError("phone number is required")
        return v
