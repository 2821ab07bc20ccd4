import math
import uuid
from enum import Enum
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


def _new_id() -> str:
    return str(uuid.uuid4())


# ── Geometry ───────────────────────────────────────────
class Rect(BaseModel):
    """Axis-aligned bounding box in image pixels (y grows downward)."""
    model_config = ConfigDict(frozen=True)

    left: float
    top: float
    right: float
    bottom: float

    @property
    def height(self) -> float:
        return self.bottom - self.top

    @property
    def center_y(self) -> float:
        return (self.top + self.bottom) / 2

    def union(self, other: "Rect") -> "Rect":
        return Rect(
            left=min(self.left, other.left),
            top=min(self.top, other.top),
            right=max(self.right, other.right),
            bottom=max(self.bottom, other.bottom),
        )


# ── OCR fragments ──────────────────────────────────────
class TextFragment(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str
    box: Rect


class LineCategory(str, Enum):
    IGNORABLE = "ignorable"
    TAX_LABEL = "tax_label"
    ITEM_WITH_QTY_AND_PRICE = "item_with_qty_and_price"
    PRICE_ONLY = "price_only"
    ITEM_WITH_QTY = "item_with_qty"
    ITEM_NAME_ONLY = "item_name_only"
    UNCLASSIFIED = "unclassified"


class ClassifiedLine(BaseModel):
    model_config = ConfigDict(frozen=True)

    fragment: TextFragment
    category: LineCategory
    name: Optional[str] = None     # cleaned item name, for item categories
    price: Optional[float] = None  # extracted amount, for price-bearing categories

    @property
    def box(self) -> Rect:
        return self.fragment.box

    @property
    def text(self) -> str:
        return self.fragment.text


class MatchConfig(BaseModel):
    """Thresholds used by the spatial matcher, tuned against sample receipts."""
    overlap_ratio: float = Field(0.5, gt=0)  # same row: |Δcenter| < ratio × max height
    stack_ratio: float = Field(2.0, gt=0)    # stacked: Δcenter < ratio × max height
    price_slack: int = Field(2, ge=0)        # price-only: match covers line within N chars


# ── Parse output ───────────────────────────────────────
class ParsedItem(BaseModel):
    name: str
    price: float

class ParseResult(BaseModel):
    items: List[ParsedItem] = []
    tax: Optional[float] = None

class ParseRequest(BaseModel):
    fragments: List[TextFragment]


# ── Bill ───────────────────────────────────────────────
class Participant(BaseModel):
    id: str = Field(default_factory=_new_id)
    name: str

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("participant name must not be empty")
        return v


class Item(BaseModel):
    id: str = Field(default_factory=_new_id)
    name: str
    price: float = Field(ge=0)
    assigned_participants: List[str] = []   # participant ids, no duplicates

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("item name must not be empty")
        return v

    @field_validator("assigned_participants")
    @classmethod
    def _dedupe(cls, v: List[str]) -> List[str]:
        return list(dict.fromkeys(v))


class PersonTotal(BaseModel):
    participant: Participant
    subtotal: float
    tax_share: float
    tip_share: float = 0.0
    total_owed: float

    @model_validator(mode="after")
    def _total_adds_up(self) -> "PersonTotal":
        # client-side rounding to cents is tolerated
        expected = self.subtotal + self.tax_share + self.tip_share
        if not math.isclose(self.total_owed, expected, abs_tol=0.02):
            raise ValueError(
                f"total_owed {self.total_owed} != subtotal + tax_share + tip_share ({expected})"
            )
        return self


# ── Tip ────────────────────────────────────────────────
class PercentTip(BaseModel):
    kind: Literal["percent"] = "percent"
    value: float = Field(ge=0)

class AmountTip(BaseModel):
    kind: Literal["amount"] = "amount"
    value: float = Field(ge=0)

TipOption = Annotated[Union[PercentTip, AmountTip], Field(discriminator="kind")]


# ── Split requests / responses ─────────────────────────
class TotalsRequest(BaseModel):
    participants: List[Participant]
    items: List[Item]
    tax: float = Field(0.0, ge=0)

class TipRequest(BaseModel):
    totals_before_tip: List[PersonTotal]
    tip: TipOption

class TipResult(BaseModel):
    tip_amount: float
    total_before_tip: float
    grand_total: float
    totals: List[PersonTotal]

class BreakdownRequest(BaseModel):
    participant_id: str
    items: List[Item]

class BreakdownLine(BaseModel):
    item_id: str
    name: str
    price: float
    share: float           # this participant's portion of the price
    split_between: int


# ── Saved bills ────────────────────────────────────────
class SavedBillCreate(BaseModel):
    description: str = ""
    person_totals: List[PersonTotal]
    items: List[Item] = []

class SavedBillRename(BaseModel):
    description: str

class SavedBillSummary(BaseModel):
    id: str
    description: str
    timestamp: int          # epoch milliseconds
    grand_total: float
    person_totals: List[PersonTotal]

class SavedBill(SavedBillSummary):
    items: List[Item] = []


# ── Bill sessions ──────────────────────────────────────
class SessionState(BaseModel):
    id: str
    participants: List[Participant]
    items: List[Item]
    tax: Optional[float] = None
