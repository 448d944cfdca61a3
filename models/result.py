from pydantic import BaseModel, Field, computed_field
from typing import Optional, List, Dict, Union

from .status import (
    BadgeCategory, BadgeKind, CanonicalStatus, DateClass, IssueKind,
    ReceiptStatus, Stage, StageState,
)


class SkuQuantity(BaseModel):
    """Ordered vs. received reconciliation for one SKU."""
    sku: str
    name: Optional[str] = None
    ordered: int = 0
    received: int = 0
    damaged: int = 0                        # rejected quantity, damaged
    wrong: int = 0                          # rejected quantity, wrong item
    rejected: int = 0                       # rejected quantity, any reason
    in_order: bool = True                   # False for ad-hoc SKUs not on the order

    @computed_field
    @property
    def pending(self) -> int:
        return max(0, self.ordered - self.received)

    @computed_field
    @property
    def overage(self) -> int:
        return max(0, self.received - self.ordered)

    @property
    def has_issues(self) -> bool:
        return self.damaged > 0 or self.wrong > 0 or self.overage > 0


class QuantitySummary(BaseModel):
    total_ordered: int = 0
    total_received: int = 0
    per_sku: Dict[str, SkuQuantity] = Field(default_factory=dict)


class Snapshot(BaseModel):
    """Running total for one SKU across one delivery."""
    pre: int
    current: int
    post: int


class Badge(BaseModel):
    """One classification tag. Rendering is left to the caller."""
    category: BadgeCategory
    kind: BadgeKind
    label: str
    count: Optional[int] = None             # open-ticket badge only
    muted: bool = False                     # force-closed with shortfall


class StatusResult(BaseModel):
    """
    The complete classification of one order.
    canonical_status is the single winner of the priority chain; badges is the
    additive, ordered badge stack (at most one per category).
    """
    order_id: str
    canonical_status: CanonicalStatus
    issue: Optional[IssueKind] = None
    badges: List[Badge] = Field(default_factory=list)

    # --- Inputs the decision was based on ---
    date_class: DateClass = DateClass.NONE
    receipt_status: Optional[ReceiptStatus] = None    # effective status fed to the date evaluator
    total_ordered: int = 0
    total_received: int = 0
    open_ticket_count: int = 0
    has_damage: bool = False
    has_wrong_item: bool = False
    has_rejection: bool = False
    shortfall_accepted: bool = False

    @property
    def label(self) -> str:
        """e.g. 'closed' or 'issue:overdue'."""
        if self.canonical_status == CanonicalStatus.ISSUE and self.issue is not None:
            return f"{self.canonical_status.value}:{self.issue.value}"
        return self.canonical_status.value

    @property
    def has_quality_issue(self) -> bool:
        return self.has_damage or self.has_wrong_item or self.has_rejection

    @property
    def badge_kinds(self) -> List[BadgeKind]:
        return [b.kind for b in self.badges]


class Transition(BaseModel):
    """
    One inferred status change. Reason codes are best-effort strings.
    to_status keeps the recorded text when a final status is not recognised.
    """
    date: Optional[str] = None
    from_status: ReceiptStatus
    to_status: Union[ReceiptStatus, str] = Field(union_mode="left_to_right")
    actor: str
    reason: str


class StageResult(BaseModel):
    stage: Stage
    state: StageState
    caption: str


class StepperResult(BaseModel):
    """Three-stage progress: ordered -> goods receipt -> closed."""
    stages: List[StageResult]

    @property
    def connectors(self) -> List[bool]:
        """Whether each connector (into stage 2, into stage 3) is active."""
        return [s.state != StageState.PENDING for s in self.stages[1:]]

    @property
    def states(self) -> List[StageState]:
        return [s.state for s in self.stages]


class OrderCounts(BaseModel):
    all: int = 0
    open: int = 0
    late: int = 0
    completed: int = 0


class ReceiptCounts(BaseModel):
    issues: int = 0
    pending: int = 0
    completed: int = 0
    archived: int = 0
