"""
Pydantic models for dashboard API responses.
"""
from pydantic import BaseModel
from typing import Optional

from models.result import (
    Badge, QuantitySummary, SkuQuantity, StatusResult, StepperResult,
)
from models.status import CanonicalStatus, ReceiptCategory, ReceiptStatus


class OrderSummary(BaseModel):
    id: str
    supplier: Optional[str] = None
    date_created: Optional[str] = None
    expected_delivery_date: Optional[str] = None
    status: str                        # e.g. "issue:overdue"
    canonical_status: CanonicalStatus
    badges: list[Badge]
    archived: bool = False


class OrderDetail(BaseModel):
    summary: OrderSummary
    result: StatusResult
    quantities: QuantitySummary
    stepper: StepperResult
    connectors: list[bool]
    receipt_id: Optional[str] = None
    receipt_category: Optional[ReceiptCategory] = None
    line_issues: dict[str, SkuQuantity] = {}
    open_tickets: int = 0


class ReceiptSummary(BaseModel):
    id: str
    po_id: str
    status: Optional[ReceiptStatus] = None
    raw_status: Optional[str] = None
    category: ReceiptCategory
    deliveries: int = 0
    archived: bool = False
