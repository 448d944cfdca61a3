from .purchase_order import PurchaseOrder, OrderLine
from .receipt import ReceiptMaster, DeliveryLog, DeliveryLogItem
from .ticket import Ticket
from .result import (
    QuantitySummary, SkuQuantity, Snapshot, Badge, StatusResult,
    Transition, StageResult, StepperResult, OrderCounts, ReceiptCounts,
)

__all__ = [
    "PurchaseOrder", "OrderLine",
    "ReceiptMaster", "DeliveryLog", "DeliveryLogItem",
    "Ticket",
    "QuantitySummary", "SkuQuantity", "Snapshot", "Badge", "StatusResult",
    "Transition", "StageResult", "StepperResult", "OrderCounts", "ReceiptCounts",
]
