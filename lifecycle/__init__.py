from .archive import ArchiveRegistry, StaticArchiveRegistry, JsonArchiveRegistry
from .dates import classify_delivery_date
from .quantities import compute_quantities, compute_delivery_snapshots, sort_deliveries
from .classifier import StatusClassifier, classify_order
from .history import reconstruct_status_history
from .stepper import build_stepper, stepper_state
from .loader import LifecycleSnapshot, SnapshotError, load_snapshot, load_orders_csv
from .queries import OrderBook, is_order_complete, is_order_open, is_order_late

__all__ = [
    "ArchiveRegistry", "StaticArchiveRegistry", "JsonArchiveRegistry",
    "classify_delivery_date", "compute_quantities", "compute_delivery_snapshots",
    "sort_deliveries", "StatusClassifier", "classify_order",
    "reconstruct_status_history", "build_stepper", "stepper_state",
    "LifecycleSnapshot", "SnapshotError", "load_snapshot", "load_orders_csv",
    "OrderBook", "is_order_complete", "is_order_open", "is_order_late",
]
