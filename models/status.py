"""
Closed status vocabularies, one enum per axis.

Legacy free-text statuses are converted to these enums once, at the model
boundary (see models/status_mapping.py). Everything downstream compares enums.
"""
from enum import Enum
from typing import Optional

from pydantic import BaseModel


class OrderStatus(str, Enum):
    """Top-level tag stored on a purchase order."""
    OPEN = "open"                   # 'Offen' / draft
    PARTIAL = "partial"             # 'Teilweise geliefert'
    CLOSED = "closed"               # 'Abgeschlossen'
    CANCELLED = "cancelled"         # 'Storniert'
    PROJECT = "project"             # 'Projekt'
    WAREHOUSE = "warehouse"         # 'Lager'


class ReceiptStatus(str, Enum):
    """Status recorded on a receipt master, also used for history entries."""
    CREATED = "created"
    OPEN = "open"
    AWAITING_DELIVERY = "awaiting-delivery"
    PARTIAL_DELIVERY = "partial-delivery"
    BOOKED = "booked"
    CLOSED = "closed"
    DAMAGED = "damaged"
    WRONG_ITEM = "wrong-item"
    DAMAGED_WRONG = "damaged+wrong"
    REJECTED = "rejected"
    OVERAGE = "overage"
    DUE_TOMORROW = "due-tomorrow"
    DUE_TODAY = "due-today"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"


class DateClass(str, Enum):
    DUE_TOMORROW = "due-tomorrow"
    DUE_TODAY = "due-today"
    OVERDUE = "overdue"
    NONE = "none"


class CanonicalStatus(str, Enum):
    """The single lifecycle label chosen by the classifier's priority chain."""
    CANCELLED = "cancelled"
    CLOSED = "closed"
    ISSUE = "issue"
    COMPLETE = "complete"
    OVERAGE = "overage"
    PARTIAL = "partial"
    DUE_TODAY = "due-today"
    DUE_TOMORROW = "due-tomorrow"
    OPEN = "open"


class IssueKind(str, Enum):
    DAMAGED_WRONG = "damaged+wrong"
    DAMAGED = "damaged"
    WRONG_ITEM = "wrong-item"
    REJECTED = "rejected"
    OVERDUE = "overdue"
    OPEN_TICKET = "open-ticket"


class BadgeCategory(str, Enum):
    IDENTITY = "identity"
    LIFECYCLE = "lifecycle"
    RECEIPT_PROCESS = "receipt-process"
    DELIVERY_TIMING = "delivery-timing"
    TICKETS = "tickets"


class BadgeKind(str, Enum):
    PROJECT = "project"
    WAREHOUSE_STOCK = "warehouse-stock"
    ARCHIVED = "archived"
    CANCELLED = "cancelled"
    CLOSED = "closed"
    OPEN = "open"
    PARTIAL = "partial"
    DONE = "done"
    OVERAGE = "overage"
    AWAITING_DELIVERY = "awaiting-delivery"
    DAMAGED = "damaged"
    WRONG_ITEM = "wrong-item"
    DAMAGED_WRONG = "damaged+wrong"
    REJECTED = "rejected"
    DUE_TOMORROW = "due-tomorrow"
    DUE_TODAY = "due-today"
    OVERDUE = "overdue"
    OPEN_TICKETS = "open-tickets"


class Stage(str, Enum):
    ORDERED = "ordered"
    GOODS_RECEIPT = "goods-receipt"
    CLOSED = "closed"


class StageState(str, Enum):
    COMPLETED = "completed"
    CURRENT = "current"
    PENDING = "pending"
    ISSUE = "issue"


class RejectionReason(str, Enum):
    DAMAGED = "Damaged"
    WRONG = "Wrong"
    OVERDELIVERY = "Overdelivery"
    OTHER = "Other"


class TicketStatus(str, Enum):
    OPEN = "Open"
    CLOSED = "Closed"


class OrderFilter(str, Enum):
    ALL = "all"
    OPEN = "open"
    LATE = "late"
    COMPLETED = "completed"


class ReceiptCategory(str, Enum):
    ISSUES = "issues"
    PENDING = "pending"
    COMPLETED = "completed"


# Badge category render order. Each category contributes at most one badge.
BADGE_ORDER: tuple[BadgeCategory, ...] = (
    BadgeCategory.IDENTITY,
    BadgeCategory.LIFECYCLE,
    BadgeCategory.RECEIPT_PROCESS,
    BadgeCategory.DELIVERY_TIMING,
    BadgeCategory.TICKETS,
)

BADGE_LABELS: dict[BadgeKind, str] = {
    BadgeKind.PROJECT:           "Projekt",
    BadgeKind.WAREHOUSE_STOCK:   "Lager",
    BadgeKind.ARCHIVED:          "Archiviert",
    BadgeKind.CANCELLED:         "Storniert",
    BadgeKind.CLOSED:            "Abgeschlossen",
    BadgeKind.OPEN:              "Offen",
    BadgeKind.PARTIAL:           "Teillieferung",
    BadgeKind.DONE:              "Erledigt",
    BadgeKind.OVERAGE:           "Übermenge",
    BadgeKind.AWAITING_DELIVERY: "Wartet auf Lieferung",
    BadgeKind.DAMAGED:           "Schaden",
    BadgeKind.WRONG_ITEM:        "Falsch geliefert",
    BadgeKind.DAMAGED_WRONG:     "Schaden + Falsch",
    BadgeKind.REJECTED:          "Abgelehnt",
    BadgeKind.DUE_TOMORROW:      "Lieferung morgen",
    BadgeKind.DUE_TODAY:         "Lieferung heute",
    BadgeKind.OVERDUE:           "Verspätet",
    BadgeKind.OPEN_TICKETS:      "Offen",
}


class StatusInfo(BaseModel):
    """Display metadata for a receipt status (data only, no markup)."""
    key: ReceiptStatus
    display_name: str
    description: str
    action_text: Optional[str] = None


def _info(key: ReceiptStatus, name: str, description: str, action: Optional[str] = None) -> StatusInfo:
    return StatusInfo(key=key, display_name=name, description=description, action_text=action)


STATUS_INFO: dict[ReceiptStatus, StatusInfo] = {
    s.key: s for s in (
        _info(ReceiptStatus.CREATED, "Erstellt",
              "Der Wareneingang wurde angelegt."),
        _info(ReceiptStatus.OPEN, "Offen",
              "Der Wareneingang wurde erstellt und wartet auf die erste Lieferung.",
              "Erste Lieferung erfassen"),
        _info(ReceiptStatus.AWAITING_DELIVERY, "Wartet auf Lieferung",
              "Bestellung noch offen. Es wurden noch nicht alle Artikel geliefert.",
              "Weitere Lieferung erfassen"),
        _info(ReceiptStatus.PARTIAL_DELIVERY, "Teillieferung",
              "Teilweise geliefert. Es fehlen noch Artikel aus der ursprünglichen Bestellung.",
              "Restlieferung erfassen"),
        _info(ReceiptStatus.BOOKED, "Gebucht",
              "Wareneingang erfolgreich abgeschlossen. Alle Artikel wurden korrekt geliefert und gebucht."),
        _info(ReceiptStatus.CLOSED, "Abgeschlossen",
              "Wareneingang manuell abgeschlossen. Restmenge wurde storniert oder akzeptiert."),
        _info(ReceiptStatus.DAMAGED, "Schaden",
              "Beschädigte Ware gemeldet. Es wurde ein Qualitätsfall erstellt und eine Reklamation ist offen.",
              "Reklamation bearbeiten"),
        _info(ReceiptStatus.REJECTED, "Abgelehnt",
              "Lieferung vollständig abgelehnt. Alle Artikel wurden zurückgewiesen.",
              "Reklamation prüfen"),
        _info(ReceiptStatus.WRONG_ITEM, "Falsch geliefert",
              "Falsche Artikel geliefert. Die erhaltenen Artikel entsprechen nicht der Bestellung.",
              "Reklamation bearbeiten"),
        _info(ReceiptStatus.DAMAGED_WRONG, "Schaden + Falsch",
              "Beschädigte UND falsche Artikel geliefert. Komplexe Reklamation offen.",
              "Reklamationen prüfen"),
        _info(ReceiptStatus.OVERAGE, "Übermenge",
              "Mehr Artikel geliefert als bestellt. Überzählige Artikel wurden erfasst und ggf. retourniert.",
              "Rücksendung prüfen"),
        _info(ReceiptStatus.DUE_TOMORROW, "Lieferung morgen",
              "Die Lieferung wird für morgen erwartet."),
        _info(ReceiptStatus.DUE_TODAY, "Lieferung heute",
              "Die Lieferung wird heute erwartet."),
        _info(ReceiptStatus.OVERDUE, "Verspätet",
              "Die erwartete Lieferung ist überfällig."),
        _info(ReceiptStatus.CANCELLED, "Storniert",
              "Bestellung wurde storniert. Keine weiteren Aktionen möglich."),
    )
}
