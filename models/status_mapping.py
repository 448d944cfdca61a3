"""
Legacy status ingestion.

Source systems store statuses as free text (mostly German UI labels, with
spelling variations). This module is the only place that text is interpreted;
the pydantic models call it from their validators so downstream code only
sees enums.

Matching strategy, in priority order:
  1. Exact match against enum values and known labels (case-insensitive)
  2. Keyword rules for common variations ("Teilweise geliefert", "beschädigt")
  3. Fuzzy label match (using rapidfuzz)
"""
import logging
from typing import Optional, Union

from rapidfuzz import fuzz, process

from .status import STATUS_INFO, OrderStatus, ReceiptStatus, RejectionReason

logger = logging.getLogger(__name__)

# Minimum fuzzy score (0-100) to accept a label match
FUZZY_THRESHOLD = 85

# Values that mean "no status recorded"
PLACEHOLDER_STATUSES = {"", "-", "—", "none", "null"}

_RECEIPT_LABELS: dict[str, ReceiptStatus] = {
    **{s.value: s for s in ReceiptStatus},
    **{info.display_name.lower(): key for key, info in STATUS_INFO.items()},
    "beschädigt":          ReceiptStatus.DAMAGED,
    "zu viel":             ReceiptStatus.OVERAGE,
    "in bearbeitung":      ReceiptStatus.BOOKED,
    "erledigt":            ReceiptStatus.BOOKED,
    "partial":             ReceiptStatus.PARTIAL_DELIVERY,
    "wrong":               ReceiptStatus.WRONG_ITEM,
    "canceled":            ReceiptStatus.CANCELLED,
}

_ORDER_LABELS: dict[str, OrderStatus] = {
    **{s.value: s for s in OrderStatus},
    "offen":               OrderStatus.OPEN,
    "draft":               OrderStatus.OPEN,
    "teilweise geliefert": OrderStatus.PARTIAL,
    "teillieferung":       OrderStatus.PARTIAL,
    "partially_received":  OrderStatus.PARTIAL,
    "abgeschlossen":       OrderStatus.CLOSED,
    "storniert":           OrderStatus.CANCELLED,
    "canceled":            OrderStatus.CANCELLED,
    "projekt":             OrderStatus.PROJECT,
    "lager":               OrderStatus.WAREHOUSE,
}

_REJECTION_LABELS: dict[str, RejectionReason] = {
    "damaged":      RejectionReason.DAMAGED,
    "beschädigt":   RejectionReason.DAMAGED,
    "schaden":      RejectionReason.DAMAGED,
    "wrong":        RejectionReason.WRONG,
    "falsch":       RejectionReason.WRONG,
    "overdelivery": RejectionReason.OVERDELIVERY,
    "übermenge":    RejectionReason.OVERDELIVERY,
    "other":        RejectionReason.OTHER,
}


def _normalise(raw: object) -> str:
    return str(raw).strip().lower()


def is_placeholder_status(raw: object) -> bool:
    """True when *raw* carries no status information at all."""
    return raw is None or _normalise(raw) in PLACEHOLDER_STATUSES


def _receipt_keyword_match(text: str) -> Optional[ReceiptStatus]:
    if "wartet" in text and "lieferung" in text:
        return ReceiptStatus.AWAITING_DELIVERY
    if "prüf" in text:
        return ReceiptStatus.AWAITING_DELIVERY
    if "teil" in text:
        return ReceiptStatus.PARTIAL_DELIVERY
    if "schaden" in text and "falsch" in text:
        return ReceiptStatus.DAMAGED_WRONG
    if "schaden" in text or "beschädigt" in text:
        return ReceiptStatus.DAMAGED
    if "falsch" in text:
        return ReceiptStatus.WRONG_ITEM
    if "abgelehnt" in text:
        return ReceiptStatus.REJECTED
    if "übermenge" in text or "zu viel" in text:
        return ReceiptStatus.OVERAGE
    if "gebucht" in text or "in bearbeitung" in text:
        return ReceiptStatus.BOOKED
    if "morgen" in text:
        return ReceiptStatus.DUE_TOMORROW
    if "heute" in text:
        return ReceiptStatus.DUE_TODAY
    if "verspätet" in text or "überfällig" in text:
        return ReceiptStatus.OVERDUE
    return None


def parse_receipt_status(raw: Union[ReceiptStatus, str, None]) -> Optional[ReceiptStatus]:
    """
    Map a legacy receipt status string onto ReceiptStatus.

    Returns None for blank/placeholder values and for text that matches
    nothing; the caller treats that as "no recorded status".
    """
    if isinstance(raw, ReceiptStatus):
        return raw
    if is_placeholder_status(raw):
        return None

    text = _normalise(raw)
    if text in _RECEIPT_LABELS:
        return _RECEIPT_LABELS[text]

    matched = _receipt_keyword_match(text)
    if matched is not None:
        return matched

    best = process.extractOne(
        text, list(_RECEIPT_LABELS), scorer=fuzz.token_sort_ratio, score_cutoff=FUZZY_THRESHOLD,
    )
    if best is not None:
        label, score, _ = best
        logger.debug("Receipt status fuzzy matched: '%s' -> '%s' (score=%d)", raw, label, score)
        return _RECEIPT_LABELS[label]

    logger.debug("Unrecognised receipt status: %r", raw)
    return None


def parse_order_status(raw: Union[OrderStatus, str, None]) -> OrderStatus:
    """Map a legacy order status tag onto OrderStatus, defaulting to OPEN."""
    if isinstance(raw, OrderStatus):
        return raw
    if is_placeholder_status(raw):
        return OrderStatus.OPEN

    text = _normalise(raw)
    if text in _ORDER_LABELS:
        return _ORDER_LABELS[text]
    if "storn" in text or "cancel" in text:
        return OrderStatus.CANCELLED
    if "teil" in text or "partial" in text:
        return OrderStatus.PARTIAL
    if "projekt" in text or "project" in text:
        return OrderStatus.PROJECT

    logger.debug("Unrecognised order status %r, treating as open", raw)
    return OrderStatus.OPEN


def parse_rejection_reason(raw: Union[RejectionReason, str, None]) -> Optional[RejectionReason]:
    """Map a rejection reason; unknown non-empty text becomes OTHER."""
    if isinstance(raw, RejectionReason):
        return raw
    if is_placeholder_status(raw):
        return None
    return _REJECTION_LABELS.get(_normalise(raw), RejectionReason.OTHER)
