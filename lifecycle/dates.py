"""
Delivery-date evaluation.

Classifies an expected delivery date relative to "today" (local date,
midnight granularity) into due-tomorrow / due-today / overdue / none.
Once goods have begun arriving only "overdue" can still apply.
"""
import logging
from datetime import date, datetime, timedelta
from typing import Optional, Union

from models.status import DateClass, ReceiptStatus
from models.status_mapping import is_placeholder_status, parse_receipt_status

logger = logging.getLogger(__name__)

# Statuses after which no delivery-timing badge is shown
SUPPRESSING_STATUSES = {ReceiptStatus.CLOSED, ReceiptStatus.BOOKED, ReceiptStatus.CANCELLED}

# Statuses that mean "nothing physically received yet"
PRE_RECEIPT_STATUSES = {
    ReceiptStatus.OPEN,
    ReceiptStatus.AWAITING_DELIVERY,
    ReceiptStatus.DUE_TOMORROW,
    ReceiptStatus.DUE_TODAY,
    ReceiptStatus.OVERDUE,
}

_DATE_FORMATS = ("%Y-%m-%d", "%d.%m.%Y", "%d/%m/%Y", "%d-%m-%Y", "%Y/%m/%d")


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO date/datetime or one of the common day-first formats."""
    if not value or not str(value).strip():
        return None
    text = str(value).strip()
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        return parsed.replace(tzinfo=None)
    except ValueError:
        pass
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


def parse_date(value: Union[date, str, None]) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    parsed = parse_timestamp(value)
    return parsed.date() if parsed else None


def classify_delivery_date(
    expected_date: Union[date, str, None],
    current_status: Union[ReceiptStatus, str, None] = None,
    today: Optional[date] = None,
) -> DateClass:
    """
    Classify *expected_date* against *today* given the current receipt status.

    Exactly one DateClass is returned. NONE when there is no (parseable) date
    or the status is closed/booked/cancelled.
    """
    expected = parse_date(expected_date)
    if expected is None:
        return DateClass.NONE

    unknown_status = False
    if isinstance(current_status, ReceiptStatus) or current_status is None:
        status = current_status
    else:
        status = parse_receipt_status(current_status)
        # Unrecognised text still means something was recorded
        unknown_status = status is None and not is_placeholder_status(current_status)

    if status in SUPPRESSING_STATUSES:
        return DateClass.NONE

    today = today or date.today()
    pre_receipt = not unknown_status and (status is None or status in PRE_RECEIPT_STATUSES)

    if pre_receipt and expected == today:
        return DateClass.DUE_TODAY
    if pre_receipt and expected == today + timedelta(days=1):
        return DateClass.DUE_TOMORROW
    if expected < today and (pre_receipt or status == ReceiptStatus.PARTIAL_DELIVERY):
        return DateClass.OVERDUE
    return DateClass.NONE
