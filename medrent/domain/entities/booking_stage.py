from __future__ import annotations

from enum import Enum


class BookingStage(str, Enum):
    BRANCH_SELECTION = "branch_selection"
    EQUIPMENT_SELECTION = "equipment_selection"
    DATE_SELECTION = "date_selection"
    AVAILABILITY_CHECK = "availability_check"
    NO_AVAILABILITY = "no_availability"
    QUOTE = "quote"
    CUSTOMER_INFO = "customer_info"
    QUOTE_SUBMITTED = "quote_submitted"
    PAYMENT_PENDING = "payment_pending"
    CONFIRMED = "confirmed"
    DELIVERY_DISPATCHED = "delivery_dispatched"
    DELIVERY_COMPLETE = "delivery_complete"
    EXTENSION_OFFER = "extension_offer"
    RETURN_REMINDER = "return_reminder"
    RETURN_COMPLETE = "return_complete"
    CANCELLED = "cancelled"


_INPUT_STAGES = (
    BookingStage.BRANCH_SELECTION,
    BookingStage.EQUIPMENT_SELECTION,
    BookingStage.DATE_SELECTION,
)

# Stages from which the customer may still step back and change their inputs.
REVISITABLE_FROM = frozenset(
    {
        BookingStage.EQUIPMENT_SELECTION,
        BookingStage.DATE_SELECTION,
        BookingStage.AVAILABILITY_CHECK,
        BookingStage.NO_AVAILABILITY,
        BookingStage.QUOTE,
        BookingStage.CUSTOMER_INFO,
    }
)

CANCELLABLE_FROM = frozenset(
    {
        BookingStage.BRANCH_SELECTION,
        BookingStage.EQUIPMENT_SELECTION,
        BookingStage.DATE_SELECTION,
        BookingStage.AVAILABILITY_CHECK,
        BookingStage.NO_AVAILABILITY,
        BookingStage.QUOTE,
        BookingStage.CUSTOMER_INFO,
        BookingStage.QUOTE_SUBMITTED,
        BookingStage.PAYMENT_PENDING,
    }
)

TERMINAL_STAGES = frozenset({BookingStage.RETURN_COMPLETE, BookingStage.CANCELLED})


def _earlier_inputs(stage: BookingStage) -> set[BookingStage]:
    if stage not in REVISITABLE_FROM:
        return set()
    order = list(BookingStage)
    return {s for s in _INPUT_STAGES if order.index(s) < order.index(stage)}


_FORWARD: dict[BookingStage, set[BookingStage]] = {
    BookingStage.BRANCH_SELECTION: {BookingStage.EQUIPMENT_SELECTION},
    BookingStage.EQUIPMENT_SELECTION: {BookingStage.DATE_SELECTION},
    BookingStage.DATE_SELECTION: {BookingStage.AVAILABILITY_CHECK},
    BookingStage.AVAILABILITY_CHECK: {BookingStage.QUOTE, BookingStage.NO_AVAILABILITY},
    BookingStage.NO_AVAILABILITY: set(),
    BookingStage.QUOTE: {BookingStage.CUSTOMER_INFO},
    BookingStage.CUSTOMER_INFO: {BookingStage.QUOTE_SUBMITTED, BookingStage.QUOTE},
    BookingStage.QUOTE_SUBMITTED: {BookingStage.PAYMENT_PENDING, BookingStage.NO_AVAILABILITY},
    BookingStage.PAYMENT_PENDING: {BookingStage.CONFIRMED},
    BookingStage.CONFIRMED: {BookingStage.DELIVERY_DISPATCHED, BookingStage.DELIVERY_COMPLETE},
    BookingStage.DELIVERY_DISPATCHED: {BookingStage.DELIVERY_COMPLETE},
    BookingStage.DELIVERY_COMPLETE: {BookingStage.EXTENSION_OFFER, BookingStage.RETURN_REMINDER},
    BookingStage.EXTENSION_OFFER: {BookingStage.DELIVERY_COMPLETE, BookingStage.RETURN_REMINDER},
    BookingStage.RETURN_REMINDER: {BookingStage.EXTENSION_OFFER, BookingStage.RETURN_COMPLETE},
    BookingStage.RETURN_COMPLETE: set(),
    BookingStage.CANCELLED: set(),
}

STAGE_TRANSITIONS: dict[BookingStage, frozenset[BookingStage]] = {
    stage: frozenset(
        targets
        | _earlier_inputs(stage)
        | ({BookingStage.CANCELLED} if stage in CANCELLABLE_FROM else set())
    )
    for stage, targets in _FORWARD.items()
}


def is_allowed_transition(current: BookingStage, target: BookingStage) -> bool:
    return target in STAGE_TRANSITIONS.get(current, frozenset())
