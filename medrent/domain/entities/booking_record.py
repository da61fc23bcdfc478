from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum

from medrent.domain.entities.pricing import Money, PricingBreakdown, RateTable


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"


class DeliveryStatus(str, Enum):
    PENDING = "pending"
    DISPATCHED = "dispatched"
    DELIVERED = "delivered"
    COMPLETED = "completed"


class ReturnStatus(str, Enum):
    PENDING = "pending"
    EXTENDED = "extended"
    RETURNED = "returned"
    OVERDUE = "overdue"


@dataclass(frozen=True)
class DateRange:
    """Inclusive rental span."""

    start: date
    end: date

    def __post_init__(self) -> None:
        if self.end < self.start:
            raise ValueError(f"end date {self.end} is before start date {self.start}")

    @property
    def days(self) -> int:
        return (self.end - self.start).days + 1


@dataclass(frozen=True)
class CustomerInfo:
    name: str = ""
    phone: str = ""
    email: str = ""
    address: str = ""
    notes: str = ""


@dataclass(frozen=True)
class AvailabilityInfo:
    local_units_free: int
    fulfilling_branch_id: str
    alternative_branch_id: str | None = None
    alternative_units_free: int = 0
    delivery_fee: Money = 0

    @property
    def cross_branch_booking(self) -> bool:
        return self.alternative_branch_id is not None


@dataclass(frozen=True)
class BookingRecord:
    branch_id: str | None = None
    category_id: str | None = None
    equipment_name: str | None = None
    rates: RateTable | None = None
    date_range: DateRange | None = None
    duration_days: int = 0
    availability: AvailabilityInfo | None = None
    pricing: PricingBreakdown | None = None
    total_cost: Money = 0  # rental + delivery
    deposit_amount: Money = 0
    quote_accepted: bool = False
    customer: CustomerInfo | None = None
    quote_id: str | None = None
    booking_id: str | None = None
    booking_reference: str | None = None
    reservation_held: bool = False
    payment_status: PaymentStatus = PaymentStatus.PENDING
    delivery_status: DeliveryStatus = DeliveryStatus.PENDING
    return_status: ReturnStatus = ReturnStatus.PENDING
    extension_days: int = 0
    extension_charges: Money = 0

    @property
    def delivery_fee(self) -> Money:
        return self.availability.delivery_fee if self.availability else 0

    @property
    def cross_branch_booking(self) -> bool:
        return bool(self.availability and self.availability.cross_branch_booking)

    @property
    def fulfilling_branch_id(self) -> str | None:
        if self.availability:
            return self.availability.fulfilling_branch_id
        return self.branch_id
