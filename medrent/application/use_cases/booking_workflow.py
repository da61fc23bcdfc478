from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import date, timedelta
from typing import Callable

from medrent.application.exceptions import (
    AvailabilityExhausted,
    BookingError,
    InvalidTransition,
    InvariantViolation,
    ValidationError,
)
from medrent.application.ports.availability import AvailabilityPort
from medrent.application.ports.booking_repository import BookingRepositoryPort
from medrent.application.ports.category_catalog import CategoryCatalogPort
from medrent.application.utils.identifiers import generate_booking_id, generate_quote_id
from medrent.application.utils.pricing import (
    calculate_deposit,
    calculate_extension_cost,
    calculate_optimal_pricing,
    covered_days,
)
from medrent.domain.entities.booking_record import (
    AvailabilityInfo,
    BookingRecord,
    CustomerInfo,
    DateRange,
    DeliveryStatus,
    PaymentStatus,
    ReturnStatus,
)
from medrent.domain.entities.booking_stage import (
    CANCELLABLE_FROM,
    BookingStage,
    is_allowed_transition,
)
from medrent.domain.entities.pricing import Money

_REVISIT_TARGETS = (
    BookingStage.BRANCH_SELECTION,
    BookingStage.EQUIPMENT_SELECTION,
    BookingStage.DATE_SELECTION,
    BookingStage.QUOTE,
)

# Stages entered without new input or a lookup; everything else has its own operation.
_DIRECT_TARGETS = frozenset(
    {
        BookingStage.CONFIRMED,
        BookingStage.DELIVERY_DISPATCHED,
        BookingStage.EXTENSION_OFFER,
        BookingStage.RETURN_REMINDER,
    }
)

_POST_PAYMENT_STAGES = (
    BookingStage.CONFIRMED,
    BookingStage.DELIVERY_DISPATCHED,
    BookingStage.DELIVERY_COMPLETE,
    BookingStage.EXTENSION_OFFER,
    BookingStage.RETURN_REMINDER,
)


@dataclass(frozen=True)
class BookingEvent:
    session_id: str | None
    previous: BookingStage
    current: BookingStage
    record: BookingRecord


@dataclass(frozen=True)
class ExtensionOption:
    days: int
    new_end: date
    cost: Money


BookingObserver = Callable[[BookingEvent], None]


class BookingWorkflow:
    """
    State machine for one booking attempt.

    Every operation validates its input against the current stage, builds a new
    record and only then swaps it in, so a rejected operation leaves both the
    stage and the record exactly as they were.
    """

    def __init__(
        self,
        availability: AvailabilityPort,
        catalog: CategoryCatalogPort,
        repository: BookingRepositoryPort,
        stage: BookingStage = BookingStage.BRANCH_SELECTION,
        record: BookingRecord | None = None,
        session_id: str | None = None,
        max_rental_days: int = 365,
        deposit_rate: float = 0.30,
        cross_branch_enabled: bool = True,
        default_delivery_fee: Money = 150,
        quote_id_factory: Callable[[], str] = generate_quote_id,
        booking_id_factory: Callable[[], str] = generate_booking_id,
    ) -> None:
        self._availability = availability
        self._catalog = catalog
        self._repository = repository
        self._stage = stage
        self._record = record or BookingRecord()
        self._session_id = session_id
        self._max_rental_days = max_rental_days
        self._deposit_rate = deposit_rate
        self._cross_branch_enabled = cross_branch_enabled
        self._default_delivery_fee = default_delivery_fee
        self._new_quote_id = quote_id_factory
        self._new_booking_id = booking_id_factory
        self._observers: list[BookingObserver] = []
        self._logger = logging.getLogger(__name__)

    @property
    def stage(self) -> BookingStage:
        return self._stage

    @property
    def record(self) -> BookingRecord:
        return self._record

    def subscribe(self, observer: BookingObserver) -> None:
        self._observers.append(observer)

    def unsubscribe(self, observer: BookingObserver) -> None:
        if observer in self._observers:
            self._observers.remove(observer)

    # Input stages

    def select_branch(self, branch_id: str | None) -> BookingRecord:
        self._require_stage("select_branch", BookingStage.BRANCH_SELECTION)
        branch_key = (branch_id or "").strip()
        if not branch_key:
            raise self._reject(ValidationError("branch", "Please choose a branch."))
        if self._catalog.get_branch(branch_key) is None:
            raise self._reject(ValidationError("branch", f"Unknown branch '{branch_key}'."))

        record = replace(_invalidate_derived(self._record), branch_id=branch_key)
        return self._apply(BookingStage.EQUIPMENT_SELECTION, record)

    def select_equipment(self, category_id: str | None, equipment_name: str | None = None) -> BookingRecord:
        self._require_stage("select_equipment", BookingStage.EQUIPMENT_SELECTION)
        category_key = (category_id or "").strip()
        if not category_key:
            raise self._reject(ValidationError("equipment_category", "Please choose the equipment you need."))
        category = self._catalog.get_category(category_key)
        if category is None:
            raise self._reject(
                ValidationError("equipment_category", f"Unknown equipment category '{category_key}'.")
            )

        record = replace(
            _invalidate_derived(self._record),
            category_id=category.category_id,
            equipment_name=(equipment_name or "").strip() or category.display_name,
            rates=category.rates,
        )
        return self._apply(BookingStage.DATE_SELECTION, record)

    def select_dates(self, start: date | None, end: date | None) -> BookingRecord:
        self._require_stage("select_dates", BookingStage.DATE_SELECTION)
        if start is None or end is None:
            raise self._reject(ValidationError("date_range", "Both a start and an end date are required."))
        if end < start:
            raise self._reject(ValidationError("date_range", "The end date cannot be before the start date."))
        date_range = DateRange(start=start, end=end)
        if date_range.days > self._max_rental_days:
            raise self._reject(
                ValidationError(
                    "date_range",
                    f"Rentals are limited to {self._max_rental_days} days; {date_range.days} were requested.",
                )
            )

        record = replace(
            _invalidate_derived(self._record),
            date_range=date_range,
            duration_days=date_range.days,
        )
        return self._apply(BookingStage.AVAILABILITY_CHECK, record)

    # Availability and quote

    def check_availability(self) -> BookingRecord:
        """
        Resolve stock for the chosen branch, probing the other branches when it has none.
        A unit at another branch is accepted with a delivery surcharge. When no branch
        has stock the workflow moves to NO_AVAILABILITY and AvailabilityExhausted is raised.
        """
        self._require_stage("check_availability", BookingStage.AVAILABILITY_CHECK)
        record = self._record
        if not (record.branch_id and record.category_id and record.date_range):
            raise self._reject(InvariantViolation("Availability check needs branch, equipment and dates"))

        local_units = self._availability.check_availability(
            record.category_id, record.branch_id, record.date_range
        )
        checked = [record.branch_id]

        availability: AvailabilityInfo | None = None
        if local_units >= 1:
            availability = AvailabilityInfo(local_units_free=local_units, fulfilling_branch_id=record.branch_id)
        elif self._cross_branch_enabled:
            for branch in self._catalog.list_branches():
                if branch.branch_id == record.branch_id:
                    continue
                checked.append(branch.branch_id)
                units = self._availability.check_availability(
                    record.category_id, branch.branch_id, record.date_range
                )
                if units >= 1:
                    fee = branch.cross_branch_delivery_fee
                    availability = AvailabilityInfo(
                        local_units_free=0,
                        fulfilling_branch_id=branch.branch_id,
                        alternative_branch_id=branch.branch_id,
                        alternative_units_free=units,
                        delivery_fee=self._default_delivery_fee if fee is None else fee,
                    )
                    break

        if availability is None:
            self._apply(BookingStage.NO_AVAILABILITY, record)
            raise self._reject(AvailabilityExhausted(record.category_id, checked))

        rates = self._catalog.get_rates(record.category_id)
        if rates is None:
            raise self._reject(
                ValidationError("equipment_category", f"No rates configured for '{record.category_id}'.")
            )

        pricing = calculate_optimal_pricing(record.date_range.start, record.date_range.end, rates)
        record = replace(
            record,
            rates=rates,
            availability=availability,
            pricing=pricing,
            total_cost=pricing.total + availability.delivery_fee,
            deposit_amount=calculate_deposit(pricing.total, availability.delivery_fee, self._deposit_rate),
            quote_accepted=False,
        )
        return self._apply(BookingStage.QUOTE, record)

    def accept_quote(self) -> BookingRecord:
        self._require_stage("accept_quote", BookingStage.QUOTE)
        return self._apply(BookingStage.CUSTOMER_INFO, replace(self._record, quote_accepted=True))

    def submit_customer_info(self, customer: CustomerInfo | None) -> BookingRecord:
        self._require_stage("submit_customer_info", BookingStage.CUSTOMER_INFO)
        if customer is None:
            raise self._reject(ValidationError("customer", "Customer details are required."))

        cleaned = CustomerInfo(
            name=(customer.name or "").strip(),
            phone=(customer.phone or "").strip(),
            email=(customer.email or "").strip(),
            address=(customer.address or "").strip(),
            notes=(customer.notes or "").strip(),
        )
        for field_name, label in (
            ("name", "Name"),
            ("phone", "Phone number"),
            ("email", "Email address"),
            ("address", "Delivery address"),
        ):
            if not getattr(cleaned, field_name):
                raise self._reject(ValidationError(field_name, f"{label} is required."))
        if "@" not in cleaned.email:
            raise self._reject(ValidationError("email", "Email address is not valid."))

        record = replace(
            self._record,
            customer=cleaned,
            quote_id=self._record.quote_id or self._new_quote_id(),
        )
        return self._apply(BookingStage.QUOTE_SUBMITTED, record)

    def accept_submitted_quote(self) -> BookingRecord:
        """Quote acceptance: hold one unit at the fulfilling branch, then await payment."""
        self._require_stage("accept_submitted_quote", BookingStage.QUOTE_SUBMITTED)
        record = self._record
        held = self._availability.reserve_unit(
            record.category_id, record.fulfilling_branch_id, record.date_range, record.quote_id
        )
        if not held:
            self._apply(BookingStage.NO_AVAILABILITY, record)
            raise self._reject(AvailabilityExhausted(record.category_id, [record.fulfilling_branch_id]))
        return self._apply(BookingStage.PAYMENT_PENDING, replace(record, reservation_held=True))

    # Payment

    def confirm_payment(self) -> BookingRecord:
        """External payment-completion signal. Commits the booking before entering CONFIRMED."""
        self._require_stage("confirm_payment", BookingStage.PAYMENT_PENDING)
        record = replace(
            self._record,
            payment_status=PaymentStatus.PAID,
            booking_id=self._record.booking_id or self._new_booking_id(),
            delivery_status=DeliveryStatus.DISPATCHED,
        )
        reference = self._repository.commit_booking(record)
        return self._apply(BookingStage.CONFIRMED, replace(record, booking_reference=reference))

    def record_payment_failure(self) -> BookingRecord:
        self._require_stage("record_payment_failure", BookingStage.PAYMENT_PENDING)
        return self._apply(self._stage, replace(self._record, payment_status=PaymentStatus.FAILED))

    # Delivery, extension and return

    def dispatch_delivery(self) -> BookingRecord:
        self._require_stage("dispatch_delivery", BookingStage.CONFIRMED)
        return self._apply(BookingStage.DELIVERY_DISPATCHED, self._record)

    def confirm_delivery(self) -> BookingRecord:
        self._require_stage("confirm_delivery", BookingStage.CONFIRMED, BookingStage.DELIVERY_DISPATCHED)
        record = replace(self._record, delivery_status=DeliveryStatus.COMPLETED)
        return self._apply(BookingStage.DELIVERY_COMPLETE, record)

    def offer_extension(self) -> BookingRecord:
        self._require_stage("offer_extension", BookingStage.DELIVERY_COMPLETE, BookingStage.RETURN_REMINDER)
        return self._apply(BookingStage.EXTENSION_OFFER, self._record)

    def extension_options(self, options_days: list[int]) -> list[ExtensionOption]:
        record = self._record
        if not (record.date_range and record.rates):
            return []
        options = []
        for days in options_days:
            if days < 1 or record.duration_days + days > self._max_rental_days:
                continue
            new_end = record.date_range.end + timedelta(days=days)
            options.append(
                ExtensionOption(
                    days=days,
                    new_end=new_end,
                    cost=calculate_extension_cost(record.date_range.end, new_end, record.rates),
                )
            )
        return options

    def accept_extension(self, new_end: date | None) -> BookingRecord:
        self._require_stage("accept_extension", BookingStage.EXTENSION_OFFER)
        record = self._record
        if new_end is None:
            raise self._reject(ValidationError("new_end", "Please choose a new return date."))
        if new_end <= record.date_range.end:
            raise self._reject(ValidationError("new_end", "The new return date must be after the current one."))
        extended = DateRange(start=record.date_range.start, end=new_end)
        if extended.days > self._max_rental_days:
            raise self._reject(
                ValidationError("new_end", f"Rentals are limited to {self._max_rental_days} days.")
            )

        added_days = extended.days - record.duration_days
        record = replace(
            record,
            date_range=extended,
            duration_days=extended.days,
            extension_days=record.extension_days + added_days,
            extension_charges=record.extension_charges
            + calculate_extension_cost(record.date_range.end, new_end, record.rates),
            return_status=ReturnStatus.EXTENDED,
        )
        return self._apply(BookingStage.DELIVERY_COMPLETE, record)

    def decline_extension(self) -> BookingRecord:
        self._require_stage("decline_extension", BookingStage.EXTENSION_OFFER)
        return self._apply(BookingStage.RETURN_REMINDER, self._record)

    def remind_return(self) -> BookingRecord:
        self._require_stage("remind_return", BookingStage.DELIVERY_COMPLETE)
        return self._apply(BookingStage.RETURN_REMINDER, self._record)

    def mark_overdue(self, as_of: date) -> BookingRecord:
        self._require_stage("mark_overdue", *_POST_PAYMENT_STAGES)
        if as_of <= self._record.date_range.end:
            raise self._reject(
                ValidationError("as_of", f"Rental is not overdue before {self._record.date_range.end}.")
            )
        return self._apply(self._stage, replace(self._record, return_status=ReturnStatus.OVERDUE))

    def confirm_return(self) -> BookingRecord:
        self._require_stage("confirm_return", BookingStage.RETURN_REMINDER)
        record = self._record
        if record.reservation_held:
            self._availability.release_unit(record.quote_id)
        record = replace(record, return_status=ReturnStatus.RETURNED, reservation_held=False)
        return self._apply(BookingStage.RETURN_COMPLETE, record)

    # Navigation

    def go_back(self, target: BookingStage) -> BookingRecord:
        """Revisit an earlier input stage. Everything derived from later stages is discarded."""
        if target not in _REVISIT_TARGETS or not is_allowed_transition(self._stage, target):
            raise self._reject(InvalidTransition(self._stage.value, target.value))
        # the quote is only revisited to un-accept it; re-pricing goes through check_availability
        if target == BookingStage.QUOTE and self._stage != BookingStage.CUSTOMER_INFO:
            raise self._reject(InvalidTransition(self._stage.value, target.value))
        if target == BookingStage.QUOTE:
            record = replace(self._record, quote_accepted=False)
        else:
            record = _invalidate_derived(self._record)
        return self._apply(target, record)

    def cancel(self) -> BookingRecord:
        if self._stage not in CANCELLABLE_FROM:
            raise self._reject(InvalidTransition(self._stage.value, BookingStage.CANCELLED.value))
        record = self._record
        if record.reservation_held:
            self._availability.release_unit(record.quote_id)
            record = replace(record, reservation_held=False)
        return self._apply(BookingStage.CANCELLED, record)

    def transition_to(self, target: BookingStage) -> BookingRecord:
        """
        Move to `target` without new input, subject to the same guards as every other operation.
        Revisits go through go_back and cancellation through cancel; stages that need input
        or an availability lookup are only reachable through their own operation.
        """
        if target in _REVISIT_TARGETS:
            return self.go_back(target)
        if target == BookingStage.CANCELLED:
            return self.cancel()
        if target not in _DIRECT_TARGETS or target == self._stage:
            raise self._reject(InvalidTransition(self._stage.value, target.value))
        return self._apply(target, self._record)

    # Internals

    def _require_stage(self, operation: str, *stages: BookingStage) -> None:
        if self._stage not in stages:
            raise self._reject(InvalidTransition(self._stage.value, operation))

    def _apply(self, target: BookingStage, record: BookingRecord) -> BookingRecord:
        previous = self._stage
        if target != previous and not is_allowed_transition(previous, target):
            raise self._reject(InvalidTransition(previous.value, target.value))
        self._check_entry_guard(target, record)
        self._check_invariants(record)

        self._stage = target
        self._record = record
        self._logger.info(
            "Booking transition",
            extra={
                "session_id": self._session_id,
                "stage": f"{previous.value}->{target.value}",
                "quote_id": record.quote_id,
                "booking_id": record.booking_id,
            },
        )
        self._notify(BookingEvent(self._session_id, previous, target, record))
        return record

    def _check_entry_guard(self, target: BookingStage, record: BookingRecord) -> None:
        paid = record.payment_status == PaymentStatus.PAID
        if target == BookingStage.EQUIPMENT_SELECTION and not record.branch_id:
            raise self._reject(InvariantViolation("Equipment selection requires a branch"))
        if target == BookingStage.DATE_SELECTION and not record.category_id:
            raise self._reject(InvariantViolation("Date selection requires equipment"))
        if target == BookingStage.AVAILABILITY_CHECK and not record.date_range:
            raise self._reject(InvariantViolation("Availability check requires dates"))
        if target == BookingStage.QUOTE and not (record.pricing and record.availability):
            raise self._reject(InvariantViolation("Quote requires pricing and availability"))
        if target == BookingStage.CUSTOMER_INFO and not record.quote_accepted:
            raise self._reject(InvariantViolation("Customer details require an accepted quote"))
        if target == BookingStage.QUOTE_SUBMITTED and not (record.customer and record.quote_id):
            raise self._reject(InvariantViolation("Quote submission requires customer details and a quote id"))
        if target == BookingStage.PAYMENT_PENDING and not record.reservation_held:
            raise self._reject(InvariantViolation("Payment requires a reserved unit"))
        if target == BookingStage.CONFIRMED and not (paid and record.booking_id):
            raise self._reject(InvariantViolation("Cannot confirm a booking before payment is received"))
        if target in (BookingStage.DELIVERY_DISPATCHED, BookingStage.DELIVERY_COMPLETE) and not paid:
            raise self._reject(InvariantViolation("Cannot dispatch delivery before payment is received"))
        if target == BookingStage.RETURN_COMPLETE and record.return_status != ReturnStatus.RETURNED:
            raise self._reject(InvariantViolation("Return completion requires a confirmed return"))

    def _check_invariants(self, record: BookingRecord) -> None:
        problems = record_invariant_violations(record, self._deposit_rate)
        if problems:
            raise self._reject(InvariantViolation("; ".join(problems)))

    def _notify(self, event: BookingEvent) -> None:
        for observer in list(self._observers):
            try:
                observer(event)
            except Exception:
                self._logger.exception(
                    "Booking observer failed",
                    extra={"session_id": self._session_id, "stage": event.current.value},
                )

    def _reject(self, error: BookingError) -> BookingError:
        log = self._logger.error if isinstance(error, InvariantViolation) else self._logger.warning
        log(
            "Booking operation rejected",
            extra={
                "session_id": self._session_id,
                "stage": self._stage.value,
                "reason": str(error),
            },
        )
        return error


def record_invariant_violations(record: BookingRecord, deposit_rate: float) -> list[str]:
    problems: list[str] = []
    if record.date_range and record.duration_days != record.date_range.days:
        problems.append("duration does not match date range")
    pricing = record.pricing
    if pricing:
        if pricing.duration + record.extension_days != record.duration_days:
            problems.append("pricing duration does not match rental duration")
        if pricing.total != sum(line.total for line in pricing.details.values()):
            problems.append("pricing total does not match its breakdown")
        if covered_days(pricing.details) != pricing.duration:
            problems.append("pricing breakdown does not cover the rental duration")
        if record.total_cost != pricing.total + record.delivery_fee:
            problems.append("total cost does not equal rental plus delivery")
        if record.deposit_amount != calculate_deposit(pricing.total, record.delivery_fee, deposit_rate):
            problems.append("deposit is not the configured share of the total")
    if record.payment_status == PaymentStatus.PAID and not record.booking_id:
        problems.append("paid booking has no booking id")
    if record.delivery_status != DeliveryStatus.PENDING and record.payment_status != PaymentStatus.PAID:
        problems.append("delivery started before payment")
    return problems


def _invalidate_derived(record: BookingRecord) -> BookingRecord:
    return replace(
        record,
        availability=None,
        pricing=None,
        total_cost=0,
        deposit_amount=0,
        quote_accepted=False,
    )
