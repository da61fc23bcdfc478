from __future__ import annotations

import logging
from datetime import date
from typing import Any

from medrent.application.exceptions import ExternalServiceError
from medrent.application.ports.booking_repository import BookingRepositoryPort
from medrent.domain.entities.booking_record import (
    AvailabilityInfo,
    BookingRecord,
    CustomerInfo,
    DateRange,
    DeliveryStatus,
    PaymentStatus,
    ReturnStatus,
)
from medrent.infrastructure.backend.supabase_client import SupabaseClient


class SupabaseBookingRepository(BookingRepositoryPort):
    """Stores finalized bookings in the `bookings` table, upserting on quote_id."""

    def __init__(self, client: SupabaseClient) -> None:
        self._client = client
        self._logger = logging.getLogger(__name__)

    def commit_booking(self, record: BookingRecord) -> str:
        if not record.quote_id:
            raise ValueError("Only submitted quotes can be committed")
        row = self._client.upsert("commit_booking", "bookings", booking_row(record), on_conflict="quote_id")
        reference = row.get("booking_reference")
        if not reference:
            raise ExternalServiceError("commit_booking", "backend returned no booking reference")
        self._logger.info(
            "Booking committed",
            extra={"booking_id": record.booking_id, "quote_id": record.quote_id, "reason": reference},
        )
        return str(reference)

    def get_booking(self, booking_reference: str) -> BookingRecord | None:
        rows = self._client.select(
            "get_booking", "bookings", {"select": "*", "booking_reference": f"eq.{booking_reference}"}
        )
        return record_from_row(rows[0]) if rows else None


def booking_row(record: BookingRecord) -> dict[str, Any]:
    customer = record.customer or CustomerInfo()
    return {
        "quote_id": record.quote_id,
        "booking_id": record.booking_id,
        "branch": record.branch_id,
        "fulfilling_branch": record.fulfilling_branch_id,
        "cross_branch_booking": record.cross_branch_booking,
        "equipment_category": record.category_id,
        "equipment_name": record.equipment_name,
        "start_date": record.date_range.start.isoformat() if record.date_range else None,
        "end_date": record.date_range.end.isoformat() if record.date_range else None,
        "duration_days": record.duration_days,
        "pricing_breakdown": record.pricing.breakdown if record.pricing else None,
        "rental_cost": record.pricing.total if record.pricing else 0,
        "delivery_fee": record.delivery_fee,
        "total_cost": record.total_cost,
        "deposit": record.deposit_amount,
        "customer_name": customer.name,
        "customer_phone": customer.phone,
        "customer_email": customer.email,
        "delivery_address": customer.address,
        "notes": customer.notes,
        "payment_status": record.payment_status.value,
        "delivery_status": record.delivery_status.value,
        "return_status": record.return_status.value,
    }


def record_from_row(row: dict[str, Any]) -> BookingRecord:
    """Rebuild the committed view of a booking. Pricing details are not stored row-side."""
    start, end = row.get("start_date"), row.get("end_date")
    date_range = DateRange(date.fromisoformat(start), date.fromisoformat(end)) if start and end else None
    fulfilling = row.get("fulfilling_branch") or row.get("branch")
    cross_branch = bool(row.get("cross_branch_booking"))
    return BookingRecord(
        branch_id=row.get("branch"),
        category_id=row.get("equipment_category"),
        equipment_name=row.get("equipment_name"),
        date_range=date_range,
        duration_days=row.get("duration_days") or (date_range.days if date_range else 0),
        availability=(
            AvailabilityInfo(
                local_units_free=0 if cross_branch else 1,
                fulfilling_branch_id=fulfilling,
                alternative_branch_id=fulfilling if cross_branch else None,
                delivery_fee=row.get("delivery_fee") or 0,
            )
            if fulfilling
            else None
        ),
        total_cost=row.get("total_cost") or 0,
        deposit_amount=row.get("deposit") or 0,
        quote_accepted=True,
        customer=CustomerInfo(
            name=row.get("customer_name") or "",
            phone=row.get("customer_phone") or "",
            email=row.get("customer_email") or "",
            address=row.get("delivery_address") or "",
            notes=row.get("notes") or "",
        ),
        quote_id=row.get("quote_id"),
        booking_id=row.get("booking_id"),
        booking_reference=row.get("booking_reference"),
        payment_status=PaymentStatus(row.get("payment_status") or "pending"),
        delivery_status=DeliveryStatus(row.get("delivery_status") or "pending"),
        return_status=ReturnStatus(row.get("return_status") or "pending"),
    )
