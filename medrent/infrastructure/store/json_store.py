from __future__ import annotations

import json
import logging
import threading
import uuid
from datetime import date
from pathlib import Path
from typing import Any

from medrent.application.ports.workflow_store import WorkflowStorePort
from medrent.domain.entities.booking_record import (
    AvailabilityInfo,
    BookingRecord,
    CustomerInfo,
    DateRange,
    DeliveryStatus,
    PaymentStatus,
    ReturnStatus,
)
from medrent.domain.entities.booking_stage import BookingStage
from medrent.domain.entities.pricing import PricingBreakdown, PricingLine, RateTable


class JsonWorkflowStore(WorkflowStorePort):
    def __init__(self, data_dir: str = "./data/workflows") -> None:
        self._data_dir = Path(data_dir)
        self._data_dir.mkdir(parents=True, exist_ok=True)
        self._locks: dict[str, threading.Lock] = {}
        self._lock_lock = threading.Lock()  # guards the locks dict
        self._logger = logging.getLogger(__name__)

    def _get_lock(self, session_id: str) -> threading.Lock:
        """Get or create a lock for a session_id."""
        with self._lock_lock:
            if session_id not in self._locks:
                self._locks[session_id] = threading.Lock()
            return self._locks[session_id]

    def _get_file_path(self, session_id: str) -> Path:
        return self._data_dir / f"{session_id}.json"

    def create_session(self) -> str:
        session_id = uuid.uuid4().hex
        self.save(session_id, BookingStage.BRANCH_SELECTION, BookingRecord())
        return session_id

    def exists(self, session_id: str) -> bool:
        return self._get_file_path(session_id).exists()

    def load(self, session_id: str) -> tuple[BookingStage, BookingRecord]:
        file_path = self._get_file_path(session_id)
        with self._get_lock(session_id):
            if not file_path.exists():
                return BookingStage.BRANCH_SELECTION, BookingRecord()
            try:
                with open(file_path, "r", encoding="utf-8") as f:
                    data = json.load(f)
            except (json.JSONDecodeError, IOError) as e:
                self._logger.error(
                    "Corrupt workflow file, starting over",
                    extra={"session_id": session_id, "reason": str(e)},
                )
                return BookingStage.BRANCH_SELECTION, BookingRecord()
        return BookingStage(data["stage"]), self._deserialize_record(data.get("record", {}))

    def save(self, session_id: str, stage: BookingStage, record: BookingRecord) -> None:
        """Write atomically via a temp file."""
        data = {
            "session_id": session_id,
            "stage": stage.value,
            "record": self._serialize_record(record),
            "version": 1,
        }
        file_path = self._get_file_path(session_id)
        temp_path = file_path.with_suffix(".json.tmp")
        with self._get_lock(session_id):
            try:
                with open(temp_path, "w", encoding="utf-8") as f:
                    json.dump(data, f, indent=2, ensure_ascii=False)
                temp_path.replace(file_path)
            except Exception:
                if temp_path.exists():
                    temp_path.unlink()
                raise

    def _serialize_record(self, record: BookingRecord) -> dict[str, Any]:
        return {
            "branch_id": record.branch_id,
            "category_id": record.category_id,
            "equipment_name": record.equipment_name,
            "rates": self._serialize_rates(record.rates),
            "date_range": (
                {"start": record.date_range.start.isoformat(), "end": record.date_range.end.isoformat()}
                if record.date_range
                else None
            ),
            "duration_days": record.duration_days,
            "availability": (
                {
                    "local_units_free": record.availability.local_units_free,
                    "fulfilling_branch_id": record.availability.fulfilling_branch_id,
                    "alternative_branch_id": record.availability.alternative_branch_id,
                    "alternative_units_free": record.availability.alternative_units_free,
                    "delivery_fee": record.availability.delivery_fee,
                }
                if record.availability
                else None
            ),
            "pricing": self._serialize_pricing(record.pricing),
            "total_cost": record.total_cost,
            "deposit_amount": record.deposit_amount,
            "quote_accepted": record.quote_accepted,
            "customer": (
                {
                    "name": record.customer.name,
                    "phone": record.customer.phone,
                    "email": record.customer.email,
                    "address": record.customer.address,
                    "notes": record.customer.notes,
                }
                if record.customer
                else None
            ),
            "quote_id": record.quote_id,
            "booking_id": record.booking_id,
            "booking_reference": record.booking_reference,
            "reservation_held": record.reservation_held,
            "payment_status": record.payment_status.value,
            "delivery_status": record.delivery_status.value,
            "return_status": record.return_status.value,
            "extension_days": record.extension_days,
            "extension_charges": record.extension_charges,
        }

    def _deserialize_record(self, data: dict[str, Any]) -> BookingRecord:
        date_range = data.get("date_range")
        availability = data.get("availability")
        customer = data.get("customer")
        return BookingRecord(
            branch_id=data.get("branch_id"),
            category_id=data.get("category_id"),
            equipment_name=data.get("equipment_name"),
            rates=self._deserialize_rates(data.get("rates")),
            date_range=(
                DateRange(start=date.fromisoformat(date_range["start"]), end=date.fromisoformat(date_range["end"]))
                if date_range
                else None
            ),
            duration_days=data.get("duration_days", 0),
            availability=AvailabilityInfo(**availability) if availability else None,
            pricing=self._deserialize_pricing(data.get("pricing")),
            total_cost=data.get("total_cost", 0),
            deposit_amount=data.get("deposit_amount", 0),
            quote_accepted=data.get("quote_accepted", False),
            customer=CustomerInfo(**customer) if customer else None,
            quote_id=data.get("quote_id"),
            booking_id=data.get("booking_id"),
            booking_reference=data.get("booking_reference"),
            reservation_held=data.get("reservation_held", False),
            payment_status=PaymentStatus(data.get("payment_status", "pending")),
            delivery_status=DeliveryStatus(data.get("delivery_status", "pending")),
            return_status=ReturnStatus(data.get("return_status", "pending")),
            extension_days=data.get("extension_days", 0),
            extension_charges=data.get("extension_charges", 0),
        )

    def _serialize_rates(self, rates: RateTable | None) -> dict[str, Any] | None:
        if rates is None:
            return None
        return {"daily_rate": rates.daily_rate, "weekly_rate": rates.weekly_rate, "monthly_rate": rates.monthly_rate}

    def _deserialize_rates(self, data: dict[str, Any] | None) -> RateTable | None:
        return RateTable(**data) if data else None

    def _serialize_pricing(self, pricing: PricingBreakdown | None) -> dict[str, Any] | None:
        if pricing is None:
            return None
        return {
            "total": pricing.total,
            "breakdown": pricing.breakdown,
            "duration": pricing.duration,
            "details": {
                unit: {"count": line.count, "rate": line.rate, "total": line.total}
                for unit, line in pricing.details.items()
            },
        }

    def _deserialize_pricing(self, data: dict[str, Any] | None) -> PricingBreakdown | None:
        if not data:
            return None
        return PricingBreakdown(
            total=data["total"],
            breakdown=data["breakdown"],
            duration=data["duration"],
            details={unit: PricingLine(**line) for unit, line in (data.get("details") or {}).items()},
        )
