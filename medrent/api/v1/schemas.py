from datetime import date
from pydantic import BaseModel, Field

from medrent.application.utils.pricing import get_pricing_recommendation
from medrent.domain.entities.booking_record import BookingRecord
from medrent.domain.entities.booking_stage import BookingStage
from medrent.domain.entities.pricing import PricingBreakdown


class RatesSchema(BaseModel):
    daily_rate: int
    weekly_rate: int
    monthly_rate: int


class BranchSchema(BaseModel):
    branch_id: str
    name: str
    location: str
    cross_branch_delivery_fee: int | None = None


class CategorySchema(BaseModel):
    category_id: str
    display_name: str
    rates: RatesSchema


class PricingLineSchema(BaseModel):
    count: int
    rate: int
    total: int


class PricingSchema(BaseModel):
    total: int
    breakdown: str
    duration: int
    details: dict[str, PricingLineSchema] = Field(default_factory=dict)
    recommendation: str

    @classmethod
    def from_breakdown(cls, pricing: PricingBreakdown) -> "PricingSchema":
        return cls(
            total=pricing.total,
            breakdown=pricing.breakdown,
            duration=pricing.duration,
            details={
                unit: PricingLineSchema(count=line.count, rate=line.rate, total=line.total)
                for unit, line in pricing.details.items()
            },
            recommendation=get_pricing_recommendation(pricing.duration),
        )


class SelectBranchRequest(BaseModel):
    branch_id: str | None = None


class SelectEquipmentRequest(BaseModel):
    category_id: str | None = None
    equipment_name: str | None = None


class SelectDatesRequest(BaseModel):
    start_date: date | None = None
    end_date: date | None = None


class CustomerRequest(BaseModel):
    name: str = ""
    phone: str = ""
    email: str = ""
    address: str = ""
    notes: str = ""


class ExtensionRequest(BaseModel):
    new_end_date: date | None = None
    extra_days: int | None = Field(default=None, ge=1)


class OverdueRequest(BaseModel):
    as_of: date


class GoBackRequest(BaseModel):
    stage: BookingStage


class AvailabilitySchema(BaseModel):
    local_units_free: int
    fulfilling_branch_id: str
    cross_branch_booking: bool
    alternative_branch_id: str | None = None
    delivery_fee: int = 0


class CustomerSchema(BaseModel):
    name: str
    phone: str
    email: str
    address: str
    notes: str


class ExtensionOptionSchema(BaseModel):
    days: int
    new_end_date: date
    cost: int


class BookingStateResponse(BaseModel):
    session_id: str
    stage: BookingStage
    branch_id: str | None = None
    category_id: str | None = None
    equipment_name: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    duration_days: int = 0
    availability: AvailabilitySchema | None = None
    pricing: PricingSchema | None = None
    total_cost: int = 0
    deposit_amount: int = 0
    balance_due: int = 0
    quote_accepted: bool = False
    customer: CustomerSchema | None = None
    quote_id: str | None = None
    booking_id: str | None = None
    booking_reference: str | None = None
    payment_status: str
    delivery_status: str
    return_status: str
    extension_charges: int = 0
    extension_options: list[ExtensionOptionSchema] = Field(default_factory=list)

    @classmethod
    def from_record(
        cls,
        session_id: str,
        stage: BookingStage,
        record: BookingRecord,
        extension_options: list[ExtensionOptionSchema] | None = None,
    ) -> "BookingStateResponse":
        availability = record.availability
        customer = record.customer
        return cls(
            session_id=session_id,
            stage=stage,
            branch_id=record.branch_id,
            category_id=record.category_id,
            equipment_name=record.equipment_name,
            start_date=record.date_range.start if record.date_range else None,
            end_date=record.date_range.end if record.date_range else None,
            duration_days=record.duration_days,
            availability=(
                AvailabilitySchema(
                    local_units_free=availability.local_units_free,
                    fulfilling_branch_id=availability.fulfilling_branch_id,
                    cross_branch_booking=availability.cross_branch_booking,
                    alternative_branch_id=availability.alternative_branch_id,
                    delivery_fee=availability.delivery_fee,
                )
                if availability
                else None
            ),
            pricing=PricingSchema.from_breakdown(record.pricing) if record.pricing else None,
            total_cost=record.total_cost,
            deposit_amount=record.deposit_amount,
            balance_due=record.total_cost - record.deposit_amount,
            quote_accepted=record.quote_accepted,
            customer=(
                CustomerSchema(
                    name=customer.name,
                    phone=customer.phone,
                    email=customer.email,
                    address=customer.address,
                    notes=customer.notes,
                )
                if customer
                else None
            ),
            quote_id=record.quote_id,
            booking_id=record.booking_id,
            booking_reference=record.booking_reference,
            payment_status=record.payment_status.value,
            delivery_status=record.delivery_status.value,
            return_status=record.return_status.value,
            extension_charges=record.extension_charges,
            extension_options=extension_options or [],
        )


class ErrorResponse(BaseModel):
    error: str
    detail: str
    field: str | None = None
