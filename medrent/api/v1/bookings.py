from __future__ import annotations

import logging
from datetime import timedelta
from typing import Callable

from fastapi import APIRouter, Depends, HTTPException

from medrent.api.v1.schemas import (
    BookingStateResponse,
    CustomerRequest,
    ExtensionOptionSchema,
    ExtensionRequest,
    GoBackRequest,
    OverdueRequest,
    SelectBranchRequest,
    SelectDatesRequest,
    SelectEquipmentRequest,
)
from medrent.application.exceptions import (
    AvailabilityExhausted,
    ExternalServiceError,
    InvariantViolation,
    ValidationError,
)
from medrent.application.use_cases.booking_session import BookingSessionUseCase, UnknownSessionError
from medrent.application.use_cases.booking_workflow import BookingWorkflow
from medrent.core.config import settings
from medrent.domain.entities.booking_record import CustomerInfo
from medrent.domain.entities.booking_stage import BookingStage
from medrent.wiring.dependencies import get_booking_session_use_case

router = APIRouter()
logger = logging.getLogger(__name__)

_EXTENSION_STAGES = (BookingStage.EXTENSION_OFFER,)


def _state(session_id: str, workflow: BookingWorkflow) -> BookingStateResponse:
    options = []
    if workflow.stage in _EXTENSION_STAGES:
        options = [
            ExtensionOptionSchema(days=o.days, new_end_date=o.new_end, cost=o.cost)
            for o in workflow.extension_options(settings.EXTENSION_OPTIONS_DAYS)
        ]
    return BookingStateResponse.from_record(session_id, workflow.stage, workflow.record, options)


def _run(
    uc: BookingSessionUseCase,
    session_id: str,
    operation: Callable[[BookingWorkflow], object],
) -> BookingStateResponse:
    try:
        workflow, _ = uc.run(session_id, operation)
    except UnknownSessionError:
        raise HTTPException(status_code=404, detail="Booking session not found")
    except ValidationError as e:
        raise HTTPException(
            status_code=422,
            detail={"error": "validation_error", "field": e.field, "detail": e.message},
        )
    except AvailabilityExhausted as e:
        raise HTTPException(
            status_code=409,
            detail={"error": "availability_exhausted", "detail": str(e), "branches_checked": e.branches_checked},
        )
    except ExternalServiceError as e:
        raise HTTPException(status_code=502, detail={"error": "external_service_error", "detail": str(e)})
    except InvariantViolation as e:
        logger.error("Invariant violation", extra={"session_id": session_id, "reason": str(e)})
        raise HTTPException(status_code=409, detail={"error": "invalid_transition", "detail": str(e)})
    return _state(session_id, workflow)


@router.post("/bookings", response_model=BookingStateResponse, status_code=201)
def start_booking(uc: BookingSessionUseCase = Depends(get_booking_session_use_case)):
    session_id = uc.start()
    return _state(session_id, uc.workflow(session_id))


@router.get("/bookings/{session_id}", response_model=BookingStateResponse)
def get_booking(session_id: str, uc: BookingSessionUseCase = Depends(get_booking_session_use_case)):
    try:
        workflow = uc.workflow(session_id)
    except UnknownSessionError:
        raise HTTPException(status_code=404, detail="Booking session not found")
    return _state(session_id, workflow)


@router.post("/bookings/{session_id}/branch", response_model=BookingStateResponse)
def select_branch(
    session_id: str,
    req: SelectBranchRequest,
    uc: BookingSessionUseCase = Depends(get_booking_session_use_case),
):
    return _run(uc, session_id, lambda wf: wf.select_branch(req.branch_id))


@router.post("/bookings/{session_id}/equipment", response_model=BookingStateResponse)
def select_equipment(
    session_id: str,
    req: SelectEquipmentRequest,
    uc: BookingSessionUseCase = Depends(get_booking_session_use_case),
):
    return _run(uc, session_id, lambda wf: wf.select_equipment(req.category_id, req.equipment_name))


@router.post("/bookings/{session_id}/dates", response_model=BookingStateResponse)
def select_dates(
    session_id: str,
    req: SelectDatesRequest,
    uc: BookingSessionUseCase = Depends(get_booking_session_use_case),
):
    return _run(uc, session_id, lambda wf: wf.select_dates(req.start_date, req.end_date))


@router.post("/bookings/{session_id}/availability", response_model=BookingStateResponse)
def check_availability(session_id: str, uc: BookingSessionUseCase = Depends(get_booking_session_use_case)):
    return _run(uc, session_id, lambda wf: wf.check_availability())


@router.post("/bookings/{session_id}/quote/accept", response_model=BookingStateResponse)
def accept_quote(session_id: str, uc: BookingSessionUseCase = Depends(get_booking_session_use_case)):
    return _run(uc, session_id, lambda wf: wf.accept_quote())


@router.post("/bookings/{session_id}/customer", response_model=BookingStateResponse)
def submit_customer(
    session_id: str,
    req: CustomerRequest,
    uc: BookingSessionUseCase = Depends(get_booking_session_use_case),
):
    customer = CustomerInfo(**req.model_dump())
    return _run(uc, session_id, lambda wf: wf.submit_customer_info(customer))


@router.post("/bookings/{session_id}/submit", response_model=BookingStateResponse)
def accept_submitted_quote(session_id: str, uc: BookingSessionUseCase = Depends(get_booking_session_use_case)):
    return _run(uc, session_id, lambda wf: wf.accept_submitted_quote())


@router.post("/bookings/{session_id}/payment", response_model=BookingStateResponse)
def confirm_payment(session_id: str, uc: BookingSessionUseCase = Depends(get_booking_session_use_case)):
    return _run(uc, session_id, lambda wf: wf.confirm_payment())


@router.post("/bookings/{session_id}/payment/failed", response_model=BookingStateResponse)
def payment_failed(session_id: str, uc: BookingSessionUseCase = Depends(get_booking_session_use_case)):
    return _run(uc, session_id, lambda wf: wf.record_payment_failure())


@router.post("/bookings/{session_id}/delivery/dispatch", response_model=BookingStateResponse)
def dispatch_delivery(session_id: str, uc: BookingSessionUseCase = Depends(get_booking_session_use_case)):
    return _run(uc, session_id, lambda wf: wf.dispatch_delivery())


@router.post("/bookings/{session_id}/delivery/complete", response_model=BookingStateResponse)
def confirm_delivery(session_id: str, uc: BookingSessionUseCase = Depends(get_booking_session_use_case)):
    return _run(uc, session_id, lambda wf: wf.confirm_delivery())


@router.post("/bookings/{session_id}/extension/offer", response_model=BookingStateResponse)
def offer_extension(session_id: str, uc: BookingSessionUseCase = Depends(get_booking_session_use_case)):
    return _run(uc, session_id, lambda wf: wf.offer_extension())


@router.post("/bookings/{session_id}/extension/accept", response_model=BookingStateResponse)
def accept_extension(
    session_id: str,
    req: ExtensionRequest,
    uc: BookingSessionUseCase = Depends(get_booking_session_use_case),
):
    def extend(wf: BookingWorkflow):
        new_end = req.new_end_date
        if new_end is None and req.extra_days and wf.record.date_range:
            new_end = wf.record.date_range.end + timedelta(days=req.extra_days)
        return wf.accept_extension(new_end)

    return _run(uc, session_id, extend)


@router.post("/bookings/{session_id}/extension/decline", response_model=BookingStateResponse)
def decline_extension(session_id: str, uc: BookingSessionUseCase = Depends(get_booking_session_use_case)):
    return _run(uc, session_id, lambda wf: wf.decline_extension())


@router.post("/bookings/{session_id}/return/remind", response_model=BookingStateResponse)
def remind_return(session_id: str, uc: BookingSessionUseCase = Depends(get_booking_session_use_case)):
    return _run(uc, session_id, lambda wf: wf.remind_return())


@router.post("/bookings/{session_id}/return/confirm", response_model=BookingStateResponse)
def confirm_return(session_id: str, uc: BookingSessionUseCase = Depends(get_booking_session_use_case)):
    return _run(uc, session_id, lambda wf: wf.confirm_return())


@router.post("/bookings/{session_id}/overdue", response_model=BookingStateResponse)
def mark_overdue(
    session_id: str,
    req: OverdueRequest,
    uc: BookingSessionUseCase = Depends(get_booking_session_use_case),
):
    return _run(uc, session_id, lambda wf: wf.mark_overdue(req.as_of))


@router.post("/bookings/{session_id}/back", response_model=BookingStateResponse)
def go_back(
    session_id: str,
    req: GoBackRequest,
    uc: BookingSessionUseCase = Depends(get_booking_session_use_case),
):
    return _run(uc, session_id, lambda wf: wf.go_back(req.stage))


@router.post("/bookings/{session_id}/cancel", response_model=BookingStateResponse)
def cancel_booking(session_id: str, uc: BookingSessionUseCase = Depends(get_booking_session_use_case)):
    return _run(uc, session_id, lambda wf: wf.cancel())
