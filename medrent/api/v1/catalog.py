from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query

from medrent.api.v1.schemas import BranchSchema, CategorySchema, PricingSchema, RatesSchema
from medrent.application.exceptions import ExternalServiceError
from medrent.application.ports.category_catalog import CategoryCatalogPort
from medrent.application.utils.pricing import calculate_optimal_pricing
from medrent.core.config import settings
from medrent.wiring.dependencies import get_category_catalog

router = APIRouter()


@router.get("/branches", response_model=list[BranchSchema])
def list_branches(catalog: CategoryCatalogPort = Depends(get_category_catalog)):
    try:
        branches = catalog.list_branches()
    except ExternalServiceError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return [
        BranchSchema(
            branch_id=b.branch_id,
            name=b.name,
            location=b.location,
            cross_branch_delivery_fee=b.cross_branch_delivery_fee,
        )
        for b in branches
    ]


@router.get("/categories", response_model=list[CategorySchema])
def list_categories(catalog: CategoryCatalogPort = Depends(get_category_catalog)):
    try:
        categories = catalog.list_categories()
    except ExternalServiceError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return [
        CategorySchema(
            category_id=c.category_id,
            display_name=c.display_name,
            rates=RatesSchema(
                daily_rate=c.rates.daily_rate,
                weekly_rate=c.rates.weekly_rate,
                monthly_rate=c.rates.monthly_rate,
            ),
        )
        for c in categories
    ]


@router.get("/pricing/quote", response_model=PricingSchema)
def pricing_quote(
    category_id: str = Query(...),
    start_date: date = Query(...),
    end_date: date = Query(...),
    catalog: CategoryCatalogPort = Depends(get_category_catalog),
):
    """Stateless price check used by the equipment browser and admin screens."""
    if end_date < start_date:
        raise HTTPException(status_code=422, detail="end_date cannot be before start_date")
    if (end_date - start_date).days + 1 > settings.MAX_RENTAL_DAYS:
        raise HTTPException(status_code=422, detail=f"Rentals are limited to {settings.MAX_RENTAL_DAYS} days")
    try:
        rates = catalog.get_rates(category_id)
    except ExternalServiceError as e:
        raise HTTPException(status_code=502, detail=str(e))
    if rates is None:
        raise HTTPException(status_code=404, detail=f"Unknown equipment category '{category_id}'")
    return PricingSchema.from_breakdown(calculate_optimal_pricing(start_date, end_date, rates))
