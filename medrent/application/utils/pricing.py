from __future__ import annotations

from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from medrent.domain.entities.pricing import Money, PricingBreakdown, PricingLine, RateTable

DAYS_PER_WEEK = 7
DAYS_PER_MONTH = 30

_UNIT_NAMES = {
    "months": ("month", DAYS_PER_MONTH),
    "weeks": ("week", DAYS_PER_WEEK),
    "days": ("day", 1),
}


def days_between(start: date, end: date) -> int:
    return (end - start).days


def calculate_optimal_pricing(start: date, end: date, rates: RateTable) -> PricingBreakdown:
    """
    Cheapest month/week/day decomposition of an inclusive rental span.

    Candidates are evaluated daily-only, then weeks + days, then months + weeks + days.
    A later candidate only replaces the current best when strictly cheaper, so on a
    tie the finer-grained decomposition is kept.
    """
    total_days = days_between(start, end) + 1
    if total_days < 1:
        raise ValueError(f"end date {end} is before start date {start}")

    best = {"days": total_days}
    best_total = _cost(best, rates)

    if total_days >= DAYS_PER_WEEK:
        weeks, rem_days = divmod(total_days, DAYS_PER_WEEK)
        candidate = {"weeks": weeks, "days": rem_days}
        candidate_total = _cost(candidate, rates)
        if candidate_total < best_total:
            best, best_total = candidate, candidate_total

    if total_days >= DAYS_PER_MONTH:
        months, rem = divmod(total_days, DAYS_PER_MONTH)
        weeks, rem_days = divmod(rem, DAYS_PER_WEEK)
        candidate = {"months": months, "weeks": weeks, "days": rem_days}
        candidate_total = _cost(candidate, rates)
        if candidate_total < best_total:
            best, best_total = candidate, candidate_total

    details = {
        unit: PricingLine(count=count, rate=_rate_for(unit, rates), total=count * _rate_for(unit, rates))
        for unit, count in best.items()
        if count > 0
    }
    return PricingBreakdown(
        total=best_total,
        breakdown=format_breakdown(details),
        duration=total_days,
        details=details,
    )


def format_breakdown(details: dict[str, PricingLine], currency: str = "R") -> str:
    parts = []
    for unit in ("months", "weeks", "days"):
        line = details.get(unit)
        if not line:
            continue
        singular, _ = _UNIT_NAMES[unit]
        label = singular if line.count == 1 else f"{singular}s"
        parts.append(f"{line.count} {label} @ {currency}{line.rate}/{singular}")
    return " + ".join(parts)


def get_pricing_recommendation(days: int) -> str:
    if days <= 6:
        return "Daily billing is most cost-effective for short rentals."
    if days <= 29:
        return "Weekly billing provides better value for medium-term rentals."
    return "Monthly billing offers the best savings for long-term rentals."


def calculate_deposit(rental_total: Money, delivery_fee: Money, rate: float = 0.30) -> Money:
    """Deposit rounded half-up to the nearest currency unit."""
    amount = (Decimal(rental_total) + Decimal(delivery_fee)) * Decimal(str(rate))
    return int(amount.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def calculate_extension_cost(current_end: date, new_end: date, rates: RateTable) -> Money:
    additional_days = days_between(current_end, new_end)
    if additional_days < 1:
        raise ValueError("extension must move the end date forward")
    return additional_days * rates.daily_rate


def covered_days(details: dict[str, PricingLine]) -> int:
    return sum(line.count * _UNIT_NAMES[unit][1] for unit, line in details.items())


def _rate_for(unit: str, rates: RateTable) -> Money:
    if unit == "months":
        return rates.monthly_rate
    if unit == "weeks":
        return rates.weekly_rate
    return rates.daily_rate


def _cost(units: dict[str, int], rates: RateTable) -> Money:
    return sum(count * _rate_for(unit, rates) for unit, count in units.items())
