from __future__ import annotations

from dataclasses import dataclass, field

Money = int


@dataclass(frozen=True)
class RateTable:
    daily_rate: Money
    weekly_rate: Money
    monthly_rate: Money


@dataclass(frozen=True)
class PricingLine:
    count: int
    rate: Money
    total: Money


@dataclass(frozen=True)
class PricingBreakdown:
    total: Money
    breakdown: str
    duration: int
    # keyed by "months" / "weeks" / "days", only units actually billed
    details: dict[str, PricingLine] = field(default_factory=dict)

    def units(self) -> dict[str, int]:
        return {unit: line.count for unit, line in self.details.items()}
