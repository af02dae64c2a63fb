"""Market validation results."""

from __future__ import annotations

from dataclasses import dataclass, field

NO_ACTIVE_PRICES_REASON = "No active prices found"


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """Outcome of cross-checking one identifier against market data."""

    identifier: str
    is_valid: bool
    active_city_count: int = 0
    max_observed_price: int = 0
    reason: str = NO_ACTIVE_PRICES_REASON

    @classmethod
    def failed(cls, identifier: str, reason: str) -> ValidationResult:
        return cls(identifier=identifier, is_valid=False, reason=reason)


@dataclass(slots=True)
class ValidationOutcome:
    """Results for a whole batch plus whether any lookup gave up."""

    results: list[ValidationResult] = field(default_factory=list[ValidationResult])
    failed_requests: int = 0

    @property
    def failed(self) -> bool:
        return self.failed_requests > 0

    def extend(self, other: ValidationOutcome) -> None:
        self.results.extend(other.results)
        self.failed_requests += other.failed_requests
