"""Matching error taxonomy.

Every error carries a human-readable message, a machine-readable code and a
suggestion on how to fix the input. All of them except
``MissingElectricalSpec`` abort the whole match request.
"""

from __future__ import annotations

from typing import Any


class MatchingError(Exception):
    """Base exception for the matching engine."""

    def __init__(
        self,
        message: str,
        code: str = "MATCHING_ERROR",
        status_code: int = 400,
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.suggestion = suggestion
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to API response dict."""
        result: dict[str, Any] = {
            "error": self.code,
            "detail": self.message,
        }
        if self.suggestion:
            result["suggestion"] = self.suggestion
        if self.details:
            result["details"] = self.details
        return result


class ComponentNotFound(MatchingError):
    """Raised when a component id does not resolve."""

    def __init__(self, component: str, component_id: str):
        super().__init__(
            message=f"{component} not found: {component_id}",
            code="COMPONENT_NOT_FOUND",
            status_code=404,
            suggestion=f"Check that the {component.lower()} id is correct",
            details={"component": component, "id": component_id},
        )


class InvalidMass(MatchingError):
    """Raised when a mass input is missing, zero or negative."""

    def __init__(self, field: str, value: float | None):
        super().__init__(
            message=f"Invalid {field}: {value!r} (must be a positive number of grams)",
            code="INVALID_MASS",
            status_code=422,
            suggestion="Correct the component's mass data before matching",
            details={"field": field, "value": value},
        )


class InvalidCompliance(MatchingError):
    """Raised when cartridge compliance is missing, zero or negative."""

    def __init__(self, value: float | None):
        super().__init__(
            message=(
                f"Invalid cartridge compliance: {value!r} "
                "(a positive value in cu/mN is required for resonance calculation)"
            ),
            code="INVALID_COMPLIANCE",
            status_code=422,
            suggestion="Add the cartridge's dynamic compliance at 10 Hz",
            details={"value": value},
        )


class InsufficientReferenceData(MatchingError):
    """Raised when cartridge weight is missing and cannot be estimated."""

    def __init__(self, cartridge_type: str):
        super().__init__(
            message=(
                "Cartridge weight is required for matching, and no "
                f"{cartridge_type} cartridges with known weight exist to estimate it"
            ),
            code="INSUFFICIENT_REFERENCE_DATA",
            status_code=422,
            suggestion="Add the cartridge's weight to the catalog",
            details={"cartridge_type": cartridge_type},
        )


class InvalidComponentCombination(MatchingError):
    """Raised when the selected components cannot be used together."""

    def __init__(self, message: str, suggestion: str | None = None):
        super().__init__(
            message=message,
            code="INVALID_COMBINATION",
            status_code=400,
            suggestion=suggestion,
        )


class MissingElectricalSpec(MatchingError):
    """Raised when SUT matching lacks impedance, voltage or gain data.

    The request handler recovers from this one: SUT analysis is dropped and
    the resonance-only result is still returned.
    """

    def __init__(self, component: str, missing: list[str]):
        super().__init__(
            message=f"{component} is missing electrical data: {', '.join(missing)}",
            code="MISSING_ELECTRICAL_SPEC",
            status_code=422,
            suggestion=f"Add {', '.join(missing)} to the {component.lower()} record",
            details={"component": component, "missing": missing},
        )
        self.component = component
        self.missing = missing
