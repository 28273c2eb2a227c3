"""Result models produced by the matching engine.

Serialized with camelCase keys, which is the shape the catalog frontend reads.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Immutable model serialized with camelCase aliases."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class Compatibility(str, Enum):
    """Overall verdict, best first."""

    EXCELLENT = "Excellent"
    GOOD = "Good"
    FAIR = "Fair"
    POOR = "Poor"


class WeightEstimationInfo(CamelModel):
    source: str = Field(..., description="Reference population used for the estimate")
    count: int = Field(..., ge=1, description="Number of reference cartridges averaged")


class WeightEstimate(CamelModel):
    """Cartridge weight used for matching and its provenance."""

    weight: float
    estimated: bool = False
    info: WeightEstimationInfo | None = None


class ResonanceResult(CamelModel):
    total_mass: float = Field(..., description="Arm + cartridge + headshell mass (g)")
    resonance_frequency: float = Field(..., description="Arm/cartridge resonance (Hz)")
    is_optimal: bool
    verdict: str
    headshell_weight: float = Field(..., description="Headshell mass included in total (g)")
    headshell_source: str
    recommendation: str


class SUTMatchingResult(CamelModel):
    cartridge_load_impedance: float = Field(..., description="Impedance seen by cartridge (ohms)")
    cartridge_internal_impedance: float
    recommended_min_load: float
    output_voltage: float = Field(..., description="Voltage delivered to the MM input (mV)")
    voltage_gain: float = Field(..., description="Voltage gain as a ratio")
    voltage_gain_db: float
    turns_ratio: float
    is_load_optimal: bool
    is_voltage_optimal: bool
    load_verdict: str
    voltage_verdict: str
    recommendation: str


class MatchingResult(CamelModel):
    resonance: ResonanceResult
    sut: SUTMatchingResult | None = None
    overall_compatibility: Compatibility
    detailed_analysis: str
