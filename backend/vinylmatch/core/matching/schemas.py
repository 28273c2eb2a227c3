"""Request/response models for the matcher endpoint."""

from __future__ import annotations

from pydantic import Field

from .models import CartridgeInfo, PhonoPreampInfo, SUTInfo, TonearmInfo
from .results import CamelModel, MatchingResult, WeightEstimate, WeightEstimationInfo


class MatcherRequest(CamelModel):
    """Components to match, by catalog id."""

    tonearm_id: str = Field(..., min_length=1, description="Tonearm id")
    cartridge_id: str = Field(..., min_length=1, description="Cartridge id")
    sut_id: str | None = Field(default=None, min_length=1, description="Optional SUT id")
    phono_preamp_id: str | None = Field(
        default=None, min_length=1, description="Optional phono preamp id"
    )
    headshell_weight: float | None = Field(
        default=None,
        ge=0,
        le=20,
        description="Headshell weight override in grams (takes precedence over the tonearm record)",
    )


class ComponentSummary(CamelModel):
    id: str
    brand: str
    model: str
    image_url: str | None = None


class TonearmSummary(ComponentSummary):
    effective_mass: float
    effective_length: float | None = None
    arm_type: str | None = None
    headshell_type: str | None = None
    headshell_weight: float | None = None

    @classmethod
    def from_info(cls, tonearm: TonearmInfo, headshell_weight: float | None) -> TonearmSummary:
        return cls(
            id=tonearm.id,
            brand=tonearm.brand,
            model=tonearm.model,
            image_url=tonearm.image_url,
            effective_mass=tonearm.effective_mass,
            effective_length=tonearm.effective_length,
            arm_type=tonearm.arm_type,
            headshell_type=tonearm.headshell_type,
            headshell_weight=headshell_weight,
        )


class CartridgeSummary(ComponentSummary):
    type: str
    compliance: float
    weight: float
    weight_estimated: bool = False
    weight_estimation_info: WeightEstimationInfo | None = None
    output_voltage: float | None = None

    @classmethod
    def from_info(cls, cartridge: CartridgeInfo, weight: WeightEstimate) -> CartridgeSummary:
        return cls(
            id=cartridge.id,
            brand=cartridge.brand,
            model=cartridge.model,
            image_url=cartridge.image_url,
            type=cartridge.cartridge_type,
            compliance=cartridge.compliance,
            weight=weight.weight,
            weight_estimated=weight.estimated,
            weight_estimation_info=weight.info if weight.estimated else None,
            output_voltage=cartridge.output_voltage,
        )


class SUTSummary(ComponentSummary):
    gain_ratio: str | None = None
    gain_db: float | None = None

    @classmethod
    def from_info(cls, sut: SUTInfo) -> SUTSummary:
        return cls(
            id=sut.id,
            brand=sut.brand,
            model=sut.model,
            image_url=sut.image_url,
            gain_ratio=sut.gain_ratio,
            gain_db=sut.gain_db,
        )


class PhonoPreampSummary(ComponentSummary):
    preamp_type: str | None = None

    @classmethod
    def from_info(cls, preamp: PhonoPreampInfo) -> PhonoPreampSummary:
        return cls(
            id=preamp.id,
            brand=preamp.brand,
            model=preamp.model,
            image_url=preamp.image_url,
            preamp_type=preamp.preamp_type,
        )


class MatchedComponents(CamelModel):
    tonearm: TonearmSummary
    cartridge: CartridgeSummary
    sut: SUTSummary | None = None
    phono_preamp: PhonoPreampSummary | None = None


class MatcherResponse(CamelModel):
    components: MatchedComponents
    matching: MatchingResult
    timestamp: str = Field(..., description="ISO-8601 UTC time the match was computed")
