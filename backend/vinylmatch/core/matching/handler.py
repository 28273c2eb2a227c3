"""Match request orchestration.

Resolves the requested components, runs weight estimation, resonance, SUT
matching and aggregation in that order, and assembles the response.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Protocol

import structlog

from vinylmatch.core.metrics import (
    matching_failures_total,
    matching_requests_total,
    resonance_frequency_hz,
)

from .aggregator import aggregate
from .config import MatchingConfig, get_matching_config
from .errors import InvalidComponentCombination, MatchingError, MissingElectricalSpec
from .models import CartridgeInfo, HeadshellSource, PhonoPreampInfo, SUTInfo, TonearmInfo
from .resonance import analyze_resonance
from .results import MatchingResult, SUTMatchingResult
from .schemas import (
    CartridgeSummary,
    MatchedComponents,
    MatcherRequest,
    MatcherResponse,
    PhonoPreampSummary,
    SUTSummary,
    TonearmSummary,
)
from .sut import match_sut
from .weight import CartridgeWeightSource, resolve_cartridge_weight

logger = structlog.get_logger("vinylmatch.matching.handler")


class ComponentResolver(CartridgeWeightSource, Protocol):
    """Storage collaborator; each getter raises ComponentNotFound."""

    async def get_tonearm(self, tonearm_id: str) -> TonearmInfo: ...

    async def get_cartridge(self, cartridge_id: str) -> CartridgeInfo: ...

    async def get_sut(self, sut_id: str) -> SUTInfo: ...

    async def get_phono_preamp(self, phono_preamp_id: str) -> PhonoPreampInfo: ...


def _timestamp() -> str:
    return datetime.now(UTC).isoformat().replace("+00:00", "Z")


class MatchRequestHandler:
    """Runs one match request against a component resolver."""

    def __init__(self, resolver: ComponentResolver, config: MatchingConfig | None = None):
        self.resolver = resolver
        self.config = config or get_matching_config()

    async def handle(self, request: MatcherRequest) -> MatcherResponse:
        try:
            response = await self._handle(request)
        except MatchingError as exc:
            matching_failures_total.labels(code=exc.code).inc()
            logger.info(
                "Match request failed",
                code=exc.code,
                error=exc.message,
                tonearm_id=request.tonearm_id,
                cartridge_id=request.cartridge_id,
            )
            raise

        matching_requests_total.labels(
            compatibility=response.matching.overall_compatibility.value
        ).inc()
        return response

    async def _handle(self, request: MatcherRequest) -> MatcherResponse:
        tonearm = await self.resolver.get_tonearm(request.tonearm_id)
        cartridge = await self.resolver.get_cartridge(request.cartridge_id)
        sut = await self.resolver.get_sut(request.sut_id) if request.sut_id else None
        phono_preamp = (
            await self.resolver.get_phono_preamp(request.phono_preamp_id)
            if request.phono_preamp_id
            else None
        )

        if sut is not None and not cartridge.is_moving_coil:
            raise InvalidComponentCombination(
                f"A step-up transformer is not used with {cartridge.cartridge_type} cartridges",
                suggestion="Remove the SUT selection or choose an MC cartridge",
            )

        weight = await resolve_cartridge_weight(cartridge, self.resolver, self.config)
        resonance = analyze_resonance(
            tonearm,
            weight.weight,
            cartridge.compliance,
            request.headshell_weight,
            self.config,
        )
        resonance_frequency_hz.observe(resonance.resonance_frequency)

        notes: list[str] = []
        if weight.estimated and weight.info is not None:
            notes.append(
                f"Cartridge weight {weight.weight:g} g is estimated ({weight.info.source})."
            )

        sut_result: SUTMatchingResult | None = None
        try:
            sut_result = match_sut(cartridge, sut, phono_preamp, self.config)
        except MissingElectricalSpec as exc:
            matching_failures_total.labels(code=exc.code).inc()
            logger.warning(
                "SUT analysis skipped",
                sut_id=request.sut_id,
                cartridge_id=cartridge.id,
                missing=exc.missing,
                component=exc.component,
            )
            notes.append(f"SUT analysis skipped: {exc.message}.")

        overall, analysis = aggregate(resonance, sut_result, notes)

        logger.info(
            "Match calculated",
            tonearm_id=tonearm.id,
            tonearm=tonearm.display_name,
            cartridge_id=cartridge.id,
            cartridge=cartridge.display_name,
            sut_id=sut.id if sut else None,
            resonance_hz=round(resonance.resonance_frequency, 2),
            compatibility=overall.value,
            weight_estimated=weight.estimated,
        )

        headshell_weight = (
            None
            if resonance.headshell_source == HeadshellSource.NONE.value
            else resonance.headshell_weight
        )
        return MatcherResponse(
            components=MatchedComponents(
                tonearm=TonearmSummary.from_info(tonearm, headshell_weight),
                cartridge=CartridgeSummary.from_info(cartridge, weight),
                sut=SUTSummary.from_info(sut) if sut else None,
                phono_preamp=PhonoPreampSummary.from_info(phono_preamp) if phono_preamp else None,
            ),
            matching=MatchingResult(
                resonance=resonance,
                sut=sut_result,
                overall_compatibility=overall,
                detailed_analysis=analysis,
            ),
            timestamp=_timestamp(),
        )


async def calculate_matching(
    request: MatcherRequest,
    resolver: ComponentResolver,
    config: MatchingConfig | None = None,
) -> MatcherResponse:
    """Compute the compatibility of the requested components."""
    return await MatchRequestHandler(resolver, config).handle(request)
