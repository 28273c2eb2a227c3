"""Cartridge weight estimation.

When a cartridge record has no weight, the weight is estimated from other
cartridges of the same type. The population is chosen in two tiers:

1. same type, compliance within +/- ``compliance_band_ratio`` of the cartridge's
2. same type, any compliance (only if tier 1 is empty)

The estimate is the mean of at most ``reference_population_limit`` weights,
rounded to 0.1 g, and is always flagged as estimated.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

import structlog

from vinylmatch.core.metrics import weight_estimations_total

from .config import MatchingConfig, get_matching_config
from .errors import InsufficientReferenceData
from .models import CartridgeInfo, ComplianceBand
from .results import WeightEstimate, WeightEstimationInfo

logger = structlog.get_logger("vinylmatch.matching.weight")


class CartridgeWeightSource(Protocol):
    async def query_cartridge_weights(
        self,
        cartridge_type: str,
        compliance_band: ComplianceBand | None,
        limit: int,
    ) -> list[float]: ...


def compliance_band_for(
    compliance: float | None,
    config: MatchingConfig | None = None,
) -> ComplianceBand | None:
    """Return the similarity band around a compliance value, if it is known."""
    if config is None:
        config = get_matching_config()

    if compliance is None or compliance <= 0:
        return None

    spread = compliance * config.compliance_band_ratio
    return ComplianceBand(low=round(compliance - spread, 3), high=round(compliance + spread, 3))


def describe_population(cartridge_type: str, band: ComplianceBand | None, count: int) -> str:
    """Human-readable description of a reference population."""
    if band is None:
        return f"Mean of {count} {cartridge_type} cartridges with known weight"
    return (
        f"Mean of {count} {cartridge_type} cartridges with compliance "
        f"{band.low:g}-{band.high:g} cu/mN"
    )


def estimate_from_population(
    cartridge_type: str,
    weights: Sequence[float],
    band: ComplianceBand | None = None,
) -> WeightEstimate:
    """Estimate a weight from a reference population snapshot.

    Raises:
        InsufficientReferenceData: If the population has no usable weights.
    """
    usable = [w for w in weights if w is not None and w > 0]
    if not usable:
        raise InsufficientReferenceData(cartridge_type)

    mean = sum(usable) / len(usable)
    return WeightEstimate(
        weight=round(mean, 1),
        estimated=True,
        info=WeightEstimationInfo(
            source=describe_population(cartridge_type, band, len(usable)),
            count=len(usable),
        ),
    )


def known_weight(cartridge: CartridgeInfo) -> WeightEstimate | None:
    """Return the cartridge's own weight, or None when it has to be estimated."""
    if cartridge.weight is not None and cartridge.weight > 0:
        return WeightEstimate(weight=cartridge.weight, estimated=False)
    return None


async def resolve_cartridge_weight(
    cartridge: CartridgeInfo,
    source: CartridgeWeightSource,
    config: MatchingConfig | None = None,
) -> WeightEstimate:
    """Return the weight to use for a cartridge, estimating it if needed.

    Args:
        cartridge: Resolved cartridge record
        source: Provider of reference cartridge weights
        config: Matching configuration (if None, loads from settings file)

    Returns:
        WeightEstimate; ``estimated`` is False when the record had a weight

    Raises:
        InsufficientReferenceData: If no reference cartridges are available
    """
    if config is None:
        config = get_matching_config()

    own = known_weight(cartridge)
    if own is not None:
        return own

    cartridge_type = cartridge.cartridge_type.upper()
    band = compliance_band_for(cartridge.compliance, config)

    tiers: list[tuple[str, ComplianceBand | None]] = []
    if band is not None:
        tiers.append(("compliance_band", band))
    tiers.append(("type", None))

    for tier, tier_band in tiers:
        weights = await source.query_cartridge_weights(
            cartridge_type, tier_band, config.reference_population_limit
        )
        if not weights:
            logger.debug(
                "No reference cartridges in tier",
                cartridge_id=cartridge.id,
                tier=tier,
                cartridge_type=cartridge_type,
            )
            continue

        estimate = estimate_from_population(cartridge_type, weights, tier_band)
        weight_estimations_total.labels(tier=tier).inc()
        logger.info(
            "Estimated cartridge weight",
            cartridge_id=cartridge.id,
            tier=tier,
            weight=estimate.weight,
            count=estimate.info.count if estimate.info else 0,
        )
        return estimate

    weight_estimations_total.labels(tier="failed").inc()
    raise InsufficientReferenceData(cartridge_type)
