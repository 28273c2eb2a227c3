"""Tonearm/cartridge resonance analysis.

The arm's effective mass, the cartridge and the headshell form a spring-mass
system with the cartridge suspension as the spring:

    f = 1000 / (2 * pi * sqrt(M * C))

with M in grams and C in cu/mN (10^-6 cm/dyne), giving f in Hz.
"""

from __future__ import annotations

import math
from enum import Enum

import structlog

from .config import MatchingConfig, get_matching_config
from .errors import InvalidCompliance, InvalidMass
from .models import HasEffectiveMass, HeadshellSource
from .results import ResonanceResult

logger = structlog.get_logger("vinylmatch.matching.resonance")


class ResonanceVerdict(str, Enum):
    TOO_LOW = "too_low"
    BORDERLINE_LOW = "borderline_low"
    OPTIMAL_LOW_EDGE = "optimal_low_edge"
    OPTIMAL = "optimal"
    OPTIMAL_HIGH_EDGE = "optimal_high_edge"
    BORDERLINE_HIGH = "borderline_high"
    TOO_HIGH = "too_high"

    @property
    def is_optimal(self) -> bool:
        return self in (
            ResonanceVerdict.OPTIMAL_LOW_EDGE,
            ResonanceVerdict.OPTIMAL,
            ResonanceVerdict.OPTIMAL_HIGH_EDGE,
        )

    @property
    def severity(self) -> int:
        """0 = in band, 1 = just outside the band, 2 = well outside it."""
        if self.is_optimal:
            return 0
        if self in (ResonanceVerdict.BORDERLINE_LOW, ResonanceVerdict.BORDERLINE_HIGH):
            return 1
        return 2


_RECOMMENDATIONS: dict[ResonanceVerdict, str] = {
    ResonanceVerdict.TOO_LOW: (
        "Resonance at {freq:.1f} Hz is too low. It overlaps record warps and footfall, "
        "so expect woolly bass, tonearm pumping and possible mistracking. "
        "Use a lighter tonearm or a lower-compliance cartridge."
    ),
    ResonanceVerdict.BORDERLINE_LOW: (
        "Resonance at {freq:.1f} Hz is slightly below the {low:g}-{high:g} Hz band. "
        "Warped records may excite it; a lighter headshell or a slightly "
        "lower-compliance cartridge would bring it into range."
    ),
    ResonanceVerdict.OPTIMAL_LOW_EDGE: (
        "Resonance at {freq:.1f} Hz is within the {low:g}-{high:g} Hz band, "
        "but borderline near the lower edge. Avoid adding headshell mass."
    ),
    ResonanceVerdict.OPTIMAL: (
        "Resonance at {freq:.1f} Hz is within the optimal {low:g}-{high:g} Hz band. "
        "The tonearm and cartridge are well matched."
    ),
    ResonanceVerdict.OPTIMAL_HIGH_EDGE: (
        "Resonance at {freq:.1f} Hz is within the {low:g}-{high:g} Hz band, "
        "but borderline near the upper edge. A slightly heavier headshell would add margin."
    ),
    ResonanceVerdict.BORDERLINE_HIGH: (
        "Resonance at {freq:.1f} Hz is slightly above the {low:g}-{high:g} Hz band. "
        "A heavier headshell or added mass would bring it into range."
    ),
    ResonanceVerdict.TOO_HIGH: (
        "Resonance at {freq:.1f} Hz is too high. It reaches into the audible range, "
        "thinning the tonal balance and reducing tracking margin. "
        "Use a heavier tonearm or a higher-compliance cartridge."
    ),
}


def resonance_frequency(total_mass: float, compliance: float) -> float:
    """Resonance frequency in Hz for a total mass (g) and compliance (cu/mN)."""
    if total_mass <= 0:
        raise InvalidMass("total mass", total_mass)
    if compliance <= 0:
        raise InvalidCompliance(compliance)
    return 1000 / (2 * math.pi * math.sqrt(total_mass * compliance))


def classify_resonance(
    frequency: float,
    config: MatchingConfig | None = None,
) -> ResonanceVerdict:
    """Map a resonance frequency onto a verdict using the configured band."""
    if config is None:
        config = get_matching_config()

    low = config.resonance_min_hz
    high = config.resonance_max_hz

    if frequency < low - config.resonance_borderline_margin_hz:
        return ResonanceVerdict.TOO_LOW
    if frequency < low:
        return ResonanceVerdict.BORDERLINE_LOW
    if frequency > high + config.resonance_borderline_margin_hz:
        return ResonanceVerdict.TOO_HIGH
    if frequency > high:
        return ResonanceVerdict.BORDERLINE_HIGH
    if frequency < low + config.resonance_edge_margin_hz:
        return ResonanceVerdict.OPTIMAL_LOW_EDGE
    if frequency > high - config.resonance_edge_margin_hz:
        return ResonanceVerdict.OPTIMAL_HIGH_EDGE
    return ResonanceVerdict.OPTIMAL


def resonance_recommendation(
    verdict: ResonanceVerdict,
    frequency: float,
    config: MatchingConfig | None = None,
) -> str:
    if config is None:
        config = get_matching_config()

    return _RECOMMENDATIONS[verdict].format(
        freq=frequency,
        low=config.resonance_min_hz,
        high=config.resonance_max_hz,
    )


def select_headshell_weight(
    tonearm: HasEffectiveMass,
    override: float | None,
) -> tuple[float, HeadshellSource]:
    """Pick the headshell mass: request override, then tonearm record, then none."""
    if override is not None:
        if override < 0:
            raise InvalidMass("headshell weight", override)
        return override, HeadshellSource.REQUEST
    if tonearm.headshell_weight is not None:
        if tonearm.headshell_weight < 0:
            raise InvalidMass("tonearm headshell weight", tonearm.headshell_weight)
        return tonearm.headshell_weight, HeadshellSource.TONEARM
    return 0.0, HeadshellSource.NONE


def analyze_resonance(
    tonearm: HasEffectiveMass,
    cartridge_weight: float,
    compliance: float | None,
    headshell_weight_override: float | None = None,
    config: MatchingConfig | None = None,
) -> ResonanceResult:
    """Compute and classify the tonearm/cartridge resonance.

    Args:
        tonearm: Tonearm record (effective mass and optional headshell weight)
        cartridge_weight: Cartridge weight in grams (measured or estimated)
        compliance: Cartridge dynamic compliance in cu/mN
        headshell_weight_override: Request-level headshell weight; takes
            precedence over the tonearm record
        config: Matching configuration (if None, loads from settings file)

    Returns:
        ResonanceResult

    Raises:
        InvalidMass: If any mass is missing, zero or negative
        InvalidCompliance: If compliance is missing, zero or negative
    """
    if config is None:
        config = get_matching_config()

    if tonearm.effective_mass is None or tonearm.effective_mass <= 0:
        raise InvalidMass("tonearm effective mass", tonearm.effective_mass)
    if cartridge_weight <= 0:
        raise InvalidMass("cartridge weight", cartridge_weight)
    if compliance is None or compliance <= 0:
        raise InvalidCompliance(compliance)

    headshell_weight, headshell_source = select_headshell_weight(
        tonearm, headshell_weight_override
    )
    total_mass = tonearm.effective_mass + cartridge_weight + headshell_weight

    frequency = resonance_frequency(total_mass, compliance)
    verdict = classify_resonance(frequency, config)

    logger.debug(
        "Resonance calculated",
        total_mass=total_mass,
        compliance=compliance,
        frequency=round(frequency, 3),
        verdict=verdict.value,
        headshell_source=headshell_source.value,
    )

    return ResonanceResult(
        total_mass=total_mass,
        resonance_frequency=frequency,
        is_optimal=config.resonance_min_hz <= frequency <= config.resonance_max_hz,
        verdict=verdict.value,
        headshell_weight=headshell_weight,
        headshell_source=headshell_source.value,
        recommendation=resonance_recommendation(verdict, frequency, config),
    )
