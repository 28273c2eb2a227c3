"""Step-up transformer matching.

Impedance reflects through the windings by the square of the turns ratio and
voltage scales linearly with it:

    R_load = R_secondary / N^2
    V_out  = N * V_cartridge
"""

from __future__ import annotations

import math
import re
from enum import Enum

import structlog

from .config import MatchingConfig, get_matching_config
from .errors import MissingElectricalSpec
from .models import HasElectricalOutput, PhonoPreampInfo, SUTInfo
from .results import SUTMatchingResult

logger = structlog.get_logger("vinylmatch.matching.sut")

_RATIO_PATTERN = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*[:/]\s*(\d+(?:\.\d+)?)\s*$")


class LoadVerdict(str, Enum):
    OVERLOADED = "overloaded"
    OPTIMAL = "optimal"
    LIGHTLY_LOADED = "lightly_loaded"

    @property
    def is_optimal(self) -> bool:
        return self is not LoadVerdict.OVERLOADED


class VoltageVerdict(str, Enum):
    TOO_LOW = "too_low"
    OPTIMAL = "optimal"
    TOO_HIGH = "too_high"

    @property
    def is_optimal(self) -> bool:
        return self is VoltageVerdict.OPTIMAL


def parse_gain_ratio(gain_ratio: str | None) -> float | None:
    """Parse a "1:N" ratio string into N; None if it cannot be parsed."""
    if not gain_ratio:
        return None
    match = _RATIO_PATTERN.match(gain_ratio)
    if not match:
        return None
    primary, secondary = float(match.group(1)), float(match.group(2))
    if primary <= 0 or secondary <= 0:
        return None
    return secondary / primary


def turns_ratio_for(sut: SUTInfo) -> float | None:
    """Turns ratio from the rated ratio, falling back to the rated gain in dB."""
    ratio = parse_gain_ratio(sut.gain_ratio)
    if ratio is not None:
        return ratio
    if sut.gain_db is not None:
        try:
            return math.pow(10, sut.gain_db / 20)
        except OverflowError:
            return None
    return None


def reflected_load(
    sut: SUTInfo,
    turns_ratio: float,
    phono_preamp: PhonoPreampInfo | None = None,
    config: MatchingConfig | None = None,
) -> float:
    """Impedance the cartridge sees through the SUT.

    Uses the SUT's rated primary impedance when it has one; otherwise reflects
    the secondary load (rated secondary, the preamp's MM input, or the standard
    MM input, in parallel with any loading resistor) through the windings.
    """
    if config is None:
        config = get_matching_config()

    if sut.primary_impedance is not None and sut.primary_impedance > 0:
        return sut.primary_impedance

    secondary = sut.secondary_impedance
    if secondary is None or secondary <= 0:
        if phono_preamp is not None and phono_preamp.mm_input_impedance:
            secondary = phono_preamp.mm_input_impedance
        else:
            secondary = config.default_mm_input_impedance

    if sut.extra_load_resistance is not None and sut.extra_load_resistance > 0:
        secondary = (secondary * sut.extra_load_resistance) / (
            secondary + sut.extra_load_resistance
        )

    return secondary / (turns_ratio * turns_ratio)


def classify_load(
    load: float,
    internal_impedance: float,
    config: MatchingConfig | None = None,
) -> LoadVerdict:
    if config is None:
        config = get_matching_config()

    if load < internal_impedance * config.load_multiplier:
        return LoadVerdict.OVERLOADED
    if load > internal_impedance * config.light_load_multiplier:
        return LoadVerdict.LIGHTLY_LOADED
    return LoadVerdict.OPTIMAL


def classify_voltage(
    output_voltage: float,
    config: MatchingConfig | None = None,
) -> VoltageVerdict:
    if config is None:
        config = get_matching_config()

    if output_voltage < config.mm_input_min_mv:
        return VoltageVerdict.TOO_LOW
    if output_voltage > config.mm_input_max_mv:
        return VoltageVerdict.TOO_HIGH
    return VoltageVerdict.OPTIMAL


def sut_recommendation(
    load_verdict: LoadVerdict,
    voltage_verdict: VoltageVerdict,
    load: float,
    recommended_min_load: float,
    output_voltage: float,
    turns_ratio: float,
    config: MatchingConfig | None = None,
) -> str:
    """Combine load and voltage verdicts into one recommendation."""
    if config is None:
        config = get_matching_config()

    window = f"{config.mm_input_min_mv:g}-{config.mm_input_max_mv:g} mV"
    issues: list[str] = []

    if load_verdict is LoadVerdict.OVERLOADED:
        issues.append(
            f"The cartridge is overloaded: it sees {load:.1f} ohms, below the recommended "
            f"{recommended_min_load:.0f} ohms minimum. Expect dulled treble and reduced dynamics; "
            "a SUT with a lower turns ratio or higher input impedance would help."
        )
    elif load_verdict is LoadVerdict.LIGHTLY_LOADED:
        issues.append(
            f"The cartridge is lightly loaded at {load:.1f} ohms. This is electrically safe "
            "but may sound bright; a loading resistor on the secondary can tame it."
        )

    if voltage_verdict is VoltageVerdict.TOO_LOW:
        issues.append(
            f"Output of {output_voltage:.2f} mV is below the MM input window ({window}); "
            "the gain is too low. Consider a SUT with a higher turns ratio."
        )
    elif voltage_verdict is VoltageVerdict.TOO_HIGH:
        issues.append(
            f"Output of {output_voltage:.2f} mV exceeds the MM input window ({window}); "
            "the gain is excessive and may overload the phono stage. "
            "Consider a SUT with a lower turns ratio."
        )

    if not issues:
        return (
            f"SUT matching is optimal: cartridge load {load:.1f} ohms, "
            f"output {output_voltage:.2f} mV, voltage gain {turns_ratio:g}x."
        )
    return " ".join(issues)


def match_sut(
    cartridge: HasElectricalOutput,
    sut: SUTInfo | None,
    phono_preamp: PhonoPreampInfo | None = None,
    config: MatchingConfig | None = None,
) -> SUTMatchingResult | None:
    """Evaluate electrical compatibility between a cartridge and a SUT.

    Args:
        cartridge: Cartridge record (internal impedance and output voltage)
        sut: SUT record, or None when no SUT was selected
        phono_preamp: Optional phono preamp the SUT feeds
        config: Matching configuration (if None, loads from settings file)

    Returns:
        SUTMatchingResult, or None when no SUT is supplied

    Raises:
        MissingElectricalSpec: If impedance, voltage or gain data is missing
    """
    if sut is None:
        return None

    if config is None:
        config = get_matching_config()

    missing_cartridge = []
    internal_impedance = cartridge.internal_impedance
    if internal_impedance is None or internal_impedance <= 0:
        missing_cartridge.append("internal impedance")
    if cartridge.output_voltage is None or cartridge.output_voltage <= 0:
        missing_cartridge.append("output voltage")
    if missing_cartridge:
        raise MissingElectricalSpec("Cartridge", missing_cartridge)

    turns_ratio = turns_ratio_for(sut)
    if turns_ratio is None or not math.isfinite(turns_ratio) or turns_ratio <= 0:
        raise MissingElectricalSpec("SUT", ["gain ratio or gain dB"])
    if sut.extra_load_resistance is not None and sut.extra_load_resistance <= 0:
        raise MissingElectricalSpec("SUT", ["loading resistance"])

    load = reflected_load(sut, turns_ratio, phono_preamp, config)
    recommended_min_load = internal_impedance * config.load_multiplier
    output_voltage = turns_ratio * cartridge.output_voltage

    load_verdict = classify_load(load, internal_impedance, config)
    voltage_verdict = classify_voltage(output_voltage, config)

    logger.debug(
        "SUT matching calculated",
        sut_id=sut.id,
        sut=sut.display_name,
        transformer_type=sut.transformer_type,
        turns_ratio=turns_ratio,
        load=round(load, 2),
        output_voltage=round(output_voltage, 3),
        load_verdict=load_verdict.value,
        voltage_verdict=voltage_verdict.value,
    )

    return SUTMatchingResult(
        cartridge_load_impedance=load,
        cartridge_internal_impedance=internal_impedance,
        recommended_min_load=recommended_min_load,
        output_voltage=output_voltage,
        voltage_gain=turns_ratio,
        voltage_gain_db=20 * math.log10(turns_ratio),
        turns_ratio=turns_ratio,
        is_load_optimal=load >= recommended_min_load,
        is_voltage_optimal=voltage_verdict.is_optimal,
        load_verdict=load_verdict.value,
        voltage_verdict=voltage_verdict.value,
        recommendation=sut_recommendation(
            load_verdict,
            voltage_verdict,
            load,
            recommended_min_load,
            output_voltage,
            turns_ratio,
            config,
        ),
    )
