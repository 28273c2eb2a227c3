"""Component matching engine.

Given a tonearm, a cartridge and optionally a step-up transformer and phono
preamp, computes resonance and electrical compatibility and an overall verdict.
"""

from .aggregator import aggregate, grade
from .config import DEFAULT_CONFIG, MatchingConfig, get_matching_config, reload_matching_config
from .errors import (
    ComponentNotFound,
    InsufficientReferenceData,
    InvalidComponentCombination,
    InvalidCompliance,
    InvalidMass,
    MatchingError,
    MissingElectricalSpec,
)
from .handler import ComponentResolver, MatchRequestHandler, calculate_matching
from .models import CartridgeInfo, ComplianceBand, PhonoPreampInfo, SUTInfo, TonearmInfo
from .resonance import ResonanceVerdict, analyze_resonance, classify_resonance
from .results import Compatibility, MatchingResult, ResonanceResult, SUTMatchingResult
from .schemas import MatcherRequest, MatcherResponse
from .sut import LoadVerdict, VoltageVerdict, match_sut
from .weight import estimate_from_population, resolve_cartridge_weight

__all__ = [
    "MatchingConfig",
    "DEFAULT_CONFIG",
    "get_matching_config",
    "reload_matching_config",
    "MatchingError",
    "ComponentNotFound",
    "InvalidMass",
    "InvalidCompliance",
    "InsufficientReferenceData",
    "InvalidComponentCombination",
    "MissingElectricalSpec",
    "TonearmInfo",
    "CartridgeInfo",
    "SUTInfo",
    "PhonoPreampInfo",
    "ComplianceBand",
    "estimate_from_population",
    "resolve_cartridge_weight",
    "ResonanceVerdict",
    "analyze_resonance",
    "classify_resonance",
    "LoadVerdict",
    "VoltageVerdict",
    "match_sut",
    "aggregate",
    "grade",
    "Compatibility",
    "ResonanceResult",
    "SUTMatchingResult",
    "MatchingResult",
    "MatcherRequest",
    "MatcherResponse",
    "ComponentResolver",
    "MatchRequestHandler",
    "calculate_matching",
]
