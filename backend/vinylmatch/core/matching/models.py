"""Component records consumed by the matching engine.

Records are resolved by the catalog before matching starts and never mutated.
Optional physical data is ``None`` when unknown; zero is never used as a
stand-in because a zero mass or compliance would break the resonance formula.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Protocol


class CartridgeType(str, Enum):
    """Cartridge generator type."""

    MM = "MM"
    MC = "MC"


class HeadshellSource(str, Enum):
    """Where the headshell weight used in the total mass came from."""

    REQUEST = "request"
    TONEARM = "tonearm"
    NONE = "none"


@dataclass(frozen=True)
class ComponentInfo:
    """Fields shared by every catalog component."""

    id: str
    brand: str
    model: str
    image_url: str | None = None

    @property
    def display_name(self) -> str:
        return f"{self.brand} {self.model}"


@dataclass(frozen=True)
class TonearmInfo(ComponentInfo):
    effective_mass: float | None = None
    effective_length: float | None = None
    arm_type: str | None = None
    headshell_type: str | None = None
    headshell_weight: float | None = None


@dataclass(frozen=True)
class CartridgeInfo(ComponentInfo):
    cartridge_type: str = CartridgeType.MM.value
    compliance: float | None = None
    weight: float | None = None
    output_voltage: float | None = None
    internal_impedance: float | None = None

    @property
    def is_moving_coil(self) -> bool:
        return self.cartridge_type.upper() == CartridgeType.MC.value


@dataclass(frozen=True)
class SUTInfo(ComponentInfo):
    transformer_type: str | None = None
    gain_ratio: str | None = None
    gain_db: float | None = None
    primary_impedance: float | None = None
    secondary_impedance: float | None = None
    extra_load_resistance: float | None = None


@dataclass(frozen=True)
class PhonoPreampInfo(ComponentInfo):
    preamp_type: str | None = None
    mm_input_impedance: float | None = None


@dataclass(frozen=True)
class ComplianceBand:
    """Inclusive compliance range (cu/mN) used to pick reference cartridges."""

    low: float
    high: float

    def __contains__(self, compliance: float) -> bool:
        return self.low <= compliance <= self.high


# Capability views: each stage only depends on the fields it reads.


class HasEffectiveMass(Protocol):
    @property
    def effective_mass(self) -> float | None: ...

    @property
    def headshell_weight(self) -> float | None: ...


class HasElectricalOutput(Protocol):
    @property
    def cartridge_type(self) -> str: ...

    @property
    def output_voltage(self) -> float | None: ...

    @property
    def internal_impedance(self) -> float | None: ...
