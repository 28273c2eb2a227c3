"""Database models for the component catalog.

All SQLModel models should be defined here and imported in db/__init__.py.

Models follow these patterns:
- Use singular nouns: Tonearm, Cartridge
- Table names use plural, snake_case: tonearms, phono_preamps
- Use uuid.uuid4().hex for IDs (32 character hex strings)
- Unknown measurements are NULL, never 0
"""

from __future__ import annotations

import time
import uuid

from sqlalchemy import Index
from sqlmodel import Field, SQLModel

# SQLModel metadata - all models with table=True are registered here
metadata = SQLModel.metadata


def _new_id() -> str:
    return uuid.uuid4().hex


def _now() -> int:
    return int(time.time())


class Brand(SQLModel, table=True):
    """Manufacturer."""

    __tablename__ = "brands"  # type: ignore[assignment]

    id: str = Field(default_factory=_new_id, primary_key=True)
    name: str = Field(index=True)
    country: str | None = None
    created_at: int = Field(default_factory=_now)
    updated_at: int = Field(default_factory=_now)


class Tonearm(SQLModel, table=True):
    __tablename__ = "tonearms"  # type: ignore[assignment]

    id: str = Field(default_factory=_new_id, primary_key=True)
    brand_id: str = Field(index=True)
    model_name: str
    arm_type: str = "pivoted"  # pivoted, linear-tracking, unipivot
    effective_length: float | None = None  # mm
    effective_mass: float | None = None  # g
    headshell_type: str = "integrated"  # integrated, removable (SME bayonet, etc.)
    headshell_weight: float | None = None  # g, only for removable headshells
    image_url: str | None = None
    created_at: int = Field(default_factory=_now)
    updated_at: int = Field(default_factory=_now)


class Cartridge(SQLModel, table=True):
    __tablename__ = "cartridges"  # type: ignore[assignment]

    id: str = Field(default_factory=_new_id, primary_key=True)
    brand_id: str = Field(index=True)
    model_name: str
    cartridge_type: str = "MM"  # MM, MC
    output_voltage: float | None = None  # mV at 5 cm/s
    output_impedance: float | None = None  # ohms (internal impedance)
    compliance: float | None = None  # cu/mN, dynamic at 10 Hz
    cartridge_weight: float | None = None  # g
    image_url: str | None = None
    created_at: int = Field(default_factory=_now)
    updated_at: int = Field(default_factory=_now)

    __table_args__ = (
        Index("idx_cartridges_type_compliance", "cartridge_type", "compliance"),
    )


class SUT(SQLModel, table=True):
    """Step-up transformer."""

    __tablename__ = "suts"  # type: ignore[assignment]

    id: str = Field(default_factory=_new_id, primary_key=True)
    brand_id: str = Field(index=True)
    model_name: str
    transformer_type: str = "step-up"
    gain_ratio: str | None = None  # e.g. "1:10"
    gain_db: float | None = None
    primary_impedance: float | None = None  # ohms, as seen by the cartridge
    secondary_imp: float | None = None  # ohms
    extra_load_resistance: float | None = None  # ohms, parallel on the secondary
    image_url: str | None = None
    created_at: int = Field(default_factory=_now)
    updated_at: int = Field(default_factory=_now)


class PhonoPreamp(SQLModel, table=True):
    __tablename__ = "phono_preamps"  # type: ignore[assignment]

    id: str = Field(default_factory=_new_id, primary_key=True)
    brand_id: str = Field(index=True)
    model_name: str
    preamp_type: str = "MM"  # MM, MC, MM-MC
    mm_input_impedance: float | None = None  # ohms
    mm_gain_db: float | None = None
    image_url: str | None = None
    created_at: int = Field(default_factory=_now)
    updated_at: int = Field(default_factory=_now)
