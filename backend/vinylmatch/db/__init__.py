"""Database models and utilities.

This module exports all database models.
"""

from __future__ import annotations

from vinylmatch.db.models import (
    SUT,
    Brand,
    Cartridge,
    PhonoPreamp,
    Tonearm,
    metadata,
)

__all__ = [
    "metadata",
    "Brand",
    "Tonearm",
    "Cartridge",
    "SUT",
    "PhonoPreamp",
]
