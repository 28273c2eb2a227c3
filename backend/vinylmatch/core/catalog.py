"""Catalog-backed component resolver for the matching engine.

Reads catalog rows and maps them onto the engine's immutable records.
"""

from __future__ import annotations

import structlog
from sqlalchemy import func
from sqlmodel import col, select
from sqlmodel.ext.asyncio.session import AsyncSession as SQLModelAsyncSession

from vinylmatch.core.matching.errors import ComponentNotFound
from vinylmatch.core.matching.models import (
    CartridgeInfo,
    ComplianceBand,
    PhonoPreampInfo,
    SUTInfo,
    TonearmInfo,
)
from vinylmatch.db.models import SUT, Brand, Cartridge, PhonoPreamp, Tonearm

logger = structlog.get_logger("vinylmatch.catalog")

UNKNOWN_BRAND = "Unknown"


class SQLModelComponentResolver:
    """Resolves components and reference cartridge weights from the database."""

    def __init__(self, session: SQLModelAsyncSession):
        self.session = session
        self._brand_names: dict[str, str] = {}

    async def _brand_name(self, brand_id: str) -> str:
        if brand_id not in self._brand_names:
            brand = await self.session.get(Brand, brand_id)
            self._brand_names[brand_id] = brand.name if brand else UNKNOWN_BRAND
        return self._brand_names[brand_id]

    async def get_tonearm(self, tonearm_id: str) -> TonearmInfo:
        row = await self.session.get(Tonearm, tonearm_id)
        if row is None:
            raise ComponentNotFound("Tonearm", tonearm_id)
        return TonearmInfo(
            id=row.id,
            brand=await self._brand_name(row.brand_id),
            model=row.model_name,
            image_url=row.image_url,
            effective_mass=row.effective_mass,
            effective_length=row.effective_length,
            arm_type=row.arm_type,
            headshell_type=row.headshell_type,
            headshell_weight=row.headshell_weight,
        )

    async def get_cartridge(self, cartridge_id: str) -> CartridgeInfo:
        row = await self.session.get(Cartridge, cartridge_id)
        if row is None:
            raise ComponentNotFound("Cartridge", cartridge_id)
        return CartridgeInfo(
            id=row.id,
            brand=await self._brand_name(row.brand_id),
            model=row.model_name,
            image_url=row.image_url,
            cartridge_type=row.cartridge_type.upper(),
            compliance=row.compliance,
            weight=row.cartridge_weight,
            output_voltage=row.output_voltage,
            internal_impedance=row.output_impedance,
        )

    async def get_sut(self, sut_id: str) -> SUTInfo:
        row = await self.session.get(SUT, sut_id)
        if row is None:
            raise ComponentNotFound("SUT", sut_id)
        return SUTInfo(
            id=row.id,
            brand=await self._brand_name(row.brand_id),
            model=row.model_name,
            image_url=row.image_url,
            transformer_type=row.transformer_type,
            gain_ratio=row.gain_ratio,
            gain_db=row.gain_db,
            primary_impedance=row.primary_impedance,
            secondary_impedance=row.secondary_imp,
            extra_load_resistance=row.extra_load_resistance,
        )

    async def get_phono_preamp(self, phono_preamp_id: str) -> PhonoPreampInfo:
        row = await self.session.get(PhonoPreamp, phono_preamp_id)
        if row is None:
            raise ComponentNotFound("Phono preamp", phono_preamp_id)
        return PhonoPreampInfo(
            id=row.id,
            brand=await self._brand_name(row.brand_id),
            model=row.model_name,
            image_url=row.image_url,
            preamp_type=row.preamp_type,
            mm_input_impedance=row.mm_input_impedance,
        )

    async def query_cartridge_weights(
        self,
        cartridge_type: str,
        compliance_band: ComplianceBand | None,
        limit: int,
    ) -> list[float]:
        """Known weights of cartridges of a type, optionally within a compliance band.

        Ordered by id so repeated requests see the same population.
        """
        statement = select(Cartridge.cartridge_weight).where(
            func.upper(Cartridge.cartridge_type) == cartridge_type.upper(),
            col(Cartridge.cartridge_weight).is_not(None),
            col(Cartridge.cartridge_weight) > 0,
        )
        if compliance_band is not None:
            statement = statement.where(
                col(Cartridge.compliance).between(compliance_band.low, compliance_band.high)
            )
        statement = statement.order_by(col(Cartridge.id)).limit(limit)

        result = await self.session.exec(statement)
        weights = [w for w in result.all() if w is not None]

        logger.debug(
            "Reference cartridge weights queried",
            cartridge_type=cartridge_type,
            band=(compliance_band.low, compliance_band.high) if compliance_band else None,
            count=len(weights),
        )
        return weights
