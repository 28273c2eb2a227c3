"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from collections.abc import Iterator

import pytest
from prometheus_client import REGISTRY

from vinylmatch.core.config import get_settings, reload_settings
from vinylmatch.core.matching import (
    ComponentNotFound,
    ComplianceBand,
    MatchingConfig,
    reload_matching_config,
)
from vinylmatch.core.matching.models import (
    CartridgeInfo,
    PhonoPreampInfo,
    SUTInfo,
    TonearmInfo,
)


@pytest.fixture(autouse=True)
def reset_prometheus_registry():
    """Reset Prometheus registry before each test to avoid duplicate metric registration.

    setup_metrics() registers the instrumentator's metrics in the global registry,
    so every test that creates an app would otherwise fail with "Duplicated timeseries".
    """
    collectors = list(REGISTRY._collector_to_names.keys())
    for collector in collectors:
        REGISTRY.unregister(collector)

    yield

    collectors = list(REGISTRY._collector_to_names.keys())
    for collector in collectors:
        REGISTRY.unregister(collector)


@pytest.fixture(autouse=True)
def isolated_data_dir(tmp_path, monkeypatch) -> Iterator:
    """Point settings at a temporary data directory for every test."""
    monkeypatch.setenv("VINYLMATCH_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("VINYLMATCH_ENV", "testing")
    reload_settings()
    reload_matching_config()

    yield tmp_path

    get_settings.cache_clear()


@pytest.fixture
def config() -> MatchingConfig:
    return MatchingConfig()


class InMemoryResolver:
    """Component resolver over plain dicts, for engine tests."""

    def __init__(self) -> None:
        self.tonearms: dict[str, TonearmInfo] = {}
        self.cartridges: dict[str, CartridgeInfo] = {}
        self.suts: dict[str, SUTInfo] = {}
        self.phono_preamps: dict[str, PhonoPreampInfo] = {}
        self.weight_queries: list[tuple[str, ComplianceBand | None, int]] = []

    def add(self, component) -> None:
        if isinstance(component, TonearmInfo):
            self.tonearms[component.id] = component
        elif isinstance(component, CartridgeInfo):
            self.cartridges[component.id] = component
        elif isinstance(component, SUTInfo):
            self.suts[component.id] = component
        elif isinstance(component, PhonoPreampInfo):
            self.phono_preamps[component.id] = component
        else:
            raise TypeError(f"Unsupported component: {component!r}")

    async def get_tonearm(self, tonearm_id: str) -> TonearmInfo:
        if tonearm_id not in self.tonearms:
            raise ComponentNotFound("Tonearm", tonearm_id)
        return self.tonearms[tonearm_id]

    async def get_cartridge(self, cartridge_id: str) -> CartridgeInfo:
        if cartridge_id not in self.cartridges:
            raise ComponentNotFound("Cartridge", cartridge_id)
        return self.cartridges[cartridge_id]

    async def get_sut(self, sut_id: str) -> SUTInfo:
        if sut_id not in self.suts:
            raise ComponentNotFound("SUT", sut_id)
        return self.suts[sut_id]

    async def get_phono_preamp(self, phono_preamp_id: str) -> PhonoPreampInfo:
        if phono_preamp_id not in self.phono_preamps:
            raise ComponentNotFound("Phono preamp", phono_preamp_id)
        return self.phono_preamps[phono_preamp_id]

    async def query_cartridge_weights(
        self,
        cartridge_type: str,
        compliance_band: ComplianceBand | None,
        limit: int,
    ) -> list[float]:
        self.weight_queries.append((cartridge_type, compliance_band, limit))
        weights = []
        for cartridge in sorted(self.cartridges.values(), key=lambda c: c.id):
            if cartridge.cartridge_type.upper() != cartridge_type.upper():
                continue
            if cartridge.weight is None or cartridge.weight <= 0:
                continue
            if compliance_band is not None and (
                cartridge.compliance is None or cartridge.compliance not in compliance_band
            ):
                continue
            weights.append(cartridge.weight)
        return weights[:limit]


@pytest.fixture
def resolver() -> InMemoryResolver:
    """Resolver seeded with a small catalog.

    - arm-12: 12 g arm, no headshell record
    - arm-10-hs: 10 g arm with a 7 g removable headshell
    - mm-20: MM, 6 g, 20 cu/mN
    - mc-15: MC, 7 g, 15 cu/mN, 0.4 mV, 5 ohms
    - sut-10: 1:10 with a 100 ohm primary
    - sut-30: 1:30, no impedance data
    - sut-nogain: no gain data
    - preamp-47k: 47k MM input
    """
    r = InMemoryResolver()
    r.add(TonearmInfo(id="arm-12", brand="SME", model="3009", effective_mass=12.0))
    r.add(
        TonearmInfo(
            id="arm-10-hs",
            brand="Ortofon",
            model="RMG-212",
            effective_mass=10.0,
            headshell_type="removable",
            headshell_weight=7.0,
        )
    )
    r.add(
        CartridgeInfo(
            id="mm-20",
            brand="Shure",
            model="V15",
            cartridge_type="MM",
            compliance=20.0,
            weight=6.0,
            output_voltage=3.5,
            internal_impedance=1300.0,
        )
    )
    r.add(
        CartridgeInfo(
            id="mc-15",
            brand="Denon",
            model="DL-103",
            cartridge_type="MC",
            compliance=15.0,
            weight=7.0,
            output_voltage=0.4,
            internal_impedance=5.0,
        )
    )
    r.add(SUTInfo(id="sut-10", brand="Denon", model="AU-320", gain_ratio="1:10", primary_impedance=100.0))
    r.add(SUTInfo(id="sut-30", brand="Ortofon", model="T-30", gain_ratio="1:30"))
    r.add(SUTInfo(id="sut-nogain", brand="Unknown", model="Mystery"))
    r.add(PhonoPreampInfo(id="preamp-47k", brand="Marantz", model="7C", mm_input_impedance=47000.0))
    return r


@pytest.fixture
def empty_resolver() -> InMemoryResolver:
    return InMemoryResolver()
