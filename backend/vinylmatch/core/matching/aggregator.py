"""Overall compatibility verdict.

Resonance outranks electrical matching: a mechanical resonance problem is
audible and risks mistracking, while a SUT mismatch is a tonal or level issue.
"""

from __future__ import annotations

from collections.abc import Sequence

from .resonance import ResonanceVerdict
from .results import Compatibility, ResonanceResult, SUTMatchingResult

# Rows: resonance severity (0 in band, 1 borderline, 2 badly out of band).
# Columns: SUT severity (0 no SUT or both checks pass, 1 one fails, 2 both fail).
_GRADES: tuple[tuple[Compatibility, Compatibility, Compatibility], ...] = (
    (Compatibility.EXCELLENT, Compatibility.GOOD, Compatibility.FAIR),
    (Compatibility.FAIR, Compatibility.POOR, Compatibility.POOR),
    (Compatibility.POOR, Compatibility.POOR, Compatibility.POOR),
)


def resonance_severity(resonance: ResonanceResult) -> int:
    return ResonanceVerdict(resonance.verdict).severity


def sut_severity(sut: SUTMatchingResult | None) -> int:
    if sut is None:
        return 0
    return [sut.is_load_optimal, sut.is_voltage_optimal].count(False)


def grade(resonance: ResonanceResult, sut: SUTMatchingResult | None = None) -> Compatibility:
    """Pure lookup of the overall grade from the two severities."""
    return _GRADES[resonance_severity(resonance)][sut_severity(sut)]


def _mark(ok: bool) -> str:
    return "✓" if ok else "✗"


def build_detailed_analysis(
    resonance: ResonanceResult,
    sut: SUTMatchingResult | None,
    overall: Compatibility,
    notes: Sequence[str] = (),
) -> str:
    """Narrative of the match, resonance first."""
    lines: list[str] = [
        "## Tonearm / cartridge",
        f"- Total mass: {resonance.total_mass:.1f} g",
        f"- Resonance frequency: {resonance.resonance_frequency:.1f} Hz {_mark(resonance.is_optimal)}",
        f"- {resonance.recommendation}",
    ]

    if sut is not None:
        lines += [
            "",
            "## Step-up transformer",
            f"- Cartridge load impedance: {sut.cartridge_load_impedance:.1f} ohms "
            f"{_mark(sut.is_load_optimal)}",
            f"- Phono input voltage: {sut.output_voltage:.2f} mV {_mark(sut.is_voltage_optimal)}",
            f"- Voltage gain: {sut.voltage_gain:g}x ({sut.voltage_gain_db:.1f} dB)",
            f"- {sut.recommendation}",
        ]

    if notes:
        lines += ["", "## Notes"]
        lines += [f"- {note}" for note in notes]

    lines += ["", f"## Overall: {overall.value}"]
    return "\n".join(lines)


def aggregate(
    resonance: ResonanceResult,
    sut: SUTMatchingResult | None = None,
    notes: Sequence[str] = (),
) -> tuple[Compatibility, str]:
    """Combine sub-results into (overall compatibility, detailed analysis)."""
    overall = grade(resonance, sut)
    return overall, build_detailed_analysis(resonance, sut, overall, notes)
