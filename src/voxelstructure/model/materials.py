"""
Material Library
================
Defines the material descriptors that can be assigned to cubes.

The stability engine only checks geometric connectivity, so these values are
stored and propagated with each cube but never read by the analysis. They are
kept for display (colour, emissive tint) and for anything downstream that
wants to reason about weight.
"""
from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Dict, Any
import logging

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Material:
    """
    Engineering material preset.

    Attributes:
        name: Display name.
        color: Base colour as '#rrggbb'.
        density: kg/m³
        strength: MPa
        weight_factor: Relative weight (density / 1000).
        emissive: Emissive tint as '#rrggbb'.
    """
    name: str
    color: str
    density: float
    strength: float
    weight_factor: float
    emissive: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> Material:
        return Material(**data)


MATERIALS: Dict[str, Material] = {
    "STEEL": Material(
        name="Steel",
        color="#94a3b8",
        density=7850.0,
        strength=250.0,
        weight_factor=7.85,
        emissive="#1e293b",
    ),
    "CONCRETE": Material(
        name="Concrete",
        color="#64748b",
        density=2400.0,
        strength=30.0,
        weight_factor=2.4,
        emissive="#334155",
    ),
    "WOOD": Material(
        name="Wood",
        color="#92400e",
        density=600.0,
        strength=40.0,
        weight_factor=0.6,
        emissive="#451a03",
    ),
    "ALUMINUM": Material(
        name="Aluminum",
        color="#e5e7eb",
        density=2700.0,
        strength=90.0,
        weight_factor=2.7,
        emissive="#374151",
    ),
}

DEFAULT_MATERIAL: Material = MATERIALS["STEEL"]

# Swatches offered for custom colours
COLOR_PALETTE: list[str] = [
    "#ef4444",  # Red
    "#f97316",  # Orange
    "#eab308",  # Yellow
    "#84cc16",  # Lime
    "#22c55e",  # Green
    "#14b8a6",  # Teal
    "#06b6d4",  # Cyan
    "#0ea5e9",  # Sky
    "#3b82f6",  # Blue
    "#6366f1",  # Indigo
    "#8b5cf6",  # Violet
    "#a855f7",  # Purple
    "#d946ef",  # Fuchsia
    "#ec4899",  # Pink
    "#f43f5e",  # Rose
    "#ffffff",  # White
    "#f8fafc",  # Slate 50
    "#f1f5f9",  # Slate 100
    "#e2e8f0",  # Slate 200
    "#cbd5e1",  # Slate 300
    "#94a3b8",  # Slate 400
    "#64748b",  # Slate 500
    "#475569",  # Slate 600
    "#334155",  # Slate 700
    "#1e293b",  # Slate 800
    "#0f172a",  # Slate 900
    "#020617",  # Slate 950
]


def get_material_by_name(name: str) -> Material:
    """Look up a preset by key or display name. Unknown names give the default."""
    key = name.strip().upper()
    if key in MATERIALS:
        return MATERIALS[key]
    logger.debug(f"Unknown material '{name}', falling back to {DEFAULT_MATERIAL.name}")
    return DEFAULT_MATERIAL


def _parse_hex(color: str) -> int:
    value = color.strip().lstrip("#")
    if len(value) != 6:
        raise ValueError(f"Expected a '#rrggbb' colour, got '{color}'")
    return int(value, 16)


def adjust_color_brightness(color: str, percent: float) -> str:
    """
    Lighten (positive percent) or darken (negative percent) a hex colour.
    Each channel is shifted by 2.55 * percent and clamped to 0..255.
    """
    num = _parse_hex(color)
    amount = round(2.55 * percent)

    channels = [(num >> 16) & 0xFF, (num >> 8) & 0xFF, num & 0xFF]
    r, g, b = (min(255, max(0, c + amount)) for c in channels)
    return f"#{r:02x}{g:02x}{b:02x}"


def create_custom_material(color: str) -> Material:
    """Build a generic material for a user-picked colour."""
    return Material(
        name="Custom",
        color=color.lower(),
        density=1000.0,
        strength=50.0,
        weight_factor=1.0,
        emissive=adjust_color_brightness(color, -30),
    )
