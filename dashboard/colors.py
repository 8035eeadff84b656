"""Deterministic chart colors per region."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class RegionColor:
    border: str
    background: str


COLOR_OVERRIDES: dict[str, RegionColor] = {
    "36740": RegionColor(border="#FF00FF", background="rgba(255, 0, 255, 0.25)"),
    "33100": RegionColor(border="#FFFF00", background="rgba(255, 255, 0, 0.25)"),
    "12060": RegionColor(border="#FFFFFF", background="rgba(255,255,255,0.18)"),
    "45300": RegionColor(border="#00FFFF", background="rgba(0, 255, 255, 0.25)"),
}


def _to_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value & 0x80000000 else value


def string_hue(key: str) -> int:
    """Hue in [0, 360) from a 32-bit rolling hash of ``key`` (stable across runs)."""

    hashed = 0
    for char in key:
        hashed = ord(char) + (_to_int32(_to_int32(hashed) << 5) - hashed)
    return abs(hashed) % 360


def color_from_string(key: str) -> RegionColor:
    hue = string_hue(key)
    return RegionColor(
        border=f"hsl({hue}, 70%, 45%)",
        background=f"hsla({hue}, 70%, 45%, 0.2)",
    )


def region_color(code: str, name: str | None = None) -> RegionColor:
    override = COLOR_OVERRIDES.get(code)
    if override:
        return override
    return color_from_string(name or code)


__all__ = ["RegionColor", "COLOR_OVERRIDES", "region_color", "color_from_string", "string_hue"]
