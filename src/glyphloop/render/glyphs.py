"""
Pixel to glyph mapping.

Luminance picks a glyph from a ramp ordered darkest to lightest. Each
threshold is scaled by the sensitivity multiplier, so raising the multiplier
pushes pixels toward the dense end of the ramp.
"""

from __future__ import annotations

from ..core.constants import ANSI_FG_TRUECOLOR, ANSI_RESET, LUMA_B, LUMA_G, LUMA_R, TRANSPARENT_CELL

GlyphRamp = tuple[tuple[float, str], ...]

# (threshold, glyph), darkest first. A pixel takes the last glyph whose
# threshold x multiplier its luminance exceeds; the first entry is the floor.
# TODO: retune the 1000 entry; luminance tops out at 255 so it never wins.
DEFAULT_RAMP: GlyphRamp = (
    (0.0, "⬤"),
    (30.0, "⦿"),
    (60.0, "⦾"),
    (120.0, "●"),
    (140.0, "*"),
    (180.0, "◌"),
    (250.0, "."),
    (1000.0, " "),
)


def luminance(r: int, g: int, b: int) -> float:
    return LUMA_R * r + LUMA_G * g + LUMA_B * b


def pixel_to_glyph(r: int, g: int, b: int, multiplier: float, ramp: GlyphRamp = DEFAULT_RAMP) -> str:
    """Return the bare glyph for an opaque pixel."""
    lum = luminance(r, g, b)
    for threshold, glyph in reversed(ramp[1:]):
        if lum > threshold * multiplier:
            return glyph
    return ramp[0][1]


def pixel_to_cell(r: int, g: int, b: int, a: int, multiplier: float, color: bool, ramp: GlyphRamp = DEFAULT_RAMP) -> str:
    """Return the text for one output cell.

    Transparent pixels become a color reset plus a space. Opaque pixels get
    their glyph, wrapped in a 24-bit foreground color when `color` is True.
    """
    if a == 0:
        return TRANSPARENT_CELL
    glyph = pixel_to_glyph(r, g, b, multiplier, ramp)
    if color:
        return ANSI_FG_TRUECOLOR.format(r=r, g=g, b=b) + glyph + ANSI_RESET
    return glyph
