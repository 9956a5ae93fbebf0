"""
Color function library.

Pure, stateless conversions on ColorValue. Every function takes and
returns canonical values; invalid input raises ValueError and callers
attach document context.

Amounts follow two conventions:
- fractions (alpha, fade, solidify, rgba/hsla alpha): 0..1, ``50%`` == 0.5
- percentages (lighten, darken, mix, hsl saturation/lightness): 0..100

lighten and darken work on OKLCH lightness; invert and hsl() use HSL.
"""

from __future__ import annotations

import colorsys
import math
import re
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum

import webcolors

from .ir.colors import ColorValue

_HEX_RE = re.compile(r"^#(?:[0-9a-fA-F]{3,4}|[0-9a-fA-F]{6}|[0-9a-fA-F]{8})$")

TRANSPARENT = ColorValue(r=0, g=0, b=0, a=0)

# CSS Color Level 4 names missing from the webcolors CSS3 table.
_CSS4_ADDITIONS = {"rebeccapurple": "#663399"}


def _round(x: float) -> int:
    """Round half up, so 127.5 becomes 128."""
    return int(math.floor(x + 0.5))


def _clamp(x: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, x))


def _channel(x: float) -> int:
    return _round(_clamp(x, 0, 255))


# =============================================================================
# Parsing
# =============================================================================


def is_hex(text: str) -> bool:
    return bool(_HEX_RE.match(text))


def parse_hex(text: str) -> ColorValue:
    """
    Parse #rgb, #rgba, #rrggbb or #rrggbbaa (any case).

    Raises:
        ValueError: If the text is not a hex color.
    """
    if not _HEX_RE.match(text):
        raise ValueError(f"Invalid hex color: {text!r}")
    digits = text[1:]
    if len(digits) in (3, 4):
        digits = "".join(c * 2 for c in digits)
    r, g, b = (int(digits[i : i + 2], 16) for i in (0, 2, 4))
    a = int(digits[6:8], 16) if len(digits) == 8 else 0xFF
    return ColorValue(r=r, g=g, b=b, a=a)


def named_color(name: str) -> ColorValue:
    """
    Look up a CSS Color Level 4 name, ignoring case.

    Raises:
        ValueError: If the name is not a known CSS color.
    """
    normalized = name.lower()
    if normalized == "transparent":
        return TRANSPARENT
    if normalized in _CSS4_ADDITIONS:
        return parse_hex(_CSS4_ADDITIONS[normalized])
    return parse_hex(webcolors.name_to_hex(normalized))


# =============================================================================
# Alpha
# =============================================================================


def alpha(color: ColorValue, f: float) -> ColorValue:
    """Set alpha to an absolute value: round(f * 255)."""
    return color.with_alpha(_round(_clamp(f, 0, 1) * 255))


def fade(color: ColorValue, f: float) -> ColorValue:
    """Multiply the existing alpha by f."""
    return color.with_alpha(_channel(color.a * _clamp(f, 0, 1)))


def solidify(color: ColorValue, f: float) -> ColorValue:
    """Multiply the existing alpha by (1 + f), saturating at opaque."""
    return color.with_alpha(_channel(color.a * (1 + max(f, 0))))


# =============================================================================
# Construction
# =============================================================================


def rgb(r: float, g: float, b: float, a: float = 1.0) -> ColorValue:
    """Build a color from 0..255 channels and a 0..1 alpha."""
    return ColorValue(r=_channel(r), g=_channel(g), b=_channel(b), a=_round(_clamp(a, 0, 1) * 255))


def hsl(h: float, s: float, lightness: float, a: float = 1.0) -> ColorValue:
    """Build a color from hue (0..360) and saturation/lightness (0..100)."""
    hue = _clamp(h, 0, 360) / 360
    sat = _clamp(s, 0, 100) / 100
    light = _clamp(lightness, 0, 100) / 100
    r, g, b = colorsys.hls_to_rgb(hue, light, sat)
    return rgb(r * 255, g * 255, b * 255, a)


def _to_hls(color: ColorValue) -> tuple[float, float, float]:
    return colorsys.rgb_to_hls(color.r / 255, color.g / 255, color.b / 255)


def _from_hls(h: float, lightness: float, s: float, a: int) -> ColorValue:
    r, g, b = colorsys.hls_to_rgb(h, _clamp(lightness, 0, 1), s)
    return ColorValue(r=_channel(r * 255), g=_channel(g * 255), b=_channel(b * 255), a=a)


# OKLab (Ottosson). Scaling L with a and b fixed scales OKLCH lightness and
# keeps chroma and hue.


def _to_linear(c: float) -> float:
    return c / 12.92 if c <= 0.04045 else ((c + 0.055) / 1.055) ** 2.4


def _from_linear(c: float) -> float:
    if abs(c) <= 0.0031308:
        return 12.92 * c
    return math.copysign(1.055 * abs(c) ** (1 / 2.4) - 0.055, c)


def _to_oklab(color: ColorValue) -> tuple[float, float, float]:
    r, g, b = (_to_linear(channel / 255) for channel in (color.r, color.g, color.b))
    l_, m_, s_ = (
        math.cbrt(0.4122214708 * r + 0.5363325363 * g + 0.0514459929 * b),
        math.cbrt(0.2119034982 * r + 0.6806995451 * g + 0.1073969566 * b),
        math.cbrt(0.0883024619 * r + 0.2817188376 * g + 0.6299787005 * b),
    )
    return (
        0.2104542553 * l_ + 0.7936177850 * m_ - 0.0040720468 * s_,
        1.9779984951 * l_ - 2.4285922050 * m_ + 0.4505937099 * s_,
        0.0259040371 * l_ + 0.7827717662 * m_ - 0.8086757660 * s_,
    )


def _from_oklab(lightness: float, a: float, b: float, alpha_channel: int) -> ColorValue:
    cone_l = (lightness + 0.3963377774 * a + 0.2158037573 * b) ** 3
    cone_m = (lightness - 0.1055613458 * a - 0.0638541728 * b) ** 3
    cone_s = (lightness - 0.0894841775 * a - 1.2914855480 * b) ** 3
    r = 4.0767416621 * cone_l - 3.3077115913 * cone_m + 0.2309699292 * cone_s
    g = -1.2684380046 * cone_l + 2.6097574011 * cone_m - 0.3413193965 * cone_s
    blue = -0.0041960863 * cone_l - 0.7034186147 * cone_m + 1.7076147010 * cone_s
    return ColorValue(
        r=_channel(_from_linear(r) * 255),
        g=_channel(_from_linear(g) * 255),
        b=_channel(_from_linear(blue) * 255),
        a=alpha_channel,
    )


# =============================================================================
# Adjustment
# =============================================================================


def lighten(color: ColorValue, amount: float) -> ColorValue:
    """Scale OKLCH lightness by (1 + amount / 100). Hue, chroma and alpha are kept."""
    lightness, a, b = _to_oklab(color)
    return _from_oklab(_clamp(lightness * (1 + amount / 100), 0, 1), a, b, color.a)


def darken(color: ColorValue, amount: float) -> ColorValue:
    """Scale OKLCH lightness by (1 - amount / 100). Alpha is kept."""
    return lighten(color, -amount)


def invert(color: ColorValue) -> ColorValue:
    """Flip HSL lightness, keeping hue, saturation and alpha."""
    h, light, s = _to_hls(color)
    return _from_hls(h, 1 - light, s, color.a)


def mix(first: ColorValue, second: ColorValue, ratio: float = 50) -> ColorValue:
    """Blend two colors; ratio is the percentage of ``second`` (alpha included)."""
    t = _clamp(ratio, 0, 100) / 100
    return ColorValue(
        r=_channel(first.r * (1 - t) + second.r * t),
        g=_channel(first.g * (1 - t) + second.g * t),
        b=_channel(first.b * (1 - t) + second.b * t),
        a=_channel(first.a * (1 - t) + second.a * t),
    )


def css(color: ColorValue) -> ColorValue:
    """Named-color lookup; the name itself is resolved as the argument."""
    return color


# =============================================================================
# Registry
# =============================================================================


class ArgKind(StrEnum):
    """Expected shape of a function argument."""

    COLOR = "color"
    FRACTION = "fraction"
    PERCENT = "percent"
    NUMBER = "number"


@dataclass(frozen=True)
class ColorFunction:
    """A callable color function with its argument signature."""

    name: str
    params: tuple[ArgKind, ...]
    impl: Callable[..., ColorValue]
    optional: int = 0

    @property
    def min_args(self) -> int:
        return len(self.params) - self.optional

    @property
    def signature(self) -> str:
        return f"{self.name}({', '.join(self.params)})"


_C, _F, _P, _N = ArgKind.COLOR, ArgKind.FRACTION, ArgKind.PERCENT, ArgKind.NUMBER

FUNCTIONS: dict[str, ColorFunction] = {
    f.name: f
    for f in (
        ColorFunction("alpha", (_C, _F), alpha),
        ColorFunction("fade", (_C, _F), fade),
        ColorFunction("solidify", (_C, _F), solidify),
        ColorFunction("rgb", (_N, _N, _N), rgb),
        ColorFunction("rgba", (_N, _N, _N, _F), rgb),
        ColorFunction("hsl", (_N, _P, _P), hsl),
        ColorFunction("hsla", (_N, _P, _P, _F), hsl),
        ColorFunction("lighten", (_C, _P), lighten),
        ColorFunction("darken", (_C, _P), darken),
        ColorFunction("invert", (_C,), invert),
        ColorFunction("mix", (_C, _C, _P), mix, optional=1),
        ColorFunction("css", (_C,), css),
    )
}