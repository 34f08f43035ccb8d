"""Track display colors.

Generated colors are vivid HSL strings that stay out of the green hue band,
which is reserved for the start/end markers drawn by map renderers.
"""

from __future__ import annotations

import random
import re

# Hue band (inclusive, degrees) that generated colors must avoid
RESERVED_HUE_MIN = 80
RESERVED_HUE_MAX = 160

SATURATION = 90
LIGHTNESS = 50

_HSL_RE = re.compile(
    r"^\s*hsl\(\s*(-?\d+(?:\.\d+)?)\s*,\s*(\d+(?:\.\d+)?)%\s*,\s*(\d+(?:\.\d+)?)%\s*\)\s*$"
)
_HEX_RE = re.compile(r"^#([0-9a-fA-F]{6})$")


def is_reserved_hue(hue: float) -> bool:
    """Check whether a hue falls in the reserved band."""
    return RESERVED_HUE_MIN <= hue <= RESERVED_HUE_MAX


def next_color(rng: random.Random | None = None) -> str:
    """Pick a random display color outside the reserved hue band.

    Hues inside the band are rejected and resampled.

    Args:
        rng: Random source (defaults to the module-level generator).

    Returns:
        Color string such as ``hsl(213, 90%, 50%)``.
    """
    rand = rng or random
    hue = rand.randrange(360)
    while is_reserved_hue(hue):
        hue = rand.randrange(360)
    return f"hsl({hue}, {SATURATION}%, {LIGHTNESS}%)"


def parse_hsl(color: str) -> tuple[float, float, float]:
    """Parse an ``hsl(h, s%, l%)`` string.

    Returns:
        Tuple of (hue degrees, saturation percent, lightness percent).

    Raises:
        ValueError: If the string is not an HSL color.
    """
    match = _HSL_RE.match(color)
    if not match:
        raise ValueError(f"Not an HSL color: {color!r}")
    return float(match.group(1)), float(match.group(2)), float(match.group(3))


def hsl_to_hex(color: str) -> str:
    """Convert an ``hsl(...)`` string to ``#rrggbb``."""
    hue, sat, light = parse_hsl(color)
    s = sat / 100
    l = light / 100  # noqa: E741
    a = s * min(l, 1 - l)

    def channel(n: int) -> str:
        k = (n + hue / 30) % 12
        value = l - a * max(-1.0, min(k - 3, 9 - k, 1.0))
        return f"{round(255 * value):02x}"

    return f"#{channel(0)}{channel(8)}{channel(4)}"


def hex_to_hsl(color: str) -> str:
    """Convert a ``#rrggbb`` string to ``hsl(h, s%, l%)`` with integer components."""
    match = _HEX_RE.match(color)
    if not match:
        raise ValueError(f"Not a hex color: {color!r}")
    digits = match.group(1)
    r, g, b = (int(digits[i : i + 2], 16) / 255 for i in (0, 2, 4))

    high = max(r, g, b)
    low = min(r, g, b)
    light = (high + low) / 2

    if high == low:
        hue = sat = 0.0
    else:
        d = high - low
        sat = d / (2 - high - low) if light > 0.5 else d / (high + low)
        if high == r:
            hue = (g - b) / d + (6 if g < b else 0)
        elif high == g:
            hue = (b - r) / d + 2
        else:
            hue = (r - g) / d + 4
        hue /= 6

    return f"hsl({round(hue * 360)}, {round(sat * 100)}%, {round(light * 100)}%)"


def to_hsl(color: str) -> str:
    """Normalize a user-supplied color to the stored HSL form.

    Hex colors are converted; HSL colors are validated and kept as given.
    """
    if color.startswith("#"):
        return hex_to_hsl(color)
    parse_hsl(color)
    return color.strip()
