"""
Per-pixel fire and smoke color predicates.

Each pixel is judged from its RGB values plus two derived metrics:

    brightness = (r + g + b) / 3
    color_diff = max(|r - g|, |g - b|, |r - b|)

Fire covers red, orange, yellow and bright flame tones. Smoke covers gray,
white, dense and bluish-gray tones, excluding very dark pixels and bright
blue-dominant pixels (sky).

``classify_pixel`` is the scalar reference; ``fire_mask`` and ``smoke_mask``
evaluate the same predicates over a whole image array.
"""
from typing import NamedTuple

import numpy as np


class PixelClass(NamedTuple):
    is_fire: bool
    is_smoke: bool


def brightness(r: int, g: int, b: int) -> float:
    return (r + g + b) / 3


def color_diff(r: int, g: int, b: int) -> int:
    return max(abs(r - g), abs(g - b), abs(r - b))


def is_fire(r: int, g: int, b: int) -> bool:
    """Return True for red/orange/yellow flame colors."""
    is_reddish = r > 150 and r > g * 1.3 and r > b * 1.5
    is_orangish = r > 180 and 80 < g < 180 and b < 100
    is_yellowish = r > 200 and g > 150 and b < 100
    is_bright_fire = r > 220 and 100 < g < 200 and b < 80
    return is_reddish or is_orangish or is_yellowish or is_bright_fire


def is_smoke(r: int, g: int, b: int) -> bool:
    """Return True for gray/white/bluish smoke colors."""
    light = brightness(r, g, b)
    diff = color_diff(r, g, b)

    is_not_sky = light < 240 and not (light > 200 and b > r and b > g)

    is_gray_smoke = 120 < light < 220 and diff < 40 and is_not_sky
    is_white_smoke = 180 < light < 245 and diff < 50 and is_not_sky
    is_dense_smoke = 100 < light < 180 and diff < 35
    is_bluish_smoke = 130 < light < 200 and b >= r - 20 and b >= g - 20 and diff < 45

    smoke_like = is_gray_smoke or is_white_smoke or is_dense_smoke or is_bluish_smoke
    return smoke_like and light < 250 and light > 80


def classify_pixel(r: int, g: int, b: int) -> PixelClass:
    """Classify a single pixel. Pure function of (r, g, b)."""
    return PixelClass(is_fire(r, g, b), is_smoke(r, g, b))


def _channels(image: np.ndarray):
    if image.ndim != 3 or image.shape[2] < 3:
        raise ValueError(f"Expected an HxWx3 or HxWx4 array, got shape {image.shape}")
    # Signed ints so that differences like r - g cannot wrap around.
    rgb = image[:, :, :3].astype(np.int32)
    return rgb[:, :, 0], rgb[:, :, 1], rgb[:, :, 2]


def fire_mask(image: np.ndarray) -> np.ndarray:
    """
    Evaluate the fire predicate for every pixel.

    Args:
        image: RGB or RGBA array (alpha is ignored)

    Returns:
        Boolean HxW mask
    """
    r, g, b = _channels(image)

    is_reddish = (r > 150) & (r > g * 1.3) & (r > b * 1.5)
    is_orangish = (r > 180) & (g > 80) & (g < 180) & (b < 100)
    is_yellowish = (r > 200) & (g > 150) & (b < 100)
    is_bright_fire = (r > 220) & (g > 100) & (g < 200) & (b < 80)

    return is_reddish | is_orangish | is_yellowish | is_bright_fire


def smoke_mask(image: np.ndarray) -> np.ndarray:
    """
    Evaluate the smoke predicate for every pixel.

    Args:
        image: RGB or RGBA array (alpha is ignored)

    Returns:
        Boolean HxW mask
    """
    r, g, b = _channels(image)
    light = (r + g + b) / 3
    diff = np.maximum(np.maximum(np.abs(r - g), np.abs(g - b)), np.abs(r - b))

    is_not_sky = (light < 240) & ~((light > 200) & (b > r) & (b > g))

    is_gray_smoke = (light > 120) & (light < 220) & (diff < 40) & is_not_sky
    is_white_smoke = (light > 180) & (light < 245) & (diff < 50) & is_not_sky
    is_dense_smoke = (light > 100) & (light < 180) & (diff < 35)
    is_bluish_smoke = (light > 130) & (light < 200) & (b >= r - 20) & (b >= g - 20) & (diff < 45)

    smoke_like = is_gray_smoke | is_white_smoke | is_dense_smoke | is_bluish_smoke
    return smoke_like & (light < 250) & (light > 80)
