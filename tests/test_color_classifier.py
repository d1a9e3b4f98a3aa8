import itertools

import numpy as np
import pytest

from ifire.color_classifier import (brightness, classify_pixel, color_diff, fire_mask,
                                    is_fire, is_smoke, smoke_mask)


@pytest.mark.parametrize("rgb", [
    (230, 150, 50),   # bright fire
    (200, 100, 100),  # reddish
    (190, 120, 90),   # orangish
    (240, 210, 60),   # yellowish
    (151, 116, 100),  # reddish, just above both ratio bounds
])
def test_fire_colors(rgb):
    assert is_fire(*rgb)


@pytest.mark.parametrize("rgb", [
    (150, 100, 50),   # r not above 150
    (200, 200, 200),
    (34, 139, 34),
    (60, 60, 60),
])
def test_non_fire_colors(rgb):
    assert not is_fire(*rgb)


@pytest.mark.parametrize("rgb", [
    (200, 200, 200),  # gray
    (150, 150, 150),  # gray / dense
    (230, 230, 230),  # white
    (140, 150, 170),  # bluish gray
])
def test_smoke_colors(rgb):
    assert is_smoke(*rgb)


@pytest.mark.parametrize("rgb", [
    (60, 60, 60),     # too dark
    (250, 250, 250),  # too light
    (210, 225, 250),  # bright blue sky
    (225, 225, 235),  # pale sky, blue dominant
    (230, 150, 50),   # flame
    (34, 139, 34),    # foliage
])
def test_non_smoke_colors(rgb):
    assert not is_smoke(*rgb)


def test_derived_metrics():
    assert brightness(30, 60, 90) == 60
    assert color_diff(30, 60, 90) == 60
    assert color_diff(200, 10, 100) == 190


def test_classify_pixel_is_deterministic():
    first = classify_pixel(200, 200, 200)
    for _ in range(3):
        assert classify_pixel(200, 200, 200) == first
    assert first.is_smoke and not first.is_fire


def test_masks_match_scalar_predicates():
    values = range(0, 256, 15)
    colors = np.array(list(itertools.product(values, values, values)), dtype=np.uint8)
    image = colors.reshape(1, -1, 3)

    fire = fire_mask(image)[0]
    smoke = smoke_mask(image)[0]

    for (r, g, b), f, s in zip(colors.tolist(), fire, smoke):
        assert bool(f) == is_fire(r, g, b), (r, g, b)
        assert bool(s) == is_smoke(r, g, b), (r, g, b)


def test_masks_ignore_alpha():
    rgba = np.array([[[230, 150, 50, 0], [200, 200, 200, 255]]], dtype=np.uint8)
    assert fire_mask(rgba).tolist() == [[True, False]]
    assert smoke_mask(rgba).tolist() == [[False, True]]


def test_masks_reject_grayscale():
    with pytest.raises(ValueError):
        fire_mask(np.zeros((4, 4), dtype=np.uint8))
