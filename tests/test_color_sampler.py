"""Tests for pixel sampling and colour conversion"""

import pytest

from screentext import (
    BBox,
    ColorSampler,
    InvalidInputError,
    SamplingFailureError,
    hex_to_rgb,
    parse_color,
    rgb_to_hex,
    validate_color,
)

from conftest import make_canvas


def test_rgb_to_hex_is_upper_case():
    assert rgb_to_hex(255, 171, 0) == "#FFAB00"
    assert rgb_to_hex(0, 0, 0) == "#000000"


def test_hex_to_rgb_accepts_either_case():
    assert hex_to_rgb("#ffab00") == (255, 171, 0)
    assert hex_to_rgb("FFAB00") == (255, 171, 0)
    with pytest.raises(ValueError):
        hex_to_rgb("#FFF")


def test_parse_color_formats():
    assert parse_color("rgb(1, 2, 3)") == (1, 2, 3)
    assert parse_color("#010203") == (1, 2, 3)
    assert parse_color((1, 2, 3, 255)) == (1, 2, 3)


def test_sample_at_out_of_bounds_raises(white_canvas):
    sampler = ColorSampler(white_canvas)
    assert sampler.sample_at(0, 0) == (255, 255, 255, 255)
    with pytest.raises(SamplingFailureError):
        sampler.sample_at(100, 0)
    with pytest.raises(SamplingFailureError):
        sampler.sample_at(-1, 10)


def test_sample_text_color_reads_center(hello_canvas):
    assert ColorSampler(hello_canvas).sample_text_color(BBox(10, 10, 60, 30)) == "#000000"

    hello_canvas[20, 35] = (200, 10, 20, 255)
    assert ColorSampler(hello_canvas).sample_text_color(BBox(10, 10, 60, 30)) == "#C80A14"


def test_sample_text_color_falls_back_to_black(white_canvas):
    color = ColorSampler(white_canvas).sample_text_color(BBox(200, 200, 220, 220))
    assert color == "#000000"


def test_sample_average():
    canvas = make_canvas(10, 10, (10, 20, 30, 255))
    canvas[:, 5:] = (20, 40, 60, 255)
    assert ColorSampler(canvas).sample_average(BBox(0, 0, 10, 10)) == (15, 30, 45)

    with pytest.raises(SamplingFailureError):
        ColorSampler(canvas).sample_average(BBox(50, 50, 60, 60))


def test_pick_returns_hex_or_black(white_canvas):
    sampler = ColorSampler(white_canvas)
    assert sampler.pick(5, 5) == "#FFFFFF"
    assert sampler.pick(500, 5) == "#000000"


def test_parse_color_rejects_out_of_range_channels():
    with pytest.raises(ValueError):
        parse_color("rgb(300, 0, 0)")
    with pytest.raises(ValueError):
        parse_color((1, 2))


def test_validate_color_normalizes_or_rejects():
    assert validate_color("#ff8800") == "#FF8800"
    assert validate_color("rgb(0, 0, 255)") == "#0000FF"
    for bad in ("red", "#12345", "", None):
        with pytest.raises(InvalidInputError):
            validate_color(bad)


def test_sample_average_grid_excluding_box(hello_canvas):
    hello_canvas[0:5, :] = (0, 0, 0, 255)
    sampler = ColorSampler(hello_canvas)

    # ink inside the excluded box is never read
    assert sampler.sample_average(BBox(5, 5, 66, 36), exclude=BBox(10, 10, 60, 30)) == (255, 255, 255)
    # stride 3 from y=0 hits the black rows 0 and 3 only
    region = BBox(0, 0, 100, 9)
    assert sampler.sample_average(region, stride=3) == (85, 85, 85)
