"""Tests for the SVG placeholder builder."""

import base64
import xml.etree.ElementTree as ET

import pytest

from placeholder_ai.rendering.placeholder_svg import (
    GENERATING_LABEL,
    font_size_for,
    generate_placeholder_svg,
    placeholder_data_url,
    wrap_text,
)


SVG_NS = "{http://www.w3.org/2000/svg}"


def _description_lines(svg):
    root = ET.fromstring(svg)
    groups = root.findall(f"{SVG_NS}g")
    return [node.text for node in groups[0].findall(f"{SVG_NS}text")]


def test_svg_contains_dimensions_and_generating_indicator():
    svg = generate_placeholder_svg(800, 600, "sunset")

    assert svg.startswith('<svg width="800" height="600"')
    assert "800 × 600" in svg
    assert GENERATING_LABEL in svg
    assert 'stroke-dasharray="10,5"' in svg
    assert svg.count("<circle") == 5  # four corners plus the pulsing dot
    assert _description_lines(svg) == ["sunset"]


def test_user_text_is_escaped_and_document_stays_well_formed():
    svg = generate_placeholder_svg(800, 600, "<script>&\"'")

    assert "<script>" not in svg
    assert "&lt;script&gt;&amp;&quot;&#x27;" in svg
    assert _description_lines(svg) == ["<script>&\"'"]


def test_characters_invalid_in_xml_are_dropped():
    svg = generate_placeholder_svg(400, 300, "a\x01b\x1fc\ufffe\ud800d")

    assert _description_lines(svg) == ["abcd"]


def test_data_url_survives_lone_surrogates():
    url = placeholder_data_url(400, 300, "sky\udc80line")
    decoded = base64.b64decode(url.split(",", 1)[1]).decode("utf-8")
    assert "skyline" in decoded


def test_colors_are_escaped():
    svg = generate_placeholder_svg(200, 200, "x", background_color='"/><evil a="', text_color="#000")
    ET.fromstring(svg)
    assert "<evil" not in svg


def test_description_is_limited_to_four_lines():
    text = " ".join(f"word{i}" for i in range(60))
    lines = _description_lines(generate_placeholder_svg(200, 200, text))

    assert len(lines) == 4
    assert lines[0].startswith("word0")


def test_empty_text_renders_no_description_lines():
    assert _description_lines(generate_placeholder_svg(300, 300, "")) == []


@pytest.mark.parametrize(
    "width, height, expected",
    [
        (10, 10, 12),
        (160, 160, 20),
        (800, 600, 48),
        (2048, 2048, 48),
    ],
)
def test_font_size_is_proportional_and_clamped(width, height, expected):
    assert font_size_for(width, height) == expected


def test_wrap_text_packs_words_greedily():
    assert wrap_text("a bb ccc", 4) == ["a bb", "ccc"]


def test_wrap_text_keeps_long_words_whole():
    assert wrap_text("supercalifragilistic go", 5) == ["supercalifragilistic", "go"]


def test_wrap_threshold_follows_width_and_font_size():
    # 400x400 -> font 48 -> floor(400 / 28.8) = 13 chars per line
    lines = _description_lines(generate_placeholder_svg(400, 400, "a quiet lake at dawn with mist"))
    assert lines == ["a quiet lake", "at dawn with", "mist"]


def test_data_url_wraps_the_same_markup():
    url = placeholder_data_url(320, 240, "sunset")
    prefix = "data:image/svg+xml;base64,"

    assert url.startswith(prefix)
    decoded = base64.b64decode(url[len(prefix):]).decode("utf-8")
    assert decoded == generate_placeholder_svg(320, 240, "sunset")
