"""Tests for CSS colour and gradient parsing."""

import pytest

from deckexport.renderer.colors import (
    BLACK,
    TRANSPARENT,
    WHITE,
    css_url,
    is_gradient,
    parse_color,
    parse_linear_gradient,
    render_gradient,
)


class TestParseColor:
    """Tests for parse_color."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("#ff0000", (255, 0, 0, 255)),
            ("#0f0", (0, 255, 0, 255)),
            ("blue", (0, 0, 255, 255)),
            ("rgb(10, 20, 30)", (10, 20, 30, 255)),
            ("rgba(10, 20, 30, 0.4)", (10, 20, 30, 102)),
            ("rgba(10, 20, 30, 40%)", (10, 20, 30, 102)),
            ("transparent", TRANSPARENT),
        ],
    )
    def test_css_forms(self, value, expected):
        assert parse_color(value) == expected

    def test_invalid_falls_back(self):
        """Unknown colours use the default, as a browser ignores them."""
        assert parse_color("not-a-colour", default=WHITE) == WHITE
        assert parse_color(None) == BLACK
        assert parse_color("") == BLACK


class TestCssUrl:
    """Tests for css_url."""

    def test_quoted(self):
        assert css_url("url('https://example.com/a.png')") == "https://example.com/a.png"

    def test_unquoted(self):
        assert css_url("url(/img/bg.jpg) center / cover") == "/img/bg.jpg"

    def test_not_a_url(self):
        assert css_url("#ffffff") is None


class TestGradients:
    """Tests for linear-gradient parsing and painting."""

    def test_is_gradient(self):
        assert is_gradient("linear-gradient(#000, #fff)")
        assert not is_gradient("#000000")

    def test_angle_and_stops(self):
        gradient = parse_linear_gradient("linear-gradient(135deg, #a78bfa 0%, #8b5cf6 100%)")
        assert gradient.angle == 135.0
        assert [position for position, _ in gradient.stops] == [0.0, 1.0]
        assert gradient.stops[0][1] == (167, 139, 250, 255)

    def test_direction_keyword(self):
        gradient = parse_linear_gradient("linear-gradient(to right, red, blue)")
        assert gradient.angle == 90.0

    def test_default_direction(self):
        """Without an angle the gradient runs to the bottom."""
        gradient = parse_linear_gradient("linear-gradient(red, blue)")
        assert gradient.angle == 180.0

    def test_unpositioned_stops_spread(self):
        gradient = parse_linear_gradient("linear-gradient(red, lime, blue)")
        assert [position for position, _ in gradient.stops] == [0.0, 0.5, 1.0]

    def test_rgba_stop_with_position(self):
        gradient = parse_linear_gradient("linear-gradient(rgba(0, 0, 0, 0.5) 40%, #fff)")
        assert gradient.stops[0] == (0.4, (0, 0, 0, 128))

    def test_color_at_interpolates(self):
        gradient = parse_linear_gradient("linear-gradient(#000000, #ffffff)")
        assert gradient.color_at(0.0) == (0, 0, 0, 255)
        assert gradient.color_at(1.0) == (255, 255, 255, 255)
        assert gradient.color_at(0.5)[0] in (127, 128)

    def test_not_a_gradient(self):
        assert parse_linear_gradient("#ffffff") is None

    def test_render_to_right(self):
        """A left-to-right gradient is dark on the left, light on the right."""
        gradient = parse_linear_gradient("linear-gradient(to right, #000000 0%, #ffffff 100%)")
        image = render_gradient(gradient, 100, 10)
        assert image.size == (100, 10)
        assert image.getpixel((0, 5))[0] < 30
        assert image.getpixel((99, 5))[0] > 225

    def test_render_to_bottom(self):
        gradient = parse_linear_gradient("linear-gradient(#000000, #ffffff)")
        image = render_gradient(gradient, 10, 100)
        assert image.getpixel((5, 2))[0] < 30
        assert image.getpixel((5, 97))[0] > 225
