"""Tests for pixel to EMU conversion."""

from pptx.util import Emu

from deckexport.renderer.units import EMU_PER_PX, scaled_px, to_emu


class TestToEmu:
    """Tests for to_emu."""

    def test_one_pixel(self):
        """One CSS pixel is 9525 EMU at 96 DPI."""
        assert to_emu(1) == 9525
        assert EMU_PER_PX == 9525

    def test_default_slide_size(self):
        """960x540 maps to the 16:9 PowerPoint slide size."""
        assert to_emu(960) == 9144000
        assert to_emu(540) == 5143500

    def test_one_inch(self):
        """96 pixels are one inch."""
        assert to_emu(96) == 914400

    def test_returns_emu_length(self):
        """Result is a python-pptx Emu length."""
        value = to_emu(100)
        assert isinstance(value, Emu)
        assert value.inches == 100 / 96

    def test_rounds_half_up(self):
        """Fractional EMU values round half up."""
        # 0.5px = 4762.5 EMU
        assert to_emu(0.5) == 4763
        assert to_emu(0.25) == 2381

    def test_zero_and_negative(self):
        """Zero stays zero and negative lengths clamp to zero."""
        assert to_emu(0) == 0
        assert to_emu(-10) == 0

    def test_custom_dpi(self):
        """At 72 DPI a pixel is a point."""
        assert to_emu(72, dpi=72) == 914400


class TestHelpers:
    """Tests for the scaling helper."""

    def test_scaled_px(self):
        assert scaled_px(960, 2) == 1920
        assert scaled_px(10.3, 1.5) == 15
