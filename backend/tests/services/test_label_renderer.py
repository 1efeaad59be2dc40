"""Тесты растрового рендерера и сборки PDF."""

import io
import logging

import pikepdf
import pytest
from PIL import Image

from labelkit.models.label_types import LabelData, LabelFieldConfig
from labelkit.services import label_renderer
from labelkit.services.errors import RenderError, TranscodeError
from labelkit.services.label_renderer import (
    RASTER_LAYOUT,
    LabelRenderer,
    calculate_font_size,
    generate_label_pdf,
    generate_label_png,
    render_label_image,
    render_label_to_canvas,
    wrap_words,
)


def _approx_measure(text: str, size: int) -> float:
    return len(text) * size * 0.6


def _is_blank(image: Image.Image, box: tuple[int, int, int, int]) -> bool:
    """Область полностью белая."""
    return image.crop(box).convert("L").getextrema() == (255, 255)


def _inner(box: tuple) -> tuple[int, int, int, int]:
    """Рамка (x, y, w, h) → область внутри без краёв."""
    x, y, w, h = box
    return (x + 3, y + 3, x + w - 3, y + h - 3)


class TestCalculateFontSize:
    """Подбор размера шрифта."""

    def test_short_text_starts_from_height(self):
        assert calculate_font_size("A", 100, 50, _approx_measure) == 40

    def test_steps_down_by_two(self):
        # 10 символов * 0.6 = 6 * size <= 150 → size <= 25
        assert calculate_font_size("abcdefghij", 150, 100, _approx_measure) == 24

    def test_floor_when_never_fits(self):
        assert calculate_font_size("x" * 500, 10, 50, _approx_measure) == 8

    def test_tiny_box_clamped_to_floor(self):
        assert calculate_font_size("A", 100, 5, _approx_measure) == 8

    def test_result_always_in_bounds(self):
        for width in (1, 20, 80, 400):
            for height in (1, 10, 30, 60, 200):
                size = calculate_font_size("Charizard VMAX", width, height, _approx_measure)
                assert 8 <= size <= 40


class TestWrapWords:
    """Жадный перенос."""

    @staticmethod
    def measure(text: str) -> float:
        return len(text) * 10

    def test_two_lines(self):
        assert wrap_words("aaaa bbbb cccc dddd", 100, self.measure) == ["aaaa bbbb", "cccc dddd"]

    def test_overflow_dropped(self):
        assert wrap_words("aaaa bbbb cccc dddd eeee", 100, self.measure) == [
            "aaaa bbbb",
            "cccc dddd",
        ]

    def test_single_line(self):
        assert wrap_words("short", 100, self.measure) == ["short"]

    def test_empty(self):
        assert wrap_words("   ", 100, self.measure) == []

    def test_long_word_kept_whole(self):
        assert wrap_words("x" * 30, 100, self.measure) == ["x" * 30]


class TestRenderSurface:
    """Размер и проверка поверхности."""

    def test_screen_dpi_base_size(self, card_data, all_fields):
        image = render_label_image(all_fields, card_data, dpi=96)
        assert image.size == (406, 203)

    def test_printer_dpi_scaled_size(self, card_data, all_fields):
        image = render_label_image(all_fields, card_data, dpi=203)
        assert image.size == (round(406 * 203 / 96), round(203 * 203 / 96))

    def test_none_surface(self, card_data, all_fields):
        with pytest.raises(RenderError):
            render_label_to_canvas(None, all_fields, card_data)

    def test_wrong_surface_size(self, card_data, all_fields):
        with pytest.raises(RenderError):
            render_label_to_canvas(Image.new("RGB", (100, 100)), all_fields, card_data, scale=1.0)

    def test_draws_on_given_surface(self, card_data, all_fields):
        surface = Image.new("RGB", (406, 203), "red")
        render_label_to_canvas(surface, all_fields, card_data)
        assert surface.getpixel((200, 100)) != (255, 0, 0)

    def test_invalid_scale(self):
        with pytest.raises(ValueError):
            LabelRenderer(scale=0)


class TestRenderContent:
    """Что именно нарисовано."""

    def test_hidden_price_not_drawn(self):
        data = LabelData(title="Card", price="99.99", condition="NM")
        config = LabelFieldConfig(include_price=False, barcode_mode="none")

        image = render_label_image(config, data, dpi=96)

        assert _is_blank(image, _inner(RASTER_LAYOUT["price_box"]))

    def test_visible_price_drawn(self):
        data = LabelData(title="Card", price="99.99", condition="NM")
        config = LabelFieldConfig(barcode_mode="none")

        image = render_label_image(config, data, dpi=96)

        assert not _is_blank(image, _inner(RASTER_LAYOUT["price_box"]))

    def test_barcode_drawn_in_band(self, card_data):
        image = render_label_image(LabelFieldConfig(barcode_mode="barcode"), card_data, dpi=96)
        assert not _is_blank(image, _inner(RASTER_LAYOUT["barcode"]))

    def test_no_code_band_when_mode_none(self, card_data):
        image = render_label_image(LabelFieldConfig(barcode_mode="none"), card_data, dpi=96)
        assert _is_blank(image, _inner(RASTER_LAYOUT["barcode"]))

    def test_barcode_failure_falls_back_to_text(self, card_data, monkeypatch, caplog):
        def broken(self, value):
            raise ValueError("unsupported symbol")

        monkeypatch.setattr(LabelRenderer, "_generate_code128", broken)

        with caplog.at_level(logging.WARNING, logger="labelkit.services.label_renderer"):
            image = render_label_image(LabelFieldConfig(barcode_mode="barcode"), card_data, dpi=96)

        assert "Штрихкод не сгенерирован" in caplog.text
        assert not _is_blank(image, _inner(RASTER_LAYOUT["barcode"]))

    def test_qr_placeholder_deterministic(self, card_data):
        config = LabelFieldConfig(barcode_mode="qr")
        first = render_label_image(config, card_data, dpi=96)
        second = render_label_image(config, card_data, dpi=96)

        assert first.tobytes() == second.tobytes()
        assert not _is_blank(first, _inner(RASTER_LAYOUT["barcode"]))

    def test_guides_only_when_requested(self, card_data, all_fields):
        plain = render_label_image(all_fields, card_data, dpi=96)
        guided = render_label_image(all_fields, card_data, dpi=96, show_guides=True)
        assert plain.tobytes() != guided.tobytes()


class TestEncoding:
    """PDF и PNG."""

    @pytest.mark.asyncio
    async def test_pdf_single_page_2x1(self, card_data, all_fields):
        pdf_bytes = await generate_label_pdf(all_fields, card_data)

        assert pdf_bytes[:4] == b"%PDF"
        with pikepdf.open(io.BytesIO(pdf_bytes)) as pdf:
            assert len(pdf.pages) == 1
            assert [float(v) for v in pdf.pages[0].mediabox] == [0, 0, 144, 72]

    @pytest.mark.asyncio
    async def test_pdf_encoding_failure(self, card_data, all_fields, monkeypatch):
        def broken(image):
            raise OSError("disk full")

        monkeypatch.setattr(label_renderer, "_encode_pdf", broken)

        with pytest.raises(TranscodeError):
            await generate_label_pdf(all_fields, card_data)

    @pytest.mark.asyncio
    async def test_png_preview(self, card_data, all_fields):
        png_bytes = await generate_label_png(all_fields, card_data, dpi=96, show_guides=True)

        assert png_bytes[:8] == b"\x89PNG\r\n\x1a\n"
        assert Image.open(io.BytesIO(png_bytes)).size == (406, 203)
