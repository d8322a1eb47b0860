"""Tests for image operations."""

import pytest
from PIL import Image

from images_ingest.core.image_utils import (
    GRAVITY,
    ImageQuery,
    apply_gamma,
    extend_image,
    extract_region,
    fit_image,
    flatten_alpha,
    negate_image,
    prepare_master,
    trim_borders,
)
from images_ingest.core.models import Background, ExtractRegion, Margins


def _two_tone(width: int = 200, height: int = 100) -> Image.Image:
    """Left half red, right half blue."""
    image = Image.new("RGB", (width, height), (255, 0, 0))
    image.paste((0, 0, 255), (width // 2, 0, width, height))
    return image


class TestFitImage:
    """Tests for fit_image."""

    def test_cover_crops_to_exact_size(self):
        result = fit_image(_two_tone(200, 100), 50, 50)
        assert result.size == (50, 50)

    @pytest.mark.parametrize("gravity,expected", [("west", (255, 0, 0)), ("east", (0, 0, 255))])
    def test_cover_crop_follows_gravity(self, gravity, expected):
        result = fit_image(_two_tone(200, 100), 50, 50, gravity=gravity)
        red, green, blue = result.getpixel((25, 25))
        assert abs(red - expected[0]) < 10 and abs(blue - expected[2]) < 10

    def test_inside_keeps_aspect_ratio(self):
        assert fit_image(_two_tone(200, 100), 50, 50, fit="inside").size == (50, 25)

    def test_outside_covers_without_cropping(self):
        assert fit_image(_two_tone(200, 100), 50, 50, fit="outside").size == (100, 50)

    def test_fill_ignores_aspect_ratio(self):
        assert fit_image(_two_tone(200, 100), 30, 70, fit="fill").size == (30, 70)

    def test_embed_pads_with_background(self):
        result = fit_image(
            _two_tone(200, 100), 50, 50, fit="embed", background=(10, 20, 30, 255)
        )
        assert result.size == (50, 50)
        assert result.mode == "RGB"
        assert result.getpixel((25, 0)) == (10, 20, 30)

    def test_without_enlargement(self):
        result = fit_image(_two_tone(40, 20), 400, 400, fit="inside", without_enlargement=True)
        assert result.size == (40, 20)

    def test_missing_dimension_uses_aspect_ratio(self):
        assert fit_image(_two_tone(200, 100), 100, None).size == (100, 50)
        assert fit_image(_two_tone(200, 100), None, 25).size == (50, 25)

    def test_zero_dimension_rejected(self):
        with pytest.raises(ValueError):
            fit_image(_two_tone(), -5, 10)


class TestHelpers:
    """Tests for individual operations."""

    def test_extract_region(self):
        region = ExtractRegion(left=10, top=5, width=20, height=15)
        assert extract_region(_two_tone(), region).size == (20, 15)

    def test_extract_region_outside_image(self):
        with pytest.raises(ValueError, match="outside"):
            extract_region(_two_tone(100, 100), ExtractRegion(left=90, top=0, width=20, height=10))

    def test_trim_borders(self):
        image = Image.new("RGB", (100, 100), (255, 255, 255))
        image.paste((0, 0, 0), (20, 30, 60, 70))
        assert trim_borders(image, 10).size == (40, 40)

    def test_extend_image(self):
        result = extend_image(
            Image.new("RGB", (10, 10)), Margins(top=1, left=2, bottom=3, right=4), (9, 9, 9, 255)
        )
        assert result.size == (16, 14)
        assert result.getpixel((0, 0)) == (9, 9, 9)

    def test_flatten_alpha(self):
        image = Image.new("RGBA", (4, 4), (0, 0, 0, 0))
        result = flatten_alpha(image, (200, 100, 50, 255))
        assert result.mode == "RGB"
        assert result.getpixel((0, 0)) == (200, 100, 50)

    def test_negate_keeps_alpha(self):
        image = Image.new("RGBA", (2, 2), (10, 20, 30, 40))
        assert negate_image(image).getpixel((0, 0)) == (245, 235, 225, 40)

    def test_gamma_brightens_midtones(self):
        image = Image.new("L", (1, 1), 64)
        assert apply_gamma(image, 2.2).getpixel((0, 0)) > 64

    def test_prepare_master_palette(self):
        palette = Image.new("P", (4, 4))
        assert prepare_master(palette).mode == "RGB"
        rgb = Image.new("RGB", (4, 4))
        assert prepare_master(rgb) is rgb


class TestImageQuery:
    """Tests for ImageQuery."""

    def test_calls_do_not_mutate_the_source_query(self):
        base = ImageQuery(_two_tone()).resize(50, 50)
        gray = base.grayscale()
        assert base.operations == ["resize"]
        assert gray.operations == ["resize", "grayscale"]
        assert base.settings["grayscale"] is False

    def test_master_is_not_modified(self):
        master = _two_tone()
        ImageQuery(master).resize(10, 10).negate().render()
        assert master.size == (200, 100)
        assert master.getpixel((0, 0)) == (255, 0, 0)

    def test_rotate_is_clockwise_and_expands(self):
        result = ImageQuery(_two_tone(200, 100)).rotate(90).render()
        assert result.size == (100, 200)
        # Clockwise: the left (red) half ends up on top.
        assert result.getpixel((50, 10))[0] > 200

    def test_flip_and_flop(self):
        flopped = ImageQuery(_two_tone()).flop().render()
        assert flopped.getpixel((0, 0))[2] > 200
        flipped = ImageQuery(_two_tone()).flip().render()
        assert flipped.getpixel((0, 0))[0] > 200

    def test_grayscale_mode(self):
        assert ImageQuery(_two_tone()).grayscale().render().mode == "L"

    @pytest.mark.parametrize("method,value", [("blur", 0.1), ("gamma", 5.0), ("quality", 0)])
    def test_out_of_range_values_rejected(self, method, value):
        with pytest.raises(ValueError):
            getattr(ImageQuery(_two_tone()), method)(value)

    def test_to_file_jpeg_with_quality_and_progressive(self, tmp_path):
        path = tmp_path / "out.jpg"
        query = (
            ImageQuery(_two_tone())
            .background(Background(r=1, g=2, b=3))
            .resize(40, 40)
            .quality(60)
            .progressive()
        )
        assert query.to_file(path, "jpg") == path
        with Image.open(path) as written:
            assert written.format == "JPEG"
            assert written.size == (40, 40)
            assert written.info.get("progressive") or written.info.get("progression")

    def test_to_file_flattens_alpha_for_jpeg(self, tmp_path):
        master = Image.new("RGBA", (20, 20), (0, 0, 0, 0))
        path = ImageQuery(master).to_file(tmp_path / "a.jpg", "jpg")
        with Image.open(path) as written:
            assert written.mode == "RGB"

    def test_to_file_unknown_format(self, tmp_path):
        with pytest.raises(ValueError, match="Unsupported output format"):
            ImageQuery(_two_tone()).to_file(tmp_path / "x.bogus", "bogus")

    def test_gravity_table(self):
        assert set(GRAVITY) == {
            "north", "northeast", "east", "southeast", "south",
            "southwest", "west", "northwest", "center", "centre",
        }
