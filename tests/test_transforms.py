"""Tests for the ordered transform table."""

import pytest
from PIL import Image

from images_ingest.core.config import resolve_config
from images_ingest.core.exceptions import ConfigurationError
from images_ingest.core.models import SizeSpec
from images_ingest.core.transforms import TRANSFORM_STEPS, build_query, plan

FULL_ORDER = [
    "background", "resize", "crop", "embed", "max", "min",
    "without_enlargement", "ignore_aspect_ratio", "extract", "trim",
    "flatten", "extend", "negate", "rotate", "flip", "flop", "blur",
    "sharpen", "gamma", "grayscale", "normalize", "quality", "progressive",
]

EVERYTHING_ON = {
    "crop": "north",
    "embed": True,
    "max": True,
    "min": True,
    "without_enlargement": True,
    "ignore_aspect_ratio": True,
    "extract": {"left": 0, "top": 0, "width": 5, "height": 5},
    "trim": 10,
    "flatten": True,
    "extend": 2,
    "negate": True,
    "rotate": 180,
    "flip": True,
    "flop": True,
    "blur": True,
    "sharpen": True,
    "gamma": True,
    "grayscale": True,
    "normalize": True,
    "quality": 75,
    "progressive": True,
}


def test_table_order():
    assert [step.name for step in TRANSFORM_STEPS] == FULL_ORDER


def test_default_plan():
    assert plan(resolve_config()) == ["background", "resize"]


def test_everything_enabled_keeps_table_order():
    assert plan(resolve_config(overrides=EVERYTHING_ON)) == FULL_ORDER


def test_resize_disabled():
    assert "resize" not in plan(resolve_config(overrides={"resize": False}))


@pytest.mark.parametrize("crop", ["north", "centre", "southwest"])
def test_crop_recognized_gravity(crop):
    assert "crop" in plan(resolve_config(overrides={"crop": crop}))


@pytest.mark.parametrize("crop", ["sideways", True])
def test_crop_unrecognized_value_is_skipped(crop):
    assert "crop" not in plan(resolve_config(overrides={"crop": crop}))


@pytest.mark.parametrize("angle", [0, 90, 180, 270])
def test_rotate_supported_angles(angle):
    assert "rotate" in plan(resolve_config(overrides={"rotate": angle}))


@pytest.mark.parametrize("angle", [45, 360, True, False])
def test_rotate_other_values_skipped(angle):
    assert "rotate" not in plan(resolve_config(overrides={"rotate": angle}))


def test_boolean_toggles_need_literal_true():
    config = resolve_config(overrides={"embed": False, "negate": False})
    assert "embed" not in plan(config)
    assert "negate" not in plan(config)


@pytest.mark.parametrize("name", ["grayscale", "embed", "flip", "normalise", "resize"])
@pytest.mark.parametrize("value", [1, "yes", "on", "true"])
def test_truthy_non_booleans_are_rejected(name, value):
    with pytest.raises(ConfigurationError) as excinfo:
        resolve_config(overrides={name: value})
    assert excinfo.value.field == name


@pytest.mark.parametrize(
    "name,value", [("rotate", "90"), ("trim", "10"), ("quality", "75"), ("crop", 1)]
)
def test_value_toggles_are_not_coerced(name, value):
    with pytest.raises(ConfigurationError) as excinfo:
        resolve_config(overrides={name: value})
    assert excinfo.value.field == name


def test_fractional_quality_is_truncated():
    config = resolve_config(overrides={"quality": 75.5})
    assert "quality" in plan(config)
    size = SizeSpec(suffix="x", width=4, height=4)
    query = build_query(Image.new("RGB", (8, 8)), config, size)
    assert query.settings["quality"] == 75


@pytest.mark.parametrize(
    "first,second",
    [({"grayscale": True}, {"greyscale": True}), ({"normalize": True}, {"normalise": True})],
)
def test_spelling_aliases_plan_identically(first, second):
    assert plan(resolve_config(overrides=first)) == plan(resolve_config(overrides=second))


class TestBuildQuery:
    """Tests for build_query."""

    MASTER = Image.new("RGB", (64, 32), (120, 60, 30))

    def test_size_only_varies_dimensions(self):
        config = resolve_config(overrides={"grayscale": True})
        large = build_query(self.MASTER, config, SizeSpec(suffix="lg", width=40, height=40))
        small = build_query(self.MASTER, config, SizeSpec(suffix="sm", width=10, height=10))
        assert large.operations == small.operations
        assert large.settings["size"] == (40, 40)
        assert small.settings["size"] == (10, 10)

    def test_value_gated_arguments(self):
        config = resolve_config(overrides={"blur": 3, "gamma": 1.5, "trim": 12.7, "quality": 55})
        settings = build_query(self.MASTER, config, SizeSpec(suffix="x", width=8, height=8)).settings
        assert settings["blur"] == 3.0
        assert settings["gamma"] == 1.5
        assert settings["trim"] == 12
        assert settings["quality"] == 55

    def test_boolean_blur_and_gamma_use_defaults(self):
        config = resolve_config(overrides={"blur": True, "gamma": True})
        settings = build_query(self.MASTER, config, SizeSpec(suffix="x", width=8, height=8)).settings
        assert settings["blur"] == 0.0
        assert settings["gamma"] == 2.2

    def test_grayscale_aliases_render_identically(self):
        size = SizeSpec(suffix="x", width=16, height=16)
        gray = build_query(self.MASTER, resolve_config(overrides={"grayscale": True}), size)
        grey = build_query(self.MASTER, resolve_config(overrides={"greyscale": True}), size)
        assert gray.render().tobytes() == grey.render().tobytes()

    def test_later_fit_modifier_wins(self):
        config = resolve_config(overrides={"crop": "north", "max": True})
        settings = build_query(self.MASTER, config, SizeSpec(suffix="x", width=8, height=8)).settings
        assert settings["fit"] == "inside"
        assert settings["gravity"] == "north"
