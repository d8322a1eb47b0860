"""Ordered, declarative table of the transform steps applied per variant.

Each step pairs a predicate over the resolved configuration with the call
that adds the step to an ``ImageQuery``. Steps are evaluated in table order
against the same configuration for every size; only width, height and
suffix differ between variants.
"""

from dataclasses import dataclass
from typing import Any, Callable, List, Tuple

from PIL import Image

from .image_utils import GRAVITY, ROTATION_ANGLES, ImageQuery
from .models import IngestConfig, SizeSpec


@dataclass(frozen=True)
class TransformStep:
    """One conditional operation in the variant pipeline."""

    name: str
    predicate: Callable[[IngestConfig], bool]
    apply: Callable[[ImageQuery, IngestConfig, SizeSpec], ImageQuery]


def _enabled(value: Any) -> bool:
    """Boolean-gated toggle: only a literal ``True`` turns it on."""
    return value is True


def _provided(value: Any) -> bool:
    """Value-gated toggle: anything except ``False``/``None`` turns it on."""
    return value is not False and value is not None


def _blur(query: ImageQuery, config: IngestConfig, size: SizeSpec) -> ImageQuery:
    if config.blur is True:
        return query.blur()
    return query.blur(float(config.blur))


def _gamma(query: ImageQuery, config: IngestConfig, size: SizeSpec) -> ImageQuery:
    if config.gamma is True:
        return query.gamma()
    return query.gamma(float(config.gamma))


TRANSFORM_STEPS: Tuple[TransformStep, ...] = (
    TransformStep(
        "background",
        lambda c: c.background is not None,
        lambda q, c, s: q.background(c.background),
    ),
    TransformStep(
        "resize",
        lambda c: _enabled(c.resize),
        lambda q, c, s: q.resize(s.width, s.height),
    ),
    TransformStep(
        "crop",
        lambda c: isinstance(c.crop, str) and c.crop in GRAVITY,
        lambda q, c, s: q.crop(c.crop),
    ),
    TransformStep("embed", lambda c: _enabled(c.embed), lambda q, c, s: q.embed()),
    TransformStep("max", lambda c: _enabled(c.max), lambda q, c, s: q.max()),
    TransformStep("min", lambda c: _enabled(c.min), lambda q, c, s: q.min()),
    TransformStep(
        "without_enlargement",
        lambda c: _enabled(c.without_enlargement),
        lambda q, c, s: q.without_enlargement(),
    ),
    TransformStep(
        "ignore_aspect_ratio",
        lambda c: _enabled(c.ignore_aspect_ratio),
        lambda q, c, s: q.ignore_aspect_ratio(),
    ),
    TransformStep(
        "extract",
        lambda c: _provided(c.extract),
        lambda q, c, s: q.extract(c.extract),
    ),
    TransformStep(
        "trim",
        lambda c: _provided(c.trim),
        lambda q, c, s: q.trim(int(c.trim)),
    ),
    TransformStep("flatten", lambda c: _enabled(c.flatten), lambda q, c, s: q.flatten()),
    TransformStep(
        "extend",
        lambda c: _provided(c.extend),
        lambda q, c, s: q.extend(c.extend),
    ),
    TransformStep("negate", lambda c: _enabled(c.negate), lambda q, c, s: q.negate()),
    TransformStep(
        "rotate",
        # bool is an int subclass: False must not pass as a 0 degree rotation.
        lambda c: not isinstance(c.rotate, bool) and c.rotate in ROTATION_ANGLES,
        lambda q, c, s: q.rotate(c.rotate),
    ),
    TransformStep("flip", lambda c: _enabled(c.flip), lambda q, c, s: q.flip()),
    TransformStep("flop", lambda c: _enabled(c.flop), lambda q, c, s: q.flop()),
    TransformStep("blur", lambda c: _provided(c.blur), _blur),
    TransformStep("sharpen", lambda c: _enabled(c.sharpen), lambda q, c, s: q.sharpen()),
    TransformStep("gamma", lambda c: _provided(c.gamma), _gamma),
    TransformStep(
        "grayscale",
        lambda c: _enabled(c.grayscale) or _enabled(c.greyscale),
        lambda q, c, s: q.grayscale(),
    ),
    TransformStep(
        "normalize",
        lambda c: _enabled(c.normalize) or _enabled(c.normalise),
        lambda q, c, s: q.normalize(),
    ),
    TransformStep(
        "quality",
        lambda c: _provided(c.quality),
        lambda q, c, s: q.quality(int(c.quality)),
    ),
    TransformStep(
        "progressive",
        lambda c: _enabled(c.progressive),
        lambda q, c, s: q.progressive(),
    ),
)


def plan(config: IngestConfig) -> List[str]:
    """Names of the steps ``config`` enables, in application order."""
    return [step.name for step in TRANSFORM_STEPS if step.predicate(config)]


def build_query(master: Image.Image, config: IngestConfig, size: SizeSpec) -> ImageQuery:
    """Build the operation pipeline for one output size."""
    query = ImageQuery(master)
    for step in TRANSFORM_STEPS:
        if step.predicate(config):
            query = step.apply(query, config, size)
    return query
