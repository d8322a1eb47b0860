"""Image operations over a shared, read-only master image."""

from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from PIL import Image, ImageChops, ImageFilter, ImageOps

from .models import Background, ExtractRegion, Margins

# Anchor of each gravity as fractions of the free space (x, y).
GRAVITY: Dict[str, Tuple[float, float]] = {
    "north": (0.5, 0.0),
    "northeast": (1.0, 0.0),
    "east": (1.0, 0.5),
    "southeast": (1.0, 1.0),
    "south": (0.5, 1.0),
    "southwest": (0.0, 1.0),
    "west": (0.0, 0.5),
    "northwest": (0.0, 0.0),
    "center": (0.5, 0.5),
    "centre": (0.5, 0.5),
}

ROTATION_ANGLES = (0, 90, 180, 270)

OUTPUT_FORMATS = {
    "jpg": "JPEG",
    "jpeg": "JPEG",
    "png": "PNG",
    "webp": "WEBP",
    "tif": "TIFF",
    "tiff": "TIFF",
    "gif": "GIF",
}

DEFAULT_GAMMA = 2.2
DEFAULT_QUALITY = 80

_INITIAL_SETTINGS: Dict[str, Any] = {
    "background": (0, 0, 0, 255),
    "size": None,
    "fit": "cover",
    "gravity": "center",
    "without_enlargement": False,
    "extract": None,
    "trim": None,
    "flatten": False,
    "extend": None,
    "negate": False,
    "rotate": None,
    "flip": False,
    "flop": False,
    "blur": None,
    "sharpen": False,
    "gamma": None,
    "grayscale": False,
    "normalize": False,
    "quality": None,
    "progressive": False,
}


class ImageQuery:
    """
    Chainable description of the work to do on one master image.

    Every call returns a new query, so several queries can be built from the
    same master without affecting each other. Nothing touches pixels until
    ``render`` or ``to_file``; at that point the operations run in a fixed
    pipeline order regardless of the order they were requested in:
    trim, rotate, flip, flop, resize, extract, extend, flatten, negate,
    blur, sharpen, gamma, normalize, grayscale.

    Example:
        query = ImageQuery(master).resize(200, 200).crop("north").grayscale()
        query.to_file("out.jpg", "jpg")
    """

    def __init__(self, master: Image.Image):
        self._master = master
        self._settings: Dict[str, Any] = dict(_INITIAL_SETTINGS)
        self.operations: List[str] = []

    def _with(self, operation: str, **settings: Any) -> "ImageQuery":
        query = ImageQuery(self._master)
        query._settings = {**self._settings, **settings}
        query.operations = [*self.operations, operation]
        return query

    @property
    def settings(self) -> Dict[str, Any]:
        return dict(self._settings)

    def background(self, color: Background) -> "ImageQuery":
        return self._with("background", background=color.as_rgba())

    def resize(self, width: Optional[int], height: Optional[int]) -> "ImageQuery":
        return self._with("resize", size=(width, height))

    def crop(self, gravity: str) -> "ImageQuery":
        return self._with("crop", fit="cover", gravity=gravity)

    def embed(self) -> "ImageQuery":
        return self._with("embed", fit="embed")

    def max(self) -> "ImageQuery":
        return self._with("max", fit="inside")

    def min(self) -> "ImageQuery":
        return self._with("min", fit="outside")

    def without_enlargement(self) -> "ImageQuery":
        return self._with("without_enlargement", without_enlargement=True)

    def ignore_aspect_ratio(self) -> "ImageQuery":
        return self._with("ignore_aspect_ratio", fit="fill")

    def extract(self, region: ExtractRegion) -> "ImageQuery":
        return self._with("extract", extract=region)

    def trim(self, threshold: int) -> "ImageQuery":
        return self._with("trim", trim=threshold)

    def flatten(self) -> "ImageQuery":
        return self._with("flatten", flatten=True)

    def extend(self, margins: Union[int, Margins]) -> "ImageQuery":
        if isinstance(margins, int):
            margins = Margins(top=margins, left=margins, bottom=margins, right=margins)
        return self._with("extend", extend=margins)

    def negate(self) -> "ImageQuery":
        return self._with("negate", negate=True)

    def rotate(self, angle: int) -> "ImageQuery":
        return self._with("rotate", rotate=angle)

    def flip(self) -> "ImageQuery":
        return self._with("flip", flip=True)

    def flop(self) -> "ImageQuery":
        return self._with("flop", flop=True)

    def blur(self, sigma: Optional[float] = None) -> "ImageQuery":
        if sigma is not None and not 0.3 <= sigma <= 1000:
            raise ValueError(f"Invalid blur sigma {sigma}, expected 0.3 - 1000")
        return self._with("blur", blur=sigma if sigma is not None else 0.0)

    def sharpen(self) -> "ImageQuery":
        return self._with("sharpen", sharpen=True)

    def gamma(self, value: float = DEFAULT_GAMMA) -> "ImageQuery":
        if not 1.0 <= value <= 3.0:
            raise ValueError(f"Invalid gamma {value}, expected 1.0 - 3.0")
        return self._with("gamma", gamma=value)

    def grayscale(self) -> "ImageQuery":
        return self._with("grayscale", grayscale=True)

    def normalize(self) -> "ImageQuery":
        return self._with("normalize", normalize=True)

    def quality(self, value: int) -> "ImageQuery":
        if not 1 <= value <= 100:
            raise ValueError(f"Invalid quality {value}, expected 1 - 100")
        return self._with("quality", quality=value)

    def progressive(self) -> "ImageQuery":
        return self._with("progressive", progressive=True)

    def render(self) -> Image.Image:
        """Apply the recorded operations to a private copy of the master."""
        s = self._settings
        background = s["background"]
        image = self._master.copy()

        if s["trim"] is not None:
            image = trim_borders(image, s["trim"])
        if s["rotate"]:
            # Pillow rotates counter-clockwise; angles here are clockwise.
            image = image.rotate(-s["rotate"], expand=True)
        if s["flip"]:
            image = ImageOps.flip(image)
        if s["flop"]:
            image = ImageOps.mirror(image)
        if s["size"] is not None:
            width, height = s["size"]
            image = fit_image(
                image,
                width,
                height,
                fit=s["fit"],
                gravity=s["gravity"],
                without_enlargement=s["without_enlargement"],
                background=background,
            )
        if s["extract"] is not None:
            image = extract_region(image, s["extract"])
        if s["extend"] is not None:
            image = extend_image(image, s["extend"], background)
        if s["flatten"]:
            image = flatten_alpha(image, background)
        if s["negate"]:
            image = negate_image(image)
        if s["blur"] is not None:
            if s["blur"]:
                image = image.filter(ImageFilter.GaussianBlur(s["blur"]))
            else:
                image = image.filter(ImageFilter.BoxBlur(1))
        if s["sharpen"]:
            image = image.filter(ImageFilter.SHARPEN)
        if s["gamma"] is not None:
            image = apply_gamma(image, s["gamma"])
        if s["normalize"]:
            image = normalize_image(image)
        if s["grayscale"]:
            image = image.convert("LA" if "A" in image.getbands() else "L")

        return image

    def to_file(self, path: Union[str, Path], output: str) -> Path:
        """Render and encode to ``path`` in the ``output`` format."""
        image_format = OUTPUT_FORMATS.get(output.lower())
        if image_format is None:
            raise ValueError(f"Unsupported output format: {output}")

        image = self.render()
        save_kwargs: Dict[str, Any] = {}

        if image_format == "JPEG":
            image = to_jpeg_mode(image, self._settings["background"])
            save_kwargs["quality"] = self._settings["quality"] or DEFAULT_QUALITY
            if self._settings["progressive"]:
                save_kwargs["progressive"] = True
        elif image_format == "WEBP":
            save_kwargs["quality"] = self._settings["quality"] or DEFAULT_QUALITY

        path = Path(path)
        image.save(path, format=image_format, **save_kwargs)
        return path


def _scale_for(
    src: Tuple[int, int], target: Tuple[int, int], cover: bool, without_enlargement: bool
) -> float:
    ratios = (target[0] / src[0], target[1] / src[1])
    scale = max(ratios) if cover else min(ratios)
    if without_enlargement:
        scale = min(scale, 1.0)
    return scale


def _anchor(free: Tuple[int, int], gravity: str) -> Tuple[int, int]:
    gx, gy = GRAVITY.get(gravity, GRAVITY["center"])
    return (round(free[0] * gx), round(free[1] * gy))


def fit_image(
    image: Image.Image,
    width: Optional[int],
    height: Optional[int],
    fit: str = "cover",
    gravity: str = "center",
    without_enlargement: bool = False,
    background: Tuple[int, int, int, int] = (0, 0, 0, 255),
) -> Image.Image:
    """
    Resize ``image`` towards ``width`` x ``height``.

    Args:
        fit: "cover" scales to fill then crops at ``gravity``; "embed" scales
            to fit then pads with ``background``; "inside" scales to fit;
            "outside" scales to fill without cropping; "fill" stretches.
        without_enlargement: Never scale up.

    A missing width or height is derived from the aspect ratio.
    """
    src_w, src_h = image.size
    if not width and not height:
        return image
    if not width:
        width = max(1, round(src_w * height / src_h))
    if not height:
        height = max(1, round(src_h * width / src_w))
    if width <= 0 or height <= 0:
        raise ValueError(f"Invalid resize dimensions {width}x{height}")

    if fit == "fill":
        if without_enlargement:
            width, height = min(width, src_w), min(height, src_h)
        return image.resize((width, height), Image.Resampling.LANCZOS)

    cover = fit in ("cover", "outside")
    scale = _scale_for((src_w, src_h), (width, height), cover, without_enlargement)
    scaled = (max(1, round(src_w * scale)), max(1, round(src_h * scale)))
    resized = image.resize(scaled, Image.Resampling.LANCZOS) if scaled != image.size else image.copy()

    if fit == "cover":
        crop_w, crop_h = min(width, scaled[0]), min(height, scaled[1])
        left, top = _anchor((scaled[0] - crop_w, scaled[1] - crop_h), gravity)
        return resized.crop((left, top, left + crop_w, top + crop_h))

    if fit == "embed":
        mode = "RGBA" if background[3] < 255 or "A" in resized.getbands() else "RGB"
        canvas = Image.new(mode, (width, height), background if mode == "RGBA" else background[:3])
        left, top = _anchor((width - scaled[0], height - scaled[1]), gravity)
        resized = resized.convert(mode)
        canvas.paste(resized, (left, top), resized if mode == "RGBA" else None)
        return canvas

    return resized


def extract_region(image: Image.Image, region: ExtractRegion) -> Image.Image:
    """Crop ``region`` out of ``image``; the region must lie inside it."""
    right = region.left + region.width
    bottom = region.top + region.height
    if (
        region.left < 0
        or region.top < 0
        or region.width <= 0
        or region.height <= 0
        or right > image.width
        or bottom > image.height
    ):
        raise ValueError(
            f"Extract area {region.left},{region.top} {region.width}x{region.height} "
            f"is outside the {image.width}x{image.height} image"
        )
    return image.crop((region.left, region.top, right, bottom))


def trim_borders(image: Image.Image, threshold: int) -> Image.Image:
    """Remove edges that match the top-left pixel within ``threshold``."""
    rgb = image.convert("RGB")
    reference = Image.new("RGB", rgb.size, rgb.getpixel((0, 0)))
    diff = ImageChops.difference(rgb, reference).convert("L")
    mask = diff.point(lambda value: 255 if value > threshold else 0)
    bbox = mask.getbbox()
    return image.crop(bbox) if bbox else image


def extend_image(
    image: Image.Image, margins: Margins, background: Tuple[int, int, int, int]
) -> Image.Image:
    """Pad each edge with ``background``."""
    width = image.width + margins.left + margins.right
    height = image.height + margins.top + margins.bottom
    mode = "RGBA" if "A" in image.getbands() or background[3] < 255 else "RGB"
    canvas = Image.new(mode, (width, height), background if mode == "RGBA" else background[:3])
    source = image.convert(mode)
    canvas.paste(source, (margins.left, margins.top))
    return canvas


def flatten_alpha(image: Image.Image, background: Tuple[int, int, int, int]) -> Image.Image:
    """Composite transparent pixels onto the opaque background colour."""
    if "A" not in image.getbands() and image.mode != "P":
        return image
    rgba = image.convert("RGBA")
    canvas = Image.new("RGB", rgba.size, background[:3])
    canvas.paste(rgba, mask=rgba.getchannel("A"))
    return canvas


def negate_image(image: Image.Image) -> Image.Image:
    """Invert colour channels, leaving alpha alone."""
    if image.mode in ("RGBA", "LA"):
        *colour, alpha = image.split()
        inverted = [ImageOps.invert(channel) for channel in colour]
        return Image.merge(image.mode, (*inverted, alpha))
    if image.mode not in ("RGB", "L"):
        image = image.convert("RGB")
    return ImageOps.invert(image)


def apply_gamma(image: Image.Image, gamma: float) -> Image.Image:
    """Gamma-correct colour channels with exponent ``1 / gamma``."""
    table = [round(255 * ((value / 255) ** (1 / gamma))) for value in range(256)]
    if image.mode in ("RGBA", "LA"):
        *colour, alpha = image.split()
        return Image.merge(image.mode, (*(c.point(table) for c in colour), alpha))
    if image.mode not in ("RGB", "L"):
        image = image.convert("RGB")
    return image.point(table * len(image.getbands()))


def normalize_image(image: Image.Image) -> Image.Image:
    """Stretch luminance to the full 0-255 range."""
    if image.mode in ("RGBA", "LA"):
        *colour, alpha = image.split()
        base = Image.merge("RGB" if image.mode == "RGBA" else "L", colour)
        stretched = ImageOps.autocontrast(base)
        return Image.merge(image.mode, (*stretched.split(), alpha))
    if image.mode not in ("RGB", "L"):
        image = image.convert("RGB")
    return ImageOps.autocontrast(image)


def to_jpeg_mode(image: Image.Image, background: Tuple[int, int, int, int]) -> Image.Image:
    """JPEG has no alpha: flatten onto the background and drop to RGB or L."""
    if "A" in image.getbands() or image.mode == "P":
        image = flatten_alpha(image, background)
    if image.mode not in ("RGB", "L", "CMYK"):
        image = image.convert("RGB")
    return image


def prepare_master(image: Image.Image) -> Image.Image:
    """Bring a decoded upload into a mode every operation understands."""
    if image.mode in ("RGB", "RGBA", "L", "LA"):
        return image
    if image.mode in ("P", "PA"):
        has_alpha = image.mode == "PA" or "transparency" in image.info
        return image.convert("RGBA" if has_alpha else "RGB")
    return image.convert("RGB")
