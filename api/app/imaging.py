# api/app/imaging.py
import io

from PIL import Image, ImageOps


def _to_eight_bit(img: Image.Image) -> Image.Image:
    """
    Map 16-bit / 32-bit / float samples linearly onto 0..255.
    A plain convert("L") clips everything above 255 to white.
    """
    if img.mode.startswith("I;16"):
        img = img.convert("I")

    lo, hi = img.getextrema()
    if hi > lo:
        scale = 255.0 / (hi - lo)
        offset = -lo * scale
        img = img.point(lambda v: v * scale + offset)
    return img.convert("L")


def clean_image(raw_bytes: bytes) -> bytes:
    """
    Grayscale -> stretch contrast to the full range -> PNG.
    Every upload goes through exactly these steps before it is sent to the model.
    Raises PIL.UnidentifiedImageError when the bytes are not an image.
    """
    with Image.open(io.BytesIO(raw_bytes)) as img:
        if img.mode == "CMYK":
            img = img.convert("RGB")
        if img.mode in ("I", "F") or img.mode.startswith("I;16"):
            gray = _to_eight_bit(img)
        else:
            gray = ImageOps.grayscale(img)
    gray = ImageOps.autocontrast(gray)

    out = io.BytesIO()
    gray.save(out, format="PNG")
    return out.getvalue()
