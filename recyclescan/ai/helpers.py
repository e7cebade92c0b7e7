import base64
from io import BytesIO

from PIL import Image

from recyclescan.ai.states import EncodedImage, SelectedImage
from recyclescan.errors import (
    ImageTooLargeError,
    MediaTypeMismatchError,
    UnsupportedMediaTypeError,
)


# browsers and file pickers disagree on a few names
_MEDIA_TYPE_ALIASES = {
    "image/jpg": "image/jpeg",
    "image/pjpeg": "image/jpeg",
    "image/x-png": "image/png",
    # multi-picture JPEG from phone cameras, Pillow calls it MPO
    "image/mpo": "image/jpeg",
}


def normalize_media_type(media_type: str) -> str:
    mt = (media_type or "").split(";", 1)[0].strip().lower()
    return _MEDIA_TYPE_ALIASES.get(mt, mt)


def sniff_media_type(data: bytes) -> str:
    """Return the media type Pillow detects for the given bytes."""
    try:
        with Image.open(BytesIO(data)) as img:
            fmt = img.format
    except Image.DecompressionBombError as e:
        raise ImageTooLargeError(str(e)) from e
    except (OSError, EOFError) as e:
        # UnidentifiedImageError and truncated headers both land here
        raise MediaTypeMismatchError(f"Bytes are not a recognizable image: {e}") from e

    mime = Image.MIME.get(fmt or "")
    if not mime:
        raise MediaTypeMismatchError(f"No media type known for image format {fmt!r}")
    return normalize_media_type(mime)


def select_image(data: bytes, media_type: str) -> SelectedImage:
    """Validate a user selection. Only image media types are accepted."""
    mt = normalize_media_type(media_type)
    if not mt.startswith("image/"):
        raise UnsupportedMediaTypeError(f"Only images can be scanned, got {media_type!r}")
    return SelectedImage(data=data, media_type=mt)


def encode_image(image: SelectedImage) -> EncodedImage:
    """
    Base64-encode a selected image for embedding in a JSON body.

    The declared media type must describe the bytes; a mismatch is a
    caller bug and raises MediaTypeMismatchError.
    """
    actual = sniff_media_type(image.data)
    if actual != image.media_type:
        raise MediaTypeMismatchError(
            f"Declared media type {image.media_type!r} but bytes are {actual!r}"
        )
    return EncodedImage(
        media_type=image.media_type,
        data=base64.b64encode(image.data).decode("utf-8"),
    )
