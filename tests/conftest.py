from io import BytesIO

import pytest
from PIL import Image


def _image_bytes(fmt: str) -> bytes:
    buf = BytesIO()
    Image.new("RGB", (8, 8), (30, 160, 60)).save(buf, format=fmt)
    return buf.getvalue()


@pytest.fixture
def png_bytes() -> bytes:
    return _image_bytes("PNG")


@pytest.fixture
def jpeg_bytes() -> bytes:
    return _image_bytes("JPEG")


