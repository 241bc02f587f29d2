import io

import pytest
from PIL import Image
from pypdf import PdfReader


def make_png(width=120, height=60, color=(10, 80, 140, 255)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGBA", (width, height), color).save(buf, format="PNG")
    return buf.getvalue()


def pdf_pages(data: bytes):
    """Extracted text of every page."""
    reader = PdfReader(io.BytesIO(data))
    return [page.extract_text() or "" for page in reader.pages]


def pdf_image_count(data: bytes) -> int:
    """Number of image XObjects placed across all pages."""
    reader = PdfReader(io.BytesIO(data))
    count = 0
    for page in reader.pages:
        resources = page.get("/Resources")
        if resources is None:
            continue
        xobjects = resources.get_object().get("/XObject")
        if xobjects is None:
            continue
        for ref in xobjects.get_object().values():
            if ref.get_object().get("/Subtype") == "/Image":
                count += 1
    return count


@pytest.fixture()
def png_bytes():
    return make_png()
