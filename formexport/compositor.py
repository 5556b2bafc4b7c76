# formexport/compositor.py
"""
Appending uploaded attachments to an exported PDF.

Images become one centered page each, PDF attachments have their pages
copied in, anything else is skipped. Every attachment is decoded into its
own page set before it touches the output document, so one bad attachment
never leaves partial pages behind.
"""

import io
import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

import fitz  # PyMuPDF
import img2pdf
from PIL import Image

from formexport import config
from formexport.errors import (
    AttachmentDecodeError, AttachmentError, AttachmentFetchError, AttachmentMergeError,
)
from formexport.models import Attachment
from formexport.storage import ObjectStore, download

logging.basicConfig(level=logging.INFO)


@dataclass(frozen=True)
class Placement:
    scale: float
    width: float
    height: float
    x: float
    y: float


def fit_image(img_width: float, img_height: float, page_width: float = config.PAGE_WIDTH,
              page_height: float = config.PAGE_HEIGHT, margin: float = config.IMAGE_PAGE_MARGIN) -> Placement:
    """Largest scale <= 1 that fits inside the margins, centered on the page."""
    scale = min((page_width - 2 * margin) / img_width, (page_height - 2 * margin) / img_height, 1)
    width = img_width * scale
    height = img_height * scale
    return Placement(scale, width, height, (page_width - width) / 2, (page_height - height) / 2)


@dataclass
class AttachmentResult:
    attachment: Attachment
    pages: int = 0
    skipped: bool = False
    error: Optional[AttachmentError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class CompositionResult:
    data: bytes
    page_count: int
    results: List[AttachmentResult] = field(default_factory=list)

    @property
    def failures(self) -> List[AttachmentResult]:
        return [r for r in self.results if not r.ok]

    @property
    def skipped(self) -> List[AttachmentResult]:
        return [r for r in self.results if r.skipped]


class AttachmentCompositor:

    def __init__(self, store: ObjectStore, session=None, page_width: float = config.PAGE_WIDTH,
                 page_height: float = config.PAGE_HEIGHT, margin: float = config.IMAGE_PAGE_MARGIN):
        self.store = store
        self.session = session
        self.page_width = page_width
        self.page_height = page_height
        self.margin = margin

    def resolve(self, attachment: Attachment) -> bytes:
        try:
            address = self.store.public_url(attachment.url)
        except Exception as e:
            raise AttachmentFetchError(attachment, f"lookup failed: {e}") from e
        if not address:
            raise AttachmentFetchError(attachment, "storage returned no address")
        try:
            data, _ = download(address, session=self.session)
        except Exception as e:
            raise AttachmentFetchError(attachment, f"fetch failed: {e}") from e
        return data

    def append_image(self, doc: fitz.Document, attachment: Attachment, data: bytes) -> int:
        fmt = "PNG" if "png" in attachment.type.lower() else "JPEG"
        try:
            img = Image.open(io.BytesIO(data), formats=[fmt])
            img.load()
        except Exception as e:
            raise AttachmentDecodeError(attachment, f"not a valid {fmt} image: {e}") from e

        placement = fit_image(img.width, img.height, self.page_width, self.page_height, self.margin)

        def layout(imgwidthpx, imgheightpx, ndpi):
            # img2pdf centers the image on the page
            return self.page_width, self.page_height, placement.width, placement.height

        try:
            page_set = fitz.open(stream=img2pdf.convert(_embeddable(img, data, fmt), layout_fun=layout),
                                 filetype="pdf")
        except Exception as e:
            raise AttachmentDecodeError(attachment, f"could not place image: {e}") from e
        return _insert(doc, page_set, attachment)

    def append_pdf(self, doc: fitz.Document, attachment: Attachment, data: bytes) -> int:
        try:
            page_set = fitz.open(stream=data, filetype="pdf")
        except Exception as e:
            raise AttachmentMergeError(attachment, f"not a valid PDF: {e}") from e
        if page_set.page_count == 0:
            page_set.close()
            raise AttachmentMergeError(attachment, "PDF has no pages")
        return _insert(doc, page_set, attachment)

    def append(self, doc: fitz.Document, attachment: Attachment) -> AttachmentResult:
        if not (attachment.is_image or attachment.is_pdf):
            # Not reported in the PDF itself; callers get it in the result
            logging.info(f"Skipping attachment {attachment.name}: unsupported type '{attachment.type}'")
            return AttachmentResult(attachment, skipped=True)
        try:
            data = self.resolve(attachment)
            if attachment.is_image:
                added = self.append_image(doc, attachment, data)
            else:
                added = self.append_pdf(doc, attachment, data)
        except AttachmentError as e:
            logging.warning(f"Skipping attachment {e}")
            return AttachmentResult(attachment, error=e)
        return AttachmentResult(attachment, pages=added)

    def compose(self, base_pdf: bytes, attachments: Iterable[Attachment]) -> CompositionResult:
        """
        Return a new PDF made of ``base_pdf`` followed by the attachment pages.

        Attachments are fetched and appended one at a time, in list order.
        Attachment failures are reported in the result, never raised.
        """
        doc = fitz.open(stream=base_pdf, filetype="pdf")
        try:
            results = [self.append(doc, attachment) for attachment in attachments]
            data = doc.tobytes(garbage=3, deflate=True)
            return CompositionResult(data=data, page_count=doc.page_count, results=results)
        finally:
            doc.close()


def _insert(doc: fitz.Document, page_set: fitz.Document, attachment: Attachment) -> int:
    try:
        doc.insert_pdf(page_set)
        return page_set.page_count
    except Exception as e:
        raise AttachmentMergeError(attachment, f"could not copy pages: {e}") from e
    finally:
        page_set.close()


def _embeddable(img: Image.Image, data: bytes, fmt: str) -> bytes:
    """Image bytes img2pdf accepts: plain JPEGs as-is, everything else as flat RGB PNG."""
    if fmt == "JPEG" and img.mode in ("RGB", "L", "CMYK"):
        return data
    if img.mode in ("RGBA", "LA") or (img.mode == "P" and "transparency" in img.info):
        rgba = img.convert("RGBA")
        flat = Image.new("RGB", rgba.size, "white")
        flat.paste(rgba, mask=rgba.split()[3])
        img = flat
    elif img.mode != "RGB":
        img = img.convert("RGB")
    out = io.BytesIO()
    img.save(out, format="PNG")
    return out.getvalue()
