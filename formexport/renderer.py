# formexport/renderer.py
"""
Off-screen layout and rasterization of document subtrees using PyMuPDF.
"""

import io
import logging
from dataclasses import dataclass
from typing import Optional

import fitz  # PyMuPDF
import numpy as np
from PIL import Image

from formexport import config
from formexport.print_tree import (
    build_print_tree, collect_stylesheets, inline_images, locate_target, parse_html,
)

logging.basicConfig(level=logging.INFO)

LAYOUT_CSS = "body { margin: 0; padding: 0; background: white; }"


@dataclass
class Raster:
    """RGB pixel grid (height, width, 3) captured at ``scale`` pixels per point."""
    pixels: np.ndarray
    scale: float = 1.0

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    def to_image(self) -> Image.Image:
        return Image.fromarray(self.pixels, "RGB")


class HTMLRenderer:

    def __init__(self, width: float = config.PAGE_WIDTH, scale: float = config.CAPTURE_SCALE,
                 chunk_height: float = config.CAPTURE_CHUNK_HEIGHT, session=None):
        self.width = width
        self.scale = scale
        self.chunk_height = chunk_height
        self.session = session

    def render_to_raster(self, document, target_id: str, base_url: Optional[str] = None) -> Raster:
        """
        Capture the element ``target_id`` of ``document`` as a fixed-width raster.
        Raises TargetNotFound when the element is missing.
        """
        soup = parse_html(document)
        element = locate_target(soup, target_id)
        stylesheets = collect_stylesheets(soup, base_url=base_url, session=self.session)
        tree = build_print_tree(element, stylesheets=stylesheets)
        inline_images(tree, base_url=base_url, session=self.session)
        return self.rasterize(tree)

    def rasterize(self, tree) -> Raster:
        layout = self._layout(str(tree))
        try:
            chunks = [self._render_page(page) for page in layout]
        except Exception as e:
            logging.error(f"Failed to rasterize print tree: {e}")
            raise
        finally:
            layout.close()
        return Raster(np.vstack(chunks), self.scale)

    def _layout(self, html: str) -> fitz.Document:
        # Each chunk becomes one page, cut to the height its content filled
        story = fitz.Story(html=html, user_css=LAYOUT_CSS)
        buffer = io.BytesIO()
        writer = fitz.DocumentWriter(buffer)
        more = True
        while more:
            more, filled = story.place(fitz.Rect(0, 0, self.width, self.chunk_height))
            height = max(fitz.Rect(filled).y1, 1)
            device = writer.begin_page(fitz.Rect(0, 0, self.width, height))
            story.draw(device)
            writer.end_page()
        writer.close()
        return fitz.open(stream=buffer.getvalue(), filetype="pdf")

    def _render_page(self, page) -> np.ndarray:
        mat = fitz.Matrix(self.scale, self.scale)
        pix = page.get_pixmap(matrix=mat, alpha=False)
        img = np.frombuffer(pix.samples, dtype=np.uint8)
        img = img.reshape((pix.height, pix.width, pix.n))
        # If there is an alpha channel, drop it
        if pix.n == 4:
            img = img[..., :3]
        return img.copy()
