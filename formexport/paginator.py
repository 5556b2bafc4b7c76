# formexport/paginator.py
"""
Splitting a captured raster into A4-height pages.
"""

import math
from dataclasses import dataclass
from typing import List

import numpy as np

from formexport import config


@dataclass(frozen=True)
class Page:
    """
    One output page of a raster.

    ``offset`` is how far the scaled raster is shifted up on this page
    (``index * page_height``), ``image_height`` the full scaled raster
    height, both in points. ``row_start``/``row_end`` are the raster rows
    the page shows.
    """
    index: int
    offset: float
    image_height: float
    page_height: float
    row_start: int
    row_end: int

    @property
    def visible_height(self) -> float:
        return min(self.page_height, self.image_height - self.offset)


def scaled_height(raster_width: int, raster_height: int, page_width: float) -> float:
    if raster_width <= 0:
        return 0.0
    return raster_height * page_width / raster_width


def page_count(image_height: float, page_height: float) -> int:
    # Rounded before ceil so exact multiples do not gain an empty page
    return max(1, math.ceil(round(image_height / page_height, 9)))


def paginate(raster, page_width: float = config.PAGE_WIDTH,
             page_height: float = config.PAGE_HEIGHT) -> List[Page]:
    """
    Return the pages needed to show ``raster`` at ``page_width``.

    ``raster`` is anything with integer ``width`` and ``height``. Row
    boundaries are shared between neighbouring pages, so the pages cover
    every raster row exactly once.
    """
    image_height = scaled_height(raster.width, raster.height, page_width)
    count = page_count(image_height, page_height)
    rows_per_point = raster.height / image_height if image_height else 0.0

    def boundary(k: int) -> int:
        return min(raster.height, int(round(k * page_height * rows_per_point)))

    return [
        Page(
            index=k,
            offset=k * page_height,
            image_height=image_height,
            page_height=page_height,
            row_start=boundary(k),
            row_end=raster.height if k == count - 1 else boundary(k + 1),
        )
        for k in range(count)
    ]


def slice_raster(raster, pages: List[Page]) -> List[np.ndarray]:
    return [raster.pixels[page.row_start:page.row_end] for page in pages]
