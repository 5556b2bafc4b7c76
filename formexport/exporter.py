# formexport/exporter.py
"""
PDF assembly, file output and printing using ReportLab and the system browser.
"""

import copy
import io
import logging
import os
import tempfile
import threading
import webbrowser
from pathlib import Path
from typing import List, Optional

from bs4 import BeautifulSoup
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas
from PIL import Image

from formexport import config
from formexport.errors import PrintWindowBlocked
from formexport.paginator import Page, slice_raster
from formexport.print_tree import collect_stylesheets, inline_images, locate_target, parse_html
from formexport.utils import safe_filename

logging.basicConfig(level=logging.INFO)

PRINT_PAGE = """<!DOCTYPE html>
<html>
  <head>
    <title>Print Document</title>
    <style>
      {styles}
      body {{
        margin: 0;
        padding: {padding};
        background: white !important;
        color: black !important;
      }}
      * {{
        -webkit-print-color-adjust: exact !important;
        print-color-adjust: exact !important;
      }}
      @media print {{
        body {{ margin: 0; padding: 10mm; }}
      }}
    </style>
  </head>
  <body>
    {markup}
    <script>
      window.addEventListener("load", function () {{
        setTimeout(function () {{
          window.focus();
          window.print();
          window.close();
        }}, {delay});
      }});
    </script>
  </body>
</html>
"""


class Exporter:
    @staticmethod
    def assemble(raster, pages: List[Page], title: Optional[str] = None,
                 page_width: float = config.PAGE_WIDTH, page_height: float = config.PAGE_HEIGHT) -> bytes:
        """
        Draw each page's raster slice at the top of its own page.
        Returns the PDF bytes.
        """
        buffer = io.BytesIO()
        c = canvas.Canvas(buffer, pagesize=(page_width, page_height))
        if title:
            c.setTitle(title)
        for page, rows in zip(pages, slice_raster(raster, pages)):
            if rows.shape[0] > 0:
                height = rows.shape[0] * page_width / raster.width
                img = ImageReader(Image.fromarray(rows, "RGB"))
                c.drawImage(img, 0, page_height - height, width=page_width, height=height)
            c.showPage()
        c.save()
        return buffer.getvalue()

    @staticmethod
    def save_pdf(data: bytes, filename: str, output_dir=".") -> Path:
        """
        Write ``data`` as ``{filename}.pdf`` inside ``output_dir``.
        The file appears only once it is complete.
        """
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        target = output_dir / f"{safe_filename(filename)}.pdf"
        fd, tmp_path = tempfile.mkstemp(suffix=".part", dir=output_dir)
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            os.replace(tmp_path, target)
        except Exception as e:
            logging.error(f"Failed to write PDF '{target}': {e}")
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise
        return target

    @staticmethod
    def build_print_page(document, target_id: str, base_url: Optional[str] = None, session=None) -> str:
        soup = parse_html(document)
        element = locate_target(soup, target_id)
        styles = "".join(collect_stylesheets(soup, base_url=base_url, session=session))
        clone = BeautifulSoup("", "html.parser")
        clone.append(copy.copy(element))
        inline_images(clone, base_url=base_url, session=session)
        return PRINT_PAGE.format(
            styles=styles,
            padding=config.PRINT_BODY_PADDING,
            markup=str(clone),
            delay=config.PRINT_DELAY_MS,
        )

    @staticmethod
    def print_document(document, target_id: str, base_url: Optional[str] = None, session=None,
                       opener=webbrowser.open_new_tab,
                       keep_for: Optional[float] = config.PRINT_FILE_LIFETIME) -> Path:
        """
        Open a self-printing copy of the target element in a new browser tab.

        Returns as soon as the browser has been asked to open the page; the
        print dialog itself is not awaited. The temporary page is removed
        ``keep_for`` seconds later, or left in place when ``keep_for`` is None.
        """
        html = Exporter.build_print_page(document, target_id, base_url=base_url, session=session)
        with tempfile.NamedTemporaryFile("w", encoding="utf-8", suffix=".html",
                                         prefix="formexport-print-", delete=False) as f:
            f.write(html)
            path = Path(f.name)
        if not opener(path.as_uri()):
            path.unlink()
            raise PrintWindowBlocked("Could not open print window")
        if keep_for is not None:
            threading.Timer(keep_for, Exporter.remove_print_page, args=(path,)).start()
        return path

    @staticmethod
    def remove_print_page(path: Path) -> None:
        try:
            path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logging.warning(f"Could not remove print page '{path}': {e}")
