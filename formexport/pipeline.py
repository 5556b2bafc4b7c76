# formexport/pipeline.py
"""
End-to-end export and print, reporting outcomes as notifications.
"""

import logging
import webbrowser
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterable, List, Optional

import requests

from formexport.compositor import AttachmentCompositor, AttachmentResult
from formexport.exporter import Exporter
from formexport.models import Attachment, Notification
from formexport.paginator import paginate
from formexport.renderer import HTMLRenderer
from formexport.storage import ObjectStore

logging.basicConfig(level=logging.INFO)

Notifier = Callable[[Notification], None]


def log_notifier(notification: Notification) -> None:
    level = logging.ERROR if notification.variant == "destructive" else logging.INFO
    logging.log(level, f"{notification.title} {notification.description}".strip())


@dataclass
class ExportResult:
    data: bytes
    raster_pages: int
    page_count: int
    attachments: List[AttachmentResult] = field(default_factory=list)


class DocumentExporter:
    """
    Export pipeline: render, paginate, assemble, then merge attachments.

    build() raises on rendering failures; export() and print_document()
    are the call sites that turn failures into notifications.
    """

    def __init__(self, store: Optional[ObjectStore] = None, notifier: Notifier = log_notifier,
                 session: Optional[requests.Session] = None, renderer: Optional[HTMLRenderer] = None):
        self.session = session or requests.Session()
        self.renderer = renderer or HTMLRenderer(session=self.session)
        self.compositor = AttachmentCompositor(store, session=self.session) if store is not None else None
        self.notifier = notifier

    def build(self, document, target_id: str, title: Optional[str] = None,
              attachments: Iterable[Attachment] = (), base_url: Optional[str] = None) -> ExportResult:
        raster = self.renderer.render_to_raster(document, target_id, base_url=base_url)
        pages = paginate(raster)
        base = Exporter.assemble(raster, pages, title=title)
        logging.info(f"Rendered {raster.width}x{raster.height} px into {len(pages)} page(s)")

        attachments = list(attachments)
        if not attachments:
            return ExportResult(base, len(pages), len(pages))
        if self.compositor is None:
            logging.warning(f"No object store configured, {len(attachments)} attachment(s) left out")
            return ExportResult(base, len(pages), len(pages))

        composed = self.compositor.compose(base, attachments)
        for result in composed.skipped:
            logging.info(f"Attachment {result.attachment.name} not included in the PDF")
        return ExportResult(composed.data, len(pages), composed.page_count, composed.results)

    def export(self, document, target_id: str, filename: str, attachments: Iterable[Attachment] = (),
               output_dir=".", base_url: Optional[str] = None) -> Optional[Path]:
        """Write ``{filename}.pdf`` to ``output_dir``. Returns None on failure."""
        try:
            result = self.build(document, target_id, title=filename, attachments=attachments, base_url=base_url)
            path = Exporter.save_pdf(result.data, filename, output_dir)
        except Exception as e:
            logging.error(f"Export of '{filename}' failed: {e}")
            self.notifier(Notification("Export failed", "Failed to export PDF. Please try again.", "destructive"))
            return None
        self.notifier(Notification("PDF exported!", "Your document has been downloaded as PDF."))
        return path

    def print_document(self, document, target_id: str, base_url: Optional[str] = None,
                       opener=webbrowser.open_new_tab) -> bool:
        try:
            Exporter.print_document(document, target_id, base_url=base_url, session=self.session, opener=opener)
        except Exception as e:
            logging.error(f"Print failed: {e}")
            self.notifier(Notification("Print failed", "Failed to print. Please try again.", "destructive"))
            return False
        return True
