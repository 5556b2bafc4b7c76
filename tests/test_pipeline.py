import os
import tempfile
import unittest
from unittest import mock
from urllib.parse import urlparse
from urllib.request import url2pathname

from formexport.models import Attachment
from formexport.pipeline import DocumentExporter
from formexport.storage import LocalObjectStore

from samples import FORM_HTML, long_form_html, make_pdf, make_png, page_count


class TestDocumentExporter(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.out = os.path.join(self.tmp.name, "out")
        self.store = LocalObjectStore(os.path.join(self.tmp.name, "objects"))
        self.notifications = []
        self.exporter = DocumentExporter(store=self.store, notifier=self.notifications.append)

    def tearDown(self):
        self.tmp.cleanup()

    def attach(self, name, data, mime):
        key = self.store.put(f"user-1/{name}", data, mime)
        return Attachment(name=name, url=key, type=mime, size=len(data))

    def test_export_with_attachments(self):
        attachments = [
            self.attach("receipt.png", make_png(), "image/png"),
            self.attach("quote.pdf", make_pdf(3), "application/pdf"),
            self.attach("costs.xlsx", b"PK\x03\x04", "application/vnd.ms-excel"),
        ]
        base = self.exporter.build(FORM_HTML, "printable-document")
        path = self.exporter.export(FORM_HTML, "printable-document", "Leave_Application_Jane Doe",
                                    attachments=attachments, output_dir=self.out)
        self.assertEqual(path.name, "Leave_Application_Jane Doe.pdf")
        self.assertEqual(page_count(path.read_bytes()), base.page_count + 1 + 3)
        self.assertEqual(self.notifications[-1].title, "PDF exported!")

    def test_long_document_spans_pages(self):
        result = self.exporter.build(long_form_html(120), "printable-document")
        self.assertGreater(result.raster_pages, 1)
        self.assertEqual(page_count(result.data), result.raster_pages)

    def test_export_twice_same_page_count(self):
        attachments = [self.attach("quote.pdf", make_pdf(2), "application/pdf")]
        first = self.exporter.build(FORM_HTML, "printable-document", attachments=attachments)
        second = self.exporter.build(FORM_HTML, "printable-document", attachments=attachments)
        self.assertEqual(first.page_count, second.page_count)

    def test_failed_fetch_still_exports(self):
        attachments = [
            Attachment("lost.png", "user-1/lost.png", "image/png", 10),
            self.attach("quote.pdf", make_pdf(1), "application/pdf"),
        ]
        result = self.exporter.build(FORM_HTML, "printable-document", attachments=attachments)
        self.assertEqual(result.page_count, result.raster_pages + 1)
        self.assertFalse(result.attachments[0].ok)

    def test_missing_target_notifies(self):
        path = self.exporter.export(FORM_HTML, "missing", "Leave_Application_Jane", output_dir=self.out)
        self.assertIsNone(path)
        self.assertEqual(self.notifications[-1].title, "Export failed")
        self.assertEqual(self.notifications[-1].variant, "destructive")
        self.assertFalse(os.path.exists(self.out) and os.listdir(self.out))

    def test_attachments_without_store(self):
        exporter = DocumentExporter(notifier=self.notifications.append)
        result = exporter.build(FORM_HTML, "printable-document",
                                attachments=[Attachment("a.pdf", "k", "application/pdf")])
        self.assertEqual(result.page_count, result.raster_pages)

    @mock.patch("formexport.exporter.threading.Timer")
    def test_print(self, timer):
        opened = []
        self.assertTrue(self.exporter.print_document(FORM_HTML, "printable-document",
                                                     opener=lambda uri: opened.append(uri) or True))
        self.assertEqual(len(opened), 1)
        timer.return_value.start.assert_called_once_with()
        os.remove(url2pathname(urlparse(opened[0]).path))

    def test_blocked_print_notifies(self):
        self.assertFalse(self.exporter.print_document(FORM_HTML, "printable-document", opener=lambda uri: False))
        self.assertEqual(self.notifications[-1].title, "Print failed")


if __name__ == "__main__":
    unittest.main()
