import unittest

from bs4 import BeautifulSoup

from formexport import config
from formexport.errors import TargetNotFound
from formexport.renderer import HTMLRenderer

from samples import FORM_HTML, long_form_html


class TestHTMLRenderer(unittest.TestCase):
    def setUp(self):
        self.renderer = HTMLRenderer()

    def test_render_to_raster(self):
        raster = self.renderer.render_to_raster(FORM_HTML, "printable-document")
        self.assertEqual(raster.pixels.ndim, 3)
        self.assertEqual(raster.pixels.shape[2], 3)
        self.assertEqual(raster.scale, 2)
        self.assertAlmostEqual(raster.width, config.PAGE_WIDTH * 2, delta=2)
        self.assertGreater(raster.height, 0)

    def test_background_is_white(self):
        raster = self.renderer.render_to_raster(FORM_HTML, "printable-document")
        self.assertEqual(raster.pixels[0, 0].tolist(), [255, 255, 255])
        self.assertLess(int(raster.pixels.min()), 128)  # some dark text was drawn

    def test_missing_target(self):
        with self.assertRaises(TargetNotFound):
            self.renderer.render_to_raster(FORM_HTML, "missing")

    def test_source_document_is_untouched(self):
        soup = BeautifulSoup(FORM_HTML, "html.parser")
        before = str(soup)
        self.renderer.render_to_raster(soup, "printable-document")
        self.assertEqual(str(soup), before)

    def test_long_document_is_stitched(self):
        renderer = HTMLRenderer(chunk_height=200)
        raster = renderer.render_to_raster(long_form_html(60), "printable-document")
        self.assertGreater(raster.height, 200 * renderer.scale)
        self.assertAlmostEqual(raster.width, config.PAGE_WIDTH * 2, delta=2)

    def test_layout_pages_are_cut_to_content(self):
        renderer = HTMLRenderer(chunk_height=300)
        layout = renderer._layout("<p>one</p><p>two</p>")
        try:
            self.assertEqual(layout.page_count, 1)
            self.assertGreater(layout[0].rect.height, 0)
            self.assertLess(layout[0].rect.height, 300)
        finally:
            layout.close()

    def test_to_image(self):
        raster = self.renderer.render_to_raster(FORM_HTML, "printable-document")
        img = raster.to_image()
        self.assertEqual(img.size, (raster.width, raster.height))


if __name__ == "__main__":
    unittest.main()
