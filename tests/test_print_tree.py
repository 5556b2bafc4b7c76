import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

import requests
from bs4 import BeautifulSoup

from formexport.errors import TargetNotFound
from formexport.print_tree import (
    PRINT_STYLE_OVERRIDES, build_print_tree, collect_stylesheets, inline_images,
    locate_target, parse_style,
)

from samples import FORM_HTML, make_png


class TestLocateTarget(unittest.TestCase):
    def test_found(self):
        element = locate_target(FORM_HTML, "printable-document")
        self.assertEqual(element.name, "div")

    def test_missing(self):
        with self.assertRaises(TargetNotFound) as ctx:
            locate_target(FORM_HTML, "no-such-element")
        self.assertEqual(ctx.exception.target_id, "no-such-element")


class TestBuildPrintTree(unittest.TestCase):
    def setUp(self):
        self.soup = BeautifulSoup(FORM_HTML, "html.parser")
        self.before = str(self.soup)
        self.tree = build_print_tree(locate_target(self.soup, "printable-document"))
        self.root = self.tree.find(id="printable-document")

    def test_source_is_untouched(self):
        self.assertEqual(str(self.soup), self.before)

    def test_only_target_is_copied(self):
        self.assertIsNone(self.tree.find("nav"))
        self.assertIsNotNone(self.root)

    def test_root_overrides(self):
        style = parse_style(self.root["style"])
        self.assertEqual(style["color"], "black !important")
        self.assertEqual(style["background"], "white !important")
        self.assertEqual(style["width"], "210mm")
        self.assertEqual(style["padding"], "10mm")
        self.assertEqual(style["box-sizing"], "border-box")

    def test_flex_containers_are_centered(self):
        flex = self.root.find("div", class_="flex")
        self.assertEqual(parse_style(flex["style"])["align-items"], "center")

    def test_inline_flex_style_is_detected(self):
        html = '<div id="t"><div style="display: inline-flex">a</div><div>b</div></div>'
        root = build_print_tree(locate_target(html, "t")).find(id="t")
        styled, plain = root.find_all("div")
        self.assertEqual(parse_style(styled["style"])["align-items"], "center")
        self.assertNotIn("align-items", parse_style(plain["style"]))

    def test_text_and_cells(self):
        span = self.root.find("span")
        self.assertEqual(parse_style(span["style"])["line-height"], "1.5")
        cell = self.root.find("td")
        self.assertEqual(parse_style(cell["style"])["vertical-align"], "middle")
        self.assertFalse(self.root.find("p").has_attr("style"))

    def test_custom_overrides(self):
        overrides = {"root": (("width", "100px"),)}
        root = build_print_tree(locate_target(FORM_HTML, "printable-document"), overrides).find(id="printable-document")
        self.assertEqual(parse_style(root["style"]), {"color": "#e5e5e5", "width": "100px"})
        self.assertFalse(root.find("span").has_attr("style"))

    def test_overrides_are_immutable(self):
        with self.assertRaises(TypeError):
            PRINT_STYLE_OVERRIDES["root"] = ()

    def test_stylesheets_go_to_head(self):
        tree = build_print_tree(locate_target(FORM_HTML, "printable-document"), stylesheets=["p { color: red; }"])
        self.assertEqual(tree.head.style.string, "p { color: red; }")


class TestStylesheetsAndImages(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.dir = Path(self.tmp.name)
        self.base_url = (self.dir / "page.html").as_uri()

    def tearDown(self):
        self.tmp.cleanup()

    def test_collect_stylesheets(self):
        (self.dir / "print.css").write_text("td { padding: 4px; }")
        html = """<html><head>
            <style>h1 { color: navy; }</style>
            <link rel="stylesheet" href="print.css">
            <link rel="stylesheet" href="missing.css">
            <link rel="icon" href="favicon.ico">
        </head><body></body></html>"""
        sheets = collect_stylesheets(html, base_url=self.base_url)
        self.assertEqual(sheets, ["h1 { color: navy; }", "td { padding: 4px; }"])

    def test_inline_local_image(self):
        (self.dir / "logo.png").write_bytes(make_png())
        tree = BeautifulSoup('<div><img src="logo.png"><img src="data:image/png;base64,AAAA"></div>', "html.parser")
        self.assertEqual(inline_images(tree, base_url=self.base_url), 1)
        self.assertTrue(tree.find("img")["src"].startswith("data:image/png;base64,"))

    def test_unreachable_image_is_left_alone(self):
        session = mock.Mock()
        session.get.side_effect = requests.ConnectionError("blocked")
        tree = BeautifulSoup('<div><img src="https://cdn.example.com/logo.png"></div>', "html.parser")
        self.assertEqual(inline_images(tree, session=session), 0)
        self.assertEqual(tree.find("img")["src"], "https://cdn.example.com/logo.png")

    def test_remote_image_uses_content_type(self):
        response = mock.Mock(content=b"\x89PNG", headers={"Content-Type": "image/png; charset=binary"})
        session = mock.Mock()
        session.get.return_value = response
        tree = BeautifulSoup('<div><img src="https://cdn.example.com/logo"></div>', "html.parser")
        inline_images(tree, session=session)
        self.assertEqual(tree.find("img")["src"], "data:image/png;base64,iVBORw==")


if __name__ == "__main__":
    unittest.main()
