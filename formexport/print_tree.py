# formexport/print_tree.py
"""
Print-ready copies of a document subtree.

The live document is never modified. build_print_tree() returns a new,
standalone document holding a copy of the target element, with the
PRINT_STYLE_OVERRIDES map applied to the copy. Stylesheet collection and
image inlining are kept separate from the tree build because they touch
the network.
"""

import copy
import logging
import mimetypes
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from bs4 import BeautifulSoup, Tag

from formexport.errors import TargetNotFound
from formexport import config
from formexport.storage import download
from formexport.utils import to_data_uri

logging.basicConfig(level=logging.INFO)

Declarations = Tuple[Tuple[str, str], ...]

# Role -> CSS declarations forced onto the copy. Roles are applied in the
# order of ROLE_ORDER, so "root" wins over the generic text rules.
PRINT_STYLE_OVERRIDES: Mapping[str, Declarations] = MappingProxyType({
    "flex": (("align-items", "center"),),
    "text": (("line-height", "1.5"), ("vertical-align", "middle")),
    "cell": (("vertical-align", "middle"), ("line-height", "1.5")),
    "root": (
        ("background", "white !important"),
        ("color", "black !important"),
        ("width", config.PRINT_WIDTH),
        ("padding", config.PRINT_PADDING),
        ("box-sizing", "border-box"),
    ),
})

ROLE_ORDER = ("flex", "text", "cell", "root")
FLEX_DISPLAYS = ("flex", "inline-flex")
TEXT_TAGS = ("span", "div")
CELL_TAGS = ("td", "th")


def parse_html(document) -> BeautifulSoup:
    if isinstance(document, BeautifulSoup):
        return document
    return BeautifulSoup(document, "html.parser")


def locate_target(document, target_id: str) -> Tag:
    soup = parse_html(document)
    element = soup.find(id=target_id)
    if element is None:
        raise TargetNotFound(target_id)
    return element


def parse_style(style: str) -> Dict[str, str]:
    declarations = {}
    for part in style.split(";"):
        if ":" not in part:
            continue
        prop, value = part.split(":", 1)
        prop = prop.strip().lower()
        if prop:
            declarations[prop] = value.strip()
    return declarations


def format_style(declarations: Dict[str, str]) -> str:
    return "; ".join(f"{prop}: {value}" for prop, value in declarations.items())


def is_flex_container(tag: Tag) -> bool:
    classes = tag.get("class") or []
    if any(c in FLEX_DISPLAYS for c in classes):
        return True
    display = parse_style(tag.get("style", "")).get("display", "")
    return display.replace("!important", "").strip() in FLEX_DISPLAYS


def style_roles(tag: Tag, is_root: bool = False) -> List[str]:
    roles = set()
    if is_flex_container(tag):
        roles.add("flex")
    if tag.name in TEXT_TAGS:
        roles.add("text")
    if tag.name in CELL_TAGS:
        roles.add("cell")
    if is_root:
        roles.add("root")
    return [role for role in ROLE_ORDER if role in roles]


def apply_overrides(tag: Tag, roles: Iterable[str], overrides: Mapping[str, Declarations]) -> None:
    declarations = parse_style(tag.get("style", ""))
    changed = False
    for role in roles:
        for prop, value in overrides.get(role, ()):
            declarations[prop] = value
            changed = True
    if changed:
        tag["style"] = format_style(declarations)


def build_print_tree(
    element: Tag,
    overrides: Mapping[str, Declarations] = PRINT_STYLE_OVERRIDES,
    stylesheets: Iterable[str] = (),
) -> BeautifulSoup:
    """
    Build a standalone document containing a styled copy of ``element``.

    ``stylesheets`` are CSS texts placed in the head of the new document.
    The source element and its document are left untouched.
    """
    clone = copy.copy(element)  # bs4 copies are deep and detached
    tree = BeautifulSoup("<html><head></head><body></body></html>", "html.parser")
    for css in stylesheets:
        style = tree.new_tag("style")
        style.string = css
        tree.head.append(style)
    tree.body.append(clone)

    apply_overrides(clone, style_roles(clone, is_root=True), overrides)
    for tag in clone.find_all(True):
        apply_overrides(tag, style_roles(tag), overrides)
    return tree


def collect_stylesheets(document, base_url: Optional[str] = None, session=None) -> List[str]:
    """
    Return the text of every stylesheet of ``document``, in document order.

    Linked stylesheets that cannot be read are skipped.
    """
    soup = parse_html(document)
    sheets = []
    for node in soup.find_all(["style", "link"]):
        if node.name == "style":
            sheets.append(str(node.string or ""))
            continue
        rel = [r.lower() for r in node.get("rel") or []]
        href = node.get("href")
        if "stylesheet" not in rel or not href:
            continue
        try:
            data, _ = download(href, base_url=base_url, session=session)
            sheets.append(data.decode("utf-8", errors="replace"))
        except Exception as e:
            logging.warning(f"Skipping stylesheet '{href}': {e}")
    return sheets


def inline_images(tree: BeautifulSoup, base_url: Optional[str] = None, session=None) -> int:
    """
    Replace image sources with data URIs so remote images lay out off-screen.

    Images that cannot be fetched keep their original source. Returns the
    number of images inlined.
    """
    inlined = 0
    for img in tree.find_all("img", src=True):
        src = img["src"]
        if src.startswith("data:"):
            continue
        try:
            data, content_type = download(src, base_url=base_url, session=session)
        except Exception as e:
            logging.warning(f"Could not inline image '{src}': {e}")
            continue
        mime = content_type or mimetypes.guess_type(src)[0] or "application/octet-stream"
        img["src"] = to_data_uri(data, mime.split(";")[0].strip())
        inlined += 1
    return inlined
