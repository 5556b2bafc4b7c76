"""
In-memory sample files shared by the test modules.
"""

import io

import fitz
from PIL import Image

FORM_HTML = """
<html>
  <head>
    <style>.doc-title { font-size: 18px; font-weight: bold; }</style>
  </head>
  <body>
    <nav>Dashboard</nav>
    <div id="printable-document" class="bg-card text-foreground" style="color: #e5e5e5">
      <div class="flex justify-between"><span class="doc-title">Leave Application</span><span>No. 12</span></div>
      <table>
        <tr><th>Name</th><td>Jane Doe</td></tr>
        <tr><th>Designation</th><td>Engineer</td></tr>
        <tr><th>Days</th><td>3</td></tr>
      </table>
      <p>Reason: family event</p>
    </div>
  </body>
</html>
"""


def long_form_html(paragraphs: int = 60) -> str:
    body = "".join(f"<p>Line item {i}: cement, sand and steel bars</p>" for i in range(paragraphs))
    return f'<html><body><div id="printable-document">{body}</div></body></html>'


def make_png(width=120, height=60, color=(200, 30, 30), mode="RGB") -> bytes:
    out = io.BytesIO()
    Image.new(mode, (width, height), color).save(out, format="PNG")
    return out.getvalue()


def make_jpeg(width=120, height=60, color=(30, 30, 200)) -> bytes:
    out = io.BytesIO()
    Image.new("RGB", (width, height), color).save(out, format="JPEG")
    return out.getvalue()


def make_gif(width=20, height=20) -> bytes:
    out = io.BytesIO()
    Image.new("P", (width, height)).save(out, format="GIF")
    return out.getvalue()


def make_pdf(pages: int, label: str = "Attachment page") -> bytes:
    doc = fitz.open()
    for i in range(pages):
        page = doc.new_page(width=595, height=842)
        page.insert_text((72, 72), f"{label} {i + 1}")
    data = doc.tobytes()
    doc.close()
    return data


def page_count(data: bytes) -> int:
    with fitz.open(stream=data, filetype="pdf") as doc:
        return doc.page_count
