# formexport/utils.py
"""
Shared helpers: file sizes, file names, data URIs.
"""

import base64
import re

_UNSAFE_FILENAME = re.compile(r'[\\/:*?"<>|\x00-\x1f]')


def format_file_size(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    return f"{size / (1024 * 1024):.1f} MB"


def safe_filename(name: str) -> str:
    # Spaces are kept; only characters no file system accepts are replaced
    cleaned = _UNSAFE_FILENAME.sub("_", name).strip().strip(".")
    return cleaned or "Document"


def file_extension(filename: str, default: str = "bin") -> str:
    if "." not in filename:
        return default
    ext = filename.rsplit(".", 1)[1].lower()
    return ext or default


def to_data_uri(data: bytes, mime_type: str) -> str:
    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"
