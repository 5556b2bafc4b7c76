# formexport/cli.py
"""
Command line entry point: export or print a saved form preview, upload attachments.
"""

import argparse
import json
import logging
import mimetypes
import sys
from pathlib import Path
from typing import List, Optional

from formexport import config
from formexport.models import Attachment, DocumentType, Notification, export_filename
from formexport.pipeline import DocumentExporter
from formexport.storage import HttpObjectStore, LocalObjectStore, ObjectStore, upload_attachment
from formexport.utils import format_file_size

logging.basicConfig(level=logging.INFO)

DEFAULT_TARGET = "printable-document"


def console_notifier(notification: Notification) -> None:
    marker = "!" if notification.variant == "destructive" else "*"
    print(f"[{marker}] {notification.title} {notification.description}".rstrip(), file=sys.stderr)


def open_store(store_dir: Optional[str]) -> ObjectStore:
    if store_dir:
        return LocalObjectStore(store_dir)
    if config.STORAGE_URL:
        return HttpObjectStore()
    return LocalObjectStore()


def load_attachments(path: Optional[str]) -> List[Attachment]:
    if not path:
        return []
    with open(path, "r", encoding="utf-8") as f:
        return [Attachment.from_dict(item) for item in json.load(f)]


def cmd_export(args) -> int:
    html_path = Path(args.html).resolve()
    store = open_store(args.store_dir)
    exporter = DocumentExporter(store=store, notifier=console_notifier)
    filename = export_filename(DocumentType(args.type), args.name)
    path = exporter.export(
        html_path.read_text(encoding="utf-8"),
        args.target,
        filename,
        attachments=load_attachments(args.attachments),
        output_dir=args.output,
        base_url=html_path.as_uri(),
    )
    if path is None:
        return 1
    print(path)
    return 0


def cmd_print(args) -> int:
    html_path = Path(args.html).resolve()
    exporter = DocumentExporter(notifier=console_notifier)
    ok = exporter.print_document(html_path.read_text(encoding="utf-8"), args.target, base_url=html_path.as_uri())
    return 0 if ok else 1


def cmd_upload(args) -> int:
    store = open_store(args.store_dir)
    uploaded = []
    for name in args.files:
        path = Path(name)
        content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        attachment = upload_attachment(store, args.user, path.name, path.read_bytes(), content_type)
        logging.info(f"{attachment.name} ({format_file_size(attachment.size)})")
        uploaded.append(attachment.to_dict())
    print(json.dumps(uploaded, indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="formexport", description="Export office form previews to PDF")
    parser.add_argument("--store-dir", help="Directory of a local attachment store")
    sub = parser.add_subparsers(dest="command", required=True)

    export = sub.add_parser("export", help="Render a form preview and merge its attachments into a PDF")
    export.add_argument("html", help="HTML file containing the document preview")
    export.add_argument("--type", required=True, choices=[t.value for t in DocumentType])
    export.add_argument("--name", help="Project or person name used in the file name")
    export.add_argument("--target", default=DEFAULT_TARGET, help="id of the element to export")
    export.add_argument("--attachments", help="JSON file with a list of attachments")
    export.add_argument("--output", default=".", help="Directory to write the PDF to")
    export.set_defaults(func=cmd_export)

    print_ = sub.add_parser("print", help="Open the document preview in the browser print dialog")
    print_.add_argument("html", help="HTML file containing the document preview")
    print_.add_argument("--target", default=DEFAULT_TARGET, help="id of the element to print")
    print_.set_defaults(func=cmd_print)

    upload = sub.add_parser("upload", help="Upload files and print their attachment records")
    upload.add_argument("files", nargs="+")
    upload.add_argument("--user", required=True, help="Uploading user id")
    upload.set_defaults(func=cmd_upload)
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    return args.func(args)


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
