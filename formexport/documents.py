# formexport/documents.py
"""
JSON-file document and draft stores.
"""

import json
import logging
import os
import time
import random
import string
from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from formexport import config
from formexport.errors import DocumentNotFound, NotAuthorized, StorageError
from formexport.models import Attachment, DocumentRecord, DocumentStatus, DocumentType
from formexport.storage import ObjectStore

logging.basicConfig(level=logging.INFO)

ADMIN_ROLE = "admin"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class _JsonFile:

    def __init__(self, path):
        self.path = Path(path)

    def load(self) -> List[Dict[str, Any]]:
        if not self.path.exists():
            return []
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
            return data if isinstance(data, list) else []
        except Exception as e:
            logging.error(f"Error reading {self.path}: {e}")
            return []

    def save(self, rows: List[Dict[str, Any]]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self.path.with_suffix(self.path.suffix + ".tmp")
            with open(tmp, "w", encoding="utf-8") as f:
                json.dump(rows, f, indent=2)
            os.replace(tmp, self.path)
        except Exception as e:
            logging.error(f"Error saving {self.path}: {e}")
            raise StorageError(f"Could not save {self.path}: {e}") from e


class DocumentStore:
    """
    Document table: create, read, update, soft delete and admin hard delete.

    Soft-deleted records stay in the file with ``is_deleted`` set and are
    hidden from normal reads.
    """

    UPDATABLE = ("title", "form_data", "status", "attachments", "document_type")

    def __init__(self, path=None, object_store: Optional[ObjectStore] = None):
        self._file = _JsonFile(path or os.path.join(config.DATA_DIR, "documents.json"))
        self.object_store = object_store

    def _records(self) -> List[DocumentRecord]:
        return [DocumentRecord.from_dict(row) for row in self._file.load()]

    def _write(self, records: List[DocumentRecord]) -> None:
        self._file.save([r.to_dict() for r in records])

    def create(self, user_id: str, document_type: DocumentType, title: str,
               form_data: Optional[Dict[str, Any]] = None, status: DocumentStatus = DocumentStatus.DRAFT,
               attachments=None) -> DocumentRecord:
        record = DocumentRecord(
            user_id=user_id,
            document_type=DocumentType(document_type),
            title=title,
            form_data=form_data or {},
            status=DocumentStatus(status),
            attachments=[a if isinstance(a, Attachment) else Attachment.from_dict(a)
                         for a in attachments or []],
        )
        records = self._records()
        records.append(record)
        self._write(records)
        logging.info(f"Created document {record.id} ({record.document_type.value})")
        return record

    def get(self, document_id: str, include_deleted: bool = False) -> DocumentRecord:
        for record in self._records():
            if record.id == document_id and (include_deleted or not record.is_deleted):
                return record
        raise DocumentNotFound(document_id)

    def list_by_user(self, user_id: str, include_deleted: bool = False) -> List[DocumentRecord]:
        records = [r for r in self._records()
                   if r.user_id == user_id and (include_deleted or not r.is_deleted)]
        return sorted(records, key=lambda r: r.updated_at, reverse=True)

    def update(self, document_id: str, **changes) -> DocumentRecord:
        unknown = set(changes) - set(self.UPDATABLE)
        if unknown:
            raise ValueError(f"Cannot update fields: {', '.join(sorted(unknown))}")
        if "status" in changes:
            changes["status"] = DocumentStatus(changes["status"])
        if "document_type" in changes:
            changes["document_type"] = DocumentType(changes["document_type"])
        if "attachments" in changes:
            changes["attachments"] = [a if isinstance(a, Attachment) else Attachment.from_dict(a)
                                      for a in changes["attachments"]]
        records = self._records()
        for i, record in enumerate(records):
            if record.id == document_id and not record.is_deleted:
                records[i] = replace(record, updated_at=_now(), **changes)
                self._write(records)
                return records[i]
        raise DocumentNotFound(document_id)

    def soft_delete(self, document_id: str) -> None:
        records = self._records()
        for i, record in enumerate(records):
            if record.id == document_id and not record.is_deleted:
                records[i] = replace(record, is_deleted=True, updated_at=_now())
                self._write(records)
                return
        raise DocumentNotFound(document_id)

    def hard_delete(self, document_id: str, role: str) -> None:
        """Remove the row and its attachment objects. Admins only."""
        if role != ADMIN_ROLE:
            raise NotAuthorized("Only admins can permanently delete documents")
        records = self._records()
        target = next((r for r in records if r.id == document_id), None)
        if target is None:
            raise DocumentNotFound(document_id)
        if self.object_store is not None:
            for attachment in target.attachments:
                try:
                    self.object_store.delete(attachment.url)
                except StorageError as e:
                    logging.warning(f"Could not remove attachment {attachment.url}: {e}")
        self._write([r for r in records if r.id != document_id])
        logging.info(f"Deleted document {document_id}")


class DraftStore:
    """Local drafts, newest first, capped at config.MAX_DRAFTS."""

    def __init__(self, path=None, max_drafts: int = config.MAX_DRAFTS):
        self._file = _JsonFile(path or os.path.join(config.DATA_DIR, "drafts.json"))
        self.max_drafts = max_drafts

    @staticmethod
    def _new_id() -> str:
        suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=9))
        return f"draft_{int(time.time() * 1000)}_{suffix}"

    def list(self) -> List[Dict[str, Any]]:
        return self._file.load()

    def get(self, draft_id: str) -> Optional[Dict[str, Any]]:
        return next((d for d in self.list() if d.get("id") == draft_id), None)

    def save(self, document_type: str, title: str, form_data: Dict[str, Any],
             attachments: Optional[List[Dict[str, Any]]] = None, draft_id: Optional[str] = None) -> str:
        """Update the draft ``draft_id`` (or create it). Returns the draft id."""
        now = _now()
        fields = {
            "document_type": DocumentType(document_type).value,
            "title": title,
            "form_data": form_data,
            "attachments": attachments or [],
        }
        drafts = self.list()
        existing = next((d for d in drafts if draft_id and d.get("id") == draft_id), None)
        if existing is not None:
            existing.update(fields, updated_at=now)
        else:
            draft_id = draft_id or self._new_id()
            drafts.insert(0, dict(fields, id=draft_id, created_at=now, updated_at=now))

        drafts.sort(key=lambda d: d.get("updated_at", ""), reverse=True)
        if len(drafts) > self.max_drafts:
            dropped = drafts[self.max_drafts:]
            logging.info(f"Dropping {len(dropped)} oldest draft(s)")
            drafts = drafts[:self.max_drafts]
        self._file.save(drafts)
        return draft_id

    def delete(self, draft_id: str) -> None:
        self._file.save([d for d in self.list() if d.get("id") != draft_id])
