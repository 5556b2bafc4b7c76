# formexport/models.py
"""
Records shared by the export pipeline and the storage collaborators.
"""

import uuid
from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional


class DocumentType(str, Enum):
    LEAVE_APPLICATION = "leave_application"
    MONEY_REQUISITION = "money_requisition"
    MATERIAL_REQUISITION = "material_requisition"
    ADVANCE_ADJUSTMENT = "advance_adjustment"

    @property
    def label(self) -> str:
        return self.value.replace("_", " ").title()


class DocumentStatus(str, Enum):
    DRAFT = "draft"
    FINAL = "final"


@dataclass(frozen=True)
class Attachment:
    name: str
    url: str  # storage key, not an address
    type: str
    size: int = 0

    @property
    def is_image(self) -> bool:
        return self.type.startswith("image/")

    @property
    def is_pdf(self) -> bool:
        return self.type == "application/pdf"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Attachment":
        return cls(
            name=data["name"],
            url=data["url"],
            type=data.get("type") or "",
            size=int(data.get("size", 0)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class DocumentRecord:
    user_id: str
    document_type: DocumentType
    title: str
    form_data: Dict[str, Any] = field(default_factory=dict)
    status: DocumentStatus = DocumentStatus.DRAFT
    attachments: List[Attachment] = field(default_factory=list)
    is_deleted: bool = False
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: str = field(default_factory=_now)
    updated_at: str = field(default_factory=_now)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DocumentRecord":
        return cls(
            id=data["id"],
            user_id=data["user_id"],
            document_type=DocumentType(data["document_type"]),
            title=data.get("title", ""),
            form_data=data.get("form_data") or {},
            status=DocumentStatus(data.get("status", DocumentStatus.DRAFT.value)),
            attachments=[Attachment.from_dict(a) for a in data.get("attachments") or []],
            is_deleted=bool(data.get("is_deleted", False)),
            created_at=data.get("created_at") or _now(),
            updated_at=data.get("updated_at") or _now(),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "document_type": self.document_type.value,
            "title": self.title,
            "form_data": self.form_data,
            "status": self.status.value,
            "attachments": [a.to_dict() for a in self.attachments],
            "is_deleted": self.is_deleted,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


@dataclass(frozen=True)
class Notification:
    """User-facing message, the toast of the web client."""
    title: str
    description: str = ""
    variant: str = "default"  # or "destructive"


def document_title(document_type: DocumentType, name: Optional[str]) -> str:
    return f"{document_type.label} - {name or 'Untitled'}"


def export_filename(document_type: DocumentType, name: Optional[str]) -> str:
    """e.g. Material_Requisition_Bridge Works (extension added on save)."""
    prefix = document_type.label.replace(" ", "_")
    return f"{prefix}_{name or 'Document'}"
