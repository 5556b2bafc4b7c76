# formexport/errors.py
"""
Exception taxonomy for export, print, storage and attachment handling.
"""


class ExportError(Exception):
    pass


class TargetNotFound(ExportError):
    def __init__(self, target_id: str):
        super().__init__(f"Element not found: #{target_id}")
        self.target_id = target_id


class PrintWindowBlocked(ExportError):
    pass


class AttachmentError(ExportError):
    """Failure tied to a single attachment. Recovered inside the compositor."""

    def __init__(self, attachment, message: str):
        super().__init__(f"{attachment.name}: {message}")
        self.attachment = attachment


class AttachmentFetchError(AttachmentError):
    pass


class AttachmentDecodeError(AttachmentError):
    pass


class AttachmentMergeError(AttachmentError):
    pass


class StorageError(ExportError):
    pass


class DocumentNotFound(ExportError):
    pass


class NotAuthorized(ExportError):
    pass
