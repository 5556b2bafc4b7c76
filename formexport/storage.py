# formexport/storage.py
"""
Object store collaborators for attachment bytes.

Keys are opaque strings namespaced per uploading user:
``{user_id}/{timestamp}-{random}.{ext}``.
"""

import logging
import os
import random
import string
import time
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Tuple
from urllib.parse import quote, urljoin, urlparse
from urllib.request import url2pathname

import requests

from formexport import config
from formexport.errors import StorageError
from formexport.models import Attachment
from formexport.utils import file_extension

logging.basicConfig(level=logging.INFO)


def make_storage_key(user_id: str, filename: str) -> str:
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=6))
    return f"{user_id}/{int(time.time() * 1000)}-{suffix}.{file_extension(filename)}"


def download(address: str, base_url: Optional[str] = None, session=None) -> Tuple[bytes, Optional[str]]:
    """
    Fetch ``address`` and return ``(data, content_type)``.

    http(s) addresses go through requests; ``file://`` URIs and bare paths
    are read from disk. Relative addresses are resolved against ``base_url``.
    """
    if base_url:
        address = urljoin(base_url, address)
    parsed = urlparse(address)
    if parsed.scheme in ("http", "https"):
        response = (session or requests).get(address, timeout=config.FETCH_TIMEOUT)
        response.raise_for_status()
        return response.content, response.headers.get("Content-Type")
    path = url2pathname(parsed.path) if parsed.scheme == "file" else address
    with open(path, "rb") as f:
        return f.read(), None


class ObjectStore(ABC):

    @abstractmethod
    def put(self, key: str, data: bytes, content_type: str = "application/octet-stream") -> str:
        ...

    @abstractmethod
    def public_url(self, key: str) -> Optional[str]:
        ...

    @abstractmethod
    def fetch(self, key: str) -> bytes:
        ...

    @abstractmethod
    def delete(self, key: str) -> None:
        ...


class HttpObjectStore(ObjectStore):
    """Storage bucket behind a Supabase-style REST API."""

    def __init__(self, base_url: str = config.STORAGE_URL, api_key: str = config.STORAGE_KEY,
                 bucket: str = config.STORAGE_BUCKET, session: Optional[requests.Session] = None):
        if not base_url:
            raise StorageError("No storage URL configured (FORMEXPORT_STORAGE_URL)")
        self.base_url = base_url.rstrip("/")
        self.bucket = bucket
        self.session = session or requests.Session()
        if api_key:
            self.session.headers.update({"apikey": api_key, "Authorization": f"Bearer {api_key}"})

    def _object_url(self, key: str) -> str:
        return f"{self.base_url}/storage/v1/object/{self.bucket}/{quote(key)}"

    def put(self, key, data, content_type="application/octet-stream"):
        try:
            response = self.session.post(self._object_url(key), data=data,
                                         headers={"Content-Type": content_type},
                                         timeout=config.FETCH_TIMEOUT)
            response.raise_for_status()
        except requests.RequestException as e:
            logging.error(f"Upload of '{key}' failed: {e}")
            raise StorageError(f"Upload of '{key}' failed: {e}") from e
        return key

    def public_url(self, key):
        if not key:
            return None
        return f"{self.base_url}/storage/v1/object/public/{self.bucket}/{quote(key)}"

    def fetch(self, key):
        try:
            response = self.session.get(self._object_url(key), timeout=config.FETCH_TIMEOUT)
            response.raise_for_status()
        except requests.RequestException as e:
            raise StorageError(f"Download of '{key}' failed: {e}") from e
        return response.content

    def delete(self, key):
        try:
            response = self.session.delete(f"{self.base_url}/storage/v1/object/{self.bucket}",
                                           json={"prefixes": [key]}, timeout=config.FETCH_TIMEOUT)
            response.raise_for_status()
        except requests.RequestException as e:
            logging.error(f"Delete of '{key}' failed: {e}")
            raise StorageError(f"Delete of '{key}' failed: {e}") from e


class LocalObjectStore(ObjectStore):
    """Directory-backed store; addresses are file:// URIs."""

    def __init__(self, root=None):
        self.root = Path(root or os.path.join(config.DATA_DIR, "attachments")).resolve()
        self.root.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        path = (self.root / key).resolve()
        if self.root not in path.parents:
            raise StorageError(f"Key escapes the store: {key}")
        return path

    def put(self, key, data, content_type="application/octet-stream"):
        path = self._path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        return key

    def public_url(self, key):
        if not key:
            return None
        return self._path(key).as_uri()

    def fetch(self, key):
        try:
            return self._path(key).read_bytes()
        except OSError as e:
            raise StorageError(f"Download of '{key}' failed: {e}") from e

    def delete(self, key):
        try:
            self._path(key).unlink()
        except FileNotFoundError:
            logging.warning(f"Object '{key}' already removed")


def upload_attachment(store: ObjectStore, user_id: str, filename: str, data: bytes,
                      content_type: str = "application/octet-stream") -> Attachment:
    key = store.put(make_storage_key(user_id, filename), data, content_type)
    logging.info(f"Uploaded {filename} as {key}")
    return Attachment(name=filename, url=key, type=content_type, size=len(data))


def remove_attachment(store: ObjectStore, attachment: Attachment) -> None:
    store.delete(attachment.url)
