"""Filesystem object storage for uploaded pet images and documents.

Objects are addressed by paths of the form ``/objects/<entity>`` and stored
under ``PRIVATE_OBJECT_DIR``. Each object has a JSON sidecar holding its
access policy (owner, visibility, content type).
"""
from __future__ import annotations

import json
import logging
import os
import uuid
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import BinaryIO, Optional
from urllib.parse import urlparse

from flask import current_app

logger = logging.getLogger(__name__)

OBJECT_PREFIX = "/objects/"
VISIBILITY_PUBLIC = "public"
VISIBILITY_PRIVATE = "private"
_ACL_SUFFIX = ".acl.json"
_CHUNK = 64 * 1024


class ObjectNotFoundError(Exception):
    pass


class InvalidObjectPath(ValueError):
    pass


@dataclass
class AclPolicy:
    owner: Optional[str]
    visibility: str = VISIBILITY_PRIVATE
    content_type: str = "application/octet-stream"


def normalize_object_path(raw: str) -> str:
    """Return the ``/objects/...`` path for an upload URL or object path."""
    if not raw:
        raise InvalidObjectPath("Empty object path")
    path = urlparse(raw).path if "://" in raw else raw
    if not path.startswith(OBJECT_PREFIX):
        raise InvalidObjectPath("Not an object path")
    entity = path[len(OBJECT_PREFIX):]
    parts = [p for p in entity.split("/") if p]
    if not parts or any(p in (".", "..") for p in parts) or entity.endswith(_ACL_SUFFIX):
        raise InvalidObjectPath("Invalid object path")
    return OBJECT_PREFIX + "/".join(parts)


class ObjectStorage:
    def __init__(self, root: str) -> None:
        self.root = Path(root)

    def _file_for(self, object_path: str) -> Path:
        entity = normalize_object_path(object_path)[len(OBJECT_PREFIX):]
        return self.root.joinpath(*entity.split("/"))

    @staticmethod
    def _acl_file(path: Path) -> Path:
        return path.with_name(path.name + _ACL_SUFFIX)

    def new_upload_path(self) -> str:
        return f"{OBJECT_PREFIX}uploads/{uuid.uuid4()}"

    def exists(self, object_path: str) -> bool:
        return self._file_for(object_path).is_file()

    def save(self, object_path: str, stream: BinaryIO, owner: str, content_type: str) -> int:
        target = self._file_for(object_path)
        acl = AclPolicy(owner=owner, content_type=content_type)
        if target.is_file():
            previous = self.get_acl(object_path)
            if previous.owner == owner:
                acl.visibility = previous.visibility
        target.parent.mkdir(parents=True, exist_ok=True)
        size = 0
        with open(target, "wb") as fh:
            while True:
                chunk = stream.read(_CHUNK)
                if not chunk:
                    break
                fh.write(chunk)
                size += len(chunk)
        self._write_acl(target, acl)
        logger.info("Stored object %s (%d bytes) for %s", object_path, size, owner)
        return size

    def open(self, object_path: str) -> tuple[Path, AclPolicy]:
        target = self._file_for(object_path)
        if not target.is_file():
            raise ObjectNotFoundError(object_path)
        return target, self.get_acl(object_path)

    def get_acl(self, object_path: str) -> AclPolicy:
        target = self._file_for(object_path)
        acl_file = self._acl_file(target)
        if not acl_file.is_file():
            return AclPolicy(owner=None)
        with open(acl_file, encoding="utf-8") as fh:
            return AclPolicy(**json.load(fh))

    def set_acl(self, object_path: str, owner: str, visibility: str) -> str:
        """Set owner/visibility of an uploaded object and return its path."""
        path = normalize_object_path(object_path)
        target = self._file_for(path)
        if not target.is_file():
            raise ObjectNotFoundError(path)
        acl = self.get_acl(path)
        acl.owner = acl.owner or owner
        acl.visibility = visibility
        self._write_acl(target, acl)
        return path

    def _write_acl(self, target: Path, acl: AclPolicy) -> None:
        tmp = self._acl_file(target).with_suffix(".tmp")
        with open(tmp, "w", encoding="utf-8") as fh:
            json.dump(asdict(acl), fh)
        os.replace(tmp, self._acl_file(target))


def get_storage() -> ObjectStorage:
    return current_app.extensions["object_storage"]
