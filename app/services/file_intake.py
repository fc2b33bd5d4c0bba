"""
Multipart file intake for application submissions.

Files arrive in three slots (``resume``, ``portfolio``, ``additionalDocuments``).
Every file is checked against its slot's media-type AND extension allow-lists,
the per-file size ceiling and the per-request file count before anything is
written. Accepted files are then stored under generated names; if any write
fails, the files already written in this request are deleted before the
error propagates. The returned ``IntakeBatch`` can also ``discard()`` its files
when a later step (validation, database insert) fails.
"""

import logging
import os
import secrets
import time
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Optional

from starlette.datastructures import FormData, UploadFile

from app.core.config import settings
from app.core.errors import FileTooLarge, Internal, InvalidFileType, TooManyFiles, UnexpectedField
from app.models.application import DocumentType, StoredFile
from app.services import storage

logger = logging.getLogger(__name__)

RESUMES_DIR = "resumes"
PORTFOLIOS_DIR = "portfolios"

_DOC_MIME = frozenset({
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
})
_DOC_EXT = frozenset({".pdf", ".doc", ".docx"})
_ATTACHMENT_MIME = _DOC_MIME | {
    "application/zip",
    "application/x-zip-compressed",
    "application/x-rar-compressed",
    "image/jpeg",
    "image/png",
}
_ATTACHMENT_EXT = _DOC_EXT | {".zip", ".rar", ".jpg", ".jpeg", ".png"}


@dataclass(frozen=True)
class SlotRule:
    name: str
    directory: str
    max_count: int
    mime_types: FrozenSet[str]
    extensions: FrozenSet[str]
    document_type: Optional[DocumentType] = None


SLOTS: Dict[str, SlotRule] = {
    "resume": SlotRule("resume", RESUMES_DIR, 1, _DOC_MIME, _DOC_EXT),
    "portfolio": SlotRule("portfolio", PORTFOLIOS_DIR, 1, _ATTACHMENT_MIME, _ATTACHMENT_EXT, DocumentType.PORTFOLIO),
    "additionalDocuments": SlotRule(
        "additionalDocuments", PORTFOLIOS_DIR, 5, _ATTACHMENT_MIME, _ATTACHMENT_EXT, DocumentType.OTHER
    ),
}
SERVED_DIRECTORIES = frozenset({RESUMES_DIR, PORTFOLIOS_DIR})
SERVED_EXTENSIONS = _ATTACHMENT_EXT


@dataclass
class _Accepted:
    rule: SlotRule
    original_name: str
    mimetype: str
    data: bytes


@dataclass
class IntakeBatch:
    """Files stored for one request, grouped by slot."""

    files: Dict[str, List[StoredFile]] = field(default_factory=dict)
    keys: List[str] = field(default_factory=list)

    @property
    def resume(self) -> Optional[StoredFile]:
        found = self.files.get("resume") or []
        return found[0] if found else None

    @property
    def documents(self) -> List[StoredFile]:
        return list(self.files.get("portfolio", [])) + list(self.files.get("additionalDocuments", []))

    def discard(self) -> None:
        """Delete every file stored for this request. Safe to call twice."""
        while self.keys:
            key = self.keys.pop()
            if storage.delete_object(key):
                logger.info("Cleaned up uploaded file %s", key)
            else:
                logger.error("Could not clean up uploaded file %s", key)


def generate_filename(slot: str, extension: str) -> str:
    return f"{slot}-{int(time.time() * 1000)}-{secrets.randbelow(10 ** 9)}{extension}"


def check_file_type(rule: SlotRule, filename: str, mimetype: str) -> None:
    ext = os.path.splitext(filename)[1].lower()
    if mimetype not in rule.mime_types or ext not in rule.extensions:
        allowed = ", ".join(sorted(rule.extensions))
        raise InvalidFileType(f"Invalid file type for {rule.name}. Allowed types: {allowed}")


async def _accept(form: FormData) -> List[_Accepted]:
    limit = settings.max_upload_size_bytes
    per_slot: Dict[str, int] = {}
    accepted: List[_Accepted] = []
    for name, value in form.multi_items():
        if not isinstance(value, UploadFile):
            continue
        if not value.filename:
            # an empty file input
            continue
        rule = SLOTS.get(name)
        if rule is None:
            raise UnexpectedField(f"Unexpected file field: {name}. Expected fields: {', '.join(SLOTS)}")
        per_slot[name] = per_slot.get(name, 0) + 1
        if per_slot[name] > rule.max_count or len(accepted) + 1 > settings.MAX_UPLOAD_FILES:
            raise TooManyFiles(
                f"Too many files. At most {settings.MAX_UPLOAD_FILES} files per request "
                f"and {rule.max_count} for {name}."
            )
        mimetype = value.content_type or "application/octet-stream"
        check_file_type(rule, value.filename, mimetype)
        data = await value.read(limit + 1)
        if len(data) > limit:
            raise FileTooLarge(f"File size too large. Maximum size is {settings.MAX_UPLOAD_SIZE_MB}MB.")
        accepted.append(_Accepted(rule, os.path.basename(value.filename), mimetype, data))
    return accepted


async def intake_files(form: FormData) -> IntakeBatch:
    """
    Validate and store the files in ``form``.

    Raises one of ``UnexpectedField``, ``TooManyFiles``, ``InvalidFileType``
    or ``FileTooLarge`` before any write, and ``Internal`` (after cleanup)
    when storage fails part-way.
    """
    accepted = await _accept(form)
    batch = IntakeBatch()
    try:
        for item in accepted:
            ext = os.path.splitext(item.original_name)[1].lower()
            filename = generate_filename(item.rule.name, ext)
            key = f"{item.rule.directory}/{filename}"
            await storage.save_bytes(key, item.data, item.mimetype)
            batch.keys.append(key)
            batch.files.setdefault(item.rule.name, []).append(StoredFile(
                filename=filename,
                original_name=item.original_name,
                mimetype=item.mimetype,
                size=len(item.data),
                url=f"/uploads/{key}",
                type=item.rule.document_type,
            ))
    except Exception as exc:
        logger.exception("Storing uploaded files failed, removing %d written file(s)", len(batch.keys))
        batch.discard()
        raise Internal("Failed to store uploaded files") from exc
    return batch
