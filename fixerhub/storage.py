"""
Local disk storage for uploaded files.

Files land in UPLOAD_DIR/<kind>/ and entities keep only the relative path
("<kind>/<name>"), which the /uploads static mount serves back.
"""

import logging
import os
import random
import time
from pathlib import Path

from fastapi import HTTPException, UploadFile

from .config import MAX_UPLOAD_SIZE_MB, UPLOAD_DIR
from .shared.validators import sanitize_filename

logger = logging.getLogger(__name__)

UPLOAD_KINDS = ("profiles", "certifications", "receipts", "evidence", "disputes")

IMAGE_TYPES = {
    "image/jpeg": (".jpg", ".jpeg"),
    "image/jpg": (".jpg", ".jpeg"),
    "image/png": (".png",),
    "image/gif": (".gif",),
    "image/webp": (".webp",),
}
PDF_TYPES = {"application/pdf": (".pdf",)}
DOCUMENT_TYPES = {
    "application/msword": (".doc",),
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": (".docx",),
}

# Certification documents: pdf, doc, docx, jpg, jpeg, png, gif
CERTIFICATION_TYPES = {
    **PDF_TYPES,
    **DOCUMENT_TYPES,
    **{k: v for k, v in IMAGE_TYPES.items() if k != "image/webp"},
}
RECEIPT_TYPES = {**IMAGE_TYPES, **PDF_TYPES}
EVIDENCE_TYPES = {**IMAGE_TYPES, **PDF_TYPES, **DOCUMENT_TYPES, "text/plain": (".txt",)}


def ensure_upload_dirs() -> None:
    for kind in UPLOAD_KINDS:
        os.makedirs(os.path.join(UPLOAD_DIR, kind), exist_ok=True)


def build_filename(prefix: str, original_name: str) -> str:
    """<prefix>-<millis>-<random>-<sanitized original>"""
    millis = int(time.time() * 1000)
    return f"{prefix}-{millis}-{random.randint(0, 9999)}-{sanitize_filename(original_name)}"


def validate_upload(file: UploadFile, allowed_types: dict) -> None:
    if file.content_type not in allowed_types:
        extensions = sorted({ext.lstrip(".") for exts in allowed_types.values() for ext in exts})
        raise HTTPException(
            status_code=400,
            detail=f"Invalid file type. Allowed types: {', '.join(extensions)}",
        )

    if file.filename:
        valid_extensions = allowed_types[file.content_type]
        if not file.filename.lower().endswith(valid_extensions):
            logger.warning(f"❌ Extension does not match content type: '{file.filename}'")
            raise HTTPException(status_code=400, detail="Invalid filename - extension does not match file type")


async def save_upload(file: UploadFile, kind: str, prefix: str, allowed_types: dict) -> str:
    """
    Validate and write an uploaded file to disk.

    Returns:
        Path relative to UPLOAD_DIR, e.g. "certifications/cert-1700000000000-42-license.pdf"
    """
    if kind not in UPLOAD_KINDS:
        raise ValueError(f"Unknown upload kind: {kind}")

    validate_upload(file, allowed_types)

    contents = await file.read()
    max_bytes = MAX_UPLOAD_SIZE_MB * 1024 * 1024
    if len(contents) > max_bytes:
        raise HTTPException(
            status_code=400,
            detail=f"File size exceeds {MAX_UPLOAD_SIZE_MB}MB limit. "
            f"Your file is {len(contents) / (1024 * 1024):.2f}MB.",
        )

    filename = build_filename(prefix, file.filename or "file")
    directory = Path(UPLOAD_DIR) / kind
    directory.mkdir(parents=True, exist_ok=True)
    (directory / filename).write_bytes(contents)

    relative_path = f"{kind}/{filename}"
    logger.info(f"📤 Stored upload {relative_path} ({len(contents)} bytes)")
    return relative_path


def delete_upload(relative_path: str) -> None:
    """Remove a stored file; missing files are ignored"""
    if not relative_path:
        return
    target = (Path(UPLOAD_DIR) / relative_path).resolve()
    if Path(UPLOAD_DIR).resolve() not in target.parents:
        logger.warning(f"⚠️ Refusing to delete path outside upload dir: {relative_path}")
        return
    try:
        target.unlink()
        logger.info(f"🗑️ Deleted upload {relative_path}")
    except FileNotFoundError:
        logger.debug(f"Upload already gone: {relative_path}")
