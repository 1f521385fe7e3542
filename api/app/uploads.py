# api/app/uploads.py
import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from starlette.datastructures import FormData, UploadFile

from handwriting_utils import utils

logger = utils.setup_logging()

# Field names tried in order before falling back to any file in the form
FORM_FILE_FIELDS = ("file", "image", "document")

MAX_UPLOAD_BYTES = 25 * 1024 * 1024


class UploadTooLarge(Exception):
    """Reported to the caller like any other extraction failure (500)."""


def _first_upload(form: FormData, field: str) -> Optional[UploadFile]:
    for value in form.getlist(field):
        if isinstance(value, UploadFile):
            return value
    return None


def pick_upload(form: FormData) -> Optional[UploadFile]:
    """
    Return the uploaded file from the known field names, or else the first
    file found under any field name.
    """
    for field in FORM_FILE_FIELDS:
        upload = _first_upload(form, field)
        if upload is not None:
            return upload

    for _, value in form.multi_items():
        if isinstance(value, UploadFile):
            return value
    return None


def upload_dir() -> Optional[str]:
    return utils.get_env("UPLOAD_TMP_DIR") or None


@contextmanager
def temporary_upload(data: bytes, suffix: str = "") -> Iterator[Path]:
    """
    Write the upload to a temporary file and yield its path.
    The file is removed on every exit path; a failed removal is only logged.
    """
    fd, name = tempfile.mkstemp(prefix="upload_", suffix=suffix, dir=upload_dir())
    path = Path(name)
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(data)
        yield path
    finally:
        try:
            path.unlink()
        except OSError as e:
            logger.warning("Failed to remove temp file %s: %s", path, e)


async def read_upload(upload: UploadFile) -> bytes:
    """Read the whole upload, enforcing MAX_UPLOAD_BYTES."""
    raw = await upload.read(MAX_UPLOAD_BYTES + 1)
    if len(raw) > MAX_UPLOAD_BYTES:
        raise UploadTooLarge(f"File exceeds the upload limit of {MAX_UPLOAD_BYTES} bytes")
    return raw
