"""
Supporting-document storage. Files are opaque blobs; leave requests keep
only the returned URL path.
"""
import logging
import time
import uuid
from pathlib import Path
from typing import Iterable, List, Tuple

from lfap.core.config import settings
from lfap.core.exceptions import ValidationError

logger = logging.getLogger(__name__)


def generate_unique_filename(original_name: str) -> str:
    """``<epoch-ms>-<uuid4 hex>.<ext>``; the original name is never reused."""
    suffix = Path(original_name or "").suffix.lower()
    return f"{int(time.time() * 1000)}-{uuid.uuid4().hex}{suffix}"


def store_supporting_documents(
    files: Iterable[Tuple[str, bytes]],
    upload_dir: str = None,
    url_prefix: str = None,
    max_bytes: int = None,
) -> List[str]:
    """
    Write each ``(filename, content)`` pair and return their public URLs.

    Every file is size-checked before any is written.
    """
    files = list(files)
    if not files:
        raise ValidationError("files", "No files provided")

    limit = max_bytes or settings.max_upload_bytes
    for original_name, content in files:
        if len(content) > limit:
            raise ValidationError(
                "files",
                f"{original_name or 'File'} exceeds the upload limit of {limit} bytes",
                details={"max_bytes": limit},
            )

    target = Path(upload_dir or settings.upload_dir)
    target.mkdir(parents=True, exist_ok=True)
    prefix = (url_prefix or settings.upload_url_prefix).rstrip("/")

    urls = []
    for original_name, content in files:
        name = generate_unique_filename(original_name)
        (target / name).write_bytes(content)
        urls.append(f"{prefix}/{name}")
        logger.info("Stored supporting document", extra={"stored_as": name, "size_bytes": len(content)})
    return urls
