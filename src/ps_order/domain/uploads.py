"""Local checks run before a file is sent to the blob store."""
import secrets
from pathlib import PurePosixPath

from src.ps_common.errors import UploadError


def validate_upload(
    filename: str | None,
    content_type: str | None,
    size: int,
    allowed_types: list[str],
    max_bytes: int,
) -> tuple[str, str]:
    """Return (filename, content_type) once both are known to be acceptable."""
    if not filename:
        raise UploadError("file name is missing")
    if content_type is None or content_type not in allowed_types:
        raise UploadError(f"{filename} is not an accepted file type ({content_type})")
    if size == 0:
        raise UploadError(f"{filename} is empty")
    check_upload_size(filename, size, max_bytes)
    return filename, content_type


def check_upload_size(filename: str | None, size: int | None, max_bytes: int) -> None:
    """Reject a file over the limit; an unknown size passes."""
    if size is not None and size > max_bytes:
        raise UploadError(f"{filename} is larger than {max_bytes // (1024 * 1024)}MB", 413)


def object_path_for(user_id: str, filename: str) -> str:
    """Blob path ``{user_id}/{random}.{ext}``; the original name is kept on the order."""
    ext = PurePosixPath(filename).suffix.lstrip(".").lower() or "bin"
    return f"{user_id}/{secrets.token_hex(8)}.{ext}"
