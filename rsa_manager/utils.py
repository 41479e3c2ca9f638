"""
RSA Manager Utility Helpers
===========================

Shared helpers for output filenames, file size formatting, result
previews and user-facing error text.
"""

from __future__ import annotations

import base64

from .errors import RSAManagerError

ENCRYPTED_SUFFIX = ".enc"
DECRYPTED_PREFIX = "decrypted_"

PREVIEW_LIMIT = 500
_TEXT_SNIFF_BYTES = 1000


# ---------------------------------------------------------------------------
# Human-readable file size
# ---------------------------------------------------------------------------

def human_file_size(size_bytes: int) -> str:
    """Convert byte count to a human-readable string (e.g. '1.5 MB')."""
    if size_bytes < 0:
        return "0 B"
    size = float(size_bytes)
    for unit in ("B", "KB", "MB", "GB", "TB"):
        if size < 1024.0:
            if unit == "B":
                return f"{size_bytes} {unit}"
            return f"{size:.1f} {unit}"
        size /= 1024.0
    return f"{size:.1f} PB"


# ---------------------------------------------------------------------------
# Output filename helper
# ---------------------------------------------------------------------------

def safe_output_filename(original: str, encrypting: bool) -> str:
    """
    Derive an output filename.

    * Encrypting  → append ``.enc``
    * Decrypting  → strip ``.enc`` suffix if present, else prepend ``decrypted_``
    """
    if encrypting:
        return original + ENCRYPTED_SUFFIX
    if original.endswith(ENCRYPTED_SUFFIX) and len(original) > len(ENCRYPTED_SUFFIX):
        return original[: -len(ENCRYPTED_SUFFIX)]
    return DECRYPTED_PREFIX + original


# ---------------------------------------------------------------------------
# Result preview
# ---------------------------------------------------------------------------

def looks_like_text(data: bytes) -> bool:
    """True if the first 1000 bytes contain no NUL byte."""
    return b"\x00" not in data[:_TEXT_SNIFF_BYTES]


def preview(data: bytes, limit: int = PREVIEW_LIMIT) -> str:
    """
    Short display string for an operation result.

    Text-like data that decodes as UTF-8 is returned as is; anything else
    is shown as truncated Base64 followed by ``...``.
    """
    if looks_like_text(data):
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError:
            pass
    return base64.b64encode(data).decode("ascii")[:limit] + "..."


# ---------------------------------------------------------------------------
# Error reporting
# ---------------------------------------------------------------------------

def describe_error(exc: BaseException) -> str:
    """Format *exc* as ``Operation failed (<kind>): <message>``."""
    kind = exc.kind if isinstance(exc, RSAManagerError) else type(exc).__name__
    return f"Operation failed ({kind}): {exc}"
