"""
Turns stored media paths into client-usable media descriptors.
"""

from __future__ import annotations

import re
from typing import Optional

_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*:")


def is_absolute_url(path: str) -> bool:
    return bool(_SCHEME_RE.match(path))


def join_base(base_url: str, path: str) -> str:
    """Join ``path`` onto ``base_url`` with exactly one slash between them."""
    return f"{base_url.rstrip('/')}/{path.lstrip('/')}"


def build_media(path: Optional[str], base_url: str) -> Optional[dict]:
    """
    Resolve a stored path to ``{"url", "formats": {"medium": {"url"}}}``.

    Empty paths resolve to ``None``. Absolute URLs are kept verbatim and
    relative upload paths are joined to ``base_url``. No resized variants are
    generated, so the medium format points at the original.
    """
    if not path:
        return None
    url = path if is_absolute_url(path) else join_base(base_url, path)
    return {"url": url, "formats": {"medium": {"url": url}}}
