"""
Stored file naming conventions.

Uploaded files keep the name the client sent. When that name is already
taken, a counter is inserted before the extension:

    report.pdf -> report(1).pdf -> report(2).pdf -> ...

Names are normalized first: mis-decoded UTF-8 is repaired where possible and
directory components are dropped so every stored name is a bare basename.
"""

from __future__ import annotations

import itertools
import os
from typing import Callable, Iterator, Union


# Name used when a client sends nothing usable
FALLBACK_FILENAME = "unnamed"

CANONICAL_ENCODING = "utf-8"

# Multipart parsers commonly decode UTF-8 filenames as Latin-1
LEGACY_ENCODING = "latin-1"


def normalize_filename(raw: Union[str, bytes]) -> str:
    """
    Repair the text encoding of a client-supplied filename.

    Args:
        raw: The filename as received, either text or raw bytes.

    Returns:
        The best-effort UTF-8 reading of the name. When no better reading
        exists the input is returned unchanged (bytes are decoded as Latin-1).
    """
    if isinstance(raw, bytes):
        try:
            return raw.decode(CANONICAL_ENCODING)
        except UnicodeDecodeError:
            return raw.decode(LEGACY_ENCODING)

    try:
        repaired = raw.encode(LEGACY_ENCODING).decode(CANONICAL_ENCODING)
    except (UnicodeEncodeError, UnicodeDecodeError):
        return raw
    return repaired


def sanitize_filename(name: str) -> str:
    """
    Reduce a filename to a bare basename that is safe to join onto the store root.

    Args:
        name: Normalized filename, possibly carrying client path components.

    Returns:
        The last path component, or FALLBACK_FILENAME if nothing usable remains.
    """
    name = name.replace("\x00", "").replace("\\", "/")
    base = name.rsplit("/", 1)[-1].strip()
    if base in ("", ".", ".."):
        return FALLBACK_FILENAME
    return base


def split_filename(name: str) -> tuple[str, str]:
    """
    Split a filename into base and extension.

    The extension is the last dot-delimited suffix including the dot. Leading
    dots of a bare name do not start an extension (``.env`` has none).

    Returns:
        (base, extension) where extension may be empty.
    """
    return os.path.splitext(name)


def candidate_names(name: str) -> Iterator[str]:
    """
    Yield the desired name followed by its numbered variants, forever.
    """
    yield name
    base, extension = split_filename(name)
    for counter in itertools.count(1):
        yield f"{base}({counter}){extension}"


def resolve_filename(desired: str, exists: Callable[[str], bool]) -> str:
    """
    Find the first collision-free variant of a filename.

    The result is only unique against the store as observed at call time;
    use FileStore.create_exclusive when the name is about to be written.

    Args:
        desired: The filename the client asked for.
        exists: Membership predicate of the store.

    Returns:
        The desired name, or the first numbered variant not in the store.
    """
    for candidate in candidate_names(desired):
        if not exists(candidate):
            return candidate
    raise AssertionError("unreachable")  # pragma: no cover
