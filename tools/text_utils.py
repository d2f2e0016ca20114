"""Text utilities: reference materials, headings, file names, counting."""

import base64
import mimetypes
import re
from pathlib import Path

_HEADING_RE = re.compile(r"^\s*#{1,6}\s+\S")
_UNSAFE_FILENAME_RE = re.compile(r'[\\/:*?"<>|\x00-\x1f]+')


def read_material_file(path: str | Path) -> str:
    """Read any file as text, best effort.

    Binary formats are not parsed; undecodable bytes are replaced.
    """
    return Path(path).read_bytes().decode("utf-8", errors="replace")


def append_material(materials: str, name: str, text: str) -> str:
    """Append ``text`` to the materials field with a provenance header."""
    if not text:
        return materials
    return f"{materials}\n\n--- Material: {name} ---\n{text}"


def image_file_to_data_uri(path: str | Path) -> str:
    """Encode an uploaded image as a data URI."""
    path = Path(path)
    mime_type = mimetypes.guess_type(path.name)[0] or "image/png"
    encoded = base64.b64encode(path.read_bytes()).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"


def decode_data_uri(uri: str) -> tuple[str, bytes]:
    """Split a data URI into (mime_type, raw bytes)."""
    if not uri.startswith("data:") or ";base64," not in uri:
        raise ValueError("Not a base64 data URI")
    header, payload = uri.split(";base64,", 1)
    return header[len("data:"):] or "application/octet-stream", base64.b64decode(payload)


def ensure_chapter_heading(text: str, title: str) -> str:
    """Prefix a ``## title`` heading unless the text already opens with one."""
    text = text.strip()
    first_line = text.splitlines()[0] if text else ""
    if _HEADING_RE.match(first_line):
        return text
    return f"## {title}\n\n{text}"


def sanitize_filename(name: str, fallback: str = "ebook") -> str:
    cleaned = _UNSAFE_FILENAME_RE.sub("_", name).strip(" ._")
    return cleaned[:120] or fallback


def count_total_chars(text: str) -> int:
    """Count all non-whitespace characters including punctuation."""
    return len(re.sub(r"\s", "", text))

