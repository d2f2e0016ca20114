"""Export package: Markdown, Word-compatible HTML, and PDF renderers."""

import logging
from pathlib import Path

from config.exceptions import ValidationError
from export.markdown import render_markdown
from export.pdf import render_pdf
from export.word import render_word_html
from models.enums import ExportFormat
from models.library import LibraryEntry
from tools.text_utils import sanitize_filename

logger = logging.getLogger(__name__)

_RENDERERS = {
    ExportFormat.MARKDOWN: render_markdown,
    ExportFormat.WORD: render_word_html,
    ExportFormat.PDF: render_pdf,
}


def write_export(entry: LibraryEntry, fmt: ExportFormat | str, out_dir: str | Path) -> Path:
    """Render ``entry`` and write it as ``<sanitized title>.<ext>`` under ``out_dir``."""
    fmt = ExportFormat(fmt)
    if not entry.manuscript.strip():
        raise ValidationError("Nothing to export: the manuscript is empty")
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    path = out_dir / f"{sanitize_filename(entry.title)}.{fmt.value}"
    path.write_bytes(_RENDERERS[fmt](entry))
    logger.info("Exported %s to %s", fmt.value, path)
    return path


__all__ = ["render_markdown", "render_word_html", "render_pdf", "write_export"]
