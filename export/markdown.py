"""Markdown export: the manuscript exactly as assembled."""

from models.library import LibraryEntry


def render_markdown(entry: LibraryEntry) -> bytes:
    return entry.manuscript.encode("utf-8")
