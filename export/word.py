"""Word export as Office-namespaced HTML saved with a ``.doc`` extension.

Word opens this format directly, so no document library is needed; each
manuscript line becomes one paragraph.
"""

import html

from models.library import LibraryEntry

MIME_TYPE = "application/msword"

_STYLE = (
    "body{font-family:'Segoe UI';padding:2in;}"
    "h1{text-align:center;margin-bottom:2in;}"
    "h2{page-break-before:always;border-bottom:1px solid #eee;padding-bottom:10pt;}"
    "pre{background:#f4f4f4;padding:12pt;font-family:monospace;}"
)


def render_word_html(entry: LibraryEntry) -> bytes:
    title = html.escape(entry.title or "ebook")
    header = (
        "<html xmlns:o='urn:schemas-microsoft-com:office:office' "
        "xmlns:w='urn:schemas-microsoft-com:office:word' "
        "xmlns='http://www.w3.org/TR/REC-html40'>"
        f"<head><meta charset='utf-8'><title>{title}</title>"
        f"<style>{_STYLE}</style></head><body>"
    )
    body = "".join(f"<p>{html.escape(line)}</p>" for line in entry.manuscript.split("\n"))
    return (header + body + "</body></html>").encode("utf-8")
