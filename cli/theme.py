"""Unified Rich theme and reusable UI helper functions for the CLI."""

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.rule import Rule
from rich.table import Table
from rich.theme import Theme
from rich.tree import Tree

from billing.packs import CreditPack
from models.enums import GenerationStatus
from models.library import LibraryEntry
from models.outline import Outline

BOOK_THEME = Theme({
    "app.title": "bold",
    "success": "green",
    "warning": "yellow",
    "error": "red",
    "info": "blue",
    "muted": "dim",
    "accent": "cyan",
    "stat.label": "dim",
    "stat.value": "bold",
    "chapter.num": "blue",
    "credits": "bold magenta",
})

_STATUS_STYLE = {
    GenerationStatus.IDLE: "muted",
    GenerationStatus.OUTLINE_READY: "info",
    GenerationStatus.COMPLETED: "success",
    GenerationStatus.ERROR: "error",
}


def get_console() -> Console:
    """Return a Console instance with the book theme applied."""
    return Console(theme=BOOK_THEME)


def app_header(title: str = "bookforge") -> Rule:
    return Rule(title=f"[bold]{title}[/]", style="dim")


def command_panel(title: str, fields: dict[str, str]) -> Panel:
    """Return a Panel displaying command parameters.

    Args:
        title: Panel title (e.g. "New ebook").
        fields: Ordered dict of label -> value pairs.
    """
    lines = [f"  [stat.label]{label}:[/] [stat.value]{value}[/]" for label, value in fields.items()]
    return Panel("\n".join(lines), title=f"[bold]{title}[/]", box=box.ROUNDED, border_style="dim", padding=(0, 2))


def success_panel(title: str, body: str) -> Panel:
    """Return a green-bordered Panel for success results."""
    return Panel(body, title=f"[success]{title}[/]", box=box.ROUNDED, border_style="green", padding=(0, 2))


def status_text(status: GenerationStatus) -> str:
    style = _STATUS_STYLE.get(status, "warning")
    return f"[{style}]{status.value}[/]"


def entry_summary_panel(entry: LibraryEntry, status: GenerationStatus, balance: int) -> Panel:
    """Return a Panel with the entry's progress and the credit balance."""
    outline = entry.outline
    done = sum(1 for ch in outline.chapters if ch.generated) if outline else 0
    total = len(outline.chapters) if outline else 0
    description = entry.project.description
    if len(description) > 150:
        description = description[:150] + "..."

    body = (
        f"  [stat.label]Status:[/] {status_text(status)}  "
        f"[muted]|[/]  [stat.label]Chapters:[/] [stat.value]{done}/{total}[/]  "
        f"[muted]|[/]  [stat.label]Cover:[/] [stat.value]{'yes' if entry.cover else 'no'}[/]  "
        f"[muted]|[/]  [stat.label]Balance:[/] [credits]{balance:,}[/]\n"
        f"  [stat.label]Topic:[/] {description}"
    )
    return Panel(
        body,
        title=f"[bold]{entry.title}[/] [muted](ID: {entry.id})[/]",
        box=box.ROUNDED,
        border_style="dim",
        padding=(0, 2),
    )


def outline_tree(outline: Outline, credits_per_page: int) -> Tree:
    """Build a Rich Tree of chapters with generation flags and costs."""
    tree = Tree(f"[bold]{outline.title}[/] [muted]({outline.total_pages} pages)[/]")
    for i, ch in enumerate(outline.chapters):
        flag = "[success]✓[/]" if ch.generated else "[muted]·[/]"
        cost = ch.estimated_pages * credits_per_page
        branch = tree.add(
            f"{flag} [chapter.num]{i + 1}.[/] {ch.title} "
            f"[muted]{ch.estimated_pages}p / {cost:,} credits[/]"
        )
        if ch.description:
            short = (ch.description[:60] + "...") if len(ch.description) > 60 else ch.description
            branch.add(f"[muted]{short}[/]")
    return tree


def library_table(entries: list[LibraryEntry]) -> Table:
    table = Table(box=box.ROUNDED, border_style="dim", show_header=True, padding=(0, 1))
    table.add_column("ID", style="accent", no_wrap=True)
    table.add_column("Title", style="bold")
    table.add_column("Chapters", justify="right")
    table.add_column("Updated", style="muted")

    for entry in entries:
        outline = entry.outline
        chapters = (
            f"{sum(1 for ch in outline.chapters if ch.generated)}/{len(outline.chapters)}"
            if outline else "-"
        )
        updated = entry.updated_at.strftime("%Y-%m-%d %H:%M") if entry.updated_at else ""
        table.add_row(entry.id or "", entry.title, chapters, updated)
    return table


def packs_table(packs: list[CreditPack]) -> Table:
    table = Table(box=box.ROUNDED, border_style="dim", show_header=True, padding=(0, 1))
    table.add_column("Pack", style="bold")
    table.add_column("Credits", justify="right", style="credits")
    table.add_column("Price", justify="right")
    table.add_column("")
    for pack in packs:
        table.add_row(pack.id, f"{pack.credits:,}", pack.price, "[accent]popular[/]" if pack.popular else "")
    return table
