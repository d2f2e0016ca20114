"""CLI entry point: bookforge technical ebook generator.

Usage:
  bookforge new -d "Async networking in Python"   plan an outline
  bookforge write -p <id> -c 1,3                   write chapters 1 and 3
  bookforge finish -p <id>                         write the rest, add a cover
  bookforge export -p <id> -f pdf                  export the book
  bookforge --help                                 list all commands
"""

import asyncio
import logging
import os
import sys
from contextlib import contextmanager
from pathlib import Path

# Ensure UTF-8 output on Windows to avoid encoding errors with Rich
if sys.platform == "win32":
    os.environ.setdefault("PYTHONIOENCODING", "utf-8")

import click
from rich.markdown import Markdown

from billing.ledger import CreditLedger
from billing.packs import CREDIT_PACKS
from cli.theme import (
    app_header,
    command_panel,
    entry_summary_panel,
    get_console,
    library_table,
    outline_tree,
    packs_table,
    success_panel,
)
from config.exceptions import BookForgeError, InsufficientBalanceError
from config.logging_config import setup_logging
from config.settings import get_settings
from models.database import Database
from models.enums import (
    ExportFormat,
    GenerationStatus,
    Operation,
    OutputLanguage,
    TargetAudience,
    TargetLength,
    WritingStyle,
)
from tools.text_utils import count_total_chars
from workflow.callbacks import RichProgressCallback
from workflow.conditions import can_generate_all
from workflow.controller import WorkflowController

console = get_console()
logger = logging.getLogger(__name__)


def _init_logging(verbose: bool):
    level = logging.DEBUG if verbose else logging.INFO
    setup_logging(level=level, log_dir=get_settings().log_dir)


def _make_controller() -> WorkflowController:
    """Wire the controller to the configured library and generation backends."""
    from agents.service import AgentGenerationService

    settings = get_settings()
    db = Database(settings.sqlite_db_path)
    ledger = CreditLedger.load(db, settings)
    return WorkflowController(AgentGenerationService(settings), ledger, db=db, settings=settings)


def _load(project_id: str, reopen: bool = False) -> WorkflowController:
    """Load a library entry; ``reopen`` moves a completed book back to its outline."""
    ctl = _make_controller()
    ctl.load(project_id)
    if reopen and ctl.status == GenerationStatus.COMPLETED:
        ctl.back_to_outline()
    return ctl


@contextmanager
def _handle_errors(action: str):
    """Turn workflow errors into a console message and a non-zero exit."""
    try:
        yield
    except KeyboardInterrupt:
        console.print("\n[warning]Interrupted[/]")
        sys.exit(130)
    except InsufficientBalanceError as e:
        console.print(
            f"\n[error]{e.message}[/] "
            f"[muted](needs {e.required:,}, available {e.available:,})[/]"
        )
        console.print("Buy credits: [info]bookforge packs[/] then [info]bookforge topup <pack>[/]")
        sys.exit(1)
    except BookForgeError as e:
        console.print(f"\n[error]{action} failed: {e}[/]")
        sys.exit(1)
    except Exception as e:
        console.print(f"\n[error]{action} failed: {e}[/]")
        logger.exception("%s failed", action)
        sys.exit(1)


def _print_warnings(ctl: WorkflowController):
    for warning in ctl.session.warnings:
        console.print(f"[warning]Warning: {warning}[/]")


def _enum_choice(enum_cls) -> click.Choice:
    return click.Choice([member.value for member in enum_cls], case_sensitive=False)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose):
    """bookforge: AI-assisted technical ebook generation with credit billing.

    \b
    Typical flow:
      bookforge new -d "Practical asyncio" -c 6
      bookforge write -p <id> -c 1
      bookforge finish -p <id>
      bookforge export -p <id> -f pdf
    """
    _init_logging(verbose)


# ---------------------------------------------------------------------------
# new command
# ---------------------------------------------------------------------------

@cli.command()
@click.option("--description", "-d", required=True, help="Topic description for the book")
@click.option("--chapters", "-c", default=8, type=click.IntRange(min=1), help="Requested chapter count (default 8)")
@click.option("--material", "-m", "materials", multiple=True, type=click.Path(exists=True, dir_okay=False),
              help="Reference material file (repeatable)")
@click.option("--link", "-l", "links", multiple=True, help="Reference link (repeatable)")
@click.option("--code-language", default="Python", help="Programming language of code samples")
@click.option("--output-language", type=_enum_choice(OutputLanguage), default=OutputLanguage.CHINESE.value)
@click.option("--style", type=_enum_choice(WritingStyle), default=WritingStyle.TECHNICAL_MANUAL.value)
@click.option("--audience", type=_enum_choice(TargetAudience), default=TargetAudience.INTERMEDIATE.value)
@click.option("--length", type=_enum_choice(TargetLength), default=TargetLength.MEDIUM.value)
def new(description, chapters, materials, links, code_language, output_language, style, audience, length):
    """Create a project and plan its outline.

    Examples:
      bookforge new -d "Building REST APIs with FastAPI" -c 6
      bookforge new -d "Rust for Python developers" -m notes.md -l https://doc.rust-lang.org
    """
    console.print(app_header())
    console.print()
    console.print(command_panel("New ebook", {
        "Topic": description,
        "Chapters": str(chapters),
        "Style": f"{style} / {audience} / {length}",
        "Languages": f"{output_language} text, {code_language} code",
    }))
    console.print()

    with _handle_errors("Outline planning"):
        ctl = _make_controller()
        ctl.update_project(
            description=description,
            chapter_count=chapters,
            language=code_language,
            output_language=_match(OutputLanguage, output_language),
            writing_style=_match(WritingStyle, style),
            target_audience=_match(TargetAudience, audience),
            target_length=_match(TargetLength, length),
        )
        for path in materials:
            ctl.add_material_file(path)
        for url in links:
            ctl.add_reference_link(url)

        cost = ctl.estimate(Operation.OUTLINE)
        with console.status(f"Planning outline ({cost:,} credits)..."):
            outline = asyncio.run(ctl.plan_outline())
        entry = ctl.save()

        console.print(app_header("Outline ready"))
        console.print()
        console.print(entry_summary_panel(entry, ctl.status, ctl.ledger.balance))
        console.print(outline_tree(outline, ctl.settings.credits_per_page))
        console.print()
        console.print(f"Next: [info]bookforge write -p {entry.id} -c 1[/] or [info]bookforge finish -p {entry.id}[/]")


def _match(enum_cls, value: str):
    """Map a case-insensitive choice back to its enum member."""
    for member in enum_cls:
        if member.value.lower() == value.lower():
            return member
    raise click.BadParameter(value)


# ---------------------------------------------------------------------------
# write / finish commands
# ---------------------------------------------------------------------------

def _parse_chapter_numbers(arg: str) -> list[int]:
    """Parse a chapter selection into 1-based chapter numbers.

    Supported formats:
      "3"      -> [3]
      "1-4"    -> [1, 2, 3, 4]
      "1,5,7"  -> [1, 5, 7]
    """
    arg = arg.strip()
    try:
        if "-" in arg and "," not in arg:
            start, end = (int(x) for x in arg.split("-", 1))
            if start > end:
                raise click.BadParameter(f"invalid range {arg}: start is after end")
            return list(range(start, end + 1))
        if "," in arg:
            return sorted(set(int(x.strip()) for x in arg.split(",")))
        return [int(arg)]
    except ValueError:
        raise click.BadParameter(f"invalid chapter selection {arg} (use 3, 1-4 or 1,5,7)")


@cli.command()
@click.option("--project-id", "-p", required=True, help="Library entry ID")
@click.option("--chapters", "-c", required=True, type=str, help="Chapters to (re)write: 3, 1-4 or 1,5,7")
def write(project_id, chapters):
    """Write or regenerate individual chapters, in any order.

    Examples:
      bookforge write -p <id> -c 2
      bookforge write -p <id> -c 1-3
    """
    numbers = _parse_chapter_numbers(chapters)

    with _handle_errors("Chapter generation"):
        ctl = _load(project_id, reopen=True)

        for number in numbers:
            index = number - 1
            cost = ctl.chapter_charge(index)
            title = ctl.session.outline.chapters[index].title
            with console.status(f"Writing chapter {number}: {title} ({cost:,} credits)..."):
                asyncio.run(ctl.generate_chapter(index))
            console.print(f"  [success]✓[/] Chapter {number} written [muted](balance {ctl.ledger.balance:,})[/]")

        console.print()
        console.print(outline_tree(ctl.session.outline, ctl.settings.credits_per_page))


@cli.command()
@click.option("--project-id", "-p", required=True, help="Library entry ID")
def finish(project_id):
    """Write every outstanding chapter, then try to generate a cover."""
    with _handle_errors("Finishing the book"):
        ctl = _load(project_id, reopen=True)

        pending = ctl.session.outline.pending_indices()
        console.print(app_header())
        console.print(command_panel("Finish book", {
            "Book": ctl.session.outline.title,
            "Outstanding": f"{len(pending)} chapters",
            "Cost": f"{ctl.remaining_cost:,} credits",
            "Balance": f"{ctl.ledger.balance:,} credits",
        }))
        console.print()

        cb = RichProgressCallback(console=console, total_chapters=len(pending))
        cb.start()
        try:
            final_state = asyncio.run(ctl.generate_all(callback=cb))
        finally:
            cb.stop()

        _print_warnings(ctl)
        console.print()
        console.print(success_panel("Book complete", (
            f"  Chapters written: [stat.value]{final_state.get('chapters_written', 0)}[/]\n"
            f"  Manuscript: [stat.value]{count_total_chars(ctl.session.manuscript):,}[/] characters\n"
            f"  Cover: [stat.value]{'generated' if final_state.get('cover_generated') else 'unchanged'}[/]\n"
            f"  Balance: [credits]{ctl.ledger.balance:,}[/]"
        )))
        console.print(f"\nNext: [info]bookforge export -p {project_id} -f pdf[/]")


# ---------------------------------------------------------------------------
# cover command
# ---------------------------------------------------------------------------

@cli.command()
@click.option("--project-id", "-p", required=True, help="Library entry ID")
@click.option("--image", "-i", type=click.Path(exists=True, dir_okay=False), default=None,
              help="Use this image file instead of generating one (free)")
def cover(project_id, image):
    """Regenerate the cover image, or set one from a file."""
    with _handle_errors("Cover update"):
        ctl = _load(project_id)
        if image:
            ctl.set_cover_from_file(image)
            ctl.save()
            console.print(f"[success]Cover set from {Path(image).name}[/]")
            return

        with console.status(f"Rendering cover ({ctl.settings.cover_cost:,} credits)..."):
            generated = asyncio.run(ctl.regenerate_cover())
        ctl.save()
        if generated:
            console.print(f"[success]New cover generated[/] [muted](balance {ctl.ledger.balance:,})[/]")
        else:
            _print_warnings(ctl)
            console.print("[warning]Cover unchanged; no credits were charged[/]")


# ---------------------------------------------------------------------------
# Library commands
# ---------------------------------------------------------------------------

@cli.command()
def library():
    """List saved projects, newest first."""
    ctl = _make_controller()
    entries = ctl.list_entries()
    if not entries:
        console.print("[muted]The library is empty. Start with: bookforge new -d \"...\"[/]")
        return
    console.print(library_table(entries))


@cli.command()
@click.option("--project-id", "-p", required=True, help="Library entry ID")
@click.option("--chapter", "-c", type=int, default=None, help="Print one chapter's text")
def show(project_id, chapter):
    """Show a project's outline and progress, or one chapter."""
    with _handle_errors("Loading the project"):
        ctl = _load(project_id)
        outline = ctl.session.outline
        if chapter is not None:
            if outline is None or not 1 <= chapter <= len(outline.chapters):
                console.print(f"[error]No chapter {chapter} in this outline[/]")
                sys.exit(1)
            ch = outline.chapters[chapter - 1]
            if not ch.content:
                console.print(f"[warning]Chapter {chapter} has not been written yet[/]")
                return
            console.print(Markdown(ch.content))
            return

        console.print(entry_summary_panel(ctl.session.snapshot(), ctl.status, ctl.ledger.balance))
        if outline:
            console.print(outline_tree(outline, ctl.settings.credits_per_page))
            if outline.cover_prompt:
                console.print(f"\n[stat.label]Cover prompt:[/] {outline.cover_prompt}")


@cli.command()
@click.option("--project-id", "-p", required=True, help="Library entry ID to delete")
@click.option("--force", "-f", is_flag=True, help="Skip the confirmation prompt")
def delete(project_id, force):
    """Delete a saved project from the library."""
    ctl = _make_controller()
    if not force and not click.confirm(f"Delete project {project_id}?"):
        console.print("[muted]Cancelled[/]")
        return
    if ctl.delete_entry(project_id):
        console.print(f"[success]Deleted {project_id}[/]")
    else:
        console.print(f"[error]No saved project with ID {project_id}[/]")
        sys.exit(1)


# ---------------------------------------------------------------------------
# Editing commands
# ---------------------------------------------------------------------------

@cli.command(name="edit-chapter")
@click.option("--project-id", "-p", required=True, help="Library entry ID")
@click.option("--chapter", "-c", required=True, type=int, help="Chapter number")
def edit_chapter(project_id, chapter):
    """Edit a chapter's text in the system editor. Manual edits are free."""
    with _handle_errors("Editing the chapter"):
        ctl = _load(project_id)
        outline = ctl.session.outline
        if outline is None or not 1 <= chapter <= len(outline.chapters):
            console.print(f"[error]No chapter {chapter} in this outline[/]")
            sys.exit(1)
        ch = outline.chapters[chapter - 1]

        edited = click.edit(ch.content or "", extension=".md")
        if edited is None:
            console.print("[warning]Edit cancelled (no changes or editor closed)[/]")
            return
        ctl.edit_chapter_text(chapter - 1, edited.rstrip("\n"))
        ctl.save()
        console.print(f"[success]Chapter {chapter} updated ({len(edited):,} characters)[/]")


@cli.group()
def outline():
    """Edit the chapter structure of a planned outline."""


@outline.command(name="add")
@click.option("--project-id", "-p", required=True, help="Library entry ID")
@click.option("--title", "-t", required=True, help="Chapter title")
@click.option("--description", "-d", default="", help="Chapter description")
@click.option("--pages", type=click.IntRange(min=1), default=None, help="Estimated pages")
@click.option("--position", type=int, default=None, help="Insert before this chapter number")
def outline_add(project_id, title, description, pages, position):
    with _handle_errors("Adding the chapter"):
        ctl = _load(project_id, reopen=True)
        index = position - 1 if position else None
        ctl.add_chapter(title, description, pages, index=index)
        ctl.save()
        console.print(outline_tree(ctl.session.outline, ctl.settings.credits_per_page))


@outline.command(name="remove")
@click.option("--project-id", "-p", required=True, help="Library entry ID")
@click.option("--chapter", "-c", required=True, type=int, help="Chapter number")
def outline_remove(project_id, chapter):
    with _handle_errors("Removing the chapter"):
        ctl = _load(project_id, reopen=True)
        removed = ctl.remove_chapter(chapter - 1)
        ctl.save()
        console.print(f"[success]Removed chapter {chapter}: {removed.title}[/]")


@outline.command(name="move")
@click.option("--project-id", "-p", required=True, help="Library entry ID")
@click.option("--chapter", "-c", required=True, type=int, help="Chapter number to move")
@click.option("--to", "target", required=True, type=int, help="New chapter number")
def outline_move(project_id, chapter, target):
    with _handle_errors("Moving the chapter"):
        ctl = _load(project_id, reopen=True)
        ctl.move_chapter(chapter - 1, target - 1)
        ctl.save()
        console.print(outline_tree(ctl.session.outline, ctl.settings.credits_per_page))


@outline.command(name="update")
@click.option("--project-id", "-p", required=True, help="Library entry ID")
@click.option("--chapter", "-c", required=True, type=int, help="Chapter number")
@click.option("--title", "-t", default=None, help="New title")
@click.option("--description", "-d", default=None, help="New description")
@click.option("--pages", type=click.IntRange(min=1), default=None, help="New page estimate")
def outline_update(project_id, chapter, title, description, pages):
    with _handle_errors("Updating the chapter"):
        ctl = _load(project_id, reopen=True)
        ctl.update_chapter(chapter - 1, title=title, description=description, estimated_pages=pages)
        ctl.save()
        console.print(outline_tree(ctl.session.outline, ctl.settings.credits_per_page))


# ---------------------------------------------------------------------------
# Credit commands
# ---------------------------------------------------------------------------

@cli.command()
def balance():
    """Show the credit balance."""
    ctl = _make_controller()
    console.print(f"Balance: [credits]{ctl.ledger.balance:,}[/] credits")


@cli.command()
def packs():
    """List the credit packs available for purchase."""
    console.print(packs_table(CREDIT_PACKS))


@cli.command()
@click.argument("pack_id")
def topup(pack_id):
    """Buy a credit pack (payment is simulated)."""
    with _handle_errors("Top-up"):
        ctl = _make_controller()
        with console.status(f"Confirming payment for '{pack_id}'..."):
            new_balance = asyncio.run(ctl.top_up(pack_id))
        console.print(f"[success]Payment confirmed[/], balance: [credits]{new_balance:,}[/]")


@cli.command()
@click.option("--project-id", "-p", required=True, help="Library entry ID")
def estimate(project_id):
    """Show what each remaining operation would cost."""
    with _handle_errors("Estimating"):
        ctl = _load(project_id)
        fields = {"Balance": f"{ctl.ledger.balance:,}", "Cover": f"{ctl.settings.cover_cost:,}"}
        outline = ctl.session.outline
        if outline is None:
            fields["Outline"] = f"{ctl.estimate(Operation.OUTLINE):,}"
        else:
            for i, ch in enumerate(outline.chapters):
                fields[f"Chapter {i + 1}"] = f"{ctl.chapter_charge(i):,}" + (
                    " (regenerate)" if ch.generated else ""
                )
            fields["Remaining chapters"] = f"{ctl.remaining_cost:,}"
            if ctl.status == GenerationStatus.OUTLINE_READY:
                ready = can_generate_all(ctl.session, ctl.ledger)
                fields["Finish book"] = "ready" if ready else "needs more credits"
        console.print(command_panel("Cost estimate (credits)", fields))


# ---------------------------------------------------------------------------
# export command
# ---------------------------------------------------------------------------

@cli.command()
@click.option("--project-id", "-p", required=True, help="Library entry ID")
@click.option("--format", "-f", "fmt", type=click.Choice([f.value for f in ExportFormat]), default="md")
@click.option("--output-dir", "-o", type=click.Path(file_okay=False), default=None,
              help="Directory for the exported file (default: settings export_dir)")
def export(project_id, fmt, output_dir):
    """Export the manuscript as Markdown, Word (.doc), or PDF."""
    from export import write_export

    with _handle_errors("Export"):
        ctl = _load(project_id)
        path = write_export(ctl.session.snapshot(), fmt, output_dir or get_settings().export_dir)
        console.print(f"[success]Exported to {path}[/]")


def main():
    """Entry point."""
    cli()


if __name__ == "__main__":
    main()
