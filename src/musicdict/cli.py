# src/musicdict/cli.py
"""
musicdict Command Line Interface (CLI).

This module implements the terminal interface using `typer` and `rich`.

Commands
--------
- **detect**: classify the source language of one or more terms.
- **generate**: generate (or serve from a store file) a dictionary entry.
- **enhance**: run one enhancement pass over an entry JSON file.
- **validate**: score an entry JSON file with the quality reviewer.
- **seed**: batch-generate a terms file into a store file.

Usage
-----
    $ musicdict detect allegro langsam avec
    $ musicdict generate piano --type instrument --store dictionary.json
    $ musicdict enhance entry.json --focus definition --focus references -o entry.v2.json
    $ musicdict seed terms.txt --store dictionary.json
"""

from __future__ import annotations

import json
import time
import traceback
from pathlib import Path
from typing import Annotated

import typer
from dotenv import find_dotenv, load_dotenv
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

# Load .env from the working directory before musicdict builds its cached settings
load_dotenv(find_dotenv(usecwd=True))

from musicdict.agents.enhancer_agent import EntryEnhancer  # noqa: E402
from musicdict.agents.generator_agent import EntryGenerator  # noqa: E402
from musicdict.agents.validator_agent import QualityValidator  # noqa: E402
from musicdict.core.contracts.entry import DictionaryEntry, GenerationRequest  # noqa: E402
from musicdict.core.errors import AIServiceError, GenerationQualityError  # noqa: E402
from musicdict.core.ports import CompletionService, LookupService  # noqa: E402
from musicdict.core.settings import load_settings  # noqa: E402
from musicdict.language.detector import LanguageDetector  # noqa: E402
from musicdict.llm.client import LLMClient  # noqa: E402
from musicdict.pipelines.dictionary_service import DictionaryService  # noqa: E402
from musicdict.references.wikipedia import WikipediaLookup  # noqa: E402
from musicdict.storage.memory import InMemoryEntryRepository  # noqa: E402

app = typer.Typer(
    help="musicdict: generate, validate and enhance music dictionary entries.",
    rich_markup_mode="markdown",
)
console = Console()


# --------------------------------------------------------------------------- #
# Collaborator factories (patched in tests)
# --------------------------------------------------------------------------- #


def _build_llm() -> CompletionService:
    return LLMClient.from_env()


def _build_lookup() -> LookupService:
    return WikipediaLookup.from_env()


def _build_service(store: Path | None) -> tuple[DictionaryService, InMemoryEntryRepository]:
    llm = _build_llm()
    lookup = _build_lookup()
    repo = InMemoryEntryRepository.load(store) if store else InMemoryEntryRepository()
    service = DictionaryService(
        generator=EntryGenerator(llm, lookup),
        enhancer=EntryEnhancer(llm, lookup),
        repository=repo,
    )
    return service, repo


# --------------------------------------------------------------------------- #
# Helpers: Rendering & I/O
# --------------------------------------------------------------------------- #


def _render_entry(entry: DictionaryEntry) -> None:
    """Render one entry as a titled panel plus reference lines."""
    d = entry.definition
    body = [f"**{d.concise}**", "", d.detailed]
    if d.etymology:
        body += ["", f"*Etymology:* {d.etymology}"]
    if d.pronunciation and d.pronunciation.ipa:
        body += ["", f"*Pronunciation:* /{d.pronunciation.ipa}/"]
    if d.usage_example:
        body += ["", f"> {d.usage_example}"]

    q = entry.quality_score
    console.print(
        Panel(
            Markdown("\n".join(body)),
            title=f"[bold]{entry.term}[/bold] ({entry.type}, {entry.lang}) v{entry.version}",
            subtitle=f"quality {q.overall} ({q.confidence_level or 'n/a'})",
            border_style="cyan",
        )
    )
    if entry.references.wikipedia:
        console.print(f" Wikipedia: [link={entry.references.wikipedia.url}]"
                      f"{entry.references.wikipedia.url}[/link]")
    if entry.references.media and entry.references.media.youtube:
        for video in entry.references.media.youtube.educational_videos:
            console.print(f" Video: {video.url}")


def _load_entry(path: Path) -> DictionaryEntry:
    return DictionaryEntry.model_validate_json(path.read_text(encoding="utf-8"))


def _write_entry(entry: DictionaryEntry, path: Path) -> None:
    path.write_text(entry.model_dump_json(indent=2), encoding="utf-8")
    console.print(f"[dim]Saved to: {path}[/dim]")


def _read_requests(path: Path, default_type: str) -> list[GenerationRequest]:
    """Parse a terms file: one ``term`` or ``term,type`` per line, ``#`` comments."""
    requests: list[GenerationRequest] = []
    for line in path.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        term, _, term_type = line.partition(",")
        requests.append(
            GenerationRequest(term=term.strip(), type=(term_type.strip() or default_type))  # type: ignore[arg-type]
        )
    return requests


def _fail(label: str, exc: Exception, verbose: bool) -> typer.Exit:
    console.print(f"\n[bold red]❌ {label}:[/bold red] {exc}")
    if isinstance(exc, GenerationQualityError):
        for issue in exc.issues:
            console.print(f" • {issue}")
    if verbose:
        traceback.print_exc()
    return typer.Exit(code=1)


# --------------------------------------------------------------------------- #
# Commands
# --------------------------------------------------------------------------- #


@app.command()  # type: ignore[misc]
def detect(
    terms: Annotated[list[str], typer.Argument(help="Terms to classify.")],
) -> None:
    """Detect the source language of each term."""
    table = Table(title="Language detection")
    table.add_column("Term")
    table.add_column("Language")
    table.add_column("Confidence", justify="right")
    table.add_column("Method")

    for term, result in zip(terms, LanguageDetector().detect_many(terms), strict=True):
        table.add_row(term, result.language or "-", f"{result.confidence:.2f}", result.method)
    console.print(table)


@app.command()  # type: ignore[misc]
def generate(
    term: Annotated[str, typer.Argument(help="The music term to define.")],
    term_type: Annotated[
        str, typer.Option("--type", "-t", help="Term type, e.g. 'instrument', 'tempo'.")
    ] = "general",
    lang: Annotated[
        str | None, typer.Option("--lang", "-l", help="Entry language (default from settings).")
    ] = None,
    store: Annotated[
        Path | None,
        typer.Option("--store", "-s", help="JSON store file to read from and write to."),
    ] = None,
    output: Annotated[
        Path | None, typer.Option("--output", "-o", help="Write the entry JSON here.")
    ] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v")] = False,
) -> None:
    """Serve a stored entry or generate a new one."""
    start_time = time.time()
    try:
        service, repo = _build_service(store)
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
            transient=True,
        ) as progress:
            progress.add_task(f"[cyan]Generating '{term}'...", total=None)
            entry = service.lookup_or_generate(term, term_type, lang)
    except (AIServiceError, GenerationQualityError, ValueError) as e:
        raise _fail("Generation failed", e, verbose) from e

    console.print(f"[bold green]✅ Done[/bold green] (took {time.time() - start_time:.1f}s)")
    _render_entry(entry)
    if store:
        repo.dump(store)
    if output:
        _write_entry(entry, output)


@app.command()  # type: ignore[misc]
def enhance(
    entry_file: Annotated[
        Path,
        typer.Argument(exists=True, dir_okay=False, readable=True, help="Entry JSON file."),
    ],
    focus: Annotated[
        list[str] | None,
        typer.Option("--focus", "-f", help="Focus area; repeat for several."),
    ] = None,
    output: Annotated[
        Path | None, typer.Option("--output", "-o", help="Write the enhanced entry here.")
    ] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v")] = False,
) -> None:
    """Run one enhancement pass over an entry file."""
    try:
        existing = _load_entry(entry_file)
        llm = _build_llm()
        enhanced = EntryEnhancer(llm, _build_lookup()).enhance(existing, focus or None)
    except (AIServiceError, ValueError) as e:
        raise _fail("Enhancement failed", e, verbose) from e

    _render_entry(enhanced)
    _write_entry(enhanced, output or entry_file)


@app.command()  # type: ignore[misc]
def validate(
    entry_file: Annotated[
        Path,
        typer.Argument(exists=True, dir_okay=False, readable=True, help="Entry JSON file."),
    ],
) -> None:
    """Score an entry file with the quality reviewer."""
    entry = _load_entry(entry_file)
    result = QualityValidator(_build_llm()).validate(entry)

    threshold = load_settings().quality_threshold
    colour = "green" if result.score >= threshold else "yellow" if result.score >= 40 else "red"
    console.print(f"[bold {colour}]Score: {result.score}[/bold {colour}]")
    for issue in result.issues:
        console.print(f" [red]•[/red] {issue}")
    for suggestion in result.suggestions:
        console.print(f" [cyan]→[/cyan] {suggestion}")


@app.command()  # type: ignore[misc]
def seed(
    terms_file: Annotated[
        Path,
        typer.Argument(
            exists=True, dir_okay=False, readable=True, help="One 'term' or 'term,type' per line."
        ),
    ],
    store: Annotated[Path, typer.Option("--store", "-s", help="JSON store file.")] = Path(
        "dictionary.json"
    ),
    term_type: Annotated[
        str, typer.Option("--type", "-t", help="Type for lines without one.")
    ] = "general",
) -> None:
    """Batch-generate a terms file into the store."""
    requests = _read_requests(terms_file, term_type)
    if not requests:
        console.print("[yellow]No terms found.[/yellow]")
        raise typer.Exit(code=1)

    service, repo = _build_service(store)
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        transient=True,
    ) as progress:
        progress.add_task(f"[cyan]Generating {len(requests)} terms...", total=None)
        rows = service.seed(requests)
    repo.dump(store)

    table = Table(title=f"Seeded into {store}")
    table.add_column("#", justify="right")
    table.add_column("Term")
    table.add_column("Result")
    for row in rows:
        if row.entry is not None:
            table.add_row(str(row.index + 1), row.term, f"[green]{row.entry.quality_score.overall}[/green]")
        else:
            table.add_row(str(row.index + 1), row.term, f"[red]{row.error}[/red]")
    console.print(table)

    if not any(r.ok for r in rows):
        raise typer.Exit(code=1)


@app.command("export")  # type: ignore[misc]
def export_store(
    store: Annotated[
        Path, typer.Argument(exists=True, dir_okay=False, readable=True, help="JSON store file.")
    ],
) -> None:
    """Print a summary of every entry in a store file."""
    repo = InMemoryEntryRepository.load(store)
    table = Table(title=f"{len(repo)} entries")
    table.add_column("Term")
    table.add_column("Type")
    table.add_column("Lang")
    table.add_column("Version", justify="right")
    table.add_column("Quality", justify="right")
    for entry in repo.all():
        table.add_row(
            entry.term, entry.type, entry.lang, str(entry.version), str(entry.quality_score.overall)
        )
    console.print(table)
    console.print_json(json.dumps({"count": len(repo)}))


if __name__ == "__main__":
    app()
