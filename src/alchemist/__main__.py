"""CLI entry point for Language Alchemist."""

from __future__ import annotations

import json
import logging
import sys

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from alchemist import __version__
from alchemist.annotation.models import WordType, resolve_word_type
from alchemist.annotation.parser import ParseError
from alchemist.config import Settings
from alchemist.lexicon.cache import ReservationTimeout
from alchemist.lexicon.models import Lexeme, attribute_key
from alchemist.pipeline.schemas import TRANSLATION_MODES, TranslationRequest
from alchemist.pipeline.service import TranslationService
from alchemist.profile.loader import load_demo_profile
from alchemist.profile.models import ProfileValidationError
from alchemist.profile.validator import validate_profile
from alchemist.synthesis.generator import GenerationExhausted, WordGenerator
from alchemist.syntax.tree import StructureError

console = Console()


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _service(ctx: click.Context) -> TranslationService:
    """Open the service lazily; only commands that need it touch the database."""
    if "service" not in ctx.obj:
        ctx.obj["service"] = TranslationService.from_settings(ctx.obj["settings"])
    return ctx.obj["service"]


def _word_type(value: str) -> WordType:
    try:
        return resolve_word_type(value)
    except ValueError:
        valid = ", ".join(w.value for w in WordType)
        raise click.BadParameter(f"'{value}' is not a part of speech ({valid})")


def _fail(message: str) -> None:
    console.print(f"[red]Error: {escape(message)}[/red]")
    sys.exit(1)


def _translator(ctx: click.Context, conlang: str):
    try:
        return _service(ctx).translator_for(conlang)
    except KeyError:
        _fail(f"Unknown conlang '{conlang}'")
    except ProfileValidationError as e:
        _fail(f"Profile '{conlang}' is broken: {e}")


def _lexeme_table(title: str, entries: list[Lexeme]) -> Table:
    table = Table(title=title)
    table.add_column("Lemma", style="cyan")
    table.add_column("Type", style="dim")
    table.add_column("Form", style="green")
    table.add_column("Source")
    table.add_column("Irregular", style="yellow")
    for lexeme in entries:
        irregular = ", ".join(
            f"{attribute_key(attrs)}={form}" for attrs, form in lexeme.irregular.items()
        )
        table.add_row(
            lexeme.lemma,
            lexeme.part_of_speech.value,
            lexeme.base_form,
            lexeme.source,
            irregular,
        )
    return table


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool):
    """Language Alchemist - build a conlang and translate into it."""
    settings = Settings.from_env()
    if verbose:
        settings.log_level = "DEBUG"
    _configure_logging(settings.log_level)
    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings


@cli.command()
@click.pass_context
def init(ctx: click.Context):
    """Initialize the database and install the demo profile."""
    console.print("[bold blue]Initializing Language Alchemist...[/bold blue]")
    service = _service(ctx)
    settings: Settings = ctx.obj["settings"]

    if service.profile_store.exists("demo"):
        console.print("[yellow]Demo profile already installed[/yellow]")
    else:
        path = service.profile_store.save(load_demo_profile())
        console.print(f"[green]✓ Demo profile written to {path}[/green]")

    console.print(f"[green]✓ Database initialized at {settings.db_path}[/green]")


@cli.command()
@click.argument("text")
@click.option("--conlang", "-c", default="demo", help="Target conlang id")
@click.option(
    "--mode",
    "-m",
    type=click.Choice(TRANSLATION_MODES),
    default="auto",
    help="Input handling mode",
)
@click.option("--fallback/--no-fallback", default=None, help="Tag plain on parse errors")
@click.option("--tree", is_flag=True, help="Show the constituent tree")
@click.option("--json", "as_json", is_flag=True, help="Output JSON")
@click.pass_context
def translate(
    ctx: click.Context,
    text: str,
    conlang: str,
    mode: str,
    fallback: bool | None,
    tree: bool,
    as_json: bool,
):
    """Translate TEXT into a conlang.

    Examples:
        alchemist translate "I see#v (a dog#n)"
        alchemist translate "I will find the answers" --mode basic
    """
    request = TranslationRequest(
        text=text,
        conlang_id=conlang,
        mode=mode,
        include_tree=tree or as_json,
        allow_fallback=fallback,
    )

    translator = _translator(ctx, conlang)
    try:
        result = translator.translate(request)
    except ParseError as e:
        console.print(f"[red]Parse error: {escape(str(e))}[/red]")
        console.print(f"  {escape(text)}")
        console.print(f"  {' ' * e.span[0]}[red]{'^' * max(1, e.span[1] - e.span[0])}[/red]")
        sys.exit(1)
    except StructureError as e:
        _fail(f"Structure error: {e}")
    except GenerationExhausted as e:
        _fail(f"Profile '{conlang}' is broken: {e}")
    except ReservationTimeout as e:
        _fail(str(e))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
        return

    console.print(Panel(f"[bold]{result.text}[/bold]", title=f"{conlang} ({result.mode})"))
    if result.generated:
        console.print(f"[dim]New words: {', '.join(result.generated)}[/dim]")
    for diagnostic in result.diagnostics:
        console.print(f"[yellow]⚠ {diagnostic.kind}: {escape(diagnostic.message)}[/yellow]")
    if tree and result.tree:
        console.print_json(json.dumps(result.tree, ensure_ascii=False))


@cli.command()
@click.option("--conlang", "-c", default="demo", help="Conlang id")
@click.option("--pos", "-p", default="noun", help="Part of speech")
@click.option("--count", "-n", default=10, help="Number of words")
@click.option("--seed", default=0, help="First seed")
@click.pass_context
def generate(ctx: click.Context, conlang: str, pos: str, count: int, seed: int):
    """Generate sample words to preview a profile's phonology."""
    word_type = _word_type(pos)
    service = _service(ctx)
    try:
        profile = service.profile_for(conlang)
    except KeyError:
        _fail(f"Unknown conlang '{conlang}'")
    except ProfileValidationError as e:
        _fail(str(e))

    generator = WordGenerator(profile, service.settings.max_syllable_retries)
    try:
        words = generator.sample(word_type, count, seed=seed)
    except GenerationExhausted as e:
        _fail(str(e))

    table = Table(title=f"Sample {word_type.value} words ({conlang})")
    table.add_column("Seed", justify="right", style="dim")
    table.add_column("Written", style="green")
    table.add_column("Syllables", style="cyan")
    for i, word in enumerate(words):
        table.add_row(str(seed + i), word.written, ".".join(str(s) for s in word.syllables))
    console.print(table)


@cli.command()
@click.option("--conlang", "-c", default="demo", help="Conlang id")
@click.pass_context
def check(ctx: click.Context, conlang: str):
    """Validate a conlang profile."""
    try:
        profile = _service(ctx).profile_for(conlang)
    except KeyError:
        _fail(f"Unknown conlang '{conlang}'")
    except ProfileValidationError as e:
        _fail(str(e))

    problems = validate_profile(profile)
    if problems:
        console.print(f"[red]✗ Profile '{conlang}' has {len(problems)} problem(s):[/red]")
        for problem in problems:
            console.print(f"  [red]• {escape(problem)}[/red]")
        sys.exit(1)
    console.print(f"[green]✓ Profile '{conlang}' is valid[/green]")


@cli.command()
@click.option("--host", default="127.0.0.1", help="Bind host")
@click.option("--port", default=8000, help="Bind port")
def serve(host: str, port: int):
    """Start the API server."""
    import uvicorn

    console.print(
        f"[bold blue]Starting Language Alchemist API at http://{host}:{port}[/bold blue]"
    )
    uvicorn.run("alchemist.api.main:app", host=host, port=port)


@cli.group()
def lexicon():
    """Inspect and edit a conlang's lexicon."""
    pass


def _cache(ctx: click.Context, conlang: str):
    return _translator(ctx, conlang).cache


@lexicon.command("list")
@click.option("--conlang", "-c", default="demo", help="Conlang id")
@click.pass_context
def lexicon_list(ctx: click.Context, conlang: str):
    """List every lexicon entry."""
    cache = _cache(ctx, conlang)
    entries = cache.entries()
    if not entries:
        console.print(f"[yellow]Lexicon for '{conlang}' is empty[/yellow]")
        return
    console.print(_lexeme_table(f"Lexicon: {conlang} ({len(entries)} entries)", entries))


@lexicon.command("search")
@click.argument("text")
@click.option("--conlang", "-c", default="demo", help="Conlang id")
@click.option("--form", "by_form", is_flag=True, help="Search conlang forms")
@click.pass_context
def lexicon_search(ctx: click.Context, text: str, conlang: str, by_form: bool):
    """Search entries by source lemma (or conlang form with --form)."""
    cache = _cache(ctx, conlang)
    entries = cache.search(text, "form" if by_form else "lemma")
    if not entries:
        console.print(f"[yellow]No entries match '{text}'[/yellow]")
        return
    console.print(_lexeme_table(f"Matches for '{text}'", entries))


@lexicon.command("override")
@click.argument("lemma")
@click.argument("pos")
@click.argument("form")
@click.option("--conlang", "-c", default="demo", help="Conlang id")
@click.option("--attr", "-a", "attributes", multiple=True, help="Irregular form for attributes")
@click.pass_context
def lexicon_override(
    ctx: click.Context,
    lemma: str,
    pos: str,
    form: str,
    conlang: str,
    attributes: tuple[str, ...],
):
    """Set FORM as the conlang word for LEMMA.

    With --attr, FORM becomes an irregular inflection instead:

        alchemist lexicon override go v wena --attr PST
    """
    word_type = _word_type(pos)
    cache = _cache(ctx, conlang)
    if attributes:
        attrs = [a.upper() for a in attributes]
        try:
            cache.override_inflection(lemma, word_type, attrs, form)
        except KeyError:
            _fail(f"'{lemma}' ({word_type.value}) is not in the lexicon yet")
        console.print(
            f"[green]✓ {lemma} ({word_type.value}) {attribute_key(attrs)} -> {form}[/green]"
        )
    else:
        cache.override(lemma, word_type, form)
        console.print(f"[green]✓ {lemma} ({word_type.value}) -> {form}[/green]")


@lexicon.command("remove")
@click.argument("lemma")
@click.argument("pos")
@click.option("--conlang", "-c", default="demo", help="Conlang id")
@click.pass_context
def lexicon_remove(ctx: click.Context, lemma: str, pos: str, conlang: str):
    """Delete an entry so it is generated again on next use."""
    word_type = _word_type(pos)
    if _cache(ctx, conlang).remove(lemma, word_type):
        console.print(f"[green]✓ Removed {lemma} ({word_type.value})[/green]")
    else:
        console.print(f"[yellow]No entry for {lemma} ({word_type.value})[/yellow]")


@lexicon.command("homonyms")
@click.option("--conlang", "-c", default="demo", help="Conlang id")
@click.pass_context
def lexicon_homonyms(ctx: click.Context, conlang: str):
    """List conlang forms shared by more than one entry."""
    groups = _cache(ctx, conlang).homonyms()
    if not groups:
        console.print("[green]No homonyms[/green]")
        return
    table = Table(title="Homonyms")
    table.add_column("Form", style="green")
    table.add_column("Count", justify="right")
    table.add_column("Entries", style="cyan")
    for form, entries in sorted(groups.items()):
        table.add_row(
            form,
            str(len(entries)),
            ", ".join(f"{lx.lemma} ({lx.part_of_speech.value})" for lx in entries),
        )
    console.print(table)


if __name__ == "__main__":
    cli()
