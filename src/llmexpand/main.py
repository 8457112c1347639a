import asyncio
import json
from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from llmexpand.application.provider import CompletionProvider
from llmexpand.config import ExpandSettings, load_settings
from llmexpand.domain.errors import ConfigError
from llmexpand.domain.events import StatusMessage
from llmexpand.domain.types import CompletionList
from llmexpand.infrastructure.document import TextDocument
from llmexpand.logger import get_logger, setup_logger

cli = typer.Typer(
    name="llmexpand",
    help="Next-word completions from an Ollama-compatible backend",
    epilog="""
    Examples:
    $ llmexpand suggest "The quick brown "
    $ llmexpand suggest "Once upon a ti" --depth 3 --json
    $ llmexpand playground --model qwen3-base-4b
    """,
    add_completion=False,
)

console = Console()
err_console = Console(stderr=True)


def _resolve_settings(
    config: Optional[Path],
    base_url: Optional[str],
    api_key: Optional[str],
    model: Optional[str],
    depth: Optional[int],
    max_completions: Optional[int],
    context_size: Optional[int],
) -> ExpandSettings:
    try:
        return load_settings(config).with_overrides(
            base_url=base_url,
            api_key=api_key,
            model=model,
            depth=depth,
            max_completions=max_completions,
            context_size=context_size,
        )
    except ConfigError as e:
        err_console.print(f"[red]Configuration error:[/] {e}")
        raise typer.Exit(code=1)


def render_table(completions: CompletionList) -> Table:
    table = Table(title="Suggestions", show_lines=False)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Insert", style="bold green")
    table.add_column("Replaces", justify="center")
    table.add_column("Filter text", style="cyan")
    for item in completions:
        table.add_row(
            str(item.rank),
            repr(item.insert_text),
            f"{item.replace_range.start}..{item.replace_range.end}",
            repr(item.filter_text),
        )
    return table


def completions_as_json(completions: CompletionList) -> str:
    return json.dumps(
        {
            "isIncomplete": completions.is_incomplete,
            "items": [
                {
                    "label": item.label,
                    "insertText": item.insert_text,
                    "range": {"start": item.replace_range.start, "end": item.replace_range.end},
                    "filterText": item.filter_text,
                    "sortText": item.sort_text,
                    "detail": item.detail,
                }
                for item in completions
            ],
        },
        ensure_ascii=False,
        indent=2,
    )


async def run_suggest(
    text: str,
    cursor: int,
    settings: ExpandSettings,
    language: str = "plaintext",
    provider: Optional[CompletionProvider] = None,
) -> CompletionList:
    """Run one completion request against ``text`` and return the result."""
    provider = provider or CompletionProvider(lambda: settings)
    unsubscribe = provider.event_bus.subscribe(
        StatusMessage, lambda event: err_console.print(f"[yellow]{event.text}[/]")
    )
    try:
        return await provider.provide_completions(TextDocument(text, language), cursor)
    finally:
        unsubscribe()
        await provider.aclose()


@cli.command()
def suggest(
    text: str = typer.Argument(..., help="Document text"),
    cursor: Optional[int] = typer.Option(None, "--cursor", "-c", help="Cursor offset (default: end of text)"),
    config: Optional[Path] = typer.Option(None, "--config", help="JSON settings file"),
    base_url: Optional[str] = typer.Option(None, "--base-url", help="Backend root URL"),
    api_key: Optional[str] = typer.Option(None, "--api-key", help="Bearer token"),
    model: Optional[str] = typer.Option(None, "--model", "-m", help="Backend model"),
    depth: Optional[int] = typer.Option(None, "--depth", "-d", help="Max extra tokens per branch"),
    max_completions: Optional[int] = typer.Option(None, "--max-completions", "-n", help="Max suggestions"),
    context_size: Optional[int] = typer.Option(None, "--context-size", help="Characters of context sent"),
    language: str = typer.Option("plaintext", "--language", help="Document language id"),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of a table"),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging on stderr"),
):
    """Print completion suggestions for TEXT at the cursor."""
    load_dotenv()
    setup_logger(log_level="DEBUG" if debug else "INFO", console_output=debug)
    logger = get_logger("main")

    settings = _resolve_settings(config, base_url, api_key, model, depth, max_completions, context_size)
    position = len(text) if cursor is None else cursor
    if not 0 <= position <= len(text):
        err_console.print(f"[red]Cursor {position} is outside the text (0..{len(text)})[/]")
        raise typer.Exit(code=2)

    logger.info(f"Suggesting at {position} with model {settings.model} ({settings.base_url})")
    completions = asyncio.run(run_suggest(text, position, settings, language))

    if as_json:
        console.print_json(completions_as_json(completions))
    elif completions.items:
        console.print(render_table(completions))
    else:
        console.print("[dim]No suggestions[/]")


@cli.command()
def playground(
    text: str = typer.Option("", "--text", help="Initial text"),
    config: Optional[Path] = typer.Option(None, "--config", help="JSON settings file"),
    base_url: Optional[str] = typer.Option(None, "--base-url", help="Backend root URL"),
    api_key: Optional[str] = typer.Option(None, "--api-key", help="Bearer token"),
    model: Optional[str] = typer.Option(None, "--model", "-m", help="Backend model"),
    depth: Optional[int] = typer.Option(None, "--depth", "-d", help="Max extra tokens per branch"),
    max_completions: Optional[int] = typer.Option(None, "--max-completions", "-n", help="Max suggestions"),
    language: str = typer.Option("plaintext", "--language", help="Document language id"),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
):
    """Open an interactive editor line with live suggestions."""
    from llmexpand.presentation.tui import PlaygroundApp

    load_dotenv()
    setup_logger(log_level="DEBUG" if debug else "INFO")
    logger = get_logger("main")

    settings = _resolve_settings(config, base_url, api_key, model, depth, max_completions, None)
    provider = CompletionProvider(lambda: settings)

    logger.info(f"Starting playground with model {settings.model} ({settings.base_url})")
    app = PlaygroundApp(provider, lambda: settings, language=language, initial_text=text)
    app.run()
