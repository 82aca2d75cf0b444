"""
CLI interface for AI Cost Estimator.

Provides command-line access to cost estimation, token counting and the
price table.
"""

import logging
import sqlite3
import sys
from pathlib import Path
from typing import List, Optional

import typer
import yaml
from rich.console import Console
from rich.table import Table

from ai_cost_estimator.app.session import EstimatorSession, TextField
from ai_cost_estimator.config.loader import load_price_table, load_settings
from ai_cost_estimator.core.pricing import CostRecord
from ai_cost_estimator.core.sorting import SortDirection, SortState
from ai_cost_estimator.core.tokenizer import (
    TokenCounter,
    TokenizerUnavailable,
    count_characters,
    count_words,
)
from ai_cost_estimator.core.units import UnitMode
from ai_cost_estimator.sdk.openai_client import GenerationClient, GenerationError
from ai_cost_estimator.storage.repository import get_store

app = typer.Typer()
console = Console()

EXIT_CODE_PASS = 0
EXIT_CODE_FAIL = 1

COLUMNS = [
    ("model", "Model"),
    ("capability_score", "Intelligence"),
    ("input_cost", "Input Cost"),
    ("output_cost", "Output Cost"),
    ("per_call_cost", "Per Call Cost"),
    ("total_cost", "Total Cost"),
]


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    db: Optional[str] = typer.Option(None, "--db", help="Profile database path"),
    pricing: Optional[str] = typer.Option(None, "--pricing", "-p", help="Price table YAML file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """AI Cost Estimator CLI."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        settings = load_settings()
    except ValueError as e:
        console.print(f"[red]Invalid settings:[/] {e}")
        sys.exit(EXIT_CODE_FAIL)

    ctx.obj = {
        "settings": settings,
        "db_path": db or settings.db_path,
        "pricing_path": pricing or settings.pricing_path,
    }
    if ctx.invoked_subcommand is None:
        console.print("AI Cost Estimator - Use --help to see available commands")


def _load_prices(ctx: typer.Context):
    """Load the configured price table or exit with an error."""
    try:
        return load_price_table(ctx.obj["pricing_path"])
    except (FileNotFoundError, ValueError, yaml.YAMLError) as e:
        console.print(f"[red]Error loading price table:[/] {e}")
        sys.exit(EXIT_CODE_FAIL)


def _build_session(ctx: typer.Context, save: bool = True) -> EstimatorSession:
    """Create a session restored from the profile store."""
    store = get_store(ctx.obj["db_path"])
    session = EstimatorSession(
        _load_prices(ctx),
        store=store,
        counter=TokenCounter(),
        debounce_seconds=ctx.obj["settings"].debounce_seconds,
    )
    session.load()
    if not save:
        session.store = None
    return session


def _ensure_tokenizer(session: EstimatorSession) -> None:
    """Load the tokenizer when text is measured in tokens."""
    if session.usage.unit_mode != UnitMode.TOKENS:
        return
    try:
        session.counter.load()
    except TokenizerUnavailable as e:
        console.print(f"[red]Tokenizer unavailable:[/] {e}")
        sys.exit(EXIT_CODE_FAIL)


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        console.print(f"[red]Cannot read {path}:[/] {e}")
        sys.exit(EXIT_CODE_FAIL)


@app.command()
def estimate(
    ctx: typer.Context,
    input_quantity: Optional[str] = typer.Option(None, "--input", "-i", help="Input quantity"),
    output_quantity: Optional[str] = typer.Option(None, "--output", "-o", help="Output quantity"),
    calls: Optional[str] = typer.Option(None, "--calls", "-c", help="Number of API calls"),
    mode: Optional[str] = typer.Option(None, "--mode", "-m", help="tokens, words or characters"),
    input_file: Optional[Path] = typer.Option(None, "--input-file", help="Measure input from a text file"),
    output_file: Optional[Path] = typer.Option(None, "--output-file", help="Measure output from a text file"),
    sort: Optional[List[str]] = typer.Option(
        None,
        "--sort",
        "-s",
        help="Sort column; repeat to cycle ascending, descending, unsorted"
    ),
    save: bool = typer.Option(True, "--save/--no-save", help="Remember values for next time"),
):
    """
    Estimate per-model cost for the given usage.

    Values not given are taken from the last run. Invalid values are ignored
    and the previous value is kept.
    """
    try:
        session = _build_session(ctx, save)

        if mode is not None:
            try:
                session.set_unit_mode(mode)
            except ValueError as e:
                console.print(f"[red]Error:[/] {e}")
                sys.exit(EXIT_CODE_FAIL)

        for field, raw in (
            ("input_quantity", input_quantity),
            ("output_quantity", output_quantity),
            ("call_count", calls),
        ):
            if raw is not None and not session.edit(field, raw):
                console.print(
                    f"[yellow]Ignoring invalid {field.replace('_', ' ')} {raw!r}, "
                    f"keeping {_format_number(getattr(session.usage, field))}[/]"
                )

        for field, path in ((TextField.INPUT, input_file), (TextField.OUTPUT, output_file)):
            if path is not None:
                _ensure_tokenizer(session)
                session.measure_now(field, _read_text(path))

        for key in sort or []:
            try:
                session.sort_by(key)
            except ValueError as e:
                console.print(f"[red]Error:[/] {e}")
                sys.exit(EXIT_CODE_FAIL)

        _display_estimate(session)
    except sqlite3.DatabaseError as e:
        console.print(f"[red]Profile database error:[/] {e} (use --no-save or run reset)")
        sys.exit(EXIT_CODE_FAIL)

    sys.exit(EXIT_CODE_PASS)


@app.command()
def count(
    text: Optional[str] = typer.Argument(None, help="Text to measure"),
    file: Optional[Path] = typer.Option(None, "--file", "-f", help="Read text from a file"),
):
    """Count tokens, words and characters in a text."""
    if file is not None:
        text = _read_text(file)
    if text is None:
        console.print("[red]Error:[/] provide TEXT or --file")
        sys.exit(EXIT_CODE_FAIL)

    counter = TokenCounter()
    try:
        counter.load()
    except TokenizerUnavailable as e:
        console.print(f"[red]Tokenizer unavailable:[/] {e}")
        sys.exit(EXIT_CODE_FAIL)

    console.print(f"Tokens ({counter.encoding_name}): {counter.count(text):,}")
    console.print(f"Words: {count_words(text):,}")
    console.print(f"Characters: {count_characters(text):,}")
    sys.exit(EXIT_CODE_PASS)


@app.command()
def models(ctx: typer.Context):
    """List the price table."""
    prices = _load_prices(ctx)
    table = Table(title="Price table (per 1K tokens)")
    table.add_column("Model")
    table.add_column("Intelligence", justify="right")
    table.add_column("Input", justify="right")
    table.add_column("Output", justify="right")
    for entry in prices:
        table.add_row(
            entry.model,
            f"{entry.capability_score:,.0f}",
            f"${entry.input_unit_price:,.5f}",
            f"${entry.output_unit_price:,.5f}",
        )
    console.print(table)
    sys.exit(EXIT_CODE_PASS)


@app.command()
def generate(
    ctx: typer.Context,
    prompt: str = typer.Argument(..., help="Prompt to send"),
    model: Optional[str] = typer.Option(None, "--model", help="Generation model"),
    api_key: Optional[str] = typer.Option(None, "--api-key", help="OpenAI API key"),
    remember_key: bool = typer.Option(False, "--remember-key", help="Store the API key in the profile"),
):
    """
    Generate a response and estimate cost with it as the output.

    A failed request leaves the saved values untouched.
    """
    try:
        session = _build_session(ctx)
        store = get_store(ctx.obj["db_path"])
        credential = api_key or store.load_credential()
        _ensure_tokenizer(session)

        try:
            client = GenerationClient(model or ctx.obj["settings"].generation_model, api_key=credential)
            session.generate_output(client, prompt)
        except GenerationError as e:
            console.print(f"[red]Generation failed:[/] {e}")
            sys.exit(EXIT_CODE_FAIL)

        if api_key and remember_key:
            store.save_credential(api_key)

        _display_estimate(session)
    except sqlite3.DatabaseError as e:
        console.print(f"[red]Profile database error:[/] {e} (run reset)")
        sys.exit(EXIT_CODE_FAIL)

    sys.exit(EXIT_CODE_PASS)


@app.command()
def reset(ctx: typer.Context):
    """Forget saved values, credential included."""
    try:
        get_store(ctx.obj["db_path"]).clear()
    except Exception as e:
        console.print(f"[red]Error clearing profile:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)
    console.print("[green]✓[/] Profile cleared")
    sys.exit(EXIT_CODE_PASS)


def _format_number(value: float) -> str:
    """Compact number formatting: 1.2m, 34.5k, 1,234.5."""
    if value >= 1_000_000:
        return f"{value / 1_000_000:.1f}m"
    if value >= 10_000:
        return f"{value / 1_000:.1f}k"
    text = f"{value:,.4f}".rstrip("0").rstrip(".")
    return text or "0"


def _format_currency(amount: float) -> str:
    return f"${_format_number(amount)}"


def _sort_arrow(state: SortState, key: str) -> str:
    if state.key != key:
        return ""
    return " ▲" if state.direction == SortDirection.ASCENDING else " ▼"


def _record_cells(record: CostRecord) -> List[str]:
    return [
        record.model,
        _format_number(round(record.capability_score)),
        _format_currency(record.input_cost),
        _format_currency(record.output_cost),
        _format_currency(record.per_call_cost),
        _format_currency(record.total_cost),
    ]


def _display_estimate(session: EstimatorSession) -> None:
    """Display cost records as a table."""
    usage = session.usage
    unit = usage.unit_mode.value
    console.print(
        f"\n[bold]Input {unit}:[/bold] {_format_number(usage.input_quantity)}  "
        f"[bold]Output {unit}:[/bold] {_format_number(usage.output_quantity)}  "
        f"[bold]API calls:[/bold] {usage.call_count:,}"
    )

    table = Table()
    for key, title in COLUMNS:
        table.add_column(
            title + _sort_arrow(session.sort_state, key),
            justify="left" if key == "model" else "right",
        )
    for record in session.rows():
        table.add_row(*_record_cells(record))
    console.print(table)


if __name__ == "__main__":
    app()
