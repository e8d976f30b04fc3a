"""CLI commands for mazra3.

Provides subcommands for asking the advisor and inspecting the matcher.

Commands:
    mazra3 ask TEXT        - Print the advisory reply for one message
    mazra3 analyze TEXT    - Show intent ranking and recognized entities
    mazra3 chat            - Interactive session with context carry-over
    mazra3 lexicon         - Validate and summarize a lexicon
"""

from __future__ import annotations

import argparse
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .config import AppConfig
from .core.advisory import AdvisoryResponse
from .core.intent import EntityCategory, GazetteerIndex, IntentClassifier
from .core.lexicon import Lexicon
from .core.service import AdvisoryService

console = Console()

CHAT_USER = "cli"
EXIT_WORDS = {"exit", "quit", "/quit", "/exit"}


def build_service(args: argparse.Namespace) -> AdvisoryService:
    """Create the advisory service from --config and the environment."""
    config_path = Path(args.config_path) if args.config_path else None
    return AdvisoryService.from_config(AppConfig.load(config_path))


def print_response(response: AdvisoryResponse) -> None:
    """Render a reply and any clarification buttons."""
    console.print(response.text, soft_wrap=True)
    if response.buttons:
        console.print()
        for button in response.buttons:
            console.print(f"  [cyan]{button.id}[/cyan]  {button.title}")


def ask(args: argparse.Namespace) -> int:
    """Answer a single message.

    Args:
        args: Parsed arguments (text, region)

    Returns:
        Exit code (0 for success)
    """
    service = build_service(args)
    text = " ".join(args.text)
    print_response(service.handle(CHAT_USER, text, region=args.region))
    return 0


def analyze(args: argparse.Namespace) -> int:
    """Show the analysis of a message as tables.

    Args:
        args: Parsed arguments (text, region)

    Returns:
        Exit code (0 for success)
    """
    service = build_service(args)
    result = service.analyze(CHAT_USER, " ".join(args.text), region=args.region)

    console.print(f"[bold]Normalized:[/bold] {result.text}", soft_wrap=True)
    console.print(f"[bold]Tokens:[/bold] {' '.join(result.tokens) or '-'}", soft_wrap=True)
    console.print(f"[bold]Region:[/bold] {result.region}")
    console.print()

    entities = Table(title="Entities")
    entities.add_column("Field", style="cyan")
    entities.add_column("Value")
    entities.add_column("Score", justify="right")
    entities.add_column("Method", style="dim")

    for name, match in (("crop", result.crop), ("disease", result.disease), ("pest", result.pest)):
        entities.add_row(
            name,
            match.value or "-",
            f"{match.score:.2f}",
            match.method or "-",
        )
    quantity = f"{result.quantity.value:g} {result.quantity.unit}" if result.quantity else "-"
    entities.add_row("quantity", quantity, "", "")
    entities.add_row("month", str(result.month) if result.month else "-", "", "")
    console.print(entities)

    ranking = Table(title="Intent Scores")
    ranking.add_column("Intent", style="cyan")
    ranking.add_column("Raw", justify="right")
    for intent, score in result.ranked:
        if score > 0:
            ranking.add_row(intent, f"{score:.2f}")
    console.print(ranking)

    console.print(
        f"[bold]Intent:[/bold] {result.intent or '-'} "
        f"({result.intent_confidence:.2f})  "
        f"[bold]Confidence:[/bold] {result.confidence:.2f}"
    )
    return 0


def chat(args: argparse.Namespace) -> int:
    """Interactive loop; context carries across turns.

    Type /reset to forget context, /region ID to switch region, exit to quit.

    Args:
        args: Parsed arguments (region)

    Returns:
        Exit code (0 for success)
    """
    service = build_service(args)
    region = args.region
    console.print("[dim]mazra3 chat - type 'exit' to quit[/dim]")

    while True:
        try:
            line = input("> ").strip()
        except EOFError:
            console.print()
            return 0

        if not line:
            continue
        if line.lower() in EXIT_WORDS:
            return 0
        if line == "/reset":
            service.reset(CHAT_USER)
            console.print("[dim]Context cleared.[/dim]")
            continue
        if line.startswith("/region"):
            _, _, value = line.partition(" ")
            value = value.strip()
            if value not in service.lexicon.calendar:
                known = ", ".join(service.lexicon.regions)
                console.print(
                    f"[yellow]Unknown region '{escape(value)}'.[/yellow] Known: {known}"
                )
                continue
            region = value
            console.print(f"[dim]Region set to {service.lexicon.region_name(region)}.[/dim]")
            continue

        print_response(service.handle(CHAT_USER, line, region=region))
        region = None


def show_lexicon(args: argparse.Namespace) -> int:
    """Validate a lexicon (built-in or --file) and summarize it.

    Args:
        args: Parsed arguments (file)

    Returns:
        Exit code (0 if valid)
    """
    lexicon = Lexicon.from_yaml(Path(args.file)) if args.file else Lexicon.default()

    # Building the indexes runs every consistency check
    indexes = {
        category: GazetteerIndex.build(category, lexicon.gazetteer(category))
        for category in EntityCategory
    }
    classifier = IntentClassifier(lexicon.intents)

    table = Table(title="Lexicon")
    table.add_column("Section", style="cyan")
    table.add_column("Entries", justify="right")
    table.add_column("Keys", justify="right")

    for category, index in indexes.items():
        table.add_row(category.value, str(len(lexicon.gazetteer(category))), str(len(index)))
    keyword_count = sum(len(bank) for bank in classifier.banks.values())
    table.add_row("intents", str(len(classifier.banks)), str(keyword_count))
    table.add_row("months", str(len(lexicon.months)), "")
    table.add_row("units", str(len(lexicon.units)), "")
    console.print(table)

    regions = Table(title="Planting Calendar")
    regions.add_column("Region", style="cyan")
    regions.add_column("Name")
    regions.add_column("Crops", justify="right")
    for region in lexicon.regions:
        marker = " (default)" if region == lexicon.default_region else ""
        regions.add_row(
            f"{region}{marker}",
            lexicon.region_name(region),
            str(len(lexicon.calendar[region])),
        )
    console.print(regions)

    console.print("[green]Lexicon OK[/green]")
    return 0


def create_parser() -> argparse.ArgumentParser:
    """Create the CLI argument parser.

    Returns:
        Configured ArgumentParser
    """
    parser = argparse.ArgumentParser(
        prog="mazra3",
        description="mazra3: rule-based Arabic farming advisor",
    )
    parser.add_argument(
        "--config",
        "-c",
        dest="config_path",
        default=None,
        help="YAML config file (environment variables take precedence)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    def add_region_arg(p: argparse.ArgumentParser) -> None:
        p.add_argument(
            "--region",
            "-r",
            default=None,
            help="Region profile (med, gulf_hot, highland_cool)",
        )

    # =========================================================================
    # ask command
    # =========================================================================
    ask_parser = subparsers.add_parser("ask", help="Answer one message")
    ask_parser.add_argument("text", nargs="+", help="Message text")
    add_region_arg(ask_parser)
    ask_parser.set_defaults(func=ask)

    # =========================================================================
    # analyze command
    # =========================================================================
    analyze_parser = subparsers.add_parser("analyze", help="Show intent and entities for a message")
    analyze_parser.add_argument("text", nargs="+", help="Message text")
    add_region_arg(analyze_parser)
    analyze_parser.set_defaults(func=analyze)

    # =========================================================================
    # chat command
    # =========================================================================
    chat_parser = subparsers.add_parser("chat", help="Interactive advisory session")
    add_region_arg(chat_parser)
    chat_parser.set_defaults(func=chat)

    # =========================================================================
    # lexicon command
    # =========================================================================
    lexicon_parser = subparsers.add_parser("lexicon", help="Validate and summarize a lexicon")
    lexicon_parser.add_argument(
        "--file",
        "-f",
        default=None,
        help="Lexicon YAML file (default: built-in tables)",
    )
    lexicon_parser.set_defaults(func=show_lexicon)

    return parser


def run_cli(args: list[str] | None = None) -> int:
    """Run the CLI.

    Args:
        args: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code
    """
    parser = create_parser()
    parsed = parser.parse_args(args)

    if not hasattr(parsed, "func"):
        parser.print_help()
        return 0

    try:
        return parsed.func(parsed)
    except KeyboardInterrupt:
        console.print("\n[dim]Cancelled.[/dim]")
        return 130
    except Exception as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        return 1


__all__ = [
    "analyze",
    "ask",
    "build_service",
    "chat",
    "create_parser",
    "run_cli",
    "show_lexicon",
]
