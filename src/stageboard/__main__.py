"""CLI entry point for stageboard."""

import argparse
from pathlib import Path

from . import __version__
from .config import Settings
from .logging import setup_logging
from .models import ItemKind, ItemOrder


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="stageboard",
        description="Terminal Kanban boards for project tasks, incidents and resource requests",
    )
    parser.add_argument(
        "--project",
        default=None,
        help="Project id to open (default: STAGEBOARD_PROJECT_ID or stageboard.yml)",
    )
    parser.add_argument(
        "--api-url",
        default=None,
        help="Backend root URL (default: STAGEBOARD_API_URL)",
    )
    parser.add_argument(
        "--token",
        default=None,
        help="API bearer token (default: STAGEBOARD_API_TOKEN)",
    )
    parser.add_argument(
        "--kind",
        choices=[k.value for k in ItemKind],
        default=None,
        help="Board to show first",
    )
    parser.add_argument(
        "--order",
        choices=[o.value for o in ItemOrder],
        default=None,
        help="Ordering of items inside a column",
    )
    parser.add_argument(
        "--root",
        type=Path,
        default=None,
        help="Directory containing stageboard.yml (default: current directory)",
    )
    parser.add_argument(
        "--print",
        dest="print_board",
        action="store_true",
        help="Print the board(s) to stdout and exit",
    )
    parser.add_argument(
        "--demo",
        action="store_true",
        help="Use built-in sample data instead of the API",
    )
    parser.add_argument(
        "--generate",
        action="store_true",
        help="Generate default stageboard.yml and exit",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase logging verbosity (-v for INFO, -vv for DEBUG)",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Path to write logs to file",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    return parser.parse_args(argv)


def build_settings(args: argparse.Namespace) -> Settings:
    """Environment settings with command line overrides applied."""
    settings_kwargs: dict = {}
    if args.project:
        settings_kwargs["project_id"] = args.project
    if args.api_url:
        settings_kwargs["api_url"] = args.api_url
    if args.token:
        settings_kwargs["api_token"] = args.token
    if args.kind:
        settings_kwargs["kind"] = ItemKind(args.kind)
    if args.order:
        settings_kwargs["item_order"] = ItemOrder(args.order)
    if args.root:
        settings_kwargs["project_root"] = args.root
    if args.demo:
        settings_kwargs["demo"] = True
    if args.verbose:
        settings_kwargs["verbose"] = args.verbose
    if args.log_file:
        settings_kwargs["log_file"] = args.log_file

    settings = Settings(**settings_kwargs)

    # Fall back to the project named in stageboard.yml
    if settings.project_id is None and not settings.demo:
        from .services import ConfigService

        config = ConfigService(settings.project_root).get_config()
        if config.project_id:
            settings = settings.model_copy(update={"project_id": config.project_id})
    return settings


def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    args = parse_args(argv)
    settings = build_settings(args)

    # Setup logging based on verbosity
    setup_logging(settings.verbose, settings.log_file)

    # Handle --generate command
    if args.generate:
        from .cli.generate import run_generate

        raise SystemExit(run_generate(settings.project_root))

    if not settings.demo and (not settings.api_url or not settings.project_id):
        from .cli.output import error

        error("An API URL and project id are required (or use --demo)")
        raise SystemExit(2)

    if args.print_board:
        from .cli.show import run_print

        raise SystemExit(run_print(settings))

    # Import here to keep --print and --generate free of Textual startup cost
    from .app import run

    run(settings)


if __name__ == "__main__":
    main()
