"""Command-line interface for DAS Central."""

import argparse
import sys

from das_central import __version__
from das_central.cli._common import get_default_db_path, resolve_db_path
from das_central.cli.das_commands import (
    cmd_accounts_add,
    cmd_accounts_deposit,
    cmd_accounts_list,
    cmd_config_set,
    cmd_config_show,
    cmd_ensure,
    cmd_pay,
    cmd_pay_batch,
    cmd_summary,
    cmd_year,
)
from das_central.config import get_settings
from das_central.logging_config import configure_logging
from das_central.repositories.sqlite import SQLiteDatabase


def cmd_init(args: argparse.Namespace) -> int:
    """Initialize a new database."""
    db_path = resolve_db_path(args)

    if db_path.exists() and not args.force:
        print(f"Database already exists at {db_path}")
        print("Use --force to reinitialize (WARNING: will delete existing data)")
        return 1

    if db_path.exists() and args.force:
        db_path.unlink()

    db_path.parent.mkdir(parents=True, exist_ok=True)
    db = SQLiteDatabase(str(db_path))
    db.initialize()
    db.close()

    print(f"Initialized database at {db_path}")
    return 0


def cmd_status(args: argparse.Namespace) -> int:
    """Show database status."""
    db_path = resolve_db_path(args)

    if not db_path.exists():
        print(f"No database found at {db_path}")
        print("Run 'das init' to create a new database")
        return 1

    db = SQLiteDatabase(str(db_path))
    db.initialize()
    counts = db.table_counts()
    db.close()

    print(f"Database: {db_path}")
    print(f"Configured accounts: {counts['tax_configs']}")
    print(f"Guides: {counts['guides']}")
    print(f"Funding accounts: {counts['funding_accounts']}")
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    """Run the HTTP API with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "das_central.api.app:app",
        host=args.host or settings.api_host,
        port=args.port or settings.api_port,
        reload=settings.api_reload,
    )
    return 0


def cmd_version(args: argparse.Namespace) -> int:
    """Show version information."""
    print(f"DAS Central v{__version__}")
    return 0


def _build_parser() -> tuple[argparse.ArgumentParser, dict[str, argparse.ArgumentParser]]:
    parser = argparse.ArgumentParser(
        prog="das",
        description="DAS Central - Monthly DAS guide tracking and payment",
    )
    parser.add_argument(
        "--database",
        "-d",
        help=f"Path to SQLite database file (default: {get_default_db_path()})",
        default=None,
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # init command
    init_parser = subparsers.add_parser("init", help="Initialize a new database")
    init_parser.add_argument(
        "--force",
        "-f",
        action="store_true",
        help="Force reinitialization (deletes existing data)",
    )
    init_parser.set_defaults(func=cmd_init)

    # status command
    status_parser = subparsers.add_parser("status", help="Show database status")
    status_parser.set_defaults(func=cmd_status)

    # serve command
    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default=None, help="Bind address")
    serve_parser.add_argument("--port", type=int, default=None, help="Port")
    serve_parser.set_defaults(func=cmd_serve)

    # version command
    version_parser = subparsers.add_parser("version", help="Show version")
    version_parser.set_defaults(func=cmd_version)

    # config command group
    config_parser = subparsers.add_parser("config", help="DAS configuration commands")
    config_subparsers = config_parser.add_subparsers(
        dest="config_command", help="Config commands"
    )

    config_set_parser = config_subparsers.add_parser(
        "set", help="Set base value and due day"
    )
    config_set_parser.add_argument("--account-id", required=True, help="Business account ID")
    config_set_parser.add_argument(
        "--base-value", required=True, help="Monthly base value (e.g. 75.60)"
    )
    config_set_parser.add_argument(
        "--due-day", type=int, default=None, help="Day of month guides fall due"
    )
    config_set_parser.set_defaults(func=cmd_config_set)

    config_show_parser = config_subparsers.add_parser("show", help="Show configuration")
    config_show_parser.add_argument("--account-id", required=True, help="Business account ID")
    config_show_parser.set_defaults(func=cmd_config_show)

    # ensure command
    ensure_parser = subparsers.add_parser(
        "ensure", help="Create missing guides for a year"
    )
    ensure_parser.add_argument("--account-id", required=True, help="Business account ID")
    ensure_parser.add_argument(
        "--year", type=int, default=None, help="Year (default: current year)"
    )
    ensure_parser.set_defaults(func=cmd_ensure)

    # year command
    year_parser = subparsers.add_parser("year", help="Show the guides of a year")
    year_parser.add_argument("--account-id", required=True, help="Business account ID")
    year_parser.add_argument("--year", type=int, required=True, help="Year to show")
    year_parser.add_argument(
        "--as-of", default=None, help="Evaluate statuses as of this date (YYYY-MM-DD)"
    )
    year_parser.set_defaults(func=cmd_year)

    # pay command
    pay_parser = subparsers.add_parser("pay", help="Pay one guide")
    pay_parser.add_argument("--account-id", required=True, help="Business account ID")
    pay_parser.add_argument("--guide-id", required=True, help="Guide ID")
    pay_parser.add_argument(
        "--bank-account-id", required=True, help="Funding account to debit"
    )
    pay_parser.add_argument(
        "--amount", required=True, help="Amount paid, including any interest or fine"
    )
    pay_parser.set_defaults(func=cmd_pay)

    # pay-batch command
    batch_parser = subparsers.add_parser(
        "pay-batch", help="Pay several guides at their base value"
    )
    batch_parser.add_argument("--account-id", required=True, help="Business account ID")
    batch_parser.add_argument(
        "--bank-account-id", required=True, help="Funding account to debit"
    )
    batch_parser.add_argument(
        "--guide-id",
        dest="guide_ids",
        action="append",
        default=None,
        help="Guide ID (repeat for several, paid in the given order)",
    )
    batch_parser.add_argument(
        "--all-payable",
        action="store_true",
        help="Pay every payable guide of --year",
    )
    batch_parser.add_argument(
        "--year", type=int, default=None, help="Year for --all-payable"
    )
    batch_parser.add_argument(
        "--as-of", default=None, help="Evaluate payability as of this date (YYYY-MM-DD)"
    )
    batch_parser.set_defaults(func=cmd_pay_batch)

    # summary command
    summary_parser = subparsers.add_parser("summary", help="Show paid and pending totals")
    summary_parser.add_argument("--account-id", required=True, help="Business account ID")
    summary_parser.add_argument(
        "--as-of", default=None, help="Evaluate statuses as of this date (YYYY-MM-DD)"
    )
    summary_parser.set_defaults(func=cmd_summary)

    # accounts command group
    accounts_parser = subparsers.add_parser(
        "accounts", help="Funding account commands"
    )
    accounts_subparsers = accounts_parser.add_subparsers(
        dest="accounts_command", help="Funding account commands"
    )

    accounts_add_parser = accounts_subparsers.add_parser("add", help="Add a funding account")
    accounts_add_parser.add_argument("--owner-id", required=True, help="Owner ID")
    accounts_add_parser.add_argument("--name", required=True, help="Account name")
    accounts_add_parser.add_argument(
        "--balance", default="0.00", help="Opening balance (default: 0.00)"
    )
    accounts_add_parser.add_argument(
        "--default", action="store_true", help="Mark as the owner's default account"
    )
    accounts_add_parser.set_defaults(func=cmd_accounts_add)

    accounts_list_parser = accounts_subparsers.add_parser(
        "list", help="List funding accounts"
    )
    accounts_list_parser.add_argument("--owner-id", required=True, help="Owner ID")
    accounts_list_parser.set_defaults(func=cmd_accounts_list)

    accounts_deposit_parser = accounts_subparsers.add_parser(
        "deposit", help="Credit a funding account"
    )
    accounts_deposit_parser.add_argument(
        "--bank-account-id", required=True, help="Funding account ID"
    )
    accounts_deposit_parser.add_argument("--amount", required=True, help="Amount")
    accounts_deposit_parser.set_defaults(func=cmd_accounts_deposit)

    groups = {"config": config_parser, "accounts": accounts_parser}
    return parser, groups


def main(argv: list[str] | None = None) -> int:
    parser, groups = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    group = groups.get(args.command)
    if group is not None and getattr(args, f"{args.command}_command", None) is None:
        group.print_help()
        return 0

    configure_logging(get_settings(), stream=sys.stderr)

    result: int = args.func(args)
    return result


if __name__ == "__main__":
    sys.exit(main())
