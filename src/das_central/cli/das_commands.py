"""DAS guide and funding account CLI commands."""

import argparse
from uuid import UUID

from das_central.cli._common import open_container, parse_date, resolve_db_path
from das_central.exceptions import DasCentralError
from das_central.services.interfaces import DasSummary, DueAlert


def _missing_database(args: argparse.Namespace) -> bool:
    db_path = resolve_db_path(args)
    if not db_path.exists():
        print(f"Error: Database not found at {db_path}")
        print("Run 'das init' to create a new database")
        return True
    return False


def cmd_config_set(args: argparse.Namespace) -> int:
    """Set the base value and due day of an account."""
    if _missing_database(args):
        return 1

    try:
        with open_container(resolve_db_path(args)) as container:
            config = container.das_service.set_config(
                UUID(args.account_id), args.base_value, args.due_day
            )

        print(f"Configured DAS for account {config.account_id}")
        print(f"  Base value: {config.base_value}")
        print(f"  Due day: {config.due_day}")
        return 0

    except ValueError as e:
        print(f"Error: Invalid input: {e}")
        return 1
    except DasCentralError as e:
        print(f"Error: {e.message}")
        return 1


def cmd_config_show(args: argparse.Namespace) -> int:
    """Show the configuration of an account."""
    if _missing_database(args):
        return 1

    try:
        with open_container(resolve_db_path(args)) as container:
            config = container.das_service.require_config(UUID(args.account_id))

        print(f"DAS configuration for account {config.account_id}")
        print(f"  Base value: {config.base_value}")
        print(f"  Due day: {config.due_day}")
        print(f"  Updated: {config.updated_at.isoformat()}")
        return 0

    except ValueError as e:
        print(f"Error: Invalid input: {e}")
        return 1
    except DasCentralError as e:
        print(f"Error: {e.message}")
        return 1


def cmd_ensure(args: argparse.Namespace) -> int:
    """Materialize missing guides for a year."""
    if _missing_database(args):
        return 1

    try:
        account_id = UUID(args.account_id)
        with open_container(resolve_db_path(args)) as container:
            service = container.das_service
            if service.get_config(account_id) is None:
                print(f"No DAS configuration for account {account_id}; nothing to do")
                return 0
            year = args.year or service.today().year
            created = service.ensure_year(account_id, year)

        if not created:
            print(f"All guides for {year} already exist")
        else:
            print(f"Created {len(created)} guide(s) for {year}:")
            for guide in created:
                print(f"  {guide.month:02d}/{guide.year}  due {guide.due_date}  {guide.base_value}")
        return 0

    except ValueError as e:
        print(f"Error: Invalid input: {e}")
        return 1
    except DasCentralError as e:
        print(f"Error: {e.message}")
        return 1


def cmd_year(args: argparse.Namespace) -> int:
    """Show the twelve-month table of a year."""
    if _missing_database(args):
        return 1

    try:
        account_id = UUID(args.account_id)
        with open_container(resolve_db_path(args)) as container:
            view = container.das_service.year_view(
                account_id, args.year, today=parse_date(args.as_of)
            )

        print(f"DAS {view.year} for account {account_id}")
        if not view.configured:
            print("  (no configuration: showing placeholders)")
        print("=" * 96)
        print(f"{'Month':<12} {'Due':<12} {'Value':>10}  {'Status':<12} Guide")
        print("-" * 96)
        for row in view.rows:
            marker = "*" if row.payable else " "
            print(
                f"{row.month_name:<12} {row.due_date.isoformat():<12} "
                f"{row.final_value:>10}  {row.display_status.value:<12}{marker}{row.guide_id}"
            )
        print("-" * 96)
        print(f"Paid: {view.paid_count} ({view.total_paid})  Overdue: {view.overdue_count}")
        print("* payable")
        return 0

    except ValueError as e:
        print(f"Error: Invalid input: {e}")
        return 1
    except DasCentralError as e:
        print(f"Error: {e.message}")
        return 1


def cmd_pay(args: argparse.Namespace) -> int:
    """Pay a single guide for a given amount."""
    if _missing_database(args):
        return 1

    try:
        with open_container(resolve_db_path(args)) as container:
            guide = container.das_service.pay(
                UUID(args.account_id),
                args.guide_id,
                UUID(args.bank_account_id),
                args.amount,
            )

        print(f"Paid guide {guide.month:02d}/{guide.year}: {guide.final_paid_value}")
        print(f"  Reference: {guide.payment_reference}")
        return 0

    except ValueError as e:
        print(f"Error: Invalid input: {e}")
        return 1
    except DasCentralError as e:
        print(f"Error: {e.message}")
        return 1


def cmd_pay_batch(args: argparse.Namespace) -> int:
    """Pay several guides in order, each for its base value."""
    if _missing_database(args):
        return 1

    if not args.guide_ids and not args.all_payable:
        print("Error: Pass --guide-id at least once, or --all-payable")
        return 1

    try:
        account_id = UUID(args.account_id)
        with open_container(resolve_db_path(args)) as container:
            service = container.das_service
            guide_ids = list(args.guide_ids or [])
            if args.all_payable:
                year = args.year or service.today().year
                view = service.year_view(account_id, year, today=parse_date(args.as_of))
                selection = service.selection(view)
                selection.select_all()
                guide_ids = selection.guide_ids
                if not guide_ids:
                    print(f"No payable guides in {year}")
                    return 0
            result = service.pay_batch(
                account_id, guide_ids, UUID(args.bank_account_id)
            )

        for guide in result.paid:
            print(f"Paid {guide.month:02d}/{guide.year}: {guide.final_paid_value}")
        for skipped in result.skipped:
            print(f"Skipped {skipped.guide_id}: {skipped.reason}")
        print(f"Total paid: {result.total_paid}")

        if result.error is not None:
            print(f"Error: Batch stopped at {result.failed_at}: {result.error.message}")
            if result.not_attempted:
                print(f"Not attempted: {', '.join(result.not_attempted)}")
            return 1
        return 0

    except ValueError as e:
        print(f"Error: Invalid input: {e}")
        return 1
    except DasCentralError as e:
        print(f"Error: {e.message}")
        return 1


def _print_summary(summary: DasSummary, alert: DueAlert | None, currency: str) -> None:
    print(f"DAS summary for account {summary.account_id} ({currency})")
    print("=" * 60)
    print(f"  Paid:    {summary.paid_count:>3} guide(s)  {summary.total_paid:>12}")
    print(f"  Pending: {summary.pending_count:>3} guide(s)  {summary.total_pending:>12}")
    print(f"  Overdue: {summary.overdue_count:>3} guide(s)")

    if summary.next_due is not None:
        nd = summary.next_due
        print(f"  Next due: {nd.month_name} {nd.year} on {nd.due_date} ({nd.value})")

    if summary.by_year:
        print()
        print(f"  {'Year':<6} {'Paid':>12} {'Pending':>12}")
        for year in summary.by_year.values():
            print(f"  {year.year:<6} {year.total_paid:>12} {year.total_pending:>12}")

    if alert is not None:
        print()
        if alert.is_overdue:
            print(f"  ALERT: {alert.overdue_count} overdue guide(s)")
        if alert.days_until_due is not None and alert.next_due is not None:
            print(
                f"  ALERT: {alert.next_due.month_name} {alert.next_due.year} "
                f"due in {alert.days_until_due} day(s)"
            )


def cmd_summary(args: argparse.Namespace) -> int:
    """Show paid and pending totals of an account."""
    if _missing_database(args):
        return 1

    try:
        account_id = UUID(args.account_id)
        today = parse_date(args.as_of)
        with open_container(resolve_db_path(args)) as container:
            summary = container.das_service.summarize(account_id, today=today)
            alert = container.das_service.due_alert(account_id, today=today)
            currency = container.settings.currency

        _print_summary(summary, alert, currency)
        return 0

    except ValueError as e:
        print(f"Error: Invalid input: {e}")
        return 1
    except DasCentralError as e:
        print(f"Error: {e.message}")
        return 1


def cmd_accounts_add(args: argparse.Namespace) -> int:
    """Add a funding account."""
    if _missing_database(args):
        return 1

    try:
        with open_container(resolve_db_path(args)) as container:
            account = container.das_service.add_funding_account(
                UUID(args.owner_id), args.name, args.balance, args.default
            )

        print(f"Created funding account: {account.id}")
        print(f"  Name: {account.name}")
        print(f"  Balance: {account.balance}")
        return 0

    except ValueError as e:
        print(f"Error: Invalid input: {e}")
        return 1
    except DasCentralError as e:
        print(f"Error: {e.message}")
        return 1


def cmd_accounts_list(args: argparse.Namespace) -> int:
    """List funding accounts of an owner."""
    if _missing_database(args):
        return 1

    try:
        with open_container(resolve_db_path(args)) as container:
            accounts = container.das_service.list_funding_accounts(UUID(args.owner_id))

        if not accounts:
            print("No funding accounts found.")
            return 0

        print(f"Funding accounts for owner {args.owner_id}:")
        for account in accounts:
            default = " (default)" if account.is_default else ""
            print(f"  {account.id}  {account.name:<30} {account.balance:>12}{default}")
        return 0

    except ValueError as e:
        print(f"Error: Invalid input: {e}")
        return 1


def cmd_accounts_deposit(args: argparse.Namespace) -> int:
    """Credit a funding account."""
    if _missing_database(args):
        return 1

    try:
        with open_container(resolve_db_path(args)) as container:
            account = container.das_service.deposit(
                UUID(args.bank_account_id), args.amount
            )

        print(f"Deposited {args.amount} into {account.name}")
        print(f"  Balance: {account.balance}")
        return 0

    except ValueError as e:
        print(f"Error: Invalid input: {e}")
        return 1
    except DasCentralError as e:
        print(f"Error: {e.message}")
        return 1


__all__ = [
    "cmd_accounts_add",
    "cmd_accounts_deposit",
    "cmd_accounts_list",
    "cmd_config_set",
    "cmd_config_show",
    "cmd_ensure",
    "cmd_pay",
    "cmd_pay_batch",
    "cmd_summary",
    "cmd_year",
]
