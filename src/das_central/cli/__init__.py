"""Command-line interface package for DAS Central.

- _main: parser, entry point and database and server commands (init, status, serve, version)
- das_commands: configuration, guide, payment and funding account commands
"""

from das_central.cli._common import get_default_db_path
from das_central.cli._main import cmd_init, cmd_serve, cmd_status, cmd_version, main
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

__all__ = [
    "cmd_accounts_add",
    "cmd_accounts_deposit",
    "cmd_accounts_list",
    "cmd_config_set",
    "cmd_config_show",
    "cmd_ensure",
    "cmd_init",
    "cmd_pay",
    "cmd_pay_batch",
    "cmd_serve",
    "cmd_status",
    "cmd_summary",
    "cmd_version",
    "cmd_year",
    "get_default_db_path",
    "main",
]
