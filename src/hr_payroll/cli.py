"""Payroll command line interface.

Provides operational tools for:
- Database schema creation
- Running payroll for a period
- Tax previews
- Bank transfer file export
- Payroll configuration

Usage:
    python -m hr_payroll.cli init-db
    python -m hr_payroll.cli run --period 2024-03 --initiator "HR Admin"
    python -m hr_payroll.cli tax 11625000
    python -m hr_payroll.cli export --period 2024-03 --bank VCB --output vcb.csv
    python -m hr_payroll.cli config show
    python -m hr_payroll.cli config set --updated-by admin --ot-multiplier 2
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Callable

from sqlalchemy.ext.asyncio import AsyncSession

from hr_payroll.calculators import compute_tax
from hr_payroll.config import get_settings
from hr_payroll.database import create_schema, get_engine, make_session_factory
from hr_payroll.periods import InvalidPeriodError, validate_period
from hr_payroll.services import (
    BankExportService,
    InvalidPayrollConfigError,
    PayrollConfigService,
    PayrollRunInProgressError,
    PayrollRunner,
    PayrollRunTimeoutError,
    UnsupportedBankFormatError,
)
from hr_payroll.services.config_service import CONFIG_FIELDS

logger = logging.getLogger(__name__)


def parse_amount(s: str) -> Decimal:
    """Parse a decimal amount argument."""
    try:
        value = Decimal(s.replace(",", ""))
    except InvalidOperation:
        raise argparse.ArgumentTypeError(f"Not a number: {s}")
    if not value.is_finite():
        raise argparse.ArgumentTypeError(f"Not a finite number: {s}")
    return value


def parse_period(s: str) -> str:
    try:
        return validate_period(s)
    except InvalidPeriodError as e:
        raise argparse.ArgumentTypeError(str(e))


def _json_default(value: Any) -> str:
    return str(value)


class PayrollCli:
    """Payroll command line interface."""

    def __init__(self) -> None:
        self.parser = self._build_parser()

    def _build_parser(self) -> argparse.ArgumentParser:
        """Build argument parser."""
        parser = argparse.ArgumentParser(
            prog="python -m hr_payroll.cli",
            description="Payroll operational tools",
        )
        parser.add_argument(
            "--database-url",
            type=str,
            help="Database URL (default: $DATABASE_URL)",
        )
        subparsers = parser.add_subparsers(dest="command", help="Commands")

        # init-db command
        subparsers.add_parser("init-db", help="Create database tables")

        # run command
        run = subparsers.add_parser("run", help="Run payroll for a period")
        run.add_argument(
            "--period",
            type=parse_period,
            required=True,
            help="Payroll period (YYYY-MM)",
        )
        run.add_argument(
            "--initiator",
            type=str,
            required=True,
            help="Name of the person running payroll",
        )

        # tax command
        tax = subparsers.add_parser("tax", help="Preview personal income tax")
        tax.add_argument(
            "taxable_income",
            type=parse_amount,
            help="Monthly taxable income",
        )

        # export command
        export = subparsers.add_parser("export", help="Export bank transfer file")
        export.add_argument(
            "--period",
            type=parse_period,
            required=True,
            help="Payroll period (YYYY-MM)",
        )
        export.add_argument(
            "--bank",
            type=str,
            choices=["VCB", "ACB"],
            default="VCB",
            help="Bank file format",
        )
        export.add_argument(
            "--output",
            type=str,
            help="Output file path (default: stdout)",
        )

        # config command
        config = subparsers.add_parser("config", help="Show or update payroll configuration")
        config_sub = config.add_subparsers(dest="config_command")
        config_sub.add_parser("show", help="Show current configuration")
        config_set = config_sub.add_parser("set", help="Store a new configuration version")
        config_set.add_argument("--updated-by", type=str, required=True)
        for name in CONFIG_FIELDS:
            config_set.add_argument(f"--{name.replace('_', '-')}", type=parse_amount)

        return parser

    def run(self, args: list[str] | None = None) -> int:
        """Run the CLI with given arguments."""
        parsed = self.parser.parse_args(args)

        if not parsed.command:
            self.parser.print_help()
            return 1

        # Dispatch to command handler
        handlers: dict[str, Callable[..., int]] = {
            "init-db": self._cmd_init_db,
            "run": self._cmd_run,
            "tax": self._cmd_tax,
            "export": self._cmd_export,
            "config": self._cmd_config,
        }

        handler = handlers.get(parsed.command)
        if handler:
            return handler(parsed)

        print(f"Unknown command: {parsed.command}", file=sys.stderr)
        return 1

    @asynccontextmanager
    async def _session(self, args: argparse.Namespace) -> AsyncIterator[AsyncSession]:
        engine = get_engine(args.database_url)
        try:
            async with make_session_factory(engine)() as session:
                yield session
        finally:
            await engine.dispose()

    def _cmd_init_db(self, args: argparse.Namespace) -> int:
        """Create database tables."""

        async def _init() -> None:
            engine = get_engine(args.database_url)
            try:
                await create_schema(engine)
            finally:
                await engine.dispose()

        asyncio.run(_init())
        print("Database schema created.")
        return 0

    def _cmd_run(self, args: argparse.Namespace) -> int:
        """Run payroll and print the summary as JSON."""

        async def _run() -> dict[str, Any]:
            async with self._session(args) as session:
                summary = await PayrollRunner(session).run_payroll(args.period, args.initiator)
            return {
                "period": summary.period,
                "status": summary.status,
                "total_employees": summary.total_employees,
                "total_gross_salary": summary.total_gross_salary,
                "total_net_salary": summary.total_net_salary,
                "failures": [vars(f) for f in summary.failures],
                "warnings": [vars(w) for w in summary.warnings],
                "reset_paid_payslips": summary.reset_paid_payslips,
            }

        try:
            result = asyncio.run(_run())
        except (PayrollRunInProgressError, PayrollRunTimeoutError) as e:
            print(f"ERROR: {e}", file=sys.stderr)
            return 1

        print(json.dumps(result, indent=2, ensure_ascii=False, default=_json_default))
        return 2 if result["failures"] else 0

    def _cmd_tax(self, args: argparse.Namespace) -> int:
        """Print the tax owed on a taxable income."""
        print(compute_tax(args.taxable_income))
        return 0

    def _cmd_export(self, args: argparse.Namespace) -> int:
        """Export the bank transfer file."""

        async def _export() -> str:
            async with self._session(args) as session:
                return await BankExportService(session).export_bank_file(args.period, args.bank)

        try:
            content = asyncio.run(_export())
        except UnsupportedBankFormatError as e:
            print(f"ERROR: {e}", file=sys.stderr)
            return 1

        if args.output:
            Path(args.output).write_text(content + "\n", encoding="utf-8")
            print(f"Wrote {args.output}")
        else:
            print(content)
        return 0

    def _cmd_config(self, args: argparse.Namespace) -> int:
        """Show or update the payroll configuration."""
        updates = {}
        if args.config_command == "set":
            updates = {
                name: getattr(args, name)
                for name in CONFIG_FIELDS
                if getattr(args, name) is not None
            }

        async def _config() -> dict[str, Any]:
            async with self._session(args) as session:
                service = PayrollConfigService(session)
                if args.config_command == "set":
                    config = await service.update_config(updates, args.updated_by)
                else:
                    config = await service.get_config()
                await session.commit()
                return config.to_dict()

        try:
            result = asyncio.run(_config())
        except InvalidPayrollConfigError as e:
            print(f"ERROR: {e}", file=sys.stderr)
            return 1

        print(json.dumps(result, indent=2, default=_json_default))
        return 0


def main() -> int:
    """CLI entry point."""
    logging.basicConfig(level=get_settings().log_level)
    cli = PayrollCli()
    return cli.run()


if __name__ == "__main__":
    sys.exit(main())
