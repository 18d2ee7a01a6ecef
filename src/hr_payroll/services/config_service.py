"""Payroll configuration: current version, defaults and admin updates."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import asdict
from decimal import Decimal, InvalidOperation
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from hr_payroll.calculators.types import DEFAULT_RATES, PayrollRates
from hr_payroll.models import PayrollConfig
from hr_payroll.models.base import utcnow
from hr_payroll.services.repository import PayrollRepository

logger = logging.getLogger(__name__)

RATE_FIELDS = (
    "social_insurance_rate",
    "health_insurance_rate",
    "unemployment_insurance_rate",
)
CONFIG_FIELDS = (
    "ot_multiplier",
    *RATE_FIELDS,
    "personal_deduction",
    "dependent_deduction",
)


class InvalidPayrollConfigError(ValueError):
    """Raised when a configuration update has out-of-range or unknown values."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__("; ".join(errors))


def validate_config_values(values: Mapping[str, Decimal]) -> list[str]:
    """Return error messages for a full set of configuration values."""
    errors: list[str] = []
    if values["ot_multiplier"] < 0:
        errors.append("ot_multiplier must be >= 0")
    for name in RATE_FIELDS:
        if not Decimal("0") <= values[name] <= Decimal("1"):
            errors.append(f"{name} must be a fraction between 0 and 1")
    for name in ("personal_deduction", "dependent_deduction"):
        if values[name] < 0:
            errors.append(f"{name} must be >= 0")
    return errors


class PayrollConfigService:
    """Reads and versions the payroll configuration.

    When no configuration exists the statutory defaults are used and stored
    as version 1, so every later run reads the same values.
    """

    def __init__(self, session: AsyncSession, repository: PayrollRepository | None = None):
        self.session = session
        self.repository = repository or PayrollRepository(session)

    async def get_config(self) -> PayrollConfig:
        config = await self.repository.get_payroll_config()
        if config is not None:
            return config

        logger.warning("No payroll configuration found, storing statutory defaults")
        config = PayrollConfig(
            version=1,
            **asdict(DEFAULT_RATES),
            updated_at=utcnow(),
            updated_by="system",
        )
        return await self.repository.add_payroll_config(config)

    async def get_rates(self) -> PayrollRates:
        return (await self.get_config()).to_rates()

    async def list_versions(self) -> list[PayrollConfig]:
        return await self.repository.list_payroll_configs()

    async def update_config(
        self,
        updates: Mapping[str, Any],
        updated_by: str,
    ) -> PayrollConfig:
        """Store a new configuration version with ``updates`` applied."""
        unknown = sorted(set(updates) - set(CONFIG_FIELDS))
        if unknown:
            raise InvalidPayrollConfigError([f"Unknown field: {name}" for name in unknown])

        current = await self.get_config()
        values: dict[str, Decimal] = {name: Decimal(getattr(current, name)) for name in CONFIG_FIELDS}

        errors: list[str] = []
        for name, raw in updates.items():
            if raw is None:
                continue
            try:
                value = Decimal(str(raw))
            except InvalidOperation:
                value = None
            if value is None or not value.is_finite():
                errors.append(f"{name} is not a number: {raw!r}")
                continue
            values[name] = value
        if errors:
            raise InvalidPayrollConfigError(errors)

        errors = validate_config_values(values)
        if errors:
            raise InvalidPayrollConfigError(errors)

        config = PayrollConfig(
            version=current.version + 1,
            **values,
            updated_at=utcnow(),
            updated_by=updated_by,
        )
        await self.repository.add_payroll_config(config)
        logger.info(
            "Payroll configuration updated to version %d by %s", config.version, updated_by
        )
        return config
