"""Payslip computation - combines the individual calculators."""

from __future__ import annotations

from decimal import Decimal

from hr_payroll.calculators.overtime import compute_overtime_pay
from hr_payroll.calculators.tax_calculator import TaxCalculator
from hr_payroll.calculators.types import (
    ZERO,
    PayrollRates,
    PayslipFields,
    round_cents,
    round_currency,
)
from hr_payroll.calculators.unpaid_leave import compute_unpaid_deduction


class PayslipComputer:
    """Computes the monetary fields of one employee's payslip.

    Calculation order:
    1) Overtime pay from approved hours
    2) Gross = base + overtime
    3) Social and health insurance on gross
    4) Taxable income = gross - insurance - personal deduction
    5) Progressive income tax on taxable income
    6) Unpaid-leave deduction
    7) Net = gross - insurance - tax - unpaid deduction

    The unemployment insurance rate and the dependent deduction are part of
    the configuration but do not enter the formula.
    """

    def __init__(self, tax_calculator: TaxCalculator | None = None):
        self.tax_calculator = tax_calculator or TaxCalculator()

    def compute(
        self,
        base_salary: Decimal | None,
        rates: PayrollRates,
        approved_ot_hours: Decimal = ZERO,
        unpaid_days: Decimal = ZERO,
    ) -> PayslipFields:
        warnings: list[str] = []
        if base_salary is None:
            warnings.append("Missing base salary, calculated as 0")
            base_salary = ZERO
        base = Decimal(base_salary)

        overtime = compute_overtime_pay(base, approved_ot_hours, rates.ot_multiplier)
        gross = base + overtime

        social_insurance = round_currency(gross * rates.social_insurance_rate)
        health_insurance = round_currency(gross * rates.health_insurance_rate)

        taxable_income = gross - social_insurance - health_insurance - rates.personal_deduction
        tax = ZERO
        if taxable_income > 0:
            tax = round_currency(self.tax_calculator.calculate(taxable_income))

        unpaid_deduction = compute_unpaid_deduction(base, unpaid_days)

        net = round_cents(gross - social_insurance - health_insurance - tax - unpaid_deduction)
        if net < 0:
            warnings.append(f"Negative net salary: {net}")

        return PayslipFields(
            base_salary=base,
            overtime=overtime,
            social_insurance=social_insurance,
            health_insurance=health_insurance,
            taxable_income=taxable_income,
            tax=tax,
            deductions=unpaid_deduction,
            net_salary=net,
            overtime_hours=Decimal(approved_ot_hours),
            unpaid_days=Decimal(unpaid_days),
            warnings=warnings,
        )


_default_computer = PayslipComputer()


def compute_payslip(
    base_salary: Decimal | None,
    rates: PayrollRates,
    approved_ot_hours: Decimal = ZERO,
    unpaid_days: Decimal = ZERO,
) -> PayslipFields:
    """Compute payslip fields with the default Vietnamese tax schedule."""
    return _default_computer.compute(base_salary, rates, approved_ot_hours, unpaid_days)
