"""Tests for the calculation service orchestration."""

from __future__ import annotations

from decimal import Decimal
from typing import Any

import pytest

from praxistax.backend.app.models import ComprehensiveTaxResult
from praxistax.backend.app.services import calculation_service
from praxistax.backend.app.services.calculation_service import (
    calculate,
    calculate_monthly_progress,
    calculate_quarterly_payments,
    calculate_tax,
    quick_estimate,
    summarise_result,
)
from praxistax.backend.config.year_config import load_year_configuration


def _employment(gross: float, **extra: Any) -> dict[str, Any]:
    return {"tax_year": 2025, "employment": {"gross_salary": gross, **extra}}


def _practice(revenue: float, expenses: float, **extra: Any) -> dict[str, Any]:
    return {
        "tax_year": 2025,
        "self_employment": {
            "total_revenue": revenue,
            "business_expenses": expenses,
            **extra,
        },
    }


def _assert_burden_identities(result: ComprehensiveTaxResult) -> None:
    assert result.total_direct_burden == (
        result.total_ss
        + result.total_income_tax
        + result.aerztekammer_beitrag
        + result.vat
    )
    assert result.net_income == result.total_gross_income - result.total_direct_burden
    assert result.total_ss == result.employee_ss + result.self_employed_ss
    assert result.tax_liability == result.total_income_tax - result.wage_tax_withheld


def test_employment_income_of_60000() -> None:
    result = calculate(_employment(60000))

    assert result.employee_ss == Decimal("10872.00")
    assert result.taxable_employment == Decimal("48996.00")
    assert result.final_taxable_income == Decimal("48996.00")
    assert result.income_tax_before_credits == Decimal("11646.93")
    assert result.total_income_tax == Decimal("11646.93")
    assert result.marginal_tax_rate == Decimal("41.00")
    assert result.effective_tax_rate == Decimal("19.41")
    assert result.burden_percentage == Decimal("37.53")
    assert result.net_income == Decimal("37481.07")
    assert len(result.tax_breakdown_by_bracket) == 4
    _assert_burden_identities(result)


def test_first_paid_bracket_sets_marginal_rate_to_20() -> None:
    result = calculate(_employment(20000))

    assert result.final_taxable_income == Decimal("16244.00")
    assert result.final_taxable_income > Decimal("12816")
    assert result.total_income_tax == Decimal("685.60")
    assert result.marginal_tax_rate == Decimal("20.00")


def test_self_employment_profit_allowance_defaults_to_capped_profit() -> None:
    result = calculate(_practice(100000, 40000))

    assert result.self_employment_profit == Decimal("60000.00")
    assert result.self_employed_ss == Decimal("9072.00")
    assert result.gewinnfreibetrag == Decimal("4950.00")
    assert result.taxable_self_employment == Decimal("55050.00")
    assert result.total_income_tax == Decimal("14129.07")
    assert result.net_income == Decimal("36798.93")
    assert result.employee_ss == Decimal("0.00")
    _assert_burden_identities(result)


def test_profit_allowance_can_be_capped_on_the_allowance(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    config = load_year_configuration(2025)
    limits = config.deduction_limits.model_copy(
        update={"gewinnfreibetrag_limit_basis": "allowance"}
    )
    patched = config.model_copy(update={"deduction_limits": limits})
    monkeypatch.setattr(calculation_service, "load_year_configuration", lambda year: patched)

    result = calculate(_practice(100000, 40000))

    assert result.gewinnfreibetrag == Decimal("9000.00")
    assert result.taxable_self_employment == Decimal("51000.00")


def test_zero_income_produces_zero_rates() -> None:
    result = calculate(_employment(0))

    assert result.total_gross_income == Decimal("0.00")
    assert result.total_income_tax == Decimal("0.00")
    assert result.net_income == Decimal("0.00")
    assert result.burden_percentage == Decimal("0.00")
    assert result.effective_tax_rate == Decimal("0.00")
    assert result.tax_breakdown_by_bracket == ()


def test_empty_payload_produces_zero_result() -> None:
    result = calculate({"tax_year": 2025})

    assert result.total_gross_income == Decimal("0.00")
    assert result.total_direct_burden == Decimal("0.00")
    assert result.ss_breakdown.employee.pension == Decimal("0.00")


def test_special_payments_above_the_contribution_cap() -> None:
    result = calculate(_employment(95000, special_payments_gross=2000))

    assert result.special_payments_tax == Decimal("82.80")
    assert result.special_payments_tax == (Decimal("2000") - Decimal("620")) * Decimal("0.06")
    assert result.employee_ss == Decimal("16308.00")
    assert result.total_gross_income == Decimal("97000.00")


def test_special_payments_below_the_contribution_cap() -> None:
    result = calculate(_employment(50000, special_payments_gross=2000))

    assert result.ss_breakdown.employee.special_payments == Decimal("342.40")
    assert result.employee_ss == Decimal("9402.40")
    assert result.taxable_employment == Decimal("40808.00")
    assert result.special_payments_tax == Decimal("62.26")


def test_very_high_income_reaches_the_top_bracket() -> None:
    result = calculate(_employment(2000000))

    assert result.employee_ss == Decimal("16308.00")
    assert result.final_taxable_income == Decimal("1983560.00")
    assert result.total_income_tax == Decimal("1025868.41")
    assert result.marginal_tax_rate == Decimal("55.00")
    assert result.effective_tax_rate == Decimal("51.29")
    assert result.effective_tax_rate < result.marginal_tax_rate


def test_employee_breakdown_uses_the_capped_base() -> None:
    result = calculate(_employment(150000))

    breakdown = result.ss_breakdown.employee
    assert breakdown.assessment_base == Decimal("90000.00")
    assert breakdown.pension == Decimal("9225.00")


def test_paid_contributions_replace_the_computed_total() -> None:
    result = calculate(_employment(60000, employee_ss_paid=11000))

    assert result.employee_ss == Decimal("11000.00")
    assert result.taxable_employment == Decimal("48868.00")
    assert result.ss_breakdown.employee.special_payments is None


def test_home_office_allowance_reduces_taxable_income_and_counts_as_deduction() -> None:
    result = calculate(_employment(60000, home_office_days=100))

    assert result.home_office_allowance == Decimal("300.00")
    assert result.taxable_employment == Decimal("48696.00")
    assert result.applied_deductions == Decimal("300.00")
    assert result.final_taxable_income == Decimal("48396.00")


def test_deductions_and_credits_are_applied() -> None:
    payload = _employment(60000)
    payload["deductions"] = {"pension_contributions": 5000, "church_tax": 400}
    payload["credits"] = {"has_commuter_credit": True, "sole_earner_credit": 494}

    result = calculate(payload)

    assert result.applied_deductions == Decimal("5400.00")
    assert result.final_taxable_income == Decimal("43596.00")
    assert result.applied_credits == Decimal("915.00")
    assert result.tax_credits_applied == Decimal("915.00")
    assert result.total_income_tax == result.income_tax_before_credits - Decimal("915.00")


@pytest.mark.parametrize(("children", "expected"), [(0, "494.00"), (2, "669.00")])
def test_sole_earner_credit_follows_number_of_children(children: int, expected: str) -> None:
    payload = _employment(60000)
    payload["credits"] = {"sole_earner_credit": 1000, "number_of_children": children}

    result = calculate(payload)

    assert result.applied_credits == Decimal(expected)
    assert result.total_income_tax == result.income_tax_before_credits - Decimal(expected)


def test_expense_breakdown_is_used_when_expenses_are_omitted() -> None:
    itemised = calculate(
        {
            "tax_year": 2025,
            "self_employment": {
                "total_revenue": 100000,
                "expense_breakdown": {"rent": 25000, "staff": 15000},
            },
        }
    )
    explicit = calculate(_practice(100000, 30000, expense_breakdown={"rent": 25000}))

    assert itemised.self_employment_profit == Decimal("60000.00")
    assert itemised.gewinnfreibetrag == Decimal("4950.00")
    assert explicit.self_employment_profit == Decimal("70000.00")


def test_tax_free_benefits_are_not_accepted() -> None:
    with pytest.raises(ValueError, match="employment.tax_free_benefits"):
        calculate(_employment(60000, tax_free_benefits=1000))


def test_special_payments_alone_carry_no_marginal_rate() -> None:
    result = calculate(_employment(0, special_payments_gross=100000))

    assert result.final_taxable_income == Decimal("0.00")
    assert result.income_tax_before_credits == Decimal("0.00")
    assert result.total_income_tax == result.special_payments_tax
    assert result.marginal_tax_rate == Decimal("0.00")
    assert result.effective_tax_rate > result.marginal_tax_rate


def test_deductions_are_not_capped_at_statutory_maximum() -> None:
    payload = _employment(60000)
    payload["deductions"] = {"pension_contributions": 10000}

    result = calculate(payload)

    assert result.applied_deductions == Decimal("10000.00")


def test_wage_tax_withheld_yields_refund() -> None:
    result = calculate(_employment(60000, wage_tax_withheld=12000))

    assert result.tax_liability == Decimal("-353.07")
    assert result.is_refund


def test_private_practice_adds_levies() -> None:
    result = calculate(_practice(120000, 40000, practice_type="wahlarzt"))

    assert result.aerztekammer_beitrag == Decimal("2700.00")
    assert result.vat == Decimal("20000.00")
    _assert_burden_identities(result)


def test_contracted_practice_is_exempt_from_levies() -> None:
    result = calculate(_practice(120000, 40000, practice_type="Kassenarzt"))

    assert result.aerztekammer_beitrag == Decimal("0.00")
    assert result.vat == Decimal("0.00")


def test_combined_income_streams() -> None:
    payload = _employment(30000)
    payload["self_employment"] = {"total_revenue": 50000, "business_expenses": 20000}

    result = calculate(payload)

    assert result.total_gross_income == Decimal("60000.00")
    assert result.employee_ss > 0
    assert result.self_employed_ss > 0
    assert result.total_taxable_income == (
        result.taxable_employment + result.taxable_self_employment
    )
    _assert_burden_identities(result)


def test_unconfigured_year_uses_nearest_table() -> None:
    result = calculate({"tax_year": 2030, "employment": {"gross_salary": 60000}})

    assert result.tax_year == 2030
    assert result.config_year == 2025
    assert result.total_income_tax == Decimal("11646.93")


def test_earlier_year_uses_its_own_table() -> None:
    result = calculate({"tax_year": 2024, "employment": {"gross_salary": 60000}})

    assert result.config_year == 2024
    assert result.total_income_tax != Decimal("11646.93")


def test_calculation_is_idempotent_apart_from_timestamp() -> None:
    payload = _practice(100000, 40000, practice_type="mixed")

    first = calculate(payload).model_dump(exclude={"calculated_at"})
    second = calculate(payload).model_dump(exclude={"calculated_at"})

    assert first == second


@pytest.mark.parametrize(
    ("lower", "higher"),
    [(20000, 30000), (60000, 60001), (95000, 150000)],
)
def test_more_salary_never_lowers_tax(lower: int, higher: int) -> None:
    assert (
        calculate(_employment(lower)).total_income_tax
        <= calculate(_employment(higher)).total_income_tax
    )


def test_marginal_rate_is_never_below_effective_rate() -> None:
    for gross in (15000, 45000, 120000, 2000000):
        result = calculate(_employment(gross))
        assert result.marginal_tax_rate >= result.effective_tax_rate


def test_calculate_tax_returns_json_ready_mapping() -> None:
    payload = calculate_tax(_employment(60000))

    assert payload["total_income_tax"] == pytest.approx(11646.93)
    assert isinstance(payload["net_income"], float)
    assert payload["tax_breakdown_by_bracket"][0]["label"] == "€0 - €12.816 (0%)"
    assert isinstance(payload["calculated_at"], str)


def test_negative_amounts_are_rejected() -> None:
    with pytest.raises(ValueError, match="employment.gross_salary: value cannot be negative"):
        calculate(_employment(-1))


@pytest.mark.parametrize("amount", ["1e27", 10**15, 1e16])
def test_amounts_too_large_to_round_are_rejected(amount: object) -> None:
    with pytest.raises(ValueError, match="employment.gross_salary: Amounts must be smaller"):
        calculate(_employment(amount))  # type: ignore[arg-type]


def test_unknown_fields_are_rejected() -> None:
    with pytest.raises(ValueError, match="Invalid calculation payload"):
        calculate({"tax_year": 2025, "bonus": 1})


def test_out_of_range_year_is_rejected() -> None:
    with pytest.raises(ValueError, match="tax_year"):
        calculate({"tax_year": 1999})


def test_non_mapping_payload_is_rejected() -> None:
    with pytest.raises(ValueError, match="mapping"):
        calculate(["not", "a", "mapping"])  # type: ignore[arg-type]


def test_profiling_logs_timings(
    monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    monkeypatch.setenv("PRAXISTAX_PROFILE_CALCULATIONS", "1")

    with caplog.at_level("DEBUG", logger=calculation_service.__name__):
        calculate(_employment(60000))

    assert "timings" in caplog.text


def test_quick_estimate_uses_profit_as_revenue() -> None:
    result = quick_estimate(employment_gross=0, self_employment_profit=60000, tax_year=2025)

    assert result.self_employment_profit == Decimal("60000.00")
    assert result.employee_ss == Decimal("0.00")
    assert result.self_employed_ss == Decimal("9072.00")


def test_quick_estimate_with_nothing_is_empty() -> None:
    result = quick_estimate(tax_year=2025)

    assert result.total_gross_income == Decimal("0.00")
    assert result.self_employed_ss == Decimal("0.00")


def test_quarterly_payments_split_the_annual_tax() -> None:
    payments = calculate_quarterly_payments(10000)

    assert payments.q1 == payments.q4 == Decimal("2500.00")
    assert payments.total == Decimal("10000.00")


def test_quarterly_payments_round_each_instalment() -> None:
    payments = calculate_quarterly_payments(Decimal("1000.01"))

    assert payments.q2 == Decimal("250.00")
    assert payments.total == Decimal("1000.00")


def test_quarterly_payments_reject_negative_tax() -> None:
    with pytest.raises(ValueError):
        calculate_quarterly_payments(-1)


def test_monthly_progress_projects_the_year() -> None:
    progress = calculate_monthly_progress(60000, 20000, month=6, tax_year=2025)

    assert progress.month == 6
    assert progress.year == 2025
    assert progress.ytd_profit == Decimal("40000.00")
    assert progress.ytd_tax_burden == Decimal("11977.07")
    assert progress.projected_annual_burden == Decimal("23954.14")
    assert progress.burden_percentage == Decimal("29.94")


@pytest.mark.parametrize("month", [0, 13])
def test_monthly_progress_rejects_invalid_month(month: int) -> None:
    with pytest.raises(ValueError, match="month"):
        calculate_monthly_progress(60000, 20000, month=month, tax_year=2025)


def test_summarise_result_groups_headline_figures() -> None:
    result = calculate(_employment(60000))

    summary = summarise_result(result)

    assert summary["income"]["total_gross"] == 60000.0
    assert summary["social_security"]["employee"] == 10872.0
    assert summary["tax"]["total"] == pytest.approx(11646.93)
    assert summary["burden"]["marginal_tax_rate"] == 41.0
    assert summary["net_income"] == pytest.approx(37481.07)
    assert summary["tax_year"] == 2025
