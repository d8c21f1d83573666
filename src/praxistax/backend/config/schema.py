"""Pydantic models describing the tax year configuration schema."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Annotated, Any, Literal, Sequence

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    PlainSerializer,
    ValidationError,
    computed_field,
    field_validator,
    model_validator,
)
from typing_extensions import Self


class ConfigurationError(ValueError):
    """Raised when configuration values violate schema expectations."""


MAX_AMOUNT = Decimal("1e15")
"""Exclusive magnitude limit for amounts; larger values cannot be rounded to cents."""


def _check_amount(parsed: Decimal) -> Decimal:
    if not parsed.is_finite():
        raise ValueError("Amounts must be finite numbers")
    if abs(parsed) >= MAX_AMOUNT:
        raise ValueError("Amounts must be smaller than 1,000,000,000,000,000")
    return parsed


def to_decimal(value: Any) -> Decimal:
    """Coerce ``value`` into a :class:`~decimal.Decimal` without float drift."""

    if isinstance(value, Decimal):
        return _check_amount(value)
    if isinstance(value, bool):
        raise ValueError("Boolean values are not valid amounts")
    if isinstance(value, int):
        return _check_amount(Decimal(value))
    if isinstance(value, float):
        # ``str`` yields the shortest repr, so 0.1812 stays 0.1812.
        return _check_amount(Decimal(str(value)))
    if isinstance(value, str):
        try:
            parsed = Decimal(value.strip())
        except InvalidOperation as exc:
            raise ValueError(f"'{value}' is not a valid decimal amount") from exc
        return _check_amount(parsed)
    raise ValueError("Amounts must be numeric")


def _coerce_optional_decimal(value: Any) -> Any:
    if value is None:
        return None
    return to_decimal(value)


_json_number = PlainSerializer(float, return_type=float, when_used="json")

Amount = Annotated[Decimal, BeforeValidator(to_decimal), _json_number]
"""Decimal amount that accepts ints, floats and strings and serialises as a number."""

OptionalAmount = Annotated[
    Decimal | None,
    BeforeValidator(_coerce_optional_decimal),
    PlainSerializer(
        lambda value: None if value is None else float(value),
        return_type=float | None,
        when_used="json",
    ),
]


class ImmutableModel(BaseModel):
    """Base class that freezes instances and rejects unknown fields."""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)


class TaxBracket(ImmutableModel):
    """Represents a single progressive tax bracket."""

    upper_bound: OptionalAmount = Field(default=None, alias="upper")
    rate: Amount
    description: str | None = None

    @model_validator(mode="after")
    def _validate_values(self) -> TaxBracket:
        if self.rate < 0 or self.rate > 1:
            raise ConfigurationError("Tax rates must be between 0 and 1")
        if self.upper_bound is not None and self.upper_bound <= 0:
            raise ConfigurationError("Upper bounds must be positive values")
        return self


class ComponentRates(ImmutableModel):
    """Per-insurance contribution rates used for breakdowns."""

    pension: Amount
    health: Amount
    unemployment: Amount = Decimal("0")
    accident: Amount

    @model_validator(mode="after")
    def _validate_rates(self) -> ComponentRates:
        for name in ("pension", "health", "unemployment", "accident"):
            value = getattr(self, name)
            if value < 0 or value > 1:
                raise ConfigurationError(
                    f"Component rate '{name}' must be between 0 and 1"
                )
        return self


class SocialSecurityConfig(ImmutableModel):
    """Social-security rates and assessment-base limits."""

    employee_rate_regular: Amount
    employee_rate_special: Amount
    self_employed_rate: Amount
    min_assessment_base: Amount
    max_assessment_base: Amount
    component_rates: ComponentRates

    @model_validator(mode="after")
    def _validate_limits(self) -> SocialSecurityConfig:
        for name in ("employee_rate_regular", "employee_rate_special", "self_employed_rate"):
            value = getattr(self, name)
            if value < 0 or value > 1:
                raise ConfigurationError(f"'{name}' must be between 0 and 1")
        if self.min_assessment_base < 0:
            raise ConfigurationError("'min_assessment_base' must be non-negative")
        if self.max_assessment_base < self.min_assessment_base:
            raise ConfigurationError(
                "'max_assessment_base' cannot be lower than 'min_assessment_base'"
            )
        return self


class TaxCreditConfig(ImmutableModel):
    """Fixed statutory credit amounts (Absetzbeträge)."""

    commuter_credit: Amount
    sole_earner_single: Amount = Decimal("0")
    sole_earner_one_child: Amount = Decimal("0")
    sole_earner_more_children: Amount = Decimal("0")

    @model_validator(mode="after")
    def _validate_amounts(self) -> TaxCreditConfig:
        for name, value in self:
            if value < 0:
                raise ConfigurationError(f"Tax credit '{name}' must be non-negative")
        return self


class DeductionLimits(ImmutableModel):
    """Allowance rates and statutory deduction limits."""

    gewinnfreibetrag_rate: Amount
    gewinnfreibetrag_limit: Amount
    gewinnfreibetrag_limit_basis: Literal["profit", "allowance"] = "profit"
    homeoffice_daily: Amount
    homeoffice_monthly_max: Amount
    life_insurance_max: Amount
    pension_contribution_max: Amount
    standard_employment_allowance: Amount = Decimal("132")

    @model_validator(mode="after")
    def _validate_limits(self) -> DeductionLimits:
        if self.gewinnfreibetrag_rate < 0 or self.gewinnfreibetrag_rate > 1:
            raise ConfigurationError("'gewinnfreibetrag_rate' must be between 0 and 1")
        for name in (
            "gewinnfreibetrag_limit",
            "homeoffice_daily",
            "homeoffice_monthly_max",
            "life_insurance_max",
            "pension_contribution_max",
            "standard_employment_allowance",
        ):
            if getattr(self, name) < 0:
                raise ConfigurationError(f"'{name}' must be non-negative")
        return self


class SpecialPaymentsConfig(ImmutableModel):
    """Flat-rate rule for 13th/14th salary payments."""

    tax_free_limit: Amount
    tax_rate: Amount

    @model_validator(mode="after")
    def _validate_values(self) -> SpecialPaymentsConfig:
        if self.tax_free_limit < 0:
            raise ConfigurationError("'tax_free_limit' must be non-negative")
        if self.tax_rate < 0 or self.tax_rate > 1:
            raise ConfigurationError("Special payments 'tax_rate' must be between 0 and 1")
        return self


class PracticeLevyConfig(ImmutableModel):
    """Medical chamber fee and VAT settings for private practices."""

    chamber_base_fee: Amount = Decimal("300")
    chamber_fee_rate: Amount = Decimal("0.03")
    vat_rate: Amount = Decimal("0.2")
    exempt_practice_types: Sequence[str] = Field(default=("kassenarzt",))

    @field_validator("exempt_practice_types", mode="before")
    @classmethod
    def _coerce_exempt(cls, value: Any) -> Sequence[str]:
        if value is None:
            return ()
        if isinstance(value, str):
            return (value,)
        return tuple(str(entry) for entry in value)

    @model_validator(mode="after")
    def _validate_values(self) -> PracticeLevyConfig:
        if self.chamber_base_fee < 0:
            raise ConfigurationError("'chamber_base_fee' must be non-negative")
        for name in ("chamber_fee_rate", "vat_rate"):
            value = getattr(self, name)
            if value < 0 or value > 1:
                raise ConfigurationError(f"'{name}' must be between 0 and 1")
        return self

    def applies_to(self, practice_type: str | None) -> bool:
        """Return ``True`` when levies are charged for ``practice_type``."""

        return bool(practice_type) and practice_type not in self.exempt_practice_types


class YearConfiguration(ImmutableModel):
    """Structured representation of a tax year configuration."""

    year: int
    meta: dict[str, Any] = Field(default_factory=dict)
    brackets: Sequence[TaxBracket] = Field(alias="tax_brackets")
    social_security: SocialSecurityConfig
    tax_credits: TaxCreditConfig
    deduction_limits: DeductionLimits
    special_payments: SpecialPaymentsConfig
    practice_levies: PracticeLevyConfig = Field(default_factory=PracticeLevyConfig)

    @model_validator(mode="before")
    @classmethod
    def _prepare(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            raise ConfigurationError("Configuration file must define a mapping at the top level")
        prepared = dict(data)
        meta = prepared.get("meta")
        if meta is None:
            prepared["meta"] = {}
        elif not isinstance(meta, dict):
            raise ConfigurationError("'meta' section must be a mapping if provided")
        if prepared.get("practice_levies") is None:
            prepared.pop("practice_levies", None)
        return prepared

    @model_validator(mode="after")
    def _validate_year(self) -> Self:
        self._validate_bracket_sequence(self.brackets)
        return self

    @staticmethod
    def _validate_bracket_sequence(brackets: Sequence[TaxBracket]) -> None:
        if not brackets:
            raise ConfigurationError("At least one tax bracket must be defined")
        last_upper: Decimal | None = None
        last_rate: Decimal | None = None
        for index, bracket in enumerate(brackets):
            upper = bracket.upper_bound
            if upper is None and index != len(brackets) - 1:
                raise ConfigurationError("Only the final tax bracket may be open-ended")
            if last_upper is not None and upper is not None and upper <= last_upper:
                raise ConfigurationError("Tax brackets must be in ascending order")
            if last_rate is not None and bracket.rate < last_rate:
                raise ConfigurationError("Tax bracket rates must not decrease")
            last_upper = upper if upper is not None else last_upper
            last_rate = bracket.rate
        if brackets[-1].upper_bound is not None:
            raise ConfigurationError("Final tax bracket must have an open upper bound")

    @computed_field
    @property
    def tax_free_threshold(self) -> Amount:
        """Upper limit of the leading zero-rate bracket (0 when none exists)."""

        first = self.brackets[0]
        if first.rate == 0 and first.upper_bound is not None:
            return first.upper_bound
        return Decimal("0")


class TaxYearManifestEntry(ImmutableModel):
    """Entry describing a supported tax year in the manifest."""

    year: int
    filename: str | None = None
    status: str = "active"
    notes_url: str | None = None

    @computed_field
    @property
    def resolved_filename(self) -> str:
        return self.filename or f"{self.year}.yaml"


class TaxYearManifest(ImmutableModel):
    """Manifest describing the available tax year configuration files."""

    years: Sequence[TaxYearManifestEntry]

    @model_validator(mode="after")
    def _validate_years(self) -> TaxYearManifest:
        seen: set[int] = set()
        for entry in self.years:
            if entry.year in seen:
                raise ConfigurationError(
                    f"Duplicate year {entry.year} declared in the configuration manifest"
                )
            seen.add(entry.year)
        return self

    def get_entry(self, year: int) -> TaxYearManifestEntry:
        for entry in self.years:
            if entry.year == year:
                return entry
        raise KeyError(year)

    @computed_field
    @property
    def supported_years(self) -> tuple[int, ...]:
        return tuple(sorted(entry.year for entry in self.years))


__all__ = [
    "Amount",
    "ComponentRates",
    "ConfigurationError",
    "DeductionLimits",
    "ImmutableModel",
    "MAX_AMOUNT",
    "OptionalAmount",
    "PracticeLevyConfig",
    "SocialSecurityConfig",
    "SpecialPaymentsConfig",
    "TaxBracket",
    "TaxCreditConfig",
    "TaxYearManifest",
    "TaxYearManifestEntry",
    "ValidationError",
    "YearConfiguration",
    "to_decimal",
]
