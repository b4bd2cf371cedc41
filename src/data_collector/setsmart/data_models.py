"""
Pydantic Data Models for the SETSMART listed-company API

This module defines data models for parsing and validating financial
statement responses, plus the quarter window a collection run covers.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

# A price observation is an open mapping read by key downstream
PriceSnapshot = Dict[str, Any]

PRICE_KEY_PREFIX = "price_"

# Approximate quarter-end month; day 28 avoids month-length edge cases
QUARTER_END_MONTH = {"1": 3, "2": 6, "3": 9, "4": 12}
QUARTER_END_DAY = 28


def parse_int(value: Any) -> int:
    """Parse a year/quarter component, falling back to 0 when it is not an integer"""
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return 0


class StatementRecord(BaseModel):
    """One quarterly financial statement of a listed company"""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    # Identity
    symbol: str
    # Null or missing periods are kept as "" and sort as 0
    year: str = ""
    quarter: str = ""

    # Statement metadata
    financial_statement_type: Optional[str] = None
    date_asof: Optional[str] = None
    account_period: Optional[str] = None

    # Balance sheet
    total_assets: float = 0.0
    total_liabilities: float = 0.0
    paidup_share_capital: float = 0.0
    shareholder_equity: float = 0.0
    total_equity: float = 0.0

    # Income statement
    total_revenue_quarter: float = 0.0
    total_revenue_accum: float = 0.0
    total_expenses_quarter: float = 0.0
    total_expenses_accum: float = 0.0
    ebit_quarter: float = 0.0
    ebit_accum: float = 0.0
    net_profit_quarter: float = 0.0
    net_profit_accum: float = 0.0
    eps_quarter: float = 0.0
    eps_accum: float = 0.0

    # Cash flow
    operating_cash_flow: float = 0.0
    investing_cash_flow: float = 0.0
    financing_cash_flow: float = 0.0

    # Ratios
    roe: float = 0.0
    roa: float = 0.0
    net_profit_margin_quarter: float = 0.0
    net_profit_margin_accum: float = 0.0
    de: float = 0.0
    fixed_asset_turnover: float = 0.0
    total_asset_turnover: float = 0.0

    # Attached after enrichment; never part of the API payload
    price_data: Optional[PriceSnapshot] = Field(default=None, exclude=True)

    @field_validator("symbol", mode="before")
    @classmethod
    def coerce_symbol(cls, v):
        if v is None:
            raise ValueError("symbol is required")
        return str(v).strip()

    @field_validator("year", "quarter", mode="before")
    @classmethod
    def coerce_period(cls, v):
        """The API sends year/quarter as numbers, strings or null"""
        return "" if v is None else str(v).strip()

    @field_validator(
        "total_assets", "total_liabilities", "paidup_share_capital", "shareholder_equity",
        "total_equity", "total_revenue_quarter", "total_revenue_accum", "total_expenses_quarter",
        "total_expenses_accum", "ebit_quarter", "ebit_accum", "net_profit_quarter",
        "net_profit_accum", "eps_quarter", "eps_accum", "operating_cash_flow",
        "investing_cash_flow", "financing_cash_flow", "roe", "roa", "net_profit_margin_quarter",
        "net_profit_margin_accum", "de", "fixed_asset_turnover", "total_asset_turnover",
        mode="before",
    )
    @classmethod
    def null_to_zero(cls, v):
        return 0.0 if v is None else v

    @property
    def key(self) -> Tuple[str, str, str]:
        """Identity of the record within a run"""
        return (self.symbol, self.year, self.quarter)

    @property
    def quarter_end_date(self) -> str:
        """Approximate quarter-end date used for the price lookup (YYYY-MM-28)"""
        month = QUARTER_END_MONTH.get(self.quarter, 12)
        return f"{self.year}-{month:02d}-{QUARTER_END_DAY}"

    @property
    def has_price(self) -> bool:
        return self.price_data is not None

    def attach_price(self, snapshot: PriceSnapshot) -> None:
        """Merge a price snapshot into this record under `price_`-prefixed keys"""
        self.price_data = {f"{PRICE_KEY_PREFIX}{k}": v for k, v in snapshot.items()}


@dataclass(frozen=True)
class QuarterRange:
    """Inclusive (year, quarter) window requested from the statements endpoint"""

    start_year: int
    start_quarter: int
    end_year: int
    end_quarter: int

    @staticmethod
    def quarter_of(moment: datetime) -> int:
        return (moment.month - 1) // 3 + 1

    @classmethod
    def trailing(cls, years: int, now: Optional[datetime] = None) -> "QuarterRange":
        """Window from `years` years ago up to the quarter containing `now`"""
        now = now or datetime.now()
        try:
            start = now.replace(year=now.year - years)
        except ValueError:
            # Feb 29 -> Feb 28
            start = now.replace(year=now.year - years, day=28)
        return cls(
            start_year=start.year,
            start_quarter=cls.quarter_of(start),
            end_year=now.year,
            end_quarter=cls.quarter_of(now),
        )

    def as_params(self) -> Dict[str, str]:
        return {
            "startYear": str(self.start_year),
            "startQuarter": str(self.start_quarter),
            "endYear": str(self.end_year),
            "endQuarter": str(self.end_quarter),
        }
