"""
CSV export of collected statement records
"""

from datetime import datetime
from numbers import Real
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import pandas as pd

from src.utils.core.logger import get_logger
from src.data_collector.setsmart.data_models import StatementRecord

logger = get_logger(__name__, utility="setsmart")

COLUMN_LAYOUT_VERSION = "1"

# (column name, StatementRecord attribute)
BASE_COLUMNS: List[Tuple[str, str]] = [
    ("Symbol", "symbol"),
    ("Year", "year"),
    ("Quarter", "quarter"),
    ("DateAsof", "date_asof"),
    ("TotalAssets", "total_assets"),
    ("TotalLiabilities", "total_liabilities"),
    ("PaidupShareCapital", "paidup_share_capital"),
    ("ShareholderEquity", "shareholder_equity"),
    ("TotalEquity", "total_equity"),
    ("TotalRevenueQuarter", "total_revenue_quarter"),
    ("TotalRevenueAccum", "total_revenue_accum"),
    ("TotalExpensesQuarter", "total_expenses_quarter"),
    ("TotalExpensesAccum", "total_expenses_accum"),
    ("EbitQuarter", "ebit_quarter"),
    ("EbitAccum", "ebit_accum"),
    ("NetProfitQuarter", "net_profit_quarter"),
    ("NetProfitAccum", "net_profit_accum"),
    ("EpsQuarter", "eps_quarter"),
    ("EpsAccum", "eps_accum"),
    ("OperatingCashFlow", "operating_cash_flow"),
    ("InvestingCashFlow", "investing_cash_flow"),
    ("FinancingCashFlow", "financing_cash_flow"),
    ("ROE", "roe"),
    ("ROA", "roa"),
    ("NetProfitMarginQuarter", "net_profit_margin_quarter"),
    ("NetProfitMarginAccum", "net_profit_margin_accum"),
    ("DE", "de"),
    ("FixedAssetTurnover", "fixed_asset_turnover"),
    ("TotalAssetTurnover", "total_asset_turnover"),
]

# Identity columns are written verbatim; the rest go through format_number
TEXT_COLUMNS = {"Symbol", "Year", "Quarter", "DateAsof"}

PRICE_COLUMNS: List[str] = [
    "price_close",
    "price_pe",
    "price_pbv",
    "price_dividendYield",
    "price_marketCap",
    "price_totalVolume",
    "price_high",
    "price_low",
    "price_open",
    "price_prior",
]

THAI_COLUMN_NAMES: Dict[str, str] = {
    "Symbol": "หุ้น",
    "Year": "ปี",
    "Quarter": "ไตรมาส",
    "TotalAssets": "สินทรัพย์รวม",
    "TotalLiabilities": "หนี้สินรวม",
    "ShareholderEquity": "ส่วนของผู้ถือหุ้น",
    "TotalRevenueQuarter": "รายได้รวม",
    "NetProfitQuarter": "กำไรสุทธิ",
    "EpsQuarter": "กำไรต่อหุ้น",
    "ROE": "อัตราผลตอบแทนส่วนของผู้ถือหุ้น",
    "ROA": "อัตราผลตอบแทนจากสินทรัพย์",
    "DE": "อัตราส่วนหนี้สินต่อส่วนของผู้ถือหุ้น",
    "price_close": "ราคาปิด",
    "price_pe": "P/E",
    "price_pbv": "P/BV",
    "price_dividendYield": "อัตราเงินปันผลตอบแทน",
    "price_marketCap": "มูลค่าตลาด",
}


def format_number(value: float) -> str:
    """
    Render a metric for the CSV

    Zero renders as "0"; magnitudes of a million or more with no decimals,
    of a thousand or more with two, anything smaller with four.
    """
    if value == 0:
        return "0"
    magnitude = abs(value)
    if magnitude >= 1_000_000:
        return f"{value:.0f}"
    if magnitude >= 1_000:
        return f"{value:.2f}"
    return f"{value:.4f}"


def format_cell(value: Any) -> str:
    """Render a price field: numbers formatted, strings verbatim, missing empty"""
    if value is None:
        return ""
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, Real):
        return format_number(float(value))
    return str(value)


def column_names() -> List[str]:
    return [name for name, _ in BASE_COLUMNS] + list(PRICE_COLUMNS)


def localized_headers(columns: Sequence[str]) -> List[str]:
    """Thai header for mapped columns, canonical name otherwise"""
    return [THAI_COLUMN_NAMES.get(column, column) for column in columns]


def record_to_row(record: StatementRecord) -> List[str]:
    row: List[str] = []
    for name, attr in BASE_COLUMNS:
        value = getattr(record, attr)
        if name in TEXT_COLUMNS:
            row.append("" if value is None else str(value))
        else:
            row.append(format_number(value))

    price_data = record.price_data or {}
    row.extend(format_cell(price_data.get(column)) for column in PRICE_COLUMNS)
    return row


def records_to_dataframe(records: Sequence[StatementRecord], localize: bool = True) -> pd.DataFrame:
    """Build the export table with every cell already rendered as text"""
    columns = column_names()
    headers = localized_headers(columns) if localize else columns
    return pd.DataFrame([record_to_row(r) for r in records], columns=headers, dtype=str)


def export_to_csv(
    records: Sequence[StatementRecord],
    filename: Optional[Union[str, Path]] = None,
    localize: bool = True,
    output_dir: Union[str, Path] = ".",
) -> Path:
    """
    Export statement records to a UTF-8 (BOM) CSV file

    Args:
        records: Records in output order
        filename: Target file; defaults to financial_data_<timestamp>.csv in output_dir
        localize: Use Thai column headers where available
        output_dir: Directory for the default filename

    Returns:
        Path of the written file

    Raises:
        ValueError: If there are no records to export
    """
    if not records:
        raise ValueError("No data to export")

    if filename is None:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        path = Path(output_dir) / f"financial_data_{timestamp}.csv"
    else:
        path = Path(filename)
    path.parent.mkdir(parents=True, exist_ok=True)

    df = records_to_dataframe(records, localize=localize)
    df.to_csv(path, index=False, encoding="utf-8-sig")

    logger.info(f"Exported {len(df)} records to {path} (layout v{COLUMN_LAYOUT_VERSION})")
    return path
