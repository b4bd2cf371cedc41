import pandas as pd
import pytest

from src.data_collector.setsmart.csv_exporter import (
    BASE_COLUMNS,
    PRICE_COLUMNS,
    column_names,
    export_to_csv,
    format_cell,
    format_number,
    localized_headers,
    record_to_row,
    records_to_dataframe,
)
from src.data_collector.setsmart.data_models import StatementRecord
from tests._fixtures import SAMPLE_PRICE_ROW, SAMPLE_STATEMENT, build_statement


@pytest.fixture
def sample_record():
    record = StatementRecord.model_validate(SAMPLE_STATEMENT)
    record.attach_price(SAMPLE_PRICE_ROW)
    return record


@pytest.mark.unit
@pytest.mark.parametrize(
    "value,expected",
    [
        (1234567.89, "1234568"),
        (-2500000.0, "-2500000"),
        (1234.5, "1234.50"),
        (-1000.0, "-1000.00"),
        (12.3456789, "12.3457"),
        (0.5, "0.5000"),
        (0.0, "0"),
        (-0.0, "0"),
    ],
)
def test_format_number(value, expected):
    assert format_number(value) == expected


@pytest.mark.unit
@pytest.mark.parametrize(
    "value,expected",
    [(None, ""), ("2023-12-28", "2023-12-28"), (True, "true"), (1500000, "1500000"), (3.4, "3.4000")],
)
def test_format_cell(value, expected):
    assert format_cell(value) == expected


@pytest.mark.unit
def test_column_layout():
    columns = column_names()

    assert columns[:4] == ["Symbol", "Year", "Quarter", "DateAsof"]
    assert columns[len(BASE_COLUMNS):] == PRICE_COLUMNS
    assert len(columns) == len(set(columns))


@pytest.mark.unit
def test_localized_headers_fall_back_to_canonical_names():
    headers = localized_headers(["Symbol", "price_close", "DateAsof", "price_high"])

    assert headers == ["หุ้น", "ราคาปิด", "DateAsof", "price_high"]


@pytest.mark.unit
def test_record_to_row_formats_cells(sample_record):
    row = dict(zip(column_names(), record_to_row(sample_record)))

    assert row["Symbol"] == "AAA"
    assert row["Year"] == "2023"
    assert row["DateAsof"] == "2023-12-31"
    assert row["TotalAssets"] == "1234568"
    assert row["TotalRevenueQuarter"] == "1234.50"
    assert row["NetProfitQuarter"] == "12.3457"
    assert row["EpsQuarter"] == "0"
    assert row["price_close"] == "12.5000"
    assert row["price_marketCap"] == "2500000000"


@pytest.mark.unit
def test_record_without_price_has_empty_price_cells():
    record = build_statement("AAA", "2023", "1", date_asof=None)

    row = dict(zip(column_names(), record_to_row(record)))

    assert row["DateAsof"] == ""
    assert all(row[c] == "" for c in PRICE_COLUMNS)


@pytest.mark.unit
def test_dataframe_headers_follow_localize_flag(sample_record):
    assert list(records_to_dataframe([sample_record], localize=False).columns) == column_names()
    assert records_to_dataframe([sample_record]).columns[0] == "หุ้น"


@pytest.mark.unit
def test_export_writes_utf8_bom_csv(tmp_path, sample_record):
    other = build_statement("BBB", "2022", "4")

    path = export_to_csv([sample_record, other], filename=tmp_path / "out" / "financials.csv")

    raw = path.read_bytes()
    assert raw.startswith(b"\xef\xbb\xbf")
    df = pd.read_csv(path, encoding="utf-8-sig", dtype=str, keep_default_na=False)
    assert list(df.columns) == localized_headers(column_names())
    assert df["หุ้น"].tolist() == ["AAA", "BBB"]
    assert df["ราคาปิด"].tolist() == ["12.5000", ""]


@pytest.mark.unit
def test_export_default_filename(tmp_path, sample_record):
    path = export_to_csv([sample_record], output_dir=tmp_path, localize=False)

    assert path.parent == tmp_path
    assert path.name.startswith("financial_data_")
    assert path.suffix == ".csv"


@pytest.mark.unit
def test_export_rejects_empty_input(tmp_path):
    with pytest.raises(ValueError, match="No data to export"):
        export_to_csv([], output_dir=tmp_path)
