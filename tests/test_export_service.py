import csv
import io

from tests.conftest import stamp, trip_payload
from tripquote.services.export_service import ExportService, history_headers
from tripquote.services.ledger import Observation, PriceHistoryLedger


def _ledger():
    ledger = PriceHistoryLedger(capacity=7)
    ledger.append(Observation(observed_at=stamp(0), reference_price=2000.0, payload=trip_payload((1200.0, 800.0))))
    ledger.append(Observation(observed_at=stamp(60), reference_price=1900.0, payload=trip_payload((1900.0,))))
    return ledger


def test_one_row_per_flight_leg_across_searches():
    rows = ExportService(currency="BRL").history_rows(_ledger())
    assert len(rows) == 3
    assert rows[0][:7] == [
        "01/03/2025 12:00:00",
        "São Paulo (GRU)",
        "Portugal (LIS)",
        "TAP Air Portugal",
        "2025-05-10 22:15",
        "2025-05-11 11:40",
        1200.0,
    ]
    assert rows[0][7] == "https://www.google.com/flights#flt=GRU.LIS.2025-05-10;c:BRL;e:1;sd:1;t:f"
    assert rows[2][0] == "01/03/2025 13:00:00"


def test_csv_has_header_and_parses_back():
    text = ExportService(currency="BRL").history_csv(_ledger())
    parsed = list(csv.reader(io.StringIO(text)))
    assert parsed[0] == history_headers("BRL")
    assert parsed[0][6] == "Price (BRL)"
    assert len(parsed) == 4
    assert parsed[1][1] == "São Paulo (GRU)"


def test_entries_with_unexpected_payload_are_skipped():
    ledger = _ledger()
    ledger.append(Observation(observed_at=stamp(120), reference_price=10.0, payload={"unexpected": True}))
    assert len(ExportService().history_rows(ledger)) == 3


def test_empty_history_exports_only_header():
    text = ExportService(currency="BRL").history_csv(PriceHistoryLedger())
    assert text.strip().split("\n") == [",".join(history_headers("BRL"))]


def test_pdf_report_is_generated():
    pdf = ExportService().history_pdf(_ledger())
    assert pdf.startswith(b"%PDF")


def test_pdf_report_handles_empty_history():
    assert ExportService().history_pdf(PriceHistoryLedger()).startswith(b"%PDF")
