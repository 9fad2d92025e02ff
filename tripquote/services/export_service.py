"""Export service — CSV and PDF downloads of the price history."""

import csv
import io
import logging
from datetime import date

from pydantic import ValidationError
from reportlab.lib import colors
from reportlab.lib.pagesizes import letter
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from tripquote.config import settings
from tripquote.data.currency import format_change, format_price
from tripquote.schemas.trip import TripResults
from tripquote.services.ledger import Observation, PriceHistoryLedger
from tripquote.services.share_links import flight_search_url

logger = logging.getLogger(__name__)

SEARCH_DATE_FORMAT = "%d/%m/%Y %H:%M:%S"


def history_headers(currency: str) -> list[str]:
    return [
        "Search Date", "Origin", "Destination", "Airline",
        "Departure", "Arrival", f"Price ({currency})", "Direct Link",
    ]


def _trip_results(entry: Observation) -> TripResults | None:
    try:
        return TripResults.model_validate(entry.payload)
    except ValidationError as e:
        logger.warning(f"Skipping history entry from {entry.observed_at.isoformat()} in export: {e}")
        return None


class ExportService:
    """Flattens the price history into CSV rows and PDF reports."""

    def __init__(self, currency: str | None = None):
        self.currency = currency or settings.currency

    def history_rows(self, ledger: PriceHistoryLedger) -> list[list]:
        """One row per flight leg across all searches, oldest search first."""
        rows = []
        for entry in ledger:
            results = _trip_results(entry)
            if results is None:
                continue
            searched = entry.observed_at.strftime(SEARCH_DATE_FORMAT)
            for leg in results.flights:
                rows.append([
                    searched,
                    leg.origin,
                    leg.destination,
                    leg.airline,
                    leg.departure,
                    leg.arrival,
                    leg.price,
                    flight_search_url(leg, self.currency),
                ])
        return rows

    def history_csv(self, ledger: PriceHistoryLedger) -> str:
        output = io.StringIO()
        writer = csv.writer(output, lineterminator="\n")
        writer.writerow(history_headers(self.currency))
        writer.writerows(self.history_rows(ledger))
        return output.getvalue()

    def history_pdf(self, ledger: PriceHistoryLedger) -> bytes:
        """Price variation table (newest first) plus the latest itinerary."""
        buf = io.BytesIO()
        doc = SimpleDocTemplate(buf, pagesize=letter, topMargin=0.5 * inch)
        styles = getSampleStyleSheet()
        elements = []

        elements.append(Paragraph(f"{settings.agency_name}: Price History", styles["Title"]))
        elements.append(Paragraph(f"Generated: {date.today().isoformat()}", styles["Normal"]))
        elements.append(Spacer(1, 12))

        points = list(ledger.derive_series())
        if points:
            elements.append(Paragraph(
                f"<b>Price Variation (Last {ledger.capacity} Searches)</b>", styles["Heading2"]
            ))
            data = [["Date", "Price", "Variation"]]
            for point in reversed(points):
                data.append([
                    point.date.strftime("%d/%m/%Y"),
                    format_price(point.price, self.currency),
                    format_change(point.change, self.currency),
                ])
            table = Table(data, colWidths=[2 * inch, 2 * inch, 2 * inch])
            table.setStyle(TableStyle([
                ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#4F46E5")),
                ("TEXTCOLOR", (0, 0), (-1, 0), colors.whitesmoke),
                ("FONTSIZE", (0, 0), (-1, -1), 9),
                ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
                ("ALIGN", (1, 1), (-1, -1), "RIGHT"),
            ]))
            elements.append(table)
            elements.append(Spacer(1, 12))

        latest = _trip_results(ledger.entries[-1]) if ledger else None
        if latest and latest.flights:
            elements.append(Paragraph("<b>Latest Flight Itinerary</b>", styles["Heading2"]))
            leg_data = [["Route", "Airline", "Departure", "Arrival", "Price"]]
            for leg in latest.flights:
                leg_data.append([
                    f"{leg.origin} -> {leg.destination}",
                    leg.airline,
                    leg.departure,
                    leg.arrival,
                    format_price(leg.price, self.currency),
                ])
            table = Table(leg_data, colWidths=[2.2 * inch, 1.3 * inch, 1.2 * inch, 1.2 * inch, 0.9 * inch])
            table.setStyle(TableStyle([
                ("BACKGROUND", (0, 0), (-1, 0), colors.grey),
                ("TEXTCOLOR", (0, 0), (-1, 0), colors.whitesmoke),
                ("FONTSIZE", (0, 0), (-1, -1), 8),
                ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
                ("VALIGN", (0, 0), (-1, -1), "TOP"),
            ]))
            elements.append(table)

        doc.build(elements)
        return buf.getvalue()


export_service = ExportService()
