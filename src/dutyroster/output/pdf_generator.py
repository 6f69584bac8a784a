"""PDF generation for printable cleaning schedules.

The printed schedule is a table with one row group per week:
- The week's date on the left
- One sub-row per floor with the sweeping duty for that floor
- One column per duty spanning all floors (the mops)
"""

from io import BytesIO
from pathlib import Path
from typing import Optional, Sequence, Union

from dutyroster.domain.catalog import DEFAULT_SLOTS, floors_in
from dutyroster.domain.models import FLOOR_LABELS, ROLE_LABELS, Role, Schedule, Slot

HEADER_FILL = (0.96, 0.96, 0.96)
GRID_DARK = (0.0, 0.0, 0.0)
GRID_LIGHT = (0.8, 0.8, 0.8)


class PDFGenerator:
    """Generates a printable PDF of a schedule.

    Example:
        >>> generator = PDFGenerator()
        >>> generator.generate(schedule, "horaire.pdf")
    """

    def __init__(
        self,
        page_width: float = 612,  # Letter portrait width (8.5")
        page_height: float = 792,  # Letter portrait height (11")
        margin: float = 30,
        slots: Optional[Sequence[Slot]] = None,
        subtitle: str = "Horaire de ménage",
    ):
        self.page_width = page_width
        self.page_height = page_height
        self.margin = margin
        self.slots = tuple(slots) if slots else DEFAULT_SLOTS
        self.subtitle = subtitle

    def generate(self, schedule: Schedule, output_path: Union[str, Path]) -> None:
        """Generate the PDF and save it to a file."""
        try:
            from reportlab.pdfgen import canvas
        except ImportError:
            raise ImportError(
                "reportlab is required for PDF generation. "
                "Install with: pip install reportlab"
            )

        c = canvas.Canvas(str(output_path), pagesize=(self.page_width, self.page_height))
        self._draw_pages(c, schedule)
        c.save()

    def generate_to_buffer(self, schedule: Schedule) -> BytesIO:
        """Generate the PDF and return it as a bytes buffer."""
        try:
            from reportlab.pdfgen import canvas
        except ImportError:
            raise ImportError(
                "reportlab is required for PDF generation. "
                "Install with: pip install reportlab"
            )

        buffer = BytesIO()
        c = canvas.Canvas(buffer, pagesize=(self.page_width, self.page_height))
        self._draw_pages(c, schedule)
        c.save()
        buffer.seek(0)
        return buffer

    def _column_widths(self) -> dict[str, float]:
        """Widths of the date, floor, sweep and per-mop columns."""
        usable = self.page_width - 2 * self.margin
        mop_slots = [s for s in self.slots if s.floor is None]
        widths = {
            "date": usable * 0.12,
            "floor": usable * 0.22,
            "sweep": usable * 0.24 if mop_slots else usable * 0.66,
        }
        for slot in mop_slots:
            widths[slot.key] = usable * 0.42 / len(mop_slots)
        return widths

    def _draw_pages(self, c, schedule: Schedule) -> None:
        """Draw the schedule table, splitting weeks across pages."""
        floors = floors_in(self.slots)
        rows_per_week = max(1, len(floors))
        header_height = 60
        table_header_height = 22
        footer_height = 20
        usable_height = (
            self.page_height - 2 * self.margin
            - header_height - table_header_height - footer_height
        )
        row_height = min(28.0, usable_height / (rows_per_week * max(1, len(schedule.weeks))))
        row_height = max(row_height, 16.0)
        weeks_per_page = max(1, int(usable_height // (row_height * rows_per_week)))

        weeks = list(schedule.weeks)
        total_pages = max(1, (len(weeks) + weeks_per_page - 1) // weeks_per_page)

        for page_index in range(total_pages):
            page_weeks = weeks[page_index * weeks_per_page:(page_index + 1) * weeks_per_page]

            self._draw_header(c, schedule)
            y = self.page_height - self.margin - header_height
            self._draw_table_header(c, y, table_header_height)
            y -= table_header_height

            for week in page_weeks:
                y -= row_height * rows_per_week
                self._draw_week(c, week, floors, y, row_height)

            c.setFont("Helvetica", 9)
            c.setFillColorRGB(0, 0, 0)
            c.drawCentredString(
                self.page_width / 2,
                self.margin - 10,
                f"Page {page_index + 1} de {total_pages}",
            )
            c.showPage()

    def _draw_header(self, c, schedule: Schedule) -> None:
        """Draw the title and subtitle."""
        c.setFillColorRGB(0, 0, 0)
        c.setFont("Helvetica-Bold", 16)
        c.drawCentredString(
            self.page_width / 2, self.page_height - self.margin - 20, schedule.title
        )
        c.setFont("Helvetica", 11)
        c.setFillColorRGB(0.4, 0.4, 0.4)
        c.drawCentredString(
            self.page_width / 2, self.page_height - self.margin - 36, self.subtitle
        )

    def _draw_table_header(self, c, top: float, height: float) -> None:
        widths = self._column_widths()
        x = self.margin
        y = top - height

        c.setFillColorRGB(*HEADER_FILL)
        c.setStrokeColorRGB(*GRID_DARK)
        c.rect(x, y, self.page_width - 2 * self.margin, height, fill=1, stroke=1)

        headers = [("date", "Date"), ("floor", "Étage"), ("sweep", ROLE_LABELS[Role.SWEEP])]
        headers += [(s.key, ROLE_LABELS[s.role]) for s in self.slots if s.floor is None]

        c.setFillColorRGB(0, 0, 0)
        c.setFont("Helvetica-Bold", 9)
        for key, label in headers:
            c.drawCentredString(x + widths[key] / 2, y + height / 2 - 3, label)
            x += widths[key]

    def _draw_week(self, c, week, floors, y: float, row_height: float) -> None:
        """Draw one week's row group with its top-left corner at (margin, y + height)."""
        widths = self._column_widths()
        rows = max(1, len(floors))
        height = row_height * rows
        x = self.margin

        c.setStrokeColorRGB(*GRID_DARK)
        c.setLineWidth(0.75)
        c.rect(x, y, self.page_width - 2 * self.margin, height, fill=0, stroke=1)

        c.setFillColorRGB(0, 0, 0)
        c.setFont("Helvetica-Bold", 10)
        c.drawCentredString(x + widths["date"] / 2, y + height / 2 - 3, week.date_label)
        x += widths["date"]

        sweep_x = x + widths["floor"]
        c.setStrokeColorRGB(*GRID_LIGHT)
        c.setLineWidth(0.5)
        c.line(x, y, x, y + height)
        c.line(sweep_x, y, sweep_x, y + height)

        for i, floor in enumerate(floors):
            row_top = y + height - i * row_height
            if i > 0:
                c.line(x, row_top, sweep_x + widths["sweep"], row_top)
            text_y = row_top - row_height / 2 - 3

            c.setFont("Helvetica", 8)
            c.drawString(x + 3, text_y, self._fit(c, FLOOR_LABELS[floor], widths["floor"] - 6, 8))

            names = [week.get(s.key) for s in self.slots if s.floor == floor]
            c.setFont("Helvetica", 9)
            c.drawCentredString(
                sweep_x + widths["sweep"] / 2,
                text_y,
                self._fit(c, ", ".join(names), widths["sweep"] - 6, 9),
            )

        x = sweep_x + widths["sweep"]
        for slot in self.slots:
            if slot.floor is not None:
                continue
            c.line(x, y, x, y + height)
            c.setFont("Helvetica", 9)
            c.drawCentredString(
                x + widths[slot.key] / 2,
                y + height / 2 - 3,
                self._fit(c, week.get(slot.key), widths[slot.key] - 6, 9),
            )
            x += widths[slot.key]

    @staticmethod
    def _fit(c, text: str, width: float, size: float, font: str = "Helvetica") -> str:
        """Truncate text with an ellipsis so it fits within width."""
        if c.stringWidth(text, font, size) <= width:
            return text
        while text and c.stringWidth(text + "…", font, size) > width:
            text = text[:-1]
        return text + "…"
