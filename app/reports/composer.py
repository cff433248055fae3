"""
Paginated PDF composition on a reportlab canvas.

Layout is a single vertical cursor. Before anything is drawn the composer
checks whether it still fits above the bottom margin and starts a new page
when it does not (greedy line/row packing). Footers need the final page
count, so pages are buffered and stamped in ``save``.
"""

import io
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, Sequence, Tuple

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.utils import ImageReader, simpleSplit
from reportlab.pdfgen import canvas

from app.reports.formatting import display
from app.reports.sections import SectionResult, Unavailable

logger = logging.getLogger(__name__)

MARGIN = 40
FOOTER_HEIGHT = 30
FONT = "Helvetica"
BOLD_FONT = "Helvetica-Bold"
HEADER_FILL = colors.HexColor("#4B46E5")
ALT_ROW_FILL = colors.HexColor("#F0F0FF")
CELL_PADDING = 3


class _NumberedCanvas(canvas.Canvas):
    """Canvas that defers page output so every footer can say "Page i of N"."""

    def __init__(self, *args, **kwargs):
        canvas.Canvas.__init__(self, *args, **kwargs)
        self._saved_page_states = []
        self.footer_left = ""
        self.footer_right = ""

    def showPage(self):
        self._saved_page_states.append(dict(self.__dict__))
        self._startPage()

    def save(self):
        page_count = len(self._saved_page_states)
        for state in self._saved_page_states:
            self.__dict__.update(state)
            self._draw_footer(page_count)
            canvas.Canvas.showPage(self)
        canvas.Canvas.save(self)

    def _draw_footer(self, page_count: int):
        width, _ = self._pagesize
        self.saveState()
        self.setFont(FONT, 8)
        self.setFillColor(colors.grey)
        y = MARGIN / 2
        if self.footer_left:
            self.drawString(MARGIN, y, self.footer_left)
        self.drawCentredString(width / 2, y, f"Page {self._pageNumber} of {page_count}")
        if self.footer_right:
            self.drawRightString(width - MARGIN, y, self.footer_right)
        self.restoreState()


@dataclass
class RenderedReport:
    content: bytes
    pages: List[int] = field(default_factory=list)

    @property
    def page_count(self) -> int:
        return len(self.pages)


class ReportComposer:
    def __init__(self, title: str, footer_left: str = "", footer_right: str = ""):
        self.title = title
        self._buffer = io.BytesIO()
        self.canvas = _NumberedCanvas(self._buffer, pagesize=A4)
        self.canvas.setTitle(title)
        self.canvas.footer_left = footer_left
        self.canvas.footer_right = footer_right
        self.width, self.height = A4
        self.left = MARGIN
        self.right = self.width - MARGIN
        self.top = self.height - MARGIN
        self.bottom = MARGIN + FOOTER_HEIGHT
        self.y = self.top
        self.pages: List[int] = [1]

    @property
    def content_width(self) -> float:
        return self.right - self.left

    # --- pagination ---

    def new_page(self):
        self.canvas.showPage()
        self.y = self.top
        self.pages.append(len(self.pages) + 1)

    def ensure_space(self, height: float) -> bool:
        """Start a new page when ``height`` does not fit; True if it did."""
        if self.y - height < self.bottom:
            self.new_page()
            return True
        return False

    def space(self, height: float = 6):
        self.y -= height

    # --- text ---

    def _text(self, text: str, size: float, font: str = FONT, indent: float = 0,
              color=colors.black, align: str = "left"):
        self.ensure_space(size + 4)
        self.y -= size + 2
        self.canvas.setFont(font, size)
        self.canvas.setFillColor(color)
        if align == "center":
            self.canvas.drawCentredString(self.width / 2, self.y, text)
        elif align == "right":
            self.canvas.drawRightString(self.right, self.y, text)
        else:
            self.canvas.drawString(self.left + indent, self.y, text)
        self.canvas.setFillColor(colors.black)
        self.y -= 2

    def heading(self, text: str, size: float = 16, align: str = "left"):
        self.ensure_space(size * 3)
        self._text(text, size, BOLD_FONT, align=align)
        self.space(4)

    def subheading(self, text: str, size: float = 12):
        # Keep a heading on the same page as at least a couple of lines below it
        self.ensure_space(size + 40)
        self.space(4)
        self._text(text, size, BOLD_FONT)
        self.space(2)

    def line(self, text: str, size: float = 10, indent: float = 0, bold: bool = False, align: str = "left"):
        self._text(text, size, BOLD_FONT if bold else FONT, indent=indent, align=align)

    def paragraph(self, text: str, size: float = 10, indent: float = 0):
        for chunk in simpleSplit(display(text, ""), FONT, size, self.content_width - indent) or [""]:
            self._text(chunk, size, FONT, indent=indent)

    def key_values(self, pairs: Sequence[Tuple[str, Any]], size: float = 10):
        for label, value in pairs:
            self.paragraph(f"{label}: {display(value)}", size=size)

    def error_line(self, text: str, size: float = 10):
        self._text(text, size, FONT, color=colors.red)

    # --- tables ---

    def table(self, columns: Sequence[str], rows: Sequence[Sequence[Any]],
              col_widths: Optional[Sequence[float]] = None, font_size: float = 8):
        if not columns:
            return
        widths = list(col_widths) if col_widths else [self.content_width / len(columns)] * len(columns)
        total = sum(widths)
        if total > self.content_width:
            widths = [w * self.content_width / total for w in widths]
        leading = font_size + 2
        max_lines = int((self.top - self.bottom) / leading) - 4

        def wrap(value: Any, width: float, font: str) -> List[str]:
            lines = simpleSplit(display(value, ""), font, font_size, width - 2 * CELL_PADDING) or [""]
            return lines[:max_lines]

        header_cells = [wrap(c, w, BOLD_FONT) for c, w in zip(columns, widths)]
        header_height = max(len(c) for c in header_cells) * leading + 2 * CELL_PADDING

        def draw_row(cells: List[List[str]], height: float, fill, text_color, font: str):
            x = self.left
            for lines, width in zip(cells, widths):
                self.canvas.setStrokeColor(colors.lightgrey)
                if fill is not None:
                    self.canvas.setFillColor(fill)
                    self.canvas.rect(x, self.y - height, width, height, stroke=1, fill=1)
                else:
                    self.canvas.rect(x, self.y - height, width, height, stroke=1, fill=0)
                self.canvas.setFillColor(text_color)
                self.canvas.setFont(font, font_size)
                text_y = self.y - CELL_PADDING - font_size
                for text_line in lines:
                    self.canvas.drawString(x + CELL_PADDING, text_y, text_line)
                    text_y -= leading
                x += width
            self.canvas.setFillColor(colors.black)
            self.y -= height

        def draw_header():
            self.ensure_space(header_height + leading + 2 * CELL_PADDING)
            draw_row(header_cells, header_height, HEADER_FILL, colors.white, BOLD_FONT)

        draw_header()
        for index, row in enumerate(rows):
            cells = [wrap(value, width, FONT) for value, width in zip(row, widths)]
            height = max(len(c) for c in cells) * leading + 2 * CELL_PADDING
            if self.ensure_space(height):
                draw_row(header_cells, header_height, HEADER_FILL, colors.white, BOLD_FONT)
            draw_row(cells, height, ALT_ROW_FILL if index % 2 else None, colors.black, FONT)
        self.space(10)

    # --- images ---

    def image(self, png_bytes: bytes, width: float, height: float):
        width = min(width, self.content_width)
        self.ensure_space(height + 10)
        self.canvas.drawImage(
            ImageReader(io.BytesIO(png_bytes)),
            self.left,
            self.y - height,
            width=width,
            height=height,
            preserveAspectRatio=True,
            anchor="sw",
        )
        self.y -= height + 10

    # --- fixed blocks ---

    def letterhead(self, trust_name: str, institute_name: str, affiliation: str):
        self.line(trust_name, size=10, align="center")
        self.line(institute_name, size=14, bold=True, align="center")
        self.line(affiliation, size=8, align="center")
        self.space(4)
        self.canvas.setStrokeColor(colors.black)
        self.canvas.line(self.left, self.y, self.right, self.y)
        self.space(12)

    def cover_page(self, title: str, subtitle: str, lines: Sequence[str]):
        self.y = self.top - 100
        self.line(title, size=24, bold=True, align="center")
        self.space(10)
        self.line(subtitle, size=18, align="center")
        self.space(30)
        for text in lines:
            self.line(text, size=12, align="center")
            self.space(4)
        self.new_page()

    def signature_block(self, faculty_name: str, hod_name: str):
        self.ensure_space(90)
        self.space(40)
        mid = self.width / 2 + 40
        rows = [
            ("Faculty Signature:", "HOD Signature:", BOLD_FONT),
            (faculty_name, hod_name, FONT),
            ("Faculty", "Head of Department", FONT),
        ]
        for left_text, right_text, font in rows:
            self.y -= 14
            self.canvas.setFont(font, 10)
            self.canvas.drawString(self.left, self.y, left_text)
            self.canvas.drawString(mid, self.y, right_text)
        self.space(10)

    # --- sections ---

    def section(self, title: str, result: SectionResult, render: Callable[[Any], None], optional: bool = True) -> bool:
        """Draw one section from its load result.

        Unavailable data becomes a red line in the document. Empty optional
        sections are left out. Returns whether anything was drawn.
        """
        if isinstance(result, Unavailable):
            self.subheading(title)
            self.error_line(f"{title} could not be loaded: {result.reason}")
            return True
        if optional and not result.data:
            logger.debug(f"Omitting empty section '{title}'")
            return False
        self.subheading(title)
        render(result.data)
        return True

    def render(self) -> RenderedReport:
        self.canvas.showPage()
        self.canvas.save()
        logger.debug(f"Rendered '{self.title}' ({len(self.pages)} pages)")
        return RenderedReport(content=self._buffer.getvalue(), pages=list(self.pages))
