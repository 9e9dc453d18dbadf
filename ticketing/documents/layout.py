"""
Fixed-layout document model.

Builders position text, rules and QR codes on A4 pages in millimetres,
measured from the top-left corner. The result is plain data, so two builds
from the same input compare equal; `render.render_pdf` turns it into bytes.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Union

from reportlab.lib.units import mm
from reportlab.lib.utils import simpleSplit

RGB = tuple[int, int, int]

BRAND_GREEN: RGB = (22, 163, 74)
TEXT: RGB = (51, 51, 51)
MUTED: RGB = (102, 102, 102)
BORDER: RGB = (229, 231, 235)
PAID: RGB = (6, 95, 70)
UNPAID: RGB = (153, 27, 27)

STATUS_COLORS: dict[str, RGB] = {
    "paid": PAID,
    "unpaid": UNPAID,
    "refunded": MUTED,
}

PAGE_WIDTH = 210.0
PAGE_HEIGHT = 297.0
LEFT = 20.0
RIGHT = 190.0
CENTER = 105.0
TOP = 25.0
BOTTOM = 277.0

FONT = "Helvetica"
FONT_BOLD = "Helvetica-Bold"


@dataclass(frozen=True)
class TextOp:
    x: float
    y: float
    text: str
    size: float = 9.0
    color: RGB = TEXT
    bold: bool = False
    align: str = "left"  # left, right, center


@dataclass(frozen=True)
class RuleOp:
    x1: float
    y1: float
    x2: float
    y2: float
    color: RGB = BORDER
    width: float = 0.5


@dataclass(frozen=True)
class QrOp:
    x: float
    y: float
    size: float
    value: str


Op = Union[TextOp, RuleOp, QrOp]


@dataclass
class Document:
    title: str
    pages: list[list[Op]] = field(default_factory=list)

    @property
    def page_count(self) -> int:
        return len(self.pages)

    def texts(self) -> list[str]:
        return [op.text for page in self.pages for op in page if isinstance(op, TextOp)]


def format_date(value: datetime) -> str:
    return f"{value.day} {value:%B %Y}"


def format_time(value: datetime) -> str:
    return f"{value:%H:%M}"


def truncate(text: str, limit: int) -> str:
    return text if len(text) <= limit else text[:limit] + "..."


class LayoutBuilder:
    """Cursor-based page builder. `y` is the baseline of the next line."""

    def __init__(self, title: str):
        self.title = title
        self.pages: list[list[Op]] = [[]]
        self.y = TOP

    @property
    def _ops(self) -> list[Op]:
        return self.pages[-1]

    def new_page(self) -> None:
        self.pages.append([])
        self.y = TOP

    def ensure_space(self, height: float) -> None:
        if self.y + height > BOTTOM:
            self.new_page()

    def advance(self, dy: float) -> None:
        self.y += dy

    def text(
        self,
        x: float,
        value: str,
        size: float = 9.0,
        color: RGB = TEXT,
        bold: bool = False,
        align: str = "left",
        y: Optional[float] = None,
    ) -> None:
        self._ops.append(TextOp(x, self.y if y is None else y, value, size, color, bold, align))

    def rule(
        self,
        x1: float = LEFT,
        x2: float = RIGHT,
        color: RGB = BORDER,
        width: float = 0.5,
    ) -> None:
        self._ops.append(RuleOp(x1, self.y, x2, self.y, color, width))

    def qr(self, x: float, value: str, size: float) -> None:
        self._ops.append(QrOp(x, self.y, size, value))

    @staticmethod
    def wrap(value: str, width: float, size: float, bold: bool = False) -> list[str]:
        return simpleSplit(value, FONT_BOLD if bold else FONT, size, width * mm) or [""]

    def paragraph(self, value: str, x: float = LEFT, width: float = RIGHT - LEFT,
                  size: float = 10.0, leading: float = 5.0, color: RGB = TEXT) -> None:
        for line in self.wrap(value, width, size):
            self.ensure_space(leading)
            self.text(x, line, size=size, color=color)
            self.advance(leading)

    def section(self, title: str) -> None:
        self.ensure_space(24)
        self.text(LEFT, title, size=12, bold=True)
        self.advance(5)
        self.rule()
        self.advance(8)

    def field(self, label: str, value: str, x: float, value_x: float,
              bold_value: bool = False, max_width: Optional[float] = None) -> None:
        self.text(x, label, color=MUTED)
        if max_width is not None:
            value = self.wrap(value, max_width, 9.0, bold_value)[0]
        self.text(value_x, value, bold=bold_value)

    def build(self) -> Document:
        return Document(title=self.title, pages=[list(page) for page in self.pages])


def brand_header(builder: LayoutBuilder, brand: str, subtitle: str, heading: str,
                 meta: list[tuple[str, RGB]]) -> None:
    """Brand on the left, document heading and meta lines on the right."""
    builder.text(LEFT, brand, size=24, color=BRAND_GREEN, bold=True, y=TOP)
    builder.text(LEFT, subtitle, size=10, color=MUTED, y=TOP + 8)
    builder.text(RIGHT, heading, size=20, bold=True, align="right", y=TOP)
    for index, (line, color) in enumerate(meta):
        builder.text(RIGHT, line, size=9, color=color, align="right", y=TOP + 9 + 8 * index)

    builder.y = TOP + 23
    builder.rule(color=BRAND_GREEN, width=2)
    builder.advance(15)


def footer(builder: LayoutBuilder, lines: list[str]) -> None:
    builder.advance(12)
    builder.ensure_space(5 + 5 * len(lines))
    builder.rule()
    for line in lines:
        builder.advance(5)
        builder.text(CENTER, line, color=MUTED, align="center")
