"""Pydantic v2 models for the slide deck handed to the export pipeline.

The editor owns and mutates these structures; the export pipeline only reads
them. All positions and sizes are in slide pixels (CSS pixels at 96 DPI).
Conversion to EMUs happens in exactly one place, ``deckexport.renderer.units``.

Table and chart elements arrive from the editor with their data JSON-encoded
inside the ``content`` string. That string is parsed once, here, into
``TableData`` / ``ChartData``. Content that cannot be parsed becomes an
``InvalidPayload`` rather than a validation error so that a single broken
element degrades to a placeholder instead of failing the whole deck.
"""

import json
from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


DEFAULT_SLIDE_WIDTH = 960
DEFAULT_SLIDE_HEIGHT = 540


class ElementType(str, Enum):
    """Supported element types."""

    TEXT = "text"
    IMAGE = "image"
    SHAPE = "shape"
    TABLE = "table"
    CHART = "chart"
    ICON = "icon"


class BackgroundType(str, Enum):
    """How a slide background value should be interpreted."""

    COLOR = "color"
    GRADIENT = "gradient"
    IMAGE = "image"


# ============================================================================
# Geometry Models
# ============================================================================


class Position(BaseModel):
    """Top-left corner in slide pixels."""

    model_config = ConfigDict(frozen=True)

    x: float = 0.0
    y: float = 0.0


class Size(BaseModel):
    """Element extent in slide pixels."""

    model_config = ConfigDict(frozen=True)

    width: float = 0.0
    height: float = 0.0


class SlideSize(BaseModel):
    """Canvas size in pixels, shared by every slide of one export."""

    model_config = ConfigDict(frozen=True)

    width: float = Field(default=DEFAULT_SLIDE_WIDTH, gt=0, description="Slide width in pixels")
    height: float = Field(default=DEFAULT_SLIDE_HEIGHT, gt=0, description="Slide height in pixels")


class Background(BaseModel):
    """CSS-paintable slide background."""

    model_config = ConfigDict(frozen=True)

    type: BackgroundType = BackgroundType.COLOR
    value: str = "#ffffff"


# ============================================================================
# Style
# ============================================================================


class ElementStyle(BaseModel):
    """Sparse per-element style bag.

    Keys are accepted in the editor's camelCase form (``fontSize``) or in
    snake_case. Keys the export pipeline does not understand are kept.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="allow",
        alias_generator=to_camel,
        populate_by_name=True,
    )

    # Text
    font_size: Optional[float] = None
    font_weight: Optional[Union[str, int]] = None
    font_style: Optional[str] = None
    text_decoration: Optional[str] = None
    color: Optional[str] = None
    text_align: Optional[str] = None
    line_height: Optional[float] = None

    # Shape
    fill: Optional[str] = None
    stroke: Optional[str] = None
    stroke_width: Optional[float] = None

    # Image
    object_fit: Optional[str] = None
    border_radius: Optional[float] = None

    # Table
    border_color: Optional[str] = None
    border_width: Optional[float] = None
    header_background: Optional[str] = None
    cell_padding: Optional[float] = None

    # Chart
    chart_type: Optional[str] = None
    title: Optional[str] = None
    color_scheme: Optional[str] = None
    show_values: Optional[bool] = None

    # Common
    opacity: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    rotation: Optional[float] = None
    locked: Optional[bool] = None

    @property
    def is_bold(self) -> bool:
        """Whether the font weight renders as bold."""
        weight = self.font_weight
        if weight is None:
            return False
        if isinstance(weight, int):
            return weight >= 600
        weight = str(weight).strip().lower()
        if weight.isdigit():
            return int(weight) >= 600
        return weight in ("bold", "bolder")

    @property
    def is_italic(self) -> bool:
        """Whether the font style renders as italic."""
        return (self.font_style or "").lower() in ("italic", "oblique")


# ============================================================================
# Structured Payloads
# ============================================================================


class TableData(BaseModel):
    """Rows of cell text; the first row is the header."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["table"] = "table"
    rows: list[list[str]] = Field(default_factory=list)


class ChartPoint(BaseModel):
    """A single labelled value."""

    model_config = ConfigDict(frozen=True)

    label: str = ""
    value: float = 0.0

    @field_validator("value", mode="before")
    @classmethod
    def _coerce_value(cls, value: Any) -> float:
        # The editor stores whatever the user typed; non-numbers count as zero.
        try:
            return float(value)
        except (TypeError, ValueError):
            return 0.0

    @field_validator("label", mode="before")
    @classmethod
    def _coerce_label(cls, value: Any) -> str:
        return "" if value is None else str(value)


class ChartData(BaseModel):
    """Data points of a chart element."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["chart"] = "chart"
    points: list[ChartPoint] = Field(default_factory=list)


class InvalidPayload(BaseModel):
    """Content that could not be parsed into its structured form."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["invalid"] = "invalid"
    raw: str = ""
    reason: str = ""


def _decode(value: Any) -> tuple[Any, Optional[InvalidPayload]]:
    """Decode a JSON string, passing already-structured values through."""
    if isinstance(value, str):
        try:
            return json.loads(value), None
        except ValueError as exc:
            return None, InvalidPayload(raw=value, reason=f"invalid JSON: {exc}")
    return value, None


def parse_table_content(value: Any) -> Union[TableData, InvalidPayload]:
    """Parse table content (JSON string, list of rows, or model dict)."""
    if isinstance(value, (TableData, InvalidPayload)):
        return value
    if isinstance(value, dict) and value.get("kind") == "invalid":
        return InvalidPayload.model_validate(value)

    data, invalid = _decode(value)
    if invalid is not None:
        return invalid

    if isinstance(data, dict) and "rows" in data:
        data = data["rows"]
    if not isinstance(data, list) or not all(isinstance(row, list) for row in data):
        return InvalidPayload(raw=str(value), reason="table content must be a list of rows")

    rows = [["" if cell is None else str(cell) for cell in row] for row in data]
    return TableData(rows=rows)


def parse_chart_content(value: Any) -> Union[ChartData, InvalidPayload]:
    """Parse chart content (JSON string, list of points, or model dict)."""
    if isinstance(value, (ChartData, InvalidPayload)):
        return value
    if isinstance(value, dict) and value.get("kind") == "invalid":
        return InvalidPayload.model_validate(value)

    data, invalid = _decode(value)
    if invalid is not None:
        return invalid

    if isinstance(data, dict) and "points" in data:
        data = data["points"]
    if not isinstance(data, list) or not all(isinstance(point, dict) for point in data):
        return InvalidPayload(raw=str(value), reason="chart content must be a list of points")

    return ChartData(points=[ChartPoint.model_validate(point) for point in data])


# ============================================================================
# Elements
# ============================================================================


class ElementBase(BaseModel):
    """Fields shared by every element type."""

    model_config = ConfigDict(frozen=True)

    id: str
    position: Position = Field(default_factory=Position)
    size: Size = Field(default_factory=Size)
    style: ElementStyle = Field(default_factory=ElementStyle)


class TextElement(ElementBase):
    """Plain text; ``\\n`` separates lines."""

    type: Literal["text"] = "text"
    content: str = ""


class ImageElement(ElementBase):
    """Bitmap image; content is a URL, data URI or file path."""

    type: Literal["image"] = "image"
    content: str = ""


class ShapeElement(ElementBase):
    """Simple geometric shape; content names the shape kind."""

    type: Literal["shape"] = "shape"
    content: str = "rectangle"


class TableElement(ElementBase):
    """Table with structured row data."""

    type: Literal["table"] = "table"
    content: Union[TableData, InvalidPayload] = Field(default_factory=TableData)

    @field_validator("content", mode="before")
    @classmethod
    def _parse_content(cls, value: Any) -> Union[TableData, InvalidPayload]:
        return parse_table_content(value)


class ChartElement(ElementBase):
    """Chart with structured data points."""

    type: Literal["chart"] = "chart"
    content: Union[ChartData, InvalidPayload] = Field(default_factory=ChartData)

    @field_validator("content", mode="before")
    @classmethod
    def _parse_content(cls, value: Any) -> Union[ChartData, InvalidPayload]:
        return parse_chart_content(value)


class IconElement(ElementBase):
    """Named icon."""

    type: Literal["icon"] = "icon"
    content: str = ""


Element = Annotated[
    Union[TextElement, ImageElement, ShapeElement, TableElement, ChartElement, IconElement],
    Field(discriminator="type"),
]


# ============================================================================
# Slides & Deck
# ============================================================================


class Slide(BaseModel):
    """One slide: background plus elements in paint order."""

    model_config = ConfigDict(frozen=True)

    id: str
    background: Background = Field(default_factory=Background)
    elements: list[Element] = Field(default_factory=list)


class Deck(BaseModel):
    """Snapshot of a presentation, as submitted for export."""

    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(default="Presentation", description="Output filename stem")
    slide_size: SlideSize = Field(default_factory=SlideSize, alias="slideSize")
    slides: list[Slide] = Field(default_factory=list)
