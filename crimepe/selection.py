"""Selection state and map styling.

The controller tracks at most one selected municipality and drives the
rendering surface through the RenderingSurface protocol, so no map library
is referenced here.

Choropleth buckets are on absolute violence counts, not per-capita rates:
map colour shows raw volume while rankings show normalized risk.
"""

import logging
from typing import Protocol

from pydantic import BaseModel, ConfigDict

from crimepe.boundaries import Bounds, combined_bounds, geometry_bounds
from crimepe.models import DatasetSnapshot, MunicipalityRecord

logger = logging.getLogger(__name__)

# (upper bound inclusive, colour); counts above the last bound use DARKEST
CHOROPLETH_BUCKETS: tuple[tuple[int, str], ...] = (
    (0, "#fee5d9"),
    (5, "#fcae91"),
    (10, "#fb6a4a"),
    (20, "#de2d26"),
)
DARKEST = "#a50f15"

# Viewport fit hints
SELECTED_PADDING = 50
SELECTED_MAX_ZOOM = 12
REGION_PADDING = 20


class StyleDescriptor(BaseModel):
    """Per-feature style handed to the rendering surface."""

    model_config = ConfigDict(frozen=True)

    fill_color: str
    fill_opacity: float
    color: str
    weight: int
    opacity: float = 1.0
    interactive: bool = True


HIDDEN_STYLE = StyleDescriptor(
    fill_color="#fff",
    fill_opacity=0.0,
    color="transparent",
    weight=0,
    interactive=False,
)


class RenderingSurface(Protocol):
    """Map surface driven by the selection controller."""

    def fit_bounds(self, bounds: Bounds, padding: int, max_zoom: int | None = None) -> None: ...

    def restyle(self) -> None: ...

    def set_tooltips_enabled(self, enabled: bool) -> None: ...


def choropleth_color(violence_count: int | None) -> str:
    """Fill colour for an absolute violence count."""
    value = violence_count or 0
    for upper, color in CHOROPLETH_BUCKETS:
        if value <= upper:
            return color
    return DARKEST


def compute_style(record: MunicipalityRecord, selected: str | None) -> StyleDescriptor:
    """Style for one municipality given the current selection.

    Args:
        record: Municipality being drawn
        selected: Selected municipality name, None when nothing is selected

    Returns:
        Transparent non-interactive style for non-selected features while a
        selection exists, otherwise the choropleth style
    """
    if selected and record.name != selected:
        return HIDDEN_STYLE

    is_selected = selected is not None and record.name == selected
    return StyleDescriptor(
        fill_color=choropleth_color(record.violence_count),
        fill_opacity=0.7,
        color="#000" if is_selected else "#666",
        weight=3 if is_selected else 1,
    )


def hover_style(record: MunicipalityRecord, selected: str | None) -> StyleDescriptor | None:
    """Highlight applied on mouse-over, only while nothing is selected."""
    if selected:
        return None
    return compute_style(record, None).model_copy(
        update={"weight": 3, "color": "#333", "fill_opacity": 0.9}
    )


def tooltip_text(record: MunicipalityRecord, selected: str | None) -> str | None:
    """Tooltip content, suppressed while a municipality is selected."""
    if selected:
        return None
    return (
        f"{record.name}\n"
        f"Violência: {record.violence_count}\n"
        f"Estupro: {record.rape_count}"
    )


class SelectionController:
    """Tracks the selected municipality and keeps the map in sync.

    States are Unselected (``selected is None``) and Selected(name). Every
    transition issues a viewport fit, a restyle and a tooltip toggle.
    """

    def __init__(self, surface: RenderingSurface) -> None:
        self.surface = surface
        self._selected: str | None = None
        self._snapshot: DatasetSnapshot | None = None

    @property
    def selected(self) -> str | None:
        return self._selected

    @property
    def is_selected(self) -> bool:
        return self._selected is not None

    def select(self, name: str) -> None:
        """Select a municipality (from either state)."""
        if not name:
            self.deselect()
            return
        logger.debug(f"Selecting municipality {name}")
        self._selected = name
        self._render()

    def deselect(self) -> None:
        """Return to the whole-region view."""
        logger.debug("Clearing municipality selection")
        self._selected = None
        self._render()

    def on_feature_activated(self, name: str) -> None:
        """Click handler for a map feature."""
        self.select(name)

    def refresh(self, snapshot: DatasetSnapshot) -> None:
        """Re-render against a newly loaded snapshot, keeping the selection."""
        self._snapshot = snapshot
        self._render()

    def style_for(self, record: MunicipalityRecord) -> StyleDescriptor:
        """Style function handed to the rendering surface."""
        return compute_style(record, self._selected)

    def _render(self) -> None:
        bounds = self._target_bounds()
        if bounds is not None:
            if self._selected:
                self.surface.fit_bounds(bounds, SELECTED_PADDING, SELECTED_MAX_ZOOM)
            else:
                self.surface.fit_bounds(bounds, REGION_PADDING)
        self.surface.restyle()
        self.surface.set_tooltips_enabled(self._selected is None)

    def _target_bounds(self) -> Bounds | None:
        if self._snapshot is None:
            return None
        if self._selected:
            record = self._snapshot.find(self._selected)
            return geometry_bounds(record.boundary) if record else None
        return combined_bounds(self._snapshot.geometries())
