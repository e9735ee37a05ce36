"""Plant placement and drag interaction controller.

Turns pointer, key and catalog events into store mutations. The session
holds only ephemeral interaction state (preview, selection, in-flight drag
position); whenever it needs persisted data it reads the garden from the
store right before acting.

States::

    IDLE --select_catalog_item--> PREVIEWING --click_canvas--> COMMITTED --> IDLE
    IDLE/SELECTED --select_position--> SELECTED
    SELECTED --press_position--> DRAGGING --release--> SELECTED
    SELECTED --request_removal--> PENDING_REMOVAL --resolve_removal--> IDLE | SELECTED
"""

from __future__ import annotations

import time
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Optional, Tuple

from loguru import logger
from PySide6.QtCore import QObject, Qt, Signal

from src.config import cfg
from src.core.catalog import Plant, PlantCatalog
from src.core.errors import CalibrationRequired
from src.core.models import Garden, PlacementDraft, PlantPosition
from src.core.store import GardenStore
from src.utils.scale.transform import (
    clamp_percent,
    clamp_user_scale,
    inches_to_pixels,
    normalize_rotation,
    percent_to_pixels,
    pixels_to_percent,
    resolve_growth_dimensions,
)


class SessionState(str, Enum):
    """Interaction states of a placement session."""

    IDLE = "idle"
    PREVIEWING = "previewing"
    COMMITTED = "committed"
    SELECTED = "selected"
    DRAGGING = "dragging"
    PENDING_REMOVAL = "pending_removal"


@dataclass(frozen=True)
class PlacementPreview:
    """Catalog item following the pointer before it is placed."""

    plant_id: str
    x: float
    y: float
    width: float
    height: float


class PlacementSession(QObject):
    """Placement state machine for one garden canvas.

    Parameters
    ----------
    store : GardenStore
        Store receiving committed mutations.
    catalog : PlantCatalog
        Catalog used to size previews and placements.
    garden_id : str
        Garden being edited.
    canvas_width, canvas_height : float
        Canvas extent in the pixel space of the calibration measurement.
    persist_interval_ms : int, optional
        Minimum delay between persisted intermediate drag positions.
        Defaults to ``cfg.dragPersistIntervalMs``; ``0`` persists only on
        release.
    clock : Callable[[], float], optional
        Monotonic clock in seconds, used for drag write throttling.

    Signals
    -------
    sigStateChanged : Signal(str)
        Emitted with the new ``SessionState`` value on each transition.
    sigPreviewMoved : Signal(float, float)
        Emitted with clamped preview centre percentages.
    sigPositionChanged : Signal(object)
        Emitted with the in-flight ``PlantPosition`` during a drag.
    sigPlantCommitted : Signal(object)
        Emitted with the stored ``PlantPosition`` after a placement.
    sigRemovalRequested : Signal(str)
        Emitted with the position id awaiting external confirmation.
    sigPlantRemoved : Signal(str)
        Emitted with the removed position id.
    """

    sigStateChanged = Signal(str)
    sigPreviewMoved = Signal(float, float)
    sigPositionChanged = Signal(object)
    sigPlantCommitted = Signal(object)
    sigRemovalRequested = Signal(str)
    sigPlantRemoved = Signal(str)

    def __init__(
        self,
        store: GardenStore,
        catalog: PlantCatalog,
        garden_id: str,
        canvas_width: float,
        canvas_height: float,
        persist_interval_ms: Optional[int] = None,
        clock: Optional[Callable[[], float]] = None,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)
        self._store = store
        self._catalog = catalog
        self._garden_id = garden_id
        self._canvas_width = 0.0
        self._canvas_height = 0.0
        self.set_canvas_size(canvas_width, canvas_height)
        if persist_interval_ms is None:
            persist_interval_ms = cfg.get(cfg.dragPersistIntervalMs)
        self._persist_interval_ms = int(persist_interval_ms)
        self._clock = clock or time.monotonic

        # -- interaction state ----------------------------------------------
        self._state = SessionState.IDLE
        self._preview: Optional[PlacementPreview] = None
        self._selected_id: Optional[str] = None

        # -- drag state -----------------------------------------------------
        self._drag_offset_px: Tuple[float, float] = (0.0, 0.0)
        self._live_position: Optional[PlantPosition] = None
        self._last_persisted: Optional[PlantPosition] = None
        self._last_persist_time: float = 0.0

    # -- properties ---------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def garden_id(self) -> str:
        return self._garden_id

    @property
    def preview(self) -> Optional[PlacementPreview]:
        return self._preview

    @property
    def selected_position_id(self) -> Optional[str]:
        return self._selected_id

    @property
    def live_position(self) -> Optional[PlantPosition]:
        """In-flight position while dragging, else None."""
        return self._live_position

    def set_canvas_size(self, width: float, height: float) -> None:
        """Update canvas extent after a resize.

        Raises
        ------
        ValueError
            Raised when either side is not positive.
        """
        if width <= 0 or height <= 0:
            raise ValueError("canvas size must be > 0")
        self._canvas_width = float(width)
        self._canvas_height = float(height)

    # -- catalog preview ----------------------------------------------------

    def select_catalog_item(self, plant_id: str) -> Optional[PlacementPreview]:
        """Start previewing a catalog item at the canvas centre.

        Raises
        ------
        CalibrationRequired
            Raised when the garden has no scale reference.
        DanglingPlantReference
            Raised when ``plant_id`` is not in the catalog.
        """
        if self._state not in (
            SessionState.IDLE,
            SessionState.SELECTED,
            SessionState.PREVIEWING,
        ):
            return self._ignore("select_catalog_item")
        garden = self._read_calibrated_garden()
        plant = self._catalog.require_plant(plant_id)
        width, height = self._size_percent(plant, garden)
        self._selected_id = None
        self._preview = PlacementPreview(plant.id, 50.0, 50.0, width, height)
        self._set_state(SessionState.PREVIEWING)
        return self._preview

    def move_pointer(self, x_px: float, y_px: float) -> None:
        """Track the pointer for the preview or the active drag."""
        if self._state is SessionState.PREVIEWING:
            x, y = self._pointer_percent(x_px, y_px)
            self._preview = replace(self._preview, x=x, y=y)
            self.sigPreviewMoved.emit(x, y)
            return
        if self._state is SessionState.DRAGGING:
            self._drag_to(x_px, y_px)

    def click_canvas(self, x_px: float, y_px: float) -> Optional[PlantPosition]:
        """Commit the preview, or clear the selection on empty canvas."""
        if self._state is SessionState.PREVIEWING:
            return self._commit_preview(x_px, y_px)
        if self._state is SessionState.SELECTED:
            self._selected_id = None
            self._set_state(SessionState.IDLE)
        return None

    def _commit_preview(self, x_px: float, y_px: float) -> PlantPosition:
        garden = self._read_calibrated_garden()
        plant = self._catalog.require_plant(self._preview.plant_id)
        width, height = self._size_percent(plant, garden)
        x, y = self._pointer_percent(x_px, y_px)
        draft = PlacementDraft(plant_id=plant.id, x=x, y=y, width=width, height=height)
        position = self._store.add_plant_to_garden(self._garden_id, draft)
        self._preview = None
        self._set_state(SessionState.COMMITTED)
        self.sigPlantCommitted.emit(position)
        self._set_state(SessionState.IDLE)
        return position

    # -- selection and drag -------------------------------------------------

    def select_position(self, position_id: str) -> bool:
        """Focus an existing placement. Returns False for unknown ids."""
        if self._state not in (SessionState.IDLE, SessionState.SELECTED):
            self._ignore("select_position")
            return False
        if self._read_position(position_id) is None:
            logger.warning(f"Cannot select unknown position {position_id}")
            return False
        self._selected_id = position_id
        self._set_state(SessionState.SELECTED)
        return True

    def press_position(self, position_id: str, x_px: float, y_px: float) -> bool:
        """Pointer-down on a placement: select it and start dragging."""
        if not self.select_position(position_id):
            return False
        position = self._read_position(position_id)
        center_x = percent_to_pixels(position.x, self._canvas_width)
        center_y = percent_to_pixels(position.y, self._canvas_height)
        self._drag_offset_px = (x_px - center_x, y_px - center_y)
        self._live_position = position
        self._last_persisted = position
        self._last_persist_time = self._clock()
        self._set_state(SessionState.DRAGGING)
        return True

    def _drag_to(self, x_px: float, y_px: float) -> None:
        offset_x, offset_y = self._drag_offset_px
        x, y = self._pointer_percent(x_px - offset_x, y_px - offset_y)
        self._live_position = replace(self._live_position, x=x, y=y)
        self.sigPositionChanged.emit(self._live_position)
        if self._persist_interval_ms <= 0:
            return
        elapsed_ms = (self._clock() - self._last_persist_time) * 1000.0
        if elapsed_ms >= self._persist_interval_ms:
            self._persist_live_position()

    def release(self) -> Optional[PlantPosition]:
        """Pointer-up: persist the final drag position and keep selection."""
        if self._state is not SessionState.DRAGGING:
            return self._ignore("release")
        final_position = self._live_position
        if final_position != self._last_persisted:
            self._persist_live_position()
        self._clear_drag()
        self._set_state(SessionState.SELECTED)
        return final_position

    def _persist_live_position(self) -> None:
        self._store.update_plant_position(self._garden_id, self._live_position)
        self._last_persisted = self._live_position
        self._last_persist_time = self._clock()

    def _clear_drag(self) -> None:
        self._drag_offset_px = (0.0, 0.0)
        self._live_position = None
        self._last_persisted = None

    # -- adjustments on the selected placement ------------------------------

    def rotate_selected(self, degrees: float) -> Optional[PlantPosition]:
        """Set the selected placement's rotation, wrapped into [0, 359]."""
        return self._update_selected(rotation=normalize_rotation(degrees))

    def rescale_selected(self, scale: float) -> Optional[PlantPosition]:
        """Set the selected placement's user scale, clamped into [0.5, 1.5]."""
        return self._update_selected(scale=clamp_user_scale(scale))

    def _update_selected(self, **changes) -> Optional[PlantPosition]:
        if self._state is not SessionState.SELECTED:
            return self._ignore("update_selected")
        position = self._read_position(self._selected_id)
        if position is None:
            logger.warning(f"Selected position {self._selected_id} no longer exists")
            self._selected_id = None
            self._set_state(SessionState.IDLE)
            return None
        updated = replace(position, **changes)
        self._store.update_plant_position(self._garden_id, updated)
        return updated

    # -- removal ------------------------------------------------------------

    def request_removal(self) -> bool:
        """Ask the host for delete confirmation of the selected placement."""
        if self._state is not SessionState.SELECTED:
            self._ignore("request_removal")
            return False
        self._set_state(SessionState.PENDING_REMOVAL)
        self.sigRemovalRequested.emit(self._selected_id)
        return True

    def resolve_removal(self, confirmed: bool) -> None:
        """Apply the host's yes/no answer to a pending removal."""
        if self._state is not SessionState.PENDING_REMOVAL:
            self._ignore("resolve_removal")
            return
        if not confirmed:
            self._set_state(SessionState.SELECTED)
            return
        position_id = self._selected_id
        self._store.remove_plant_from_garden(self._garden_id, position_id)
        self._selected_id = None
        self.sigPlantRemoved.emit(position_id)
        self._set_state(SessionState.IDLE)

    # -- cancellation and keys ----------------------------------------------

    def cancel(self) -> None:
        """Abort the current interaction without persisting anything new."""
        if self._state is SessionState.PREVIEWING:
            self._preview = None
            self._set_state(SessionState.IDLE)
        elif self._state is SessionState.DRAGGING:
            self._live_position = self._last_persisted
            self.sigPositionChanged.emit(self._last_persisted)
            self._clear_drag()
            self._set_state(SessionState.SELECTED)
        elif self._state is SessionState.PENDING_REMOVAL:
            self._set_state(SessionState.SELECTED)
        elif self._state is SessionState.SELECTED:
            self._selected_id = None
            self._set_state(SessionState.IDLE)

    def handle_key(self, key: Qt.Key) -> bool:
        """Map Escape to cancel and Delete/Backspace to removal request.

        Returns
        -------
        bool
            True when the key was handled.
        """
        if key == Qt.Key.Key_Escape:
            self.cancel()
            return True
        if key in (Qt.Key.Key_Delete, Qt.Key.Key_Backspace):
            return self.request_removal()
        return False

    # -- helpers ------------------------------------------------------------

    def _set_state(self, state: SessionState) -> None:
        if state is self._state:
            return
        logger.debug(f"PlacementSession {self._garden_id}: {self._state.value} -> {state.value}")
        self._state = state
        self.sigStateChanged.emit(state.value)

    def _ignore(self, event: str) -> None:
        logger.debug(f"PlacementSession ignored {event} in state {self._state.value}")
        return None

    def _read_calibrated_garden(self) -> Garden:
        garden = self._store.load_garden(self._garden_id)
        if not garden.is_calibrated:
            raise CalibrationRequired(self._garden_id)
        return garden

    def _read_position(self, position_id: str) -> Optional[PlantPosition]:
        return self._store.load_garden(self._garden_id).find_position(position_id)

    def _pointer_percent(self, x_px: float, y_px: float) -> Tuple[float, float]:
        x = clamp_percent(pixels_to_percent(x_px, self._canvas_width))
        y = clamp_percent(pixels_to_percent(y_px, self._canvas_height))
        return x, y

    def _size_percent(self, plant: Plant, garden: Garden) -> Tuple[float, float]:
        """Plant footprint at the garden's view time as canvas percentages."""
        dimensions = resolve_growth_dimensions(plant, garden.view_time)
        pixels_per_inch = garden.scale_reference.pixels_per_inch
        width_px = inches_to_pixels(dimensions.width, pixels_per_inch)
        height_px = inches_to_pixels(dimensions.height, pixels_per_inch)
        return (
            pixels_to_percent(width_px, self._canvas_width),
            pixels_to_percent(height_px, self._canvas_height),
        )
