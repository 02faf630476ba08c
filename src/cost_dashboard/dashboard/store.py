"""
View model store for the dashboard.

Single source of truth merging the initial load, push channel updates and
range-filtered reloads. Every producer replaces a whole slice; nothing
mutates a slice in place. Rendering reads the frozen ViewModel through
`view` and is told about changes through subscribed listeners.
"""

import logging
from collections.abc import Callable, Mapping
from typing import Any

from ..api.models import LoadStatus, SliceName, ViewModel, parse_slice

logger = logging.getLogger(__name__)

Listener = Callable[[SliceName | None, ViewModel], None]


class ViewModelStore:
    """Owns the ViewModel between init (mount) and dispose (unmount)."""

    def __init__(self, sequence_updates: bool = False):
        self.sequence_updates = sequence_updates
        self._view = ViewModel()
        self._active = False
        self._listeners: list[Listener] = []
        self._issued: dict[SliceName, int] = {name: 0 for name in SliceName}
        self._applied: dict[SliceName, int] = {name: 0 for name in SliceName}

    @property
    def view(self) -> ViewModel:
        return self._view

    @property
    def is_active(self) -> bool:
        """True between init() and dispose(); results arriving outside that window are dropped."""
        return self._active

    def init(self):
        self._view = ViewModel()
        self._issued = {name: 0 for name in SliceName}
        self._applied = {name: 0 for name in SliceName}
        self._active = True
        logger.debug("View model store initialized")

    def dispose(self):
        self._active = False
        self._listeners.clear()
        logger.debug("View model store disposed")

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a render callback. Returns a function that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _publish(self, view: ViewModel, changed: SliceName | None):
        self._view = view
        for listener in list(self._listeners):
            try:
                listener(changed, view)
            except Exception as e:
                logger.error(f"View model listener failed on {changed}: {e}")

    def _accept(self, operation: str) -> bool:
        if not self._active:
            logger.debug(f"Ignoring {operation} on a disposed view model")
        return self._active

    def next_generation(self, name: SliceName) -> int:
        """Issue a generation number for an update to `name` that is about to be requested."""
        name = SliceName(name)
        self._issued[name] += 1
        return self._issued[name]

    def applied_generation(self, name: SliceName) -> int:
        return self._applied[SliceName(name)]

    def begin_load(self):
        if self._accept("begin_load"):
            self._publish(self._view.model_copy(update={"status": LoadStatus.LOADING, "error": None}), None)

    def complete_load(
        self, slices: Mapping[SliceName, Any], generations: Mapping[SliceName, int] | None = None
    ) -> bool:
        """
        Assign all loaded slices together and mark the view ready.

        With sequencing enabled, a slice whose generation is older than the
        one already applied keeps its newer value.
        """
        if not self._accept("complete_load"):
            return False
        update: dict[str, Any] = {}
        for name, value in slices.items():
            name = SliceName(name)
            parsed = parse_slice(name, value)
            if self.sequence_updates and generations and name in generations:
                if generations[name] < self._applied[name]:
                    logger.debug(f"Keeping newer {name.value} over initial load result")
                    continue
                self._applied[name] = generations[name]
            update[name.value] = parsed
        update.update(status=LoadStatus.READY, error=None)
        self._publish(self._view.model_copy(update=update), None)
        return True

    def fail_load(self, message: str) -> bool:
        """Enter error status without touching any slice."""
        if not self._accept("fail_load"):
            return False
        self._publish(
            self._view.model_copy(update={"status": LoadStatus.ERROR, "error": message}), None
        )
        return True

    def set_slice(self, name: SliceName, value: Any, generation: int | None = None) -> bool:
        """
        Replace one slice as a whole.

        With sequencing enabled, an update tagged with a generation older than
        the one already applied is discarded. Untagged updates count as newest.

        Returns:
            True if the slice was replaced

        Raises:
            pydantic.ValidationError: if value does not match the slice shape
        """
        name = SliceName(name)
        if not self._accept(f"set_slice({name.value})"):
            return False

        parsed = parse_slice(name, value)

        if self.sequence_updates:
            if generation is None:
                generation = self.next_generation(name)
            if generation < self._applied[name]:
                logger.debug(
                    f"Discarding stale {name.value} update (generation {generation} < {self._applied[name]})"
                )
                return False
            self._applied[name] = generation

        self._publish(self._view.model_copy(update={name.value: parsed}), name)
        return True

    def patch_slice(
        self, name: SliceName, updater: Callable[[Any], Any], generation: int | None = None
    ) -> bool:
        """Replace a slice with updater(current value)."""
        name = SliceName(name)
        if not self._accept(f"patch_slice({name.value})"):
            return False
        return self.set_slice(name, updater(self._view.get_slice(name)), generation=generation)
