"""
Gallery navigation state machine.

Tracks the current image of a mounted viewer, the idle-triggered
screensaver and the preload hint for the next image. Timers go through a
scheduler exposing call_later(delay, callback) -> handle with cancel(),
which an asyncio event loop provides, so everything runs on one
cooperative loop without locks.
"""

import asyncio
import logging
import math
import random
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from .image_entry import CollectionEntry
from .image_sources import DEFAULT_SIZES, PreloadDescriptor, build_src_set

DEFAULT_IDLE_DELAY = 25.0
DEFAULT_INTERVAL = 6.0
DEFAULT_MAX_ATTEMPTS = 10
POSITION_PARAM = 'p'
_LEADING_INTEGER = re.compile(r'\s*([+-]?\d+)')

INTERACTION_EVENTS = ('mousemove', 'keydown', 'click', 'touchstart')


def wrap_index(index: int, total: int) -> int:
    """Cyclic index for explicit next/previous navigation."""
    if total <= 0:
        return 0
    return index % total


def clamp_index(index: Any, total: int) -> int:
    """Clamp a direct position into [0, total - 1]; non-numbers become 0."""
    if total <= 0:
        return 0
    if isinstance(index, bool) or not isinstance(index, (int, float)) or not math.isfinite(index):
        return 0
    return max(0, min(total - 1, int(index)))


def parse_position(value: Optional[str], total: int) -> int:
    """
    Index for the 1-based position query parameter.

    Only the leading integer counts, so "2.5" and "2abc" both mean the
    second image. Absent, zero, negative or non-numeric values give index 0;
    values past the end clamp to the last image.
    """
    if value is None:
        return 0
    match = _LEADING_INTEGER.match(str(value))
    if not match:
        return 0
    position = int(match.group(1))
    if position <= 0:
        return 0
    return clamp_index(position - 1, total)


def position_query(index: int) -> Dict[str, str]:
    """Query parameters for an index (the first image has none)."""
    if index > 0:
        return {POSITION_PARAM: str(index + 1)}
    return {}


class NavigatorState(Enum):
    BROWSING = 'browsing'
    SCREENSAVER = 'screensaver-active'


@dataclass
class InteractionEvent:
    """A user event delivered to the viewer."""
    type: str
    key: Optional[str] = None


class EventTarget:
    """Minimal listener registry standing in for the viewer's DOM target."""

    def __init__(self):
        self._listeners: Dict[str, List[Callable[[InteractionEvent], None]]] = {}

    def add_listener(self, event_type: str, callback: Callable[[InteractionEvent], None]) -> None:
        self._listeners.setdefault(event_type, []).append(callback)

    def remove_listener(self, event_type: str, callback: Callable[[InteractionEvent], None]) -> None:
        callbacks = self._listeners.get(event_type, [])
        if callback in callbacks:
            callbacks.remove(callback)
        if not callbacks:
            self._listeners.pop(event_type, None)

    def listener_count(self, event_type: Optional[str] = None) -> int:
        if event_type is not None:
            return len(self._listeners.get(event_type, []))
        return sum(len(callbacks) for callbacks in self._listeners.values())

    def dispatch(self, event: InteractionEvent) -> None:
        # Copy: a listener may unmount the viewer while we iterate
        for callback in list(self._listeners.get(event.type, [])):
            callback(event)


class CollectionPreloader:
    """
    Turns preload requests for an index into preload descriptors.

    Active hints are kept in `active` until released, mirroring
    <link rel="preload"> elements added to and removed from the page head.
    """

    def __init__(self, collection: CollectionEntry, sizes: str = DEFAULT_SIZES):
        self.collection = collection
        self.sizes = sizes
        self.active: List[PreloadDescriptor] = []

    def preload(self, index: int) -> Optional[PreloadDescriptor]:
        if index < 0 or index >= len(self.collection.images):
            return None
        image = self.collection.images[index]
        if not image.variants:
            return None
        descriptor = PreloadDescriptor(
            href=image.largest.src,
            imagesrcset=build_src_set(image.variants),
            imagesizes=self.sizes,
        )
        self.active.append(descriptor)
        return descriptor

    def release(self, handle: Optional[PreloadDescriptor]) -> None:
        if handle is not None and handle in self.active:
            self.active.remove(handle)


class GalleryNavigator:
    """
    Navigation state for one mounted gallery viewer.

    States are BROWSING (initial) and SCREENSAVER. After idle_delay seconds
    without interaction the screensaver starts (only with more than one
    image) and jumps to a random other image every `interval` seconds. Any
    interaction cancels both timers together, returns to BROWSING and
    restarts the idle countdown.
    """

    def __init__(
        self,
        total_images: int,
        initial_index: int = 0,
        scheduler=None,
        on_index_change: Optional[Callable[[int], None]] = None,
        on_exit: Optional[Callable[[], None]] = None,
        preloader=None,
        idle_delay: float = DEFAULT_IDLE_DELAY,
        interval: float = DEFAULT_INTERVAL,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        rng: Optional[random.Random] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize navigator.

        Args:
            total_images: Number of images in the collection
            initial_index: Starting position, clamped into range
            scheduler: Object with call_later(delay, callback); defaults to
                the running asyncio loop at mount time
            on_index_change: Called with the new index whenever it changes
            on_exit: Called when the viewer is left via exit()
            preloader: Object with preload(index) -> handle and release(handle)
            idle_delay: Seconds without interaction before the screensaver
            interval: Seconds between screensaver advances
            max_attempts: Random draws per advance before accepting a repeat
            rng: Random source (seedable for tests)
            logger: Optional logger instance
        """
        self.total_images = max(0, int(total_images))
        self.current_index = clamp_index(initial_index, self.total_images)
        self.scheduler = scheduler
        self.on_index_change = on_index_change
        self.on_exit = on_exit
        self.preloader = preloader
        self.idle_delay = idle_delay
        self.interval = interval
        self.max_attempts = max_attempts
        self.rng = rng or random.Random()
        self.logger = logger or logging.getLogger(__name__)

        self.state = NavigatorState.BROWSING
        self._idle_handle = None
        self._interval_handle = None
        self._preload_handle = None
        self._preload_target: Optional[int] = None
        self._target: Optional[EventTarget] = None
        self._mounted = False
        self._exited = False

    @classmethod
    def for_collection(
        cls,
        collection: CollectionEntry,
        position: Optional[str] = None,
        sizes: str = DEFAULT_SIZES,
        **kwargs
    ) -> 'GalleryNavigator':
        """Navigator for a collection, positioned from the query parameter."""
        total = len(collection.images)
        return cls(
            total,
            initial_index=parse_position(position, total),
            preloader=CollectionPreloader(collection, sizes),
            **kwargs
        )

    @property
    def is_screensaver_active(self) -> bool:
        return self.state is NavigatorState.SCREENSAVER

    @property
    def is_mounted(self) -> bool:
        return self._mounted

    @property
    def has_pending_timers(self) -> bool:
        return self._idle_handle is not None or self._interval_handle is not None

    # -- lifetime ---------------------------------------------------------

    def mount(self, target: EventTarget) -> None:
        """Register listeners, start the idle timer and warm the next image."""
        if self._exited:
            raise RuntimeError("Navigator has exited and cannot be mounted again")
        if self._mounted:
            raise RuntimeError("Navigator is already mounted")

        if self.scheduler is None:
            self.scheduler = asyncio.get_running_loop()

        self._target = target
        for event_type in INTERACTION_EVENTS:
            target.add_listener(event_type, self._on_interaction)
        target.add_listener('keydown', self._on_keydown)
        self._mounted = True

        self._start_idle_timer()
        self._settle(self.current_index)

    def unmount(self) -> None:
        """Deregister every listener, cancel timers and release the preload hint."""
        if not self._mounted:
            return

        for event_type in INTERACTION_EVENTS:
            self._target.remove_listener(event_type, self._on_interaction)
        self._target.remove_listener('keydown', self._on_keydown)
        self._target = None
        self._mounted = False
        self.state = NavigatorState.BROWSING

        self._clear_timers()
        self._release_preload()

    # -- interaction ------------------------------------------------------

    def register_interaction(self) -> None:
        """Leave the screensaver and restart the idle countdown from zero."""
        if self._exited:
            return
        if self.state is NavigatorState.SCREENSAVER:
            self.logger.debug("Screensaver stopped by interaction")
        self.state = NavigatorState.BROWSING
        self._start_idle_timer()

    def go_to(self, index: int) -> None:
        """Explicit navigation: wraps around the ends."""
        if self._exited or self.total_images == 0:
            return
        self._settle(wrap_index(index, self.total_images))
        self.register_interaction()

    def next(self) -> None:
        self.go_to(self.current_index + 1)

    def previous(self) -> None:
        self.go_to(self.current_index - 1)

    def set_position(self, index: Any) -> None:
        """Direct positioning (deep link, initial load): clamps to the ends."""
        if self._exited:
            return
        self._settle(clamp_index(index, self.total_images))

    def set_position_from_query(self, value: Optional[str]) -> None:
        self.set_position(parse_position(value, self.total_images))

    def exit(self) -> None:
        """Leave the viewer. Terminal for this navigator."""
        if self._exited:
            return
        self.register_interaction()
        self._exited = True
        if self.on_exit:
            self.on_exit()
        self.unmount()

    def _on_interaction(self, event: InteractionEvent) -> None:
        self.register_interaction()

    def _on_keydown(self, event: InteractionEvent) -> None:
        if event.key == 'ArrowRight':
            self.next()
        elif event.key == 'ArrowLeft':
            self.previous()
        elif event.key == 'Escape':
            self.exit()

    # -- timers -----------------------------------------------------------

    def _clear_timers(self) -> None:
        if self._idle_handle is not None:
            self._idle_handle.cancel()
            self._idle_handle = None
        if self._interval_handle is not None:
            self._interval_handle.cancel()
            self._interval_handle = None

    def _start_idle_timer(self) -> None:
        self._clear_timers()
        if not self._mounted or self.total_images <= 1:
            return
        self._idle_handle = self.scheduler.call_later(self.idle_delay, self._on_idle)

    def _on_idle(self) -> None:
        self._idle_handle = None
        if not self._mounted or self.total_images <= 1:
            return
        self.logger.debug("Idle delay elapsed, starting screensaver")
        self.state = NavigatorState.SCREENSAVER
        self._interval_handle = self.scheduler.call_later(self.interval, self._on_tick)

    def _on_tick(self) -> None:
        self._interval_handle = None
        if not self._mounted or self.state is not NavigatorState.SCREENSAVER:
            return
        self._settle(self.pick_random_index())
        self._interval_handle = self.scheduler.call_later(self.interval, self._on_tick)

    def pick_random_index(self) -> int:
        """
        Random index different from the current one.

        Bounded rejection sampling: after max_attempts colliding draws the
        current index is accepted.
        """
        candidate = self.current_index
        attempts = 0
        while candidate == self.current_index and attempts < self.max_attempts:
            candidate = self.rng.randrange(self.total_images)
            attempts += 1
        return candidate

    # -- index settle -----------------------------------------------------

    def _settle(self, index: int) -> None:
        changed = index != self.current_index
        self.current_index = index
        self._update_preload()
        if changed and self.on_index_change:
            self.on_index_change(index)

    def _update_preload(self) -> None:
        if not self._mounted or self.preloader is None:
            return
        if self.total_images < 2:
            self._release_preload()
            return

        target = (self.current_index + 1) % self.total_images
        if target == self._preload_target and self._preload_handle is not None:
            return

        self._release_preload()
        self._preload_handle = self.preloader.preload(target)
        self._preload_target = target

    def _release_preload(self) -> None:
        if self._preload_handle is not None and self.preloader is not None:
            self.preloader.release(self._preload_handle)
        self._preload_handle = None
        self._preload_target = None
