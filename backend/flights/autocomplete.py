"""Airport/city autocomplete for a single search-form field.

State transitions are pure functions over a frozen ``AutocompleteState``;
``AutocompleteField`` owns the debounce timer, the generation counter that
voids superseded lookups, and the persisted recent selections.
"""
from __future__ import annotations

import asyncio
import enum
import inspect
import logging
from dataclasses import dataclass, replace

from django.core.cache import caches

from flights.providers.base import ProviderError
from flights.services.normalize import Place

logger = logging.getLogger(__name__)

DEBOUNCE_SECONDS = 0.3
MIN_KEYWORD_LENGTH = 2
RECENT_LIMIT = 3
LOOKUP_FAILED = "Error searching locations"


class FieldRole(str, enum.Enum):
    ORIGIN = "origin"
    DESTINATION = "destination"

    @property
    def storage_key(self) -> str:
        return f"autocomplete:recent:{self.value}"


class DropdownMode(enum.Enum):
    HIDDEN = "hidden"
    RECENTS = "recents"
    LOADING = "loading"
    RESULTS = "results"
    NO_RESULTS = "no_results"


class RecentSelectionStore:
    """Recent selections per field role, kept in the Django cache."""

    def __init__(self, alias="default"):
        self.alias = alias

    @property
    def cache(self):
        return caches[self.alias]

    def load(self, role: FieldRole) -> tuple:
        raw = self.cache.get(role.storage_key)
        if not isinstance(raw, list):
            return ()
        places = []
        for item in raw:
            place = Place.from_api(item)
            if place is None:
                logger.warning("Dropping malformed recent selection", extra={"role": role.value})
                continue
            places.append(place)
        return tuple(places[:RECENT_LIMIT])

    def save(self, role: FieldRole, places) -> None:
        self.cache.set(role.storage_key, [place.to_dict() for place in places], timeout=None)


def remember(recents, place: Place, limit=RECENT_LIMIT) -> tuple:
    others = tuple(p for p in recents if p.iata_code != place.iata_code)
    return ((place,) + others)[:limit]


@dataclass(frozen=True)
class AutocompleteState:
    keyword: str = ""
    candidates: tuple = ()
    loading: bool = False
    open: bool = False
    selected: Place | None = None
    recents: tuple = ()
    error: str | None = None

    @property
    def value(self) -> str:
        """The logical field value: the selected site code, or ""."""
        return self.selected.iata_code if self.selected is not None else ""

    @property
    def mode(self) -> DropdownMode:
        if not self.open:
            return DropdownMode.HIDDEN
        if len(self.keyword) < MIN_KEYWORD_LENGTH:
            return DropdownMode.RECENTS if self.recents else DropdownMode.HIDDEN
        if self.candidates:
            return DropdownMode.RESULTS
        if self.loading:
            return DropdownMode.LOADING
        return DropdownMode.NO_RESULTS


def on_edit(state: AutocompleteState, text: str) -> AutocompleteState:
    selected = state.selected
    if selected is not None and text != selected.display:
        selected = None

    if len(text) < MIN_KEYWORD_LENGTH:
        return replace(state, keyword=text, selected=selected, candidates=(), open=False, loading=False, error=None)
    return replace(state, keyword=text, selected=selected, open=True, loading=False, error=None)


def on_focus(state: AutocompleteState) -> AutocompleteState:
    if len(state.keyword) >= MIN_KEYWORD_LENGTH:
        return replace(state, open=True)
    if state.recents:
        return replace(state, candidates=(), open=True)
    return state


def on_dismiss(state: AutocompleteState) -> AutocompleteState:
    return replace(state, open=False)


def on_select(state: AutocompleteState, place: Place) -> AutocompleteState:
    return replace(
        state,
        keyword=place.display,
        selected=place,
        open=False,
        loading=False,
        recents=remember(state.recents, place),
    )


def on_lookup_started(state: AutocompleteState) -> AutocompleteState:
    return replace(state, loading=True, error=None)


def on_results(state: AutocompleteState, places) -> AutocompleteState:
    return replace(state, candidates=tuple(places), loading=False, open=True)


def on_failure(state: AutocompleteState, message: str) -> AutocompleteState:
    return replace(state, loading=False, error=message)


class AutocompleteField:
    """One autocomplete input bound to an asyncio event loop.

    ``lookup`` is called with the keyword and returns a list of ``Place``;
    it may be a coroutine function or a plain blocking callable (run in a
    worker thread). ``on_change`` receives the logical value whenever it
    changes.
    """

    def __init__(self, role, lookup, store=None, delay=DEBOUNCE_SECONDS, on_change=None):
        self.role = FieldRole(role)
        self.delay = delay
        self.on_change = on_change
        self._lookup = lookup
        self._store = store if store is not None else RecentSelectionStore()
        self._generation = 0
        self._timer = None
        self._inflight = set()
        self.state = AutocompleteState(recents=self._store.load(self.role))

    @property
    def value(self) -> str:
        return self.state.value

    @property
    def generation(self) -> int:
        return self._generation

    def _notify(self, value):
        if self.on_change is not None:
            self.on_change(value)

    def _supersede(self):
        self._generation += 1
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def edit(self, text: str) -> None:
        """Handle a keyword change. Must be called from the running event loop."""
        self._supersede()
        had_value = bool(self.state.value)
        self.state = on_edit(self.state, text)
        if had_value and not self.state.value:
            self._notify("")

        if len(text) >= MIN_KEYWORD_LENGTH:
            loop = asyncio.get_running_loop()
            self._timer = loop.call_later(self.delay, self._fire, self._generation, text)

    def focus(self) -> None:
        self.state = on_focus(self.state)

    def dismiss(self) -> None:
        self.state = on_dismiss(self.state)

    def select(self, place: Place) -> str:
        self._supersede()
        self.state = on_select(self.state, place)
        self._store.save(self.role, self.state.recents)
        self._notify(place.iata_code)
        return place.iata_code

    def _fire(self, generation, keyword):
        self._timer = None
        if generation != self._generation:
            return
        self.state = on_lookup_started(self.state)
        task = asyncio.get_running_loop().create_task(self._run_lookup(generation, keyword))
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)

    async def _call_lookup(self, keyword):
        if inspect.iscoroutinefunction(self._lookup):
            return await self._lookup(keyword)
        return await asyncio.to_thread(self._lookup, keyword)

    async def _run_lookup(self, generation, keyword):
        try:
            places = await self._call_lookup(keyword)
        except ProviderError as exc:
            logger.warning("Location lookup failed for %r: %s", keyword, exc)
            if generation == self._generation:
                self.state = on_failure(self.state, str(exc))
            return
        except Exception:
            logger.exception("Location lookup raised for %r", keyword)
            if generation == self._generation:
                self.state = on_failure(self.state, LOOKUP_FAILED)
            return

        if generation != self._generation:
            logger.debug("Discarding stale location results for %r", keyword)
            return
        self.state = on_results(self.state, places)

    async def wait_idle(self) -> None:
        """Wait until no debounce timer is armed and no lookup is running."""
        loop = asyncio.get_running_loop()
        while self._timer is not None or self._inflight:
            if self._timer is not None:
                await asyncio.sleep(max(self._timer.when() - loop.time(), 0))
                await asyncio.sleep(0)
            else:
                await asyncio.gather(*list(self._inflight))
