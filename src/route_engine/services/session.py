"""Lifecycle owner for one route's resolved state.

A session is driven by stop-key comparison rather than by re-rendering: an
update whose key matches the last applied one never triggers resolution, and
only the most recent cycle may publish. Once disposed, nothing a late
resolution produces reaches the session's listeners.
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from collections.abc import Callable, Sequence
from enum import Enum

from route_engine.exceptions import NothingToRenderError, SessionDisposedError
from route_engine.services.engine import RouteEngine
from route_engine.services.fuel import estimate_fuel
from route_engine.services.stop_key import build_stop_key
from route_engine.services.types import RouteOptions, RouteResult, Stop, VehicleProfile

logger = logging.getLogger(__name__)

RouteListener = Callable[[RouteResult], None]


class SessionState(str, Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"
    UPDATING = "updating"
    DISPOSED = "disposed"


@dataclasses.dataclass(slots=True)
class _Cycle:
    key: str
    generation: int
    vehicle_profile: VehicleProfile | None
    task: asyncio.Future[RouteResult]


class RouteSession:
    def __init__(self, engine: RouteEngine | None = None) -> None:
        self.engine = engine or RouteEngine()
        self._state = SessionState.UNINITIALIZED
        self._listeners: list[RouteListener] = []
        self._result: RouteResult | None = None
        self._applied_key: str | None = None
        self._vehicle_profile: VehicleProfile | None = None
        self._cycle: _Cycle | None = None
        self._generation = 0

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def result(self) -> RouteResult | None:
        return self._result

    @property
    def applied_key(self) -> str | None:
        return self._applied_key

    def attach(self, listener: RouteListener | None = None) -> RouteSession:
        """Register a consumer; it immediately receives the current result, if any."""
        self._ensure_live()
        if listener is not None:
            self._listeners.append(listener)
            if self._result is not None:
                listener(self._result)
        return self

    async def update(
        self,
        stops: Sequence[Stop],
        options: RouteOptions | None = None,
    ) -> RouteResult | None:
        """Bring the session up to date with ``stops``.

        Returns the published result, or ``None`` when this call's cycle was
        superseded by a newer update or the session was disposed meanwhile.
        """
        self._ensure_live()
        if not stops:
            raise NothingToRenderError("No stops supplied")

        options = options or RouteOptions()
        key = build_stop_key(stops, options.optimized_stops, options.required_breaks)

        cycle = self._cycle
        if cycle is not None and cycle.key == key:
            result = await self._await_cycle(cycle)
        elif key == self._applied_key:
            if cycle is not None:
                self._supersede(cycle)
            result = self._result
        else:
            result = await self._start_cycle(key, stops, options)

        if result is not None:
            self._apply_vehicle_profile(options.vehicle_profile)
            return self._result
        return None

    def dispose(self) -> None:
        if self._state is SessionState.DISPOSED:
            return

        self._state = SessionState.DISPOSED
        self._generation += 1
        if self._cycle is not None:
            self._cycle.task.cancel()
            self._cycle = None
        self._listeners.clear()

    async def _start_cycle(
        self, key: str, stops: Sequence[Stop], options: RouteOptions
    ) -> RouteResult | None:
        self._generation += 1
        self._state = (
            SessionState.INITIALIZING if self._result is None else SessionState.UPDATING
        )
        cycle = _Cycle(
            key=key,
            generation=self._generation,
            vehicle_profile=options.vehicle_profile,
            task=asyncio.ensure_future(self.engine.compute_route(stops, options)),
        )
        cycle.task.add_done_callback(lambda _: self._settle_cycle(cycle))
        self._cycle = cycle
        return await self._await_cycle(cycle)

    async def _await_cycle(self, cycle: _Cycle) -> RouteResult | None:
        # The cycle settles itself from its done callback, so an awaiting
        # caller only reports the outcome and may be cancelled freely.
        try:
            await asyncio.shield(cycle.task)
        except asyncio.CancelledError:
            if self._state is SessionState.DISPOSED:
                logger.debug("Route session disposed during resolution of %r", cycle.key)
                return None
            raise

        if self._state is SessionState.DISPOSED or cycle.generation != self._generation:
            return None
        return self._result

    def _settle_cycle(self, cycle: _Cycle) -> None:
        if cycle.task.cancelled() or cycle.task.exception() is not None:
            if self._cycle is cycle:
                self._cycle = None
                self._state = self._settled_state()
            return

        if self._state is SessionState.DISPOSED or cycle.generation != self._generation:
            logger.debug("Discarding stale route result for %r", cycle.key)
            return

        if self._cycle is cycle:
            self._cycle = None
            self._vehicle_profile = cycle.vehicle_profile
            self._publish(cycle.key, cycle.task.result())

    def _supersede(self, cycle: _Cycle) -> None:
        logger.debug("Superseding in-flight resolution of %r", cycle.key)
        self._generation += 1
        self._cycle = None
        self._state = self._settled_state()

    def _apply_vehicle_profile(self, vehicle_profile: VehicleProfile | None) -> None:
        if self._result is None or vehicle_profile == self._vehicle_profile:
            return

        self._vehicle_profile = vehicle_profile
        fuel_estimate = estimate_fuel(self._result.total_distance_miles, vehicle_profile)
        if fuel_estimate != self._result.fuel_estimate:
            self._publish(
                self._applied_key,
                dataclasses.replace(self._result, fuel_estimate=fuel_estimate),
            )

    def _publish(self, key: str, result: RouteResult) -> None:
        self._applied_key = key
        self._result = result
        if self._cycle is None:
            self._state = SessionState.READY
        for listener in list(self._listeners):
            listener(result)

    def _settled_state(self) -> SessionState:
        return SessionState.READY if self._result is not None else SessionState.UNINITIALIZED

    def _ensure_live(self) -> None:
        if self._state is SessionState.DISPOSED:
            raise SessionDisposedError("Route session has been disposed")
