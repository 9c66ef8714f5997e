import logging
from typing import Dict, List, Tuple

from .errors import ConfigError, IndexOutOfBounds, InvalidLine, InvalidStation
from .models import DIRECTION_COUNT, Line, Station, StationDoc, System, SystemDoc, Update
from .rwlock import ReadWriteLock

log = logging.getLogger("stopboard")


class TransitStore:
    """Owns the transit system and serializes access to it.

    Stations are fixed after construction; only ``Line.times`` changes, and
    only inside ``apply_updates`` under the write lock. Readers get deep
    copies taken under the read lock.
    """

    def __init__(self, system: System) -> None:
        self._system = system
        self._lock = ReadWriteLock()
        self._stations: Dict[str, Station] = {}
        for stop in system.stops:
            if stop.id in self._stations:
                raise ConfigError(f"Duplicate stop id ({stop.id})")
            self._stations[stop.id] = stop

    @property
    def lock(self) -> ReadWriteLock:
        return self._lock

    def station_ids(self) -> List[str]:
        return [stop.id for stop in self._system.stops]

    def system_snapshot(self) -> SystemDoc:
        with self._lock.read():
            return self._system.to_document()

    def station_snapshot(self, station_id: str) -> StationDoc:
        with self._lock.read():
            stop = self._stations.get(station_id)
            if stop is None:
                raise InvalidStation(station_id)
            return stop.to_document()

    def apply_updates(self, update: Update) -> int:
        """Replace line schedules for every entry of the envelope.

        The envelope is checked in full before anything is written, so a
        failing envelope leaves every schedule as it was. Returns the number
        of line schedules replaced.
        """
        with self._lock.write():
            resolved: List[Tuple[Line, List[int]]] = []
            for su in update.stops:
                stop = self._stations.get(su.station_id)
                if stop is None:
                    raise InvalidStation(su.station_id)
                for lu in su.lines:
                    if not 0 <= lu.index < DIRECTION_COUNT:
                        raise IndexOutOfBounds(lu.index)
                    line = stop.find_line(lu.index, lu.line_id)
                    if line is None:
                        raise InvalidLine(su.station_id, lu.line_id)
                    resolved.append((line, lu.times))

            for line, times in resolved:
                line.times = list(times)

        log.debug("Applied %d line update(s)", len(resolved))
        return len(resolved)
