"""In-memory transit system model and its JSON document shapes.

The model is built from an already-parsed JSON document (``System.from_document``)
and turned back into fresh plain containers (``to_document``) for snapshots.
Unknown keys are ignored and missing keys take empty defaults; a key whose
value has the wrong JSON type is reported through the ``error`` class the
caller passes in (``ConfigError`` at startup, ``MalformedUpdate`` for updates).
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Type, TypedDict

from .errors import MalformedUpdate

DIRECTION_COUNT = 2


class LineDoc(TypedDict, total=False):
    name: str
    id: str
    times: List[int]
    color: str


class CoordDoc(TypedDict, total=False):
    lat: float
    lon: float


class StationDoc(TypedDict, total=False):
    name: str
    id: str
    coord: CoordDoc
    directions: List[str]
    lines: List[Dict[str, LineDoc]]


class SystemDoc(TypedDict, total=False):
    name: str
    tagline: str
    stops: List[StationDoc]
    timeMax: int


class LineUpdateDoc(TypedDict, total=False):
    lineID: str
    index: int
    times: List[int]


class StationUpdateDoc(TypedDict, total=False):
    stationID: str
    lines: List[LineUpdateDoc]


class UpdateDoc(TypedDict, total=False):
    stops: List[StationUpdateDoc]


def _object(value: Any, what: str, error: Type[Exception]) -> Mapping[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise error(f"{what} must be an object")
    return value


def _list(doc: Mapping[str, Any], key: str, error: Type[Exception]) -> List[Any]:
    value = doc.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise error(f"'{key}' must be a list")
    return value


def _str(doc: Mapping[str, Any], key: str, error: Type[Exception]) -> str:
    value = doc.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise error(f"'{key}' must be a string")
    return value


def _int(value: Any, what: str, error: Type[Exception]) -> int:
    # bool is an int subclass but not a JSON number
    if isinstance(value, bool) or not isinstance(value, int):
        raise error(f"{what} must be an integer")
    return value


def _float(doc: Mapping[str, Any], key: str, error: Type[Exception]) -> float:
    value = doc.get(key)
    if value is None:
        return 0.0
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise error(f"'{key}' must be a number")
    try:
        return float(value)
    except OverflowError as exc:
        raise error(f"'{key}' is out of range") from exc


def _times(doc: Mapping[str, Any], error: Type[Exception]) -> List[int]:
    return [_int(t, "arrival time", error) for t in _list(doc, "times", error)]


@dataclass
class Coordinate:
    lat: float = 0.0
    lon: float = 0.0

    @classmethod
    def from_document(cls, doc: Any, error: Type[Exception]) -> "Coordinate":
        doc = _object(doc, "coord", error)
        return cls(lat=_float(doc, "lat", error), lon=_float(doc, "lon", error))

    def to_document(self) -> CoordDoc:
        return {"lat": self.lat, "lon": self.lon}


@dataclass
class Line:
    name: str
    id: str
    times: List[int] = field(default_factory=list)
    color: str = ""

    @classmethod
    def from_document(cls, doc: Any, error: Type[Exception]) -> "Line":
        doc = _object(doc, "line", error)
        return cls(
            name=_str(doc, "name", error),
            id=_str(doc, "id", error),
            times=_times(doc, error),
            color=_str(doc, "color", error),
        )

    def to_document(self) -> LineDoc:
        return {
            "name": self.name,
            "id": self.id,
            "times": list(self.times),
            "color": self.color,
        }


@dataclass
class Station:
    name: str
    id: str
    coord: Coordinate = field(default_factory=Coordinate)
    directions: List[str] = field(default_factory=lambda: [""] * DIRECTION_COUNT)
    lines: List[Dict[str, Line]] = field(
        default_factory=lambda: [{} for _ in range(DIRECTION_COUNT)]
    )

    @classmethod
    def from_document(cls, doc: Any, error: Type[Exception]) -> "Station":
        doc = _object(doc, "stop", error)

        directions = _list(doc, "directions", error)
        if len(directions) > DIRECTION_COUNT:
            raise error(f"'directions' holds at most {DIRECTION_COUNT} labels")
        for label in directions:
            if not isinstance(label, str):
                raise error("direction labels must be strings")
        directions = directions + [""] * (DIRECTION_COUNT - len(directions))

        slots = _list(doc, "lines", error)
        if len(slots) > DIRECTION_COUNT:
            raise error(f"'lines' holds at most {DIRECTION_COUNT} direction slots")
        lines: List[Dict[str, Line]] = []
        for slot in slots:
            slot = _object(slot, "direction slot", error)
            lines.append(
                {line_id: Line.from_document(line, error) for line_id, line in slot.items()}
            )
        lines.extend({} for _ in range(DIRECTION_COUNT - len(lines)))

        return cls(
            name=_str(doc, "name", error),
            id=_str(doc, "id", error),
            coord=Coordinate.from_document(doc.get("coord"), error),
            directions=directions,
            lines=lines,
        )

    def find_line(self, index: int, line_id: str) -> Optional[Line]:
        if not 0 <= index < DIRECTION_COUNT:
            return None
        return self.lines[index].get(line_id)

    def to_document(self) -> StationDoc:
        return {
            "name": self.name,
            "id": self.id,
            "coord": self.coord.to_document(),
            "directions": list(self.directions),
            "lines": [
                {line_id: line.to_document() for line_id, line in slot.items()}
                for slot in self.lines
            ],
        }


@dataclass
class System:
    name: str
    tagline: str = ""
    stops: List[Station] = field(default_factory=list)
    time_max: int = 0

    @classmethod
    def from_document(cls, doc: Any, error: Type[Exception]) -> "System":
        doc = _object(doc, "system", error)
        time_max = doc.get("timeMax")
        return cls(
            name=_str(doc, "name", error),
            tagline=_str(doc, "tagline", error),
            stops=[Station.from_document(s, error) for s in _list(doc, "stops", error)],
            time_max=0 if time_max is None else _int(time_max, "'timeMax'", error),
        )

    def to_document(self) -> SystemDoc:
        return {
            "name": self.name,
            "tagline": self.tagline,
            "stops": [stop.to_document() for stop in self.stops],
            "timeMax": self.time_max,
        }


@dataclass
class LineUpdate:
    line_id: str
    index: int
    times: List[int] = field(default_factory=list)


@dataclass
class StationUpdate:
    station_id: str
    lines: List[LineUpdate] = field(default_factory=list)


@dataclass
class Update:
    stops: List[StationUpdate] = field(default_factory=list)

    @classmethod
    def from_document(cls, doc: Any) -> "Update":
        """Build an envelope from a decoded ``/update`` body.

        Raises ``MalformedUpdate`` when the body does not have the envelope shape.
        Existence and bounds of the referenced stations and lines are checked
        later by the store, not here.
        """
        doc = _object(doc, "update", MalformedUpdate)
        stops: List[StationUpdate] = []
        for su in _list(doc, "stops", MalformedUpdate):
            su = _object(su, "station update", MalformedUpdate)
            lines: List[LineUpdate] = []
            for lu in _list(su, "lines", MalformedUpdate):
                lu = _object(lu, "line update", MalformedUpdate)
                index = lu.get("index")
                lines.append(
                    LineUpdate(
                        line_id=_str(lu, "lineID", MalformedUpdate),
                        index=0 if index is None else _int(index, "'index'", MalformedUpdate),
                        times=_times(lu, MalformedUpdate),
                    )
                )
            stops.append(
                StationUpdate(station_id=_str(su, "stationID", MalformedUpdate), lines=lines)
            )
        return cls(stops=stops)

    def to_document(self) -> UpdateDoc:
        return {
            "stops": [
                {
                    "stationID": su.station_id,
                    "lines": [
                        {"lineID": lu.line_id, "index": lu.index, "times": list(lu.times)}
                        for lu in su.lines
                    ],
                }
                for su in self.stops
            ]
        }
