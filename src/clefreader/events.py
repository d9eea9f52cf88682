"""The decoded log event model.

Property values form a closed union of three shapes:

* :class:`ScalarValue` (and :class:`RenderableScalarValue`, a scalar that
  also carries text pre-rendered by the writer for a formatted hole)
* :class:`StructureValue`, named child properties plus an optional type tag
* :class:`SequenceValue`, an ordered list of values

Everything here is immutable and compares by value.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Union

from .templates import MessageTemplate


class LogEventLevel(enum.IntEnum):
    VERBOSE = 0
    DEBUG = 1
    INFORMATION = 2
    WARNING = 3
    ERROR = 4
    FATAL = 5

    @classmethod
    def parse(cls, name: str) -> "LogEventLevel":
        """Look up a level by name, ignoring case (``"warning"`` → WARNING)."""
        wanted = name.casefold()
        for member in cls:
            if member.name.casefold() == wanted:
                return member
        raise ValueError(f"{name!r} is not a known log event level")

    def __str__(self) -> str:
        return self.name.title()


@dataclass(frozen=True)
class Rendering:
    """Text the writer produced for one formatted hole in the template."""

    name: str
    format: str
    rendered: str


@dataclass(frozen=True)
class ScalarValue:
    value: Any

    def render(self, format: str | None = None) -> str:
        v = self.value
        if v is None:
            return "null"
        if isinstance(v, bool):
            return "true" if v else "false"
        if isinstance(v, str):
            if format and "l" in format:
                return v
            return '"' + v.replace('"', '\\"') + '"'
        return str(v)

    def to_python(self) -> Any:
        return self.value


@dataclass(frozen=True)
class RenderableScalarValue(ScalarValue):
    renderings: tuple[Rendering, ...] = ()

    def render(self, format: str | None = None) -> str:
        for rendering in self.renderings:
            if rendering.format == format:
                return rendering.rendered
        return super().render(format)


@dataclass(frozen=True)
class LogEventProperty:
    name: str
    value: "LogEventPropertyValue"

    @staticmethod
    def is_valid_name(name: str | None) -> bool:
        return bool(name) and not name.isspace()


@dataclass(frozen=True)
class StructureValue:
    properties: tuple[LogEventProperty, ...]
    type_tag: str | None = None

    def get(self, name: str) -> "LogEventPropertyValue | None":
        for prop in self.properties:
            if prop.name == name:
                return prop.value
        return None

    def render(self, format: str | None = None) -> str:
        body = ", ".join(f"{p.name}: {p.value.render()}" for p in self.properties)
        text = "{ " + body + " }" if body else "{ }"
        return f"{self.type_tag} {text}" if self.type_tag else text

    def to_python(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        if self.type_tag is not None:
            out["$type"] = self.type_tag
        for prop in self.properties:
            out[prop.name] = prop.value.to_python()
        return out


@dataclass(frozen=True)
class SequenceValue:
    elements: tuple["LogEventPropertyValue", ...]

    def render(self, format: str | None = None) -> str:
        return "[" + ", ".join(e.render() for e in self.elements) + "]"

    def to_python(self) -> list[Any]:
        return [e.to_python() for e in self.elements]


LogEventPropertyValue = Union[ScalarValue, StructureValue, SequenceValue]


@dataclass(frozen=True)
class TextException:
    """Exception text carried through from the log file, never parsed."""

    text: str

    def __str__(self) -> str:
        return self.text


@dataclass(frozen=True)
class LogEvent:
    timestamp: datetime
    level: LogEventLevel
    message_template: MessageTemplate
    properties: Mapping[str, LogEventPropertyValue] = field(
        default_factory=lambda: MappingProxyType({})
    )
    exception: TextException | None = None
    trace_id: str | None = None
    span_id: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "properties", MappingProxyType(dict(self.properties)))

    def __hash__(self) -> int:
        return hash((
            self.timestamp, self.level, self.message_template,
            tuple(self.properties.items()),
            self.exception, self.trace_id, self.span_id,
        ))

    @classmethod
    def create(
        cls,
        timestamp: datetime,
        level: LogEventLevel,
        message_template: MessageTemplate,
        properties: Iterable[LogEventProperty],
        exception: TextException | None = None,
        trace_id: str | None = None,
        span_id: str | None = None,
    ) -> "LogEvent":
        """Build an event from a property list; later names replace earlier ones."""
        by_name: dict[str, LogEventPropertyValue] = {}
        for prop in properties:
            by_name[prop.name] = prop.value
        return cls(timestamp, level, message_template, by_name, exception, trace_id, span_id)

    def render_message(self) -> str:
        return self.message_template.render(self.properties)

    def to_dict(self) -> dict[str, Any]:
        """Plain, JSON-serialisable view of the event for display."""
        out: dict[str, Any] = {
            "timestamp": self.timestamp.isoformat(),
            "level": str(self.level),
            "message_template": self.message_template.text,
            "message": self.render_message(),
        }
        if self.exception is not None:
            out["exception"] = self.exception.text
        if self.trace_id is not None:
            out["trace_id"] = self.trace_id
        if self.span_id is not None:
            out["span_id"] = self.span_id
        out["properties"] = {name: v.to_python() for name, v in self.properties.items()}
        return out
