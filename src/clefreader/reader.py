"""Read log events from compact-JSON (CLEF) text.

Each non-blank line of the input holds one complete JSON object describing a
single event. Blank and whitespace-only lines are skipped but still counted,
so line numbers in error messages match what an editor shows.

Usage::

    with open("app.clef", encoding="utf-8") as f, LogEventReader(f) as reader:
        for event in reader:
            print(event.render_message())

    event = read_from_string('{"@t":"2016-10-12T04:20:58Z","@m":"Hello"}')
"""
from __future__ import annotations

import inspect
import json
import logging
import re
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Callable, Iterator, Mapping, TextIO

from . import fields as clef_fields
from .errors import InvalidDataError
from .events import (
    LogEvent,
    LogEventLevel,
    LogEventProperty,
    Rendering,
    ScalarValue,
    TextException,
)
from .properties import create_property
from .templates import MessageTemplate, MessageTemplateParser, escape

logger = logging.getLogger(__name__)

JsonLoads = Callable[[str], Any]

_PARSER = MessageTemplateParser()
_NO_RENDERINGS: tuple[Rendering, ...] = ()
_MAX_EVENT_ID = 0xFFFFFFFF
_TRACE_ID_RE = re.compile(r"[0-9a-fA-F]{32}")
_SPAN_ID_RE = re.compile(r"[0-9a-fA-F]{16}")


class LogEventReader:
    """Pull events one at a time from a text stream.

    The reader owns the stream once constructed: ``close()`` (or leaving a
    ``with`` block) closes it.
    """

    def __init__(self, text: TextIO, json_loads: JsonLoads = json.loads) -> None:
        if text is None:
            raise TypeError("text must be a readable text stream")
        self._text = text
        self._loads = json_loads
        self._line_number = 0

    @property
    def line_number(self) -> int:
        """Number of the last line read (1-based; 0 before the first read)."""
        return self._line_number

    def try_read(self) -> LogEvent | None:
        """Read the next event, or return ``None`` at the end of the input.

        Raises:
            InvalidDataError: the next non-blank line isn't a valid event.
        """
        while True:
            line = self._text.readline()
            if not line:
                return None
            self._line_number += 1
            if line.strip():
                return _read_line(self._line_number, line, self._loads)
            logger.debug("Skipping blank line %d", self._line_number)

    def __iter__(self) -> Iterator[LogEvent]:
        while True:
            event = self.try_read()
            if event is None:
                return
            yield event

    def close(self) -> None:
        self._text.close()

    def __enter__(self) -> "LogEventReader":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class AsyncLogEventReader:
    """Asynchronous counterpart of :class:`LogEventReader`.

    ``stream`` is anything with an awaitable ``readline()`` returning ``str``
    or UTF-8 encoded ``bytes``, such as :class:`asyncio.StreamReader`. The
    only suspension point is that ``readline()`` call.
    """

    def __init__(self, stream: Any, json_loads: JsonLoads = json.loads) -> None:
        if stream is None:
            raise TypeError("stream must provide an awaitable readline()")
        self._stream = stream
        self._loads = json_loads
        self._line_number = 0

    @property
    def line_number(self) -> int:
        return self._line_number

    async def try_read_async(self) -> LogEvent | None:
        while True:
            line = await self._stream.readline()
            if not line:
                return None
            self._line_number += 1
            if line.strip():
                return _read_line(self._line_number, line, self._loads)
            logger.debug("Skipping blank line %d", self._line_number)

    def __aiter__(self) -> AsyncIterator[LogEvent]:
        return self

    async def __anext__(self) -> LogEvent:
        event = await self.try_read_async()
        if event is None:
            raise StopAsyncIteration
        return event

    async def aclose(self) -> None:
        close = getattr(self._stream, "close", None)
        if close is None:
            return
        result = close()
        if inspect.isawaitable(result):
            await result

    async def __aenter__(self) -> "AsyncLogEventReader":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()


def read_from_string(document: str, json_loads: JsonLoads = json.loads) -> LogEvent:
    """Decode a single compact-JSON document that has already been extracted."""
    if document is None:
        raise TypeError("document must be a string")
    return _read_line(1, document, json_loads)


def read_from_dict(data: Mapping[str, Any]) -> LogEvent:
    """Decode an event from an already-parsed JSON object.

    ``@t`` may be a :class:`~datetime.datetime` here as well as a string.
    """
    if not isinstance(data, Mapping):
        raise TypeError(f"expected a mapping, got {type(data).__name__}")
    return read_event(1, data)


def _read_line(line_number: int, line: str | bytes, loads: JsonLoads) -> LogEvent:
    try:
        if isinstance(line, bytes):
            line = line.decode("utf-8")
        data = loads(line)
    except ValueError as exc:
        raise InvalidDataError(
            f"The data on line {line_number} is not a complete JSON object.",
            line_number,
        ) from exc

    if not isinstance(data, dict):
        raise InvalidDataError(
            f"The data on line {line_number} is not a complete JSON object.",
            line_number,
        )

    event = read_event(line_number, data)
    logger.debug("Read %s event from line %d", event.level, line_number)
    return event


# ── Event decoding ───────────────────────────────────────────────────────────


def read_event(line_number: int, data: Mapping[str, Any]) -> LogEvent:
    """Map the fields of one JSON object onto a :class:`LogEvent`."""
    timestamp = _get_required_timestamp(line_number, data, clef_fields.TIMESTAMP)

    template_text = _get_optional_string(line_number, data, clef_fields.MESSAGE_TEMPLATE)
    if template_text is None:
        message = _get_optional_string(line_number, data, clef_fields.MESSAGE)
        if message is not None:
            template_text = escape(message)

    level = LogEventLevel.INFORMATION
    level_name = _get_optional_string(line_number, data, clef_fields.LEVEL)
    if level_name is not None:
        try:
            level = LogEventLevel.parse(level_name)
        except ValueError as exc:
            raise InvalidDataError(
                f"The value of `{clef_fields.LEVEL}` on line {line_number} "
                f"is not a known level: {level_name!r}.",
                line_number,
                clef_fields.LEVEL,
            ) from exc

    exception = None
    exception_text = _get_optional_string(line_number, data, clef_fields.EXCEPTION)
    if exception_text is not None:
        exception = TextException(exception_text)

    trace_id = _get_optional_hex_id(line_number, data, clef_fields.TRACE_ID, _TRACE_ID_RE)
    span_id = _get_optional_hex_id(line_number, data, clef_fields.SPAN_ID, _SPAN_ID_RE)

    template = (
        _PARSER.parse(template_text) if template_text is not None
        else MessageTemplate.empty()
    )

    renderings = _get_renderings(line_number, data, template)

    properties: list[LogEventProperty] = []
    for field_name, value in data.items():
        if clef_fields.is_reserved(field_name):
            continue
        name = clef_fields.unescape(field_name)
        matching = (
            tuple(r for r in renderings if r.name == name) if renderings
            else _NO_RENDERINGS
        )
        properties.append(create_property(name, value, matching))

    event_id = _get_optional_event_id(line_number, data, clef_fields.EVENT_ID)
    if event_id is not None:
        properties.append(LogEventProperty(clef_fields.EVENT_ID, ScalarValue(event_id)))

    return LogEvent.create(
        timestamp=timestamp,
        level=level,
        message_template=template,
        properties=properties,
        exception=exception,
        trace_id=trace_id,
        span_id=span_id,
    )


def _unsupported(line_number: int, field: str) -> InvalidDataError:
    return InvalidDataError(
        f"The value of `{field}` on line {line_number} is not in a supported format.",
        line_number,
        field,
    )


def _get_optional_string(line_number: int, data: Mapping[str, Any], field: str) -> str | None:
    value = data.get(field)
    if value is None:
        return None
    if not isinstance(value, str):
        raise _unsupported(line_number, field)
    return value


def _get_required_timestamp(line_number: int, data: Mapping[str, Any], field: str) -> datetime:
    value = data.get(field)
    if value is None:
        raise InvalidDataError(
            f"The data on line {line_number} does not include the required `{field}` field.",
            line_number,
            field,
        )

    if isinstance(value, datetime):
        timestamp = value
    elif isinstance(value, str):
        try:
            timestamp = datetime.fromisoformat(value)
        except ValueError as exc:
            raise InvalidDataError(
                f"The value of `{field}` on line {line_number} is not a valid "
                f"ISO-8601 timestamp: {value!r}.",
                line_number,
                field,
            ) from exc
    else:
        raise _unsupported(line_number, field)

    # Timestamps without an offset are taken to be UTC.
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    return timestamp


def _get_optional_hex_id(
    line_number: int,
    data: Mapping[str, Any],
    field: str,
    pattern: re.Pattern[str],
) -> str | None:
    value = _get_optional_string(line_number, data, field)
    if value is None:
        return None
    if not pattern.fullmatch(value):
        raise InvalidDataError(
            f"The value of `{field}` on line {line_number} is not a valid "
            f"hexadecimal identifier: {value!r}.",
            line_number,
            field,
        )
    return value.lower()


def _get_optional_event_id(line_number: int, data: Mapping[str, Any], field: str) -> str | int | None:
    value = data.get(field)
    if value is None:
        return None
    if isinstance(value, str):
        return value
    # bool is an int subclass; JSON true/false is not an event id.
    if isinstance(value, int) and not isinstance(value, bool) and 0 <= value <= _MAX_EVENT_ID:
        return value
    raise _unsupported(line_number, field)


def _get_renderings(
    line_number: int,
    data: Mapping[str, Any],
    template: MessageTemplate,
) -> tuple[Rendering, ...]:
    if clef_fields.RENDERINGS not in data:
        return _NO_RENDERINGS
    rendered_by_index = data[clef_fields.RENDERINGS]
    if not isinstance(rendered_by_index, list):
        raise InvalidDataError(
            f"The `{clef_fields.RENDERINGS}` value on line {line_number} is not an array as expected.",
            line_number,
            clef_fields.RENDERINGS,
        )

    formatted = [t for t in template.property_tokens if t.format is not None]
    renderings: list[Rendering] = []
    # Positional: the nth formatted hole gets the nth rendering.
    for token, rendered in zip(formatted, rendered_by_index):
        if not isinstance(rendered, str):
            raise _unsupported(line_number, clef_fields.RENDERINGS)
        renderings.append(Rendering(token.property_name, token.format, rendered))
    return tuple(renderings)
