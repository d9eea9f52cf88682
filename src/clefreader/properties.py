"""Convert decoded JSON values into log event property values."""
from __future__ import annotations

from typing import Any, Sequence

from .events import (
    LogEventProperty,
    LogEventPropertyValue,
    RenderableScalarValue,
    Rendering,
    ScalarValue,
    SequenceValue,
    StructureValue,
)

TYPE_TAG_PROPERTY_NAME = "$type"
INVALID_PROPERTY_NAME_SUBSTITUTE = "(unnamed)"


def create_property(
    name: str,
    value: Any,
    renderings: Sequence[Rendering] = (),
) -> LogEventProperty:
    # CLEF doesn't forbid empty names, but an event property needs one.
    if not LogEventProperty.is_valid_name(name):
        name = INVALID_PROPERTY_NAME_SUBSTITUTE
    return LogEventProperty(name, create_property_value(value, renderings))


def create_property_value(
    value: Any,
    renderings: Sequence[Rendering] = (),
) -> LogEventPropertyValue:
    """Map a JSON value onto the scalar/structure/sequence model.

    Renderings only ever attach to a top-level scalar; nested values are
    built without them.
    """
    if value is None:
        return ScalarValue(None)

    if isinstance(value, dict):
        type_tag = value.get(TYPE_TAG_PROPERTY_NAME)
        children = tuple(
            create_property(k, v)
            for k, v in value.items()
            if k != TYPE_TAG_PROPERTY_NAME
        )
        return StructureValue(children, type_tag if isinstance(type_tag, str) else None)

    if isinstance(value, (list, tuple)):
        return SequenceValue(tuple(create_property_value(v) for v in value))

    if renderings:
        return RenderableScalarValue(value, tuple(renderings))
    return ScalarValue(value)
