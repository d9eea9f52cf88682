"""Message templates: tokenizing, escaping and rendering.

A message template is literal text with named holes::

    "Hello, {@User}, you have {Count,5:000} new messages"

Holes may carry a destructuring hint (``@`` or ``$``), an alignment after a
comma and a format after a colon. ``{{`` and ``}}`` stand for literal braces.
Anything that looks like a hole but isn't well-formed is kept as literal text.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Iterator, Mapping, Union


def escape(text: str) -> str:
    """Turn free-form text into a template that renders back to ``text``."""
    return text.replace("{", "{{").replace("}", "}}")


class Destructuring(enum.Enum):
    DEFAULT = ""
    STRINGIFY = "$"
    DESTRUCTURE = "@"


@dataclass(frozen=True)
class TextToken:
    text: str

    def render(self, properties: Mapping[str, Any]) -> str:
        return self.text


@dataclass(frozen=True)
class PropertyToken:
    property_name: str
    raw_text: str
    format: str | None = None
    alignment: int | None = None
    destructuring: Destructuring = Destructuring.DEFAULT

    def render(self, properties: Mapping[str, Any]) -> str:
        value = properties.get(self.property_name)
        if value is None:
            return self.raw_text
        rendered = value.render(self.format)
        if self.alignment is None:
            return rendered
        width = abs(self.alignment)
        # Negative alignment means left-aligned, as in composite formatting.
        if self.alignment < 0:
            return rendered.ljust(width)
        return rendered.rjust(width)


MessageTemplateToken = Union[TextToken, PropertyToken]


@dataclass(frozen=True)
class MessageTemplate:
    text: str
    tokens: tuple[MessageTemplateToken, ...]

    @classmethod
    def empty(cls) -> "MessageTemplate":
        return cls("", ())

    @property
    def property_tokens(self) -> tuple[PropertyToken, ...]:
        return tuple(t for t in self.tokens if isinstance(t, PropertyToken))

    def render(self, properties: Mapping[str, Any]) -> str:
        """Render the template against a name → property value mapping."""
        return "".join(token.render(properties) for token in self.tokens)

    def __str__(self) -> str:
        return self.text


class MessageTemplateParser:
    """Split template text into :class:`TextToken` and :class:`PropertyToken`.

    Usage::

        template = MessageTemplateParser().parse("Hello, {Name}")
        [t.property_name for t in template.property_tokens]  # ['Name']
    """

    def parse(self, text: str) -> MessageTemplate:
        return MessageTemplate(text, tuple(self._tokenize(text)))

    def _tokenize(self, text: str) -> Iterator[MessageTemplateToken]:
        pos = 0
        end = len(text)
        while pos < end:
            literal, pos = _scan_text(text, pos)
            if literal:
                yield TextToken(literal)
            if pos < end:
                token, pos = _scan_hole(text, pos)
                yield token


def _scan_text(text: str, pos: int) -> tuple[str, int]:
    """Consume literal text up to the next opening brace that starts a hole."""
    chars: list[str] = []
    end = len(text)
    while pos < end:
        ch = text[pos]
        if ch == "{":
            if pos + 1 < end and text[pos + 1] == "{":
                chars.append("{")
                pos += 2
                continue
            break
        if ch == "}" and pos + 1 < end and text[pos + 1] == "}":
            chars.append("}")
            pos += 2
            continue
        chars.append(ch)
        pos += 1
    return "".join(chars), pos


def _scan_hole(text: str, start: int) -> tuple[MessageTemplateToken, int]:
    """Consume a hole starting at ``text[start] == '{'``."""
    pos = start + 1
    end = len(text)
    while pos < end and text[pos] not in "{}":
        pos += 1

    # Unterminated, or interrupted by another opening brace.
    if pos == end or text[pos] == "{":
        return TextToken(text[start:pos]), pos

    raw = text[start:pos + 1]
    token = _parse_hole(text[start + 1:pos], raw)
    return (token if token is not None else TextToken(raw)), pos + 1


def _parse_hole(content: str, raw: str) -> PropertyToken | None:
    destructuring = Destructuring.DEFAULT
    if content[:1] in ("@", "$"):
        destructuring = Destructuring(content[0])
        content = content[1:]

    head, colon, fmt = content.partition(":")
    name, comma, alignment_text = head.partition(",")

    if not _is_valid_name(name):
        return None
    if colon and not fmt:
        return None

    alignment: int | None = None
    if comma:
        if not _is_valid_alignment(alignment_text):
            return None
        alignment = int(alignment_text)

    return PropertyToken(
        property_name=name,
        raw_text=raw,
        format=fmt if colon else None,
        alignment=alignment,
        destructuring=destructuring,
    )


def _is_valid_name(name: str) -> bool:
    return bool(name) and all(ch.isalnum() or ch == "_" for ch in name)


def _is_valid_alignment(text: str) -> bool:
    digits = text[1:] if text.startswith("-") else text
    return digits.isdigit() and int(digits) > 0
