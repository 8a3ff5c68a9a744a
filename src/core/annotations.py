"""Render offset-based style annotations as HTML markup (core domain).

Telegram expresses annotation offsets and lengths in UTF-16 code units, while
Python strings index by code point. Characters outside the BMP (most emoji)
occupy two UTF-16 units, so every character is walked together with its
UTF-16 offset instead of indexing the string directly.
"""

from __future__ import annotations

import html
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from core.models import Annotation, AnnotationKind


@dataclass
class _OpenTag:
    closer: str
    end: int


def utf16_chunks(text: str) -> List[Tuple[int, str]]:
    """Return ``(utf16_offset, character)`` pairs for ``text``."""

    chunks: List[Tuple[int, str]] = []
    offset = 0
    for char in text:
        chunks.append((offset, char))
        offset += 2 if ord(char) > 0xFFFF else 1
    return chunks


def utf16_slice(chunks: List[Tuple[int, str]], offset: int, length: int) -> str:
    """Return the characters covering UTF-16 units ``[offset, offset + length)``."""

    end = offset + length
    return "".join(char for position, char in chunks if offset <= position < end)


def _opening_tag(annotation: Annotation, chunks: List[Tuple[int, str]]) -> Optional[str]:
    kind = annotation.kind
    if kind is AnnotationKind.BOLD:
        return "<strong>"
    if kind is AnnotationKind.ITALIC:
        return "<em>"
    if kind is AnnotationKind.STRIKETHROUGH:
        return "<s>"
    if kind is AnnotationKind.TEXT_URL:
        return _anchor(annotation.url or "")
    if kind is AnnotationKind.URL:
        # The annotation does not carry the URL; it is the annotated text.
        return _anchor(utf16_slice(chunks, annotation.offset, annotation.length))
    if kind is AnnotationKind.UNSUPPORTED:
        return None
    raise ValueError(f"Unknown annotation kind: {kind}")


def _closing_tag(annotation: Annotation) -> str:
    if annotation.kind is AnnotationKind.BOLD:
        return "</strong>"
    if annotation.kind is AnnotationKind.ITALIC:
        return "</em>"
    if annotation.kind is AnnotationKind.STRIKETHROUGH:
        return "</s>"
    return "</a>"


def _anchor(url: str) -> str:
    return f'<a href="{html.escape(url, quote=True)}" target="_blank">'


def render(text: str, annotations: Iterable[Annotation]) -> str:
    """Return ``text`` as HTML with the supported annotations applied.

    Annotations are processed in start order; several starting at the same
    offset open longest-first so their closers nest. Unsupported kinds pass
    the text through untouched. Tags still open at the end are closed.
    """

    chunks = utf16_chunks(text)
    pending = sorted(annotations, key=lambda annotation: (annotation.offset, -annotation.length))
    stack: List[_OpenTag] = []
    parts: List[str] = []
    next_index = 0

    for position, char in chunks:
        while stack and stack[-1].end <= position:
            parts.append(stack.pop().closer)

        # An annotation starting inside a surrogate pair opens at the next character.
        while next_index < len(pending) and pending[next_index].offset <= position:
            annotation = pending[next_index]
            next_index += 1
            if annotation.length <= 0:
                continue
            opener = _opening_tag(annotation, chunks)
            if opener is None:
                continue
            parts.append(opener)
            stack.append(_OpenTag(closer=_closing_tag(annotation), end=annotation.end))

        parts.append(html.escape(char, quote=False))

    while stack:
        parts.append(stack.pop().closer)

    return "".join(parts)

