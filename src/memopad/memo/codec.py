"""Record codec: one memo <-> one front-matter Markdown document.

    ---
    id: "3f2a..."
    title: "Groceries \\"weekly\\""
    createdAt: 1718000000000
    updatedAt: 1718000000000
    order: 0
    ---
    raw body text, verbatim

Only the title is escaped. The body follows the closing delimiter unchanged.
"""

from __future__ import annotations

import logging
import re

from memopad.memo.errors import DecodeFailure
from memopad.memo.models import Memo

logger = logging.getLogger(__name__)

DELIMITER = "---"

_DOCUMENT_RE = re.compile(r"---\n(.*?)\n---\n(.*)", re.DOTALL)
_ID_RE = re.compile(r'^id:[ \t]*"([^"\n]+)"[ \t]*$', re.MULTILINE)
_TITLE_RE = re.compile(r'^title:[ \t]*"((?:[^"\\\n]|\\.)*)"[ \t]*$', re.MULTILINE)
_INT_FIELDS = ("createdAt", "updatedAt", "order")
_INT_RES = {
    name: re.compile(rf"^{name}:[ \t]*([0-9]+)[ \t]*$", re.MULTILINE) for name in _INT_FIELDS
}
_ESCAPE_RE = re.compile(r"\\(.)", re.DOTALL)


def escape_title(value: str) -> str:
    """Escape backslash, then quote, then newline."""
    return value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")


def unescape_title(value: str) -> str:
    """Exact inverse of :func:`escape_title`.

    Done in a single left-to-right pass so an escaped backslash followed by
    ``n`` is never re-read as a newline escape.
    """
    return _ESCAPE_RE.sub(lambda m: "\n" if m.group(1) == "n" else m.group(1), value)


def encode(memo: Memo) -> str:
    if memo.order is None:
        raise ValueError(f"memo {memo.id} has no order; normalize before encoding")
    return (
        f"{DELIMITER}\n"
        f'id: "{memo.id}"\n'
        f'title: "{escape_title(memo.title)}"\n'
        f"createdAt: {memo.created_at}\n"
        f"updatedAt: {memo.updated_at}\n"
        f"order: {memo.order}\n"
        f"{DELIMITER}\n"
        f"{memo.body}"
    )


def parse(text: str, source_name: str = "<memory>") -> Memo:
    """Strict decode. Raises DecodeFailure naming the first problem found."""
    match = _DOCUMENT_RE.fullmatch(text)
    if not match:
        raise DecodeFailure(f"{source_name}: front-matter delimiters not found")
    block, body = match.group(1), match.group(2)

    id_match = _ID_RE.search(block)
    if not id_match:
        raise DecodeFailure(f"{source_name}: missing or invalid 'id'")
    title_match = _TITLE_RE.search(block)
    if not title_match:
        raise DecodeFailure(f"{source_name}: missing or invalid 'title'", id_match.group(1))

    ints: dict[str, int] = {}
    for name in _INT_FIELDS:
        m = _INT_RES[name].search(block)
        if not m:
            raise DecodeFailure(
                f"{source_name}: missing or non-integer '{name}'", id_match.group(1)
            )
        ints[name] = int(m.group(1))

    return Memo(
        id=id_match.group(1),
        title=unescape_title(title_match.group(1)),
        body=body,
        created_at=ints["createdAt"],
        updated_at=ints["updatedAt"],
        order=ints["order"],
    )


def decode(text: str, source_name: str = "<memory>") -> Memo | None:
    """Lenient decode: returns None instead of raising on a bad record."""
    try:
        return parse(text, source_name)
    except DecodeFailure as e:
        logger.warning("Skipping unreadable memo record: %s", e)
        return None
