"""
Parameter binding for raw SQL statements.

``?`` and ``%s`` placeholders are numbered left to right and bound to the
positional arguments.  Placeholders inside quoted literals, quoted
identifiers and ``--`` / ``/* */`` comments are left alone, and every colon
outside the generated ``:pN`` names is escaped so that text like
``'at :noon'`` or ``'1'::int`` reaches the driver unchanged.

A list, tuple or set argument expands to a parenthesised value list, so
``WHERE id IN ?`` takes a sequence.  A single mapping argument binds named
``:name`` parameters instead; colons inside literals and comments are still
escaped on that path.

Backslash escapes inside literals (``'it\\'s'``) are honoured only when
``backslash_escapes`` is set, which ``Db`` does for MySQL and MariaDB.
PostgreSQL dollar-quoted strings are not recognised.
"""
from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from typing import Any

import sqlalchemy as sa
from sqlalchemy.sql.elements import TextClause

_QUOTED = r"""'(?:[^']|'')*'|"(?:[^"]|"")*"|`[^`]*`"""
_QUOTED_BACKSLASH = r"""'(?:[^'\\]|\\.|'')*'|"(?:[^"\\]|\\.|"")*"|`[^`]*`"""
_REST = r"|--[^\n]*|/\*.*?\*/|%s|\?|:"

_TOKENS = re.compile(_QUOTED + _REST, re.DOTALL)
_TOKENS_BACKSLASH = re.compile(_QUOTED_BACKSLASH + _REST, re.DOTALL)

_PLACEHOLDERS = ("?", "%s")

_EXPANDING_TYPES = (list, tuple, set, frozenset)


def _bindparam(name: str, value: Any) -> sa.BindParameter[Any]:
    if isinstance(value, _EXPANDING_TYPES):
        return sa.bindparam(name, list(value), expanding=True)
    return sa.bindparam(name, value)


def bind_positional(sql: str, args: Sequence[Any], *, backslash_escapes: bool = False) -> TextClause:
    """Build a ``text()`` clause for ``sql`` with ``args`` bound."""
    tokens = _TOKENS_BACKSLASH if backslash_escapes else _TOKENS
    named = len(args) == 1 and isinstance(args[0], Mapping)
    names: list[str] = []

    def rewrite(match: re.Match[str]) -> str:
        token = match.group(0)
        if token in _PLACEHOLDERS:
            if named:
                return token
            names.append(f"p{len(names)}")
            return f":{names[-1]}"
        if token == ":":
            return token if named else r"\:"
        return token.replace(":", r"\:")

    clause = sa.text(tokens.sub(rewrite, sql))
    if named:
        return clause.bindparams(*(_bindparam(k, v) for k, v in args[0].items()))

    if len(names) != len(args):
        raise ValueError(
            f"Statement has {len(names)} placeholder(s) but {len(args)} argument(s) were given"
        )
    if names:
        clause = clause.bindparams(*(_bindparam(n, v) for n, v in zip(names, args)))
    return clause
