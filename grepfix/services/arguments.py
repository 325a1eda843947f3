"""
Compile a raw, shell-like query into grep program arguments.

The first non-option token is the search pattern; later non-option
tokens are paths and are glob-expanded. A backslash-escaped space keeps
a multi-word pattern (or path) together as one token.
"""

from __future__ import annotations

import glob
import logging
import os
import shlex
from pathlib import Path

from grepfix.models.search import CompiledCommand

logger = logging.getLogger(__name__)

ESCAPE = "\\"


def tokenize(raw: str) -> list[str]:
    """Split ``raw`` on runs of whitespace, treating ``\\ `` as a literal space."""
    tokens: list[str] = []
    current: list[str] = []
    in_token = False
    index = 0

    while index < len(raw):
        char = raw[index]
        if char == ESCAPE and raw[index + 1 : index + 2] == " ":
            current.append(" ")
            in_token = True
            index += 2
            continue
        if char.isspace():
            if in_token:
                tokens.append("".join(current))
                current = []
                in_token = False
            index += 1
            continue
        current.append(char)
        in_token = True
        index += 1

    if in_token:
        tokens.append("".join(current))
    return tokens


def is_option(token: str) -> bool:
    return token.startswith("-")


def expand_path(token: str, root: Path) -> list[str]:
    """
    Expand a path token as a glob relative to ``root``.

    Ignore files play no part here: the user named these paths explicitly.
    A token that matches nothing is returned unchanged so the search
    program reports it.
    """
    pattern = os.path.expanduser(token)
    matches = sorted(glob.glob(pattern, root_dir=root, recursive=True))
    if not matches:
        return [token]
    return matches


def compile_query(raw: str, root: Path | str = ".") -> CompiledCommand:
    """
    Compile ``raw`` into an escaped argument string and a search pattern.

    Option tokens pass through verbatim. The first other token is captured
    as the pattern. Every token after that is a path and is glob-expanded.
    Each resulting argument is shell-quoted individually and the results
    are joined with single spaces.
    """
    root_path = Path(root)
    pattern: str | None = None
    argv: list[str] = []

    for token in tokenize(raw):
        if is_option(token):
            argv.append(token)
        elif pattern is None:
            pattern = token
            argv.append(token)
        else:
            argv.extend(expand_path(token, root_path))

    escaped_args = " ".join(shlex.quote(arg) for arg in argv)

    logger.debug(
        "Compiled search query",
        extra={
            "token_count": len(argv),
            "has_pattern": pattern is not None,
        },
    )

    return CompiledCommand(escaped_args=escaped_args, argv=tuple(argv), pattern=pattern)
