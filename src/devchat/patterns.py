"""Signature tables for code, error and language detection.

Every pattern here runs against arbitrary user-supplied message bodies on each
render, so each one must stay linear in the input: line anchors use ``^[ \\t]*``
rather than ``^\\s*`` under MULTILINE, open-ended spans use a negated class that
cannot also match the token that follows them, no two adjacent quantifiers can
match the same characters, and quantifiers are never nested.
"""

from __future__ import annotations

import re
from typing import Iterable

from .config import PLAIN_LANGUAGE

__all__ = [
    "CODE_SIGNATURES",
    "ERROR_SIGNATURES",
    "LANGUAGE_SIGNATURES",
    "FENCE_LANGUAGE",
    "PLAIN_LANGUAGE",
    "matches_any",
    "fence_language",
    "detect_language",
]

_M = re.MULTILINE
_I = re.IGNORECASE

# Language tag on an opening fence, e.g. ```python followed by a line break
FENCE_LANGUAGE = re.compile(r"```(\w[\w+#-]*)[ \t]*\r?\n")

CODE_SIGNATURES: tuple[re.Pattern[str], ...] = (
    # Fenced code block
    re.compile(r"```.*?```", re.DOTALL),
    # JS / TS declarations
    re.compile(
        r"^[ \t]*(?:"
        r"import\s+[\w{*$'\"]"
        r"|export\s+(?:default|const|let|var|function|class|interface|type|async|\{)"
        r"|(?:const|let|var)\s+[\w$]+\s*="
        r"|(?:async\s+)?function\s*(?:\*\s*)?(?:[\w$]+\s*)?\("
        r"|interface\s+\w+"
        r"|type\s+\w+\s*="
        r")",
        _M,
    ),
    # Python statements
    re.compile(
        r"^[ \t]*(?:"
        r"def\s+\w+\s*\("
        r"|class\s+\w+\s*[(:]"
        r"|from\s+[\w.]+\s+import\s"
        r"|(?:if|elif|for|while|with)\s[^\n]*:[ \t]*$"
        r"|(?:else|try|finally):"
        r"|except\b"
        r")",
        _M,
    ),
    # PHP
    re.compile(r"^[ \t]*(?:<\?php|namespace\s+[\w\\]+|use\s+[\w\\]+;)", _M),
    # Java
    re.compile(
        r"^[ \t]*(?:package\s+[\w.]+;|import\s+java\.|"
        r"public\s+(?:static\s+)?(?:final\s+)?(?:class|interface|enum|void)\b)",
        _M,
    ),
    # C / C++
    re.compile(r"^[ \t]*#include[ \t]*[<\"]", _M),
    # Decorators and annotations
    re.compile(
        r"^[ \t]*@(?:Component|Injectable|Entity|Controller|Override|"
        r"dataclass|property|staticmethod|classmethod|app\.\w+|pytest\.\w+)\b",
        _M,
    ),
    # JSON-like object and array shapes
    re.compile(r"\{[^{}:]*:[^{}]*\}"),
    re.compile(r"\[\s*\{[^\[\]]*\}\s*\]"),
    # SQL DML / DDL
    re.compile(
        r"^[ \t]*(?:"
        r"SELECT\s+(?:\*|DISTINCT\b)"
        r"|SELECT\s[^\n]*?\bFROM\b"
        r"|INSERT\s+INTO\b"
        r"|UPDATE\s+\w+\s+SET\b"
        r"|DELETE\s+FROM\b"
        r"|(?:CREATE|DROP|ALTER)\s+(?:TABLE|INDEX|VIEW|DATABASE|SCHEMA)\b"
        r")",
        _M | _I,
    ),
    # Arrow functions and empty-parameter bodies
    re.compile(r"=>"),
    re.compile(r"\(\)[ \t]*\{"),
    # Single-line comments
    re.compile(r"^[ \t]*(?://|#!|# )", _M),
)

ERROR_SIGNATURES: tuple[re.Pattern[str], ...] = (
    re.compile(r"Error:|Exception:|Traceback|FATAL|WARN|ERROR", _I),
    # Stack frame: at handler (src/app.js:12:5)
    re.compile(r"\bat\s+[\w.$<>]+\s*\([^()\n]*:\d+:\d+\)"),
    # Python frame: File "app.py", line 3
    re.compile(r"^[ \t]*File \"[^\"\n]+\", line \d+", _M),
    # Indented "at" continuation
    re.compile(r"^[ \t]+at\s", _M),
    re.compile(r"\[(?:error|warn|warning|fatal)\]", _I),
    # Package manager failure banners
    re.compile(r"npm\s+ERR!|yarn\s+error|ERR_PNPM_\w+", _I),
    re.compile(
        r"\b(?:TypeError|ReferenceError|SyntaxError|RangeError|ValueError|KeyError|"
        r"IndexError|AttributeError|ImportError|ModuleNotFoundError|"
        r"NullPointerException|Segmentation fault)\b"
    ),
    re.compile(r"failed|failure|crashed", _I),
)

# Checked in order; the first match wins. A None tag means "use group 1".
LANGUAGE_SIGNATURES: tuple[tuple[re.Pattern[str], str | None], ...] = (
    (FENCE_LANGUAGE, None),
    (re.compile(r"\A\s*import\b[^\n]*\sfrom\s+['\"]"), "typescript"),
    (re.compile(r"\A\s*import\s+React\b"), "tsx"),
    (re.compile(r"\A\s*(?:const|let|var)\s+[\w$]+\s*="), "javascript"),
    (re.compile(r"\A\s*function\s+[\w$]+\s*\("), "javascript"),
    (re.compile(r"\A\s*def\s+\w+\s*\("), "python"),
    (re.compile(r"\A\s*class\s+\w+\s*[(:]"), "python"),
    (re.compile(r"\A\s*<\?php"), "php"),
    (re.compile(r"\A\s*package\s+[\w.]+;"), "java"),
    (re.compile(r"\A\s*#include\s*[<\"]"), "cpp"),
    (re.compile(r"\A\s*(?:CREATE\s+TABLE|SELECT\s)|^[ \t]*SELECT\s[^\n]*?\bFROM\b", _M | _I), "sql"),
    (re.compile(r"\A\s*(?:\[\s*)?\{\s*\"[^\"\n]*\"\s*:"), "json"),
    (re.compile(r"\A\s*<[A-Za-z][^>]*>"), "html"),
    (re.compile(r"\A\s*\.[\w-]+\s*\{"), "css"),
    (re.compile(r"\A\s*@[\w-]+\s*\{"), "css"),
    (re.compile(r"\A\s*\$\s|\A\s*#![^\n]*\bsh\b|\A\s*#[^\n]*bash", _I), "bash"),
)


def matches_any(patterns: Iterable[re.Pattern[str]], text: str) -> bool:
    return any(pattern.search(text) for pattern in patterns)


def fence_language(text: str) -> str | None:
    """Return the language tag of the first tagged opening fence, if any."""
    match = FENCE_LANGUAGE.search(text)
    return match.group(1) if match else None


def detect_language(text: str) -> str | None:
    """Walk LANGUAGE_SIGNATURES in priority order and return the first tag that matches."""
    for pattern, tag in LANGUAGE_SIGNATURES:
        match = pattern.search(text)
        if match:
            return tag if tag is not None else match.group(1)
    return None
