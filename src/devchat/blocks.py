"""Split a message body into plain-text and code segments for display."""

from __future__ import annotations

import re

from .classifier import classify
from .config import PLAIN_LANGUAGE
from .models import ContentBlock

# Opening fence, optional language tag ending the line, body up to the next fence
_FENCED_BLOCK = re.compile(r"```(?:(\w[\w+#-]*)[ \t]*\r?\n)?(.*?)```", re.DOTALL)

# Detected tag → syntax highlighter lexer name
LEXER_ALIASES = {
    "typescript": "tsx",
    "ts": "tsx",
    "javascript": "jsx",
    "js": "jsx",
    "python": "python",
    "py": "python",
    "bash": "bash",
    "shell": "bash",
    "sh": "bash",
    "json": "json",
    "html": "markup",
    "xml": "markup",
    "css": "css",
    "scss": "css",
    "sql": "sql",
    "java": "java",
    "cpp": "cpp",
    "c": "c",
    PLAIN_LANGUAGE: "bash",
}


def highlight_language(language: str | None) -> str:
    """Map a detected language tag to the lexer used for highlighting."""
    if not language:
        return LEXER_ALIASES[PLAIN_LANGUAGE]
    return LEXER_ALIASES.get(language.lower(), "bash")


def extract_blocks(content: str) -> list[ContentBlock]:
    """Return the ordered blocks of a message.

    Fenced regions become code blocks tagged with their fence language (or the
    plain marker). Text around them becomes plain blocks, trimmed, with empty
    spans dropped. A body without any complete fence is classified as a whole
    and returned as a single block. Never raises.
    """
    blocks: list[ContentBlock] = []
    last_index = 0
    found_fence = False

    for match in _FENCED_BLOCK.finditer(content):
        found_fence = True
        _append_text(blocks, content[last_index : match.start()])

        language, body = match.groups()
        blocks.append(
            ContentBlock(
                text=body.strip("\r\n"),
                language=language or PLAIN_LANGUAGE,
                is_code_block=True,
            )
        )
        last_index = match.end()

    if found_fence:
        _append_text(blocks, content[last_index:])
        return blocks

    analysis = classify(content)
    if analysis.has_code or analysis.is_error:
        return [
            ContentBlock(
                text=content,
                language=analysis.language or PLAIN_LANGUAGE,
                is_code_block=True,
            )
        ]
    return [ContentBlock(text=content)]


def _append_text(blocks: list[ContentBlock], span: str) -> None:
    text = span.strip()
    if text:
        blocks.append(ContentBlock(text=text))


def is_plain_text(blocks: list[ContentBlock]) -> bool:
    """True when the message renders as a single run of plain text."""
    return len(blocks) == 1 and not blocks[0].is_code_block
