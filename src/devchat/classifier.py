"""Classify message content as code, error output, or plain chat."""

from __future__ import annotations

from .config import (
    LONG_CONTENT_CHARS,
    LONG_CONTENT_LINES,
    PLAIN_LANGUAGE,
    THREAD_LINE_THRESHOLD,
)
from .models import ContentAnalysis, Message
from .patterns import (
    CODE_SIGNATURES,
    ERROR_SIGNATURES,
    detect_language,
    fence_language,
    matches_any,
)


def classify(content: str) -> ContentAnalysis:
    """Analyze a message body.

    Pure and deterministic: the same content always yields the same analysis.
    Runs on every render, so it does no I/O and no logging.

    A message should be threaded when it is long code, looks like an error or
    log trace, or simply runs past THREAD_LINE_THRESHOLD lines.
    """
    line_count = content.count("\n") + 1
    is_long_content = line_count > LONG_CONTENT_LINES or len(content) > LONG_CONTENT_CHARS

    has_code = matches_any(CODE_SIGNATURES, content)
    is_error = matches_any(ERROR_SIGNATURES, content)

    language = fence_language(content) or detect_language(content)
    if language is None and is_error:
        language = PLAIN_LANGUAGE

    should_thread = (
        (has_code and is_long_content)
        or is_error
        or line_count > THREAD_LINE_THRESHOLD
    )

    return ContentAnalysis(
        has_code=has_code,
        language=language,
        is_error=is_error,
        is_long_content=is_long_content,
        should_thread=should_thread,
    )


def should_open_thread(message: Message) -> bool:
    """Whether a freshly sent top-level message warrants opening its thread right away."""
    if message.is_reply:
        return False
    return classify(message.content).should_thread
