"""Tests for splitting message bodies into text and code blocks."""

import re

import pytest

from devchat.blocks import extract_blocks, highlight_language, is_plain_text
from devchat.config import PLAIN_LANGUAGE
from devchat.models import ContentBlock


def _squash(text: str) -> str:
    return re.sub(r"\s+", "", text)


class TestExtractBlocks:
    def test_empty_input(self):
        blocks = extract_blocks("")
        assert blocks == [ContentBlock(text="", language=None, is_code_block=False)]

    def test_plain_text_is_single_block(self):
        blocks = extract_blocks("see you at standup")
        assert len(blocks) == 1
        assert blocks[0].is_code_block is False
        assert blocks[0].text == "see you at standup"
        assert is_plain_text(blocks)

    def test_fence_only_is_single_block(self):
        blocks = extract_blocks("```python\nprint(1)\n```")
        assert blocks == [ContentBlock(text="print(1)", language="python", is_code_block=True)]

    def test_text_around_fences(self):
        content = "Try this:\n```js\nconst a = 1\n```\nthen\n```\nls -la\n```\n  done  "
        blocks = extract_blocks(content)

        assert [b.is_code_block for b in blocks] == [False, True, False, True, False]
        assert blocks[0].text == "Try this:"
        assert blocks[1].text == "const a = 1"
        assert blocks[1].language == "js"
        assert blocks[2].text == "then"
        assert blocks[3].language == PLAIN_LANGUAGE
        assert blocks[4].text == "done"

    def test_adjacent_fences_drop_empty_text(self):
        blocks = extract_blocks("```a\nx\n``````b\ny\n```")
        assert [b.text for b in blocks] == ["x", "y"]

    def test_body_indentation_is_preserved(self):
        blocks = extract_blocks("```python\n    if x:\n        y()\n```")
        assert blocks[0].text == "    if x:\n        y()"

    def test_unfenced_code_becomes_one_code_block(self):
        content = "def main():\n    return 1"
        blocks = extract_blocks(content)
        assert blocks == [ContentBlock(text=content, language="python", is_code_block=True)]

    def test_unfenced_error_uses_plain_marker(self):
        blocks = extract_blocks("request failed with status 502")
        assert blocks[0].is_code_block is True
        assert blocks[0].language == PLAIN_LANGUAGE

    def test_unterminated_fence_degrades_to_one_block(self):
        content = "look at this\n```python\nprint(1)"
        blocks = extract_blocks(content)
        assert len(blocks) == 1
        assert blocks[0].text == content

    @pytest.mark.parametrize(
        "content",
        [
            "",
            "hello there",
            "intro\n```sql\nSELECT 1;\n```\noutro",
            "```\na\n```\n\n```\nb\n```",
            "a ``` b ``` c",
        ],
    )
    def test_blocks_reconstruct_content(self, content):
        blocks = extract_blocks(content)
        rebuilt = "".join(b.text for b in blocks)
        without_fences = re.sub(r"```(\w[\w+#-]*[ \t]*\r?\n)?", "", content)
        assert _squash(rebuilt) == _squash(without_fences)


class TestRenderHints:
    def test_collapsible_thresholds(self):
        short = ContentBlock(text="\n".join(["x"] * 10), is_code_block=True)
        medium = ContentBlock(text="\n".join(["x"] * 11), is_code_block=True)
        long = ContentBlock(text="\n".join(["x"] * 21), is_code_block=True)

        assert short.is_collapsible is False
        assert medium.is_collapsible is True
        assert medium.default_collapsed is False
        assert long.default_collapsed is True

    def test_text_blocks_never_collapse(self):
        block = ContentBlock(text="\n".join(["x"] * 30))
        assert block.is_collapsible is False

    @pytest.mark.parametrize(
        "language,lexer",
        [("typescript", "tsx"), ("PY", "python"), ("html", "markup"), (None, "bash"), ("cobol", "bash")],
    )
    def test_highlight_language(self, language, lexer):
        assert highlight_language(language) == lexer
