"""Tests for the signature tables."""

import time

import pytest

from devchat.patterns import (
    CODE_SIGNATURES,
    ERROR_SIGNATURES,
    LANGUAGE_SIGNATURES,
    detect_language,
    fence_language,
    matches_any,
)


class TestEmptyInput:
    """All predicates are false on an empty string."""

    def test_no_code(self):
        assert matches_any(CODE_SIGNATURES, "") is False

    def test_no_error(self):
        assert matches_any(ERROR_SIGNATURES, "") is False

    def test_no_language(self):
        assert detect_language("") is None
        assert fence_language("") is None


class TestCodeSignatures:
    @pytest.mark.parametrize(
        "text",
        [
            "```\nx = 1\n```",
            "import { useState } from 'react'",
            "export default App",
            "const total = items.length",
            "function add(a, b) {",
            "def handler(event):",
            "from os import path",
            "    if user is None:",
            "<?php echo 'hi';",
            "package com.example;",
            "public class Main {",
            '#include <stdio.h>',
            "@Component({ selector: 'app' })",
            '{"name": "devchat"}',
            '[{"id": 1}, {"id": 2}]',
            "SELECT * FROM users",
            "select name from users where id = 1",
            "UPDATE users SET active = 0",
            "CREATE TABLE users (id INT)",
            "items.map(x => x * 2)",
            "  // TODO remove",
            "# install deps first",
        ],
    )
    def test_detects_code(self, text):
        assert matches_any(CODE_SIGNATURES, text) is True

    @pytest.mark.parametrize(
        "text",
        [
            "hey team, lunch at noon?",
            "Can someone review my PR today",
            "I'll update the docs tomorrow",
            "let me know",
            "#general is the place for that",
            "```unterminated fence",
        ],
    )
    def test_ignores_chat(self, text):
        assert matches_any(CODE_SIGNATURES, text) is False


class TestErrorSignatures:
    @pytest.mark.parametrize(
        "text",
        [
            "ValueError: bad input",
            'Traceback (most recent call last):\n  File "app.py", line 3, in <module>',
            "FATAL: database is down",
            "at handler (src/app.js:12:5)",
            "    at Object.<anonymous>",
            "[error] connection refused",
            "npm ERR! code ENOENT",
            "TypeError something",
            "the build failed again",
            "service crashed overnight",
        ],
    )
    def test_detects_errors(self, text):
        assert matches_any(ERROR_SIGNATURES, text) is True

    def test_case_insensitive_tokens(self):
        assert matches_any(ERROR_SIGNATURES, "fatal: not a git repository") is True

    def test_ignores_chat(self):
        assert matches_any(ERROR_SIGNATURES, "deploy went fine, thanks all") is False


class TestLanguageSignatures:
    def test_fenced_tag_comes_first(self):
        pattern, tag = LANGUAGE_SIGNATURES[0]
        assert tag is None
        assert detect_language("```rust\nfn main() {}\n```") == "rust"

    def test_fence_tag_wins_over_content(self):
        assert detect_language("```sql\ndef f():\n```") == "sql"

    def test_inline_fence_has_no_tag(self):
        assert fence_language("```print(1)```") is None

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("import { x } from './x'", "typescript"),
            ("import React, { useState }\n", "tsx"),
            ("const a = 1", "javascript"),
            ("function go() {}", "javascript"),
            ("def go():\n    pass", "python"),
            ("class Foo:\n    pass", "python"),
            ("<?php\necho 1;", "php"),
            ("package main;", "java"),
            ("#include <vector>", "cpp"),
            ("CREATE TABLE t (id int)", "sql"),
            ('{"a": 1}', "json"),
            ("<div class='x'>hi</div>", "html"),
            (".button { color: red; }", "css"),
            ("@media { }", "css"),
            ("$ npm install", "bash"),
        ],
    )
    def test_detects_language(self, text, expected):
        assert detect_language(text) == expected

    def test_json_array_of_objects(self):
        assert detect_language('[\n  {"id": 1}\n]') == "json"

    def test_import_from_prefers_typescript_over_tsx(self):
        assert detect_language("import React from 'react'") == "typescript"

    def test_plain_text_has_no_language(self):
        assert detect_language("see you tomorrow") is None


class TestLinearTime:
    """Adversarial bodies must not trigger catastrophic backtracking."""

    @pytest.mark.parametrize(
        "text",
        [
            "\n" * 50_000,
            " " * 50_000 + "x",
            "import" + " " * 50_000 + "x",
            "[" + " " * 50_000 + "x",
            "function" + " " * 50_000 + "x",
            "{" + "a" * 50_000,
            "{ a " * 20_000,
            "[{" * 20_000,
            "at x(" + "a" * 50_000,
            "select " * 20_000,
            "```" + "a" * 50_000,
            "@" + "a" * 50_000,
            "<a" + " b" * 25_000,
        ],
    )
    def test_large_input_is_fast(self, text):
        start = time.perf_counter()
        matches_any(CODE_SIGNATURES, text)
        matches_any(ERROR_SIGNATURES, text)
        detect_language(text)
        assert time.perf_counter() - start < 2.0
