from __future__ import annotations

import contextlib
import io
import logging
import os
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

import httpx
from PIL import Image

from xtract.cli import EMPTY_BATCH_WARNING, format_documents, main
from xtract.models import DocumentMetadata, ExtractedDocument

_RealHttpClient = httpx.Client


def _ok(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, json={"choices": [{"message": {"content": "Hello"}}]})


class TestFormatDocuments(unittest.TestCase):
    def test_headers_and_separator(self) -> None:
        docs = [
            ExtractedDocument("one", "markdown", DocumentMetadata(source="a.png")),
            ExtractedDocument("two", "markdown", DocumentMetadata(source="b.png")),
        ]
        self.assertEqual(
            format_documents(docs),
            "=== a.png ===\n\none\n\n---\n\n=== b.png ===\n\ntwo\n",
        )


class TestCli(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)
        self.config_home = self.root / "config"

        stack = contextlib.ExitStack()
        self.addCleanup(stack.close)
        stack.enter_context(patch("xtract.config.sys.platform", "linux"))
        stack.enter_context(
            patch.dict(os.environ, {"XDG_CONFIG_HOME": str(self.config_home)}, clear=True)
        )
        self.stack = stack

        # main() reconfigures the root logger; put it back afterwards
        root_logger = logging.getLogger()
        saved_handlers, saved_level = root_logger.handlers[:], root_logger.level
        self.addCleanup(setattr, root_logger, "handlers", saved_handlers)
        self.addCleanup(root_logger.setLevel, saved_level)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _mock_api(self, handler) -> None:
        self.stack.enter_context(
            patch(
                "xtract.ocr.httpx.Client",
                side_effect=lambda **kwargs: _RealHttpClient(transport=httpx.MockTransport(handler)),
            )
        )

    def _run(self, *argv: str) -> tuple[int, str, str]:
        out, err = io.StringIO(), io.StringIO()
        with contextlib.redirect_stdout(out), contextlib.redirect_stderr(err):
            code = main(list(argv))
        return code, out.getvalue(), err.getvalue()

    def _image(self, name: str) -> Path:
        path = self.root / name
        Image.new("RGB", (8, 8), color="white").save(path, format="PNG")
        return path

    def test_extract_prints_combined_text(self) -> None:
        self._mock_api(_ok)
        a, b = self._image("a.png"), self._image("b.png")

        code, out, _ = self._run("extract", str(a), str(b))

        self.assertEqual(code, 0)
        self.assertEqual(out, "=== a.png ===\n\nHello\n\n---\n\n=== b.png ===\n\nHello\n\n")
        self.assertTrue((self.config_home / "xtract" / "config.yaml").exists())

    def test_extract_writes_output_file(self) -> None:
        self._mock_api(_ok)
        out_file = self.root / "result.md"

        code, out, _ = self._run("extract", str(self._image("a.png")), "--output", str(out_file))

        self.assertEqual(code, 0)
        self.assertEqual(out, "")
        self.assertEqual(out_file.read_text(encoding="utf-8"), "=== a.png ===\n\nHello\n")

    def test_output_write_failure_exits_nonzero(self) -> None:
        self._mock_api(_ok)
        out_file = self.root / "no-such-dir" / "result.md"

        code, _, err = self._run("extract", str(self._image("a.png")), "-o", str(out_file))

        self.assertEqual(code, 1)
        self.assertIn("Error: Failed to write to", err)

    def test_format_override_selects_text_prompt(self) -> None:
        seen: list[bytes] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.content)
            return _ok(request)

        self._mock_api(handler)

        code, _, _ = self._run("extract", str(self._image("a.png")), "--format", "text")

        self.assertEqual(code, 0)
        self.assertIn(b"Extract all text from this document.", seen[0])

    def test_all_failed_batch_warns_and_succeeds(self) -> None:
        self._mock_api(_ok)
        corrupt = self.root / "corrupt.png"
        corrupt.write_bytes(b"nope")

        code, out, err = self._run("extract", str(corrupt))

        self.assertEqual(code, 0)
        self.assertEqual(out, "")
        self.assertIn(EMPTY_BATCH_WARNING, err)

    def test_malformed_config_exits_nonzero(self) -> None:
        config_file = self.config_home / "xtract" / "config.yaml"
        config_file.parent.mkdir(parents=True)
        config_file.write_text("ocr:\n  temperature: hot\n", encoding="utf-8")

        code, _, err = self._run("extract", str(self._image("a.png")))

        self.assertEqual(code, 1)
        self.assertIn("Error:", err)

    def test_config_path(self) -> None:
        code, out, _ = self._run("config", "--path")

        self.assertEqual(code, 0)
        self.assertEqual(out.strip(), str(self.config_home / "xtract" / "config.yaml"))

    def test_config_shows_effective_configuration(self) -> None:
        code, out, _ = self._run("config")

        self.assertEqual(code, 0)
        self.assertIn("model: deepseek-ocr", out)
        self.assertIn("output_format: markdown", out)

    def test_verbose_accepted_before_and_after_subcommand(self) -> None:
        for argv in (
            ("-v", "config", "--path"),
            ("config", "--path", "--verbose"),
            ("--verbose", "config", "-v"),
        ):
            with self.subTest(argv=argv):
                logging.getLogger().setLevel(logging.WARNING)

                code, _, _ = self._run(*argv)

                self.assertEqual(code, 0)
                self.assertEqual(logging.getLogger().level, logging.DEBUG)

    def test_without_verbose_logs_at_info(self) -> None:
        code, _, _ = self._run("config", "--path")

        self.assertEqual(code, 0)
        self.assertEqual(logging.getLogger().level, logging.INFO)

    def test_logs_go_to_stderr_and_stdout_holds_only_text(self) -> None:
        self._mock_api(_ok)

        code, out, err = self._run("extract", str(self._image("a.png")), "--verbose")

        self.assertEqual(code, 0)
        self.assertEqual(out, "=== a.png ===\n\nHello\n\n")
        self.assertIn("Starting batch extraction", err)
        self.assertIn("Sending OCR request", err)

    def test_missing_config_dir_exits_nonzero(self) -> None:
        with patch.dict(os.environ, {}, clear=True):
            code, _, err = self._run("config", "--path")

        self.assertEqual(code, 1)
        self.assertIn("Failed to get config directory", err)


if __name__ == "__main__":
    unittest.main()
