"""Best-effort extraction of generated test code from codegen output.

Playwright codegen mixes diagnostics with generated source on its output
streams. The scrapper keeps every chunk verbatim and guesses which part of
the stream is the generated test:

1. Once the accumulated text contains a complete test block, the last such
   block becomes the extracted code (and is only ever replaced by a newer
   complete block).
2. Before that, any chunk carrying a code signature (framework import, test
   opening, page call) is appended to the extracted code.
3. At stop time, blank extracted code falls back to the last complete block
   in the raw output, or to "nothing extracted".

No syntactic validity is guaranteed. Callers offer a manual edit path.
"""

import re
from collections.abc import Iterable
from typing import Optional

from .models import CapturedOutput

# Chunk-level signatures of generated test code
CODE_SIGNATURES = [
    re.compile(r"import\b[^\n]*['\"]@playwright/test['\"]"),
    re.compile(r"from playwright\.(?:sync|async)_api import"),
    re.compile(r"\btest\(\s*['\"`]"),
    re.compile(r"^\s*(?:async\s+)?def test_\w*\(", re.MULTILINE),
    re.compile(
        r"\bpage\.(?:goto|click|dblclick|fill|press|check|uncheck|hover|selectOption|select_option"
        r"|locator|getBy\w+|get_by_\w+|waitFor\w*|wait_for_\w+)\("
    ),
    re.compile(r"\bexpect\("),
]

# import { test, expect } from '@playwright/test'; ... test('…', async ({ page }) => { … });
_TS_START = re.compile(r"import\b[^\n]*?\b(?:test|expect)\b[^\n]*?['\"]@playwright/test['\"]")
_TS_BLOCK = re.compile(
    r"import\b[^\n]*?\b(?:test|expect)\b[^\n]*?['\"]@playwright/test['\"];?"
    r"[\s\S]*?"
    r"\btest\(\s*(?P<q>['\"`])[\s\S]*?(?P=q)\s*,\s*async\s*\([^)]*\)\s*=>\s*\{"
    r"[\s\S]*?"
    r"^\}\);?",
    re.MULTILINE,
)
_TS_CLOSE = re.compile(r"\}\);?[ \t\r]*\Z")

# from playwright.sync_api import Page, expect ... def test_x(page: Page) -> None: <indented body>
_PY_IMPORT = re.compile(r"from playwright\.(?:sync|async)_api import[^\n]*\bexpect\b")
_PY_DEF = re.compile(r"(?:async\s+)?def test_\w*\(")
_PY_BLOCK = re.compile(
    r"(?:import re\r?\n)?from playwright\.(?:sync|async)_api import[^\n]*\bexpect\b[^\n]*\n"
    r"[\s\S]*?"
    r"^(?:async\s+)?def test_\w*\([^)]*\)[^\n]*:[ \t]*\r?\n"
    r"(?:(?:[ \t]+[^\n]*)?\r?\n)*(?:[ \t]+[^\n]*)?",
    re.MULTILINE,
)


def matches_signature(chunk: str) -> bool:
    """Whether a chunk looks like a piece of generated test code."""
    return any(pattern.search(chunk) for pattern in CODE_SIGNATURES)


class BlockScanner:
    """Finds complete test blocks in a growing stream of output.

    Block starts are recorded as lines complete. A block pattern only runs
    when a line can close a block (a TypeScript ``});`` or the first dedent
    after a Python ``def test_``), from the latest start up to that line.
    Output that never closes a block is scanned once.
    """

    def __init__(self):
        self.text = ""
        self.last_block: Optional[str] = None
        self._last_block_start = -1
        self._line_start = 0
        self._prev_line: tuple[int, str] = (0, "")
        self._ts_start: Optional[int] = None
        self._ts_closed_at: Optional[int] = None
        self._py_start: Optional[int] = None
        self._py_open = False

    def feed(self, chunk: str) -> bool:
        """Append output. Returns True when a complete block was found."""
        search_from = len(self.text)
        self.text += chunk
        found = False

        newline = self.text.find("\n", search_from)
        while newline != -1:
            found = self._complete_line(self._line_start, newline) or found
            self._line_start = newline + 1
            newline = self.text.find("\n", self._line_start)

        # The closing "});" can arrive before its newline
        if self._line_start < len(self.text):
            found = self._try_ts_close(self._line_start, len(self.text)) or found
        return found

    def close(self) -> bool:
        """End of output: a Python test body still open is complete."""
        if not self._py_open:
            return False
        self._py_open = False
        return self._try_block(_PY_BLOCK, self._py_start, len(self.text))

    def _complete_line(self, start: int, end: int) -> bool:
        line = self.text[start:end].rstrip("\r")
        found = False

        if self._py_open and line and not line[0].isspace():
            self._py_open = False
            found = self._try_block(_PY_BLOCK, self._py_start, start)

        ts_import = _TS_START.search(line)
        if ts_import:
            self._ts_start = start + ts_import.start()
            self._ts_closed_at = None
        elif _PY_IMPORT.match(line):
            prev_start, prev_line = self._prev_line
            self._py_start = prev_start if prev_line == "import re" else start
            self._py_open = False
        elif self._py_start is not None and _PY_DEF.match(line):
            self._py_open = True
        else:
            found = self._try_ts_close(start, end) or found

        self._prev_line = (start, line)
        return found

    def _try_ts_close(self, start: int, end: int) -> bool:
        if self._ts_start is None or not _TS_CLOSE.match(self.text, start, end):
            return False
        if self._ts_closed_at is not None and self._ts_closed_at != start:
            # The block from this import is already closed
            return False
        if not self._try_block(_TS_BLOCK, self._ts_start, end):
            return False
        self._ts_closed_at = start
        return True

    def _try_block(self, pattern: re.Pattern, start: int, end: int) -> bool:
        if start < self._last_block_start:
            return False
        match = pattern.match(self.text, start, end)
        if not match or not match.group(0).strip():
            return False
        self.last_block = match.group(0)
        self._last_block_start = start
        return True


def find_last_block(text: str) -> Optional[str]:
    """Return the last complete generated test block in ``text``."""
    scanner = BlockScanner()
    scanner.feed(text)
    scanner.close()
    return scanner.last_block


class OutputScrapper:
    """Accumulates codegen output for one session.

    Example:
        scrapper = OutputScrapper()
        for chunk in chunks:
            scrapper.feed(chunk)
        code = scrapper.finalize()  # None when nothing was recognised
    """

    def __init__(self, capture: Optional[CapturedOutput] = None):
        self.capture = capture if capture is not None else CapturedOutput()
        self._scanner = BlockScanner()
        if self.capture.raw_chunks:
            self._scanner.feed(self.capture.all_output)

    def feed(self, chunk: str) -> None:
        """Record one chunk of output in arrival order."""
        if not chunk:
            return
        self.capture.raw_chunks.append(chunk)

        if self._scanner.feed(chunk):
            self.capture.extracted_code = self._scanner.last_block
            self.capture.complete_match = True
        elif not self.capture.complete_match and matches_signature(chunk):
            self.capture.extracted_code += chunk

    @property
    def provisional_code(self) -> str:
        """Current guess; not authoritative until the session ends."""
        return self.capture.extracted_code

    def finalize(self) -> Optional[str]:
        """Best final guess at the generated code, or None."""
        if self._scanner.close():
            self.capture.extracted_code = self._scanner.last_block
            self.capture.complete_match = True

        code = self.capture.extracted_code.strip()
        if code:
            return code

        block = self._scanner.last_block
        if block is None:
            return None
        return block.strip()


def extract_code(chunks: Iterable[str]) -> Optional[str]:
    """Run the scrapper over a canned chunk sequence."""
    scrapper = OutputScrapper()
    for chunk in chunks:
        scrapper.feed(chunk)
    return scrapper.finalize()
