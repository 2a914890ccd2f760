"""Interactive Alice session.

Each line is parsed, checked against the types left by earlier lines and
executed on the same value stack. Braces left open continue onto the next
line.
"""

from __future__ import annotations
import sys
from typing import Optional, TextIO

from loguru import logger

from .config import AliceConfig
from .errors import AliceError, ParseError, ProgramExit
from .runtime import Runtime

CONTINUATION_PROMPT = "...    "


class Repl:
    def __init__(self, config: Optional[AliceConfig] = None, stdin: Optional[TextIO] = None,
                 stdout: Optional[TextIO] = None, stderr: Optional[TextIO] = None):
        self.config = config or AliceConfig()
        self.stdin = stdin or sys.stdin
        self.stdout = stdout or sys.stdout
        self.stderr = stderr or sys.stderr
        self.runtime = Runtime(self.config, stdout=self.stdout, stdin=self.stdin)

    def _prompt(self, text: str) -> None:
        self.stdout.write(text)
        self.stdout.flush()

    def feed(self, source: str) -> None:
        """Run one chunk of input; errors are reported, not raised."""
        try:
            self.runtime.eval_interactive(source)
        except AliceError as e:
            print(f"error: {e}", file=self.stderr)

    def run(self) -> int:
        """Loop until EOF or an exit word. Returns the exit code."""
        print("interactive alice", file=self.stdout)
        pending = ""
        while True:
            self._prompt(CONTINUATION_PROMPT if pending else self.config.prompt)
            line = self.stdin.readline()
            if not line:
                if pending:
                    self.feed(pending)
                print(file=self.stdout)
                return 0
            source = pending + line
            if not source.strip():
                continue
            try:
                self.runtime.eval_interactive(source)
                pending = ""
            except ParseError as e:
                if e.incomplete:
                    pending = source
                    continue
                pending = ""
                print(f"error parsing input: {e}", file=self.stderr)
            except AliceError as e:
                pending = ""
                print(f"error: {e}", file=self.stderr)
            except ProgramExit as e:
                logger.debug("interactive session ended with exit code {}", e.code)
                return e.code
