"""Default host capabilities handed to the interpreter.

The interpreter never touches storage or runs foreign code itself. It
calls a source loader (`name -> text`) for `@usingfile` and an optional
native runner (`source -> text`) for `@execjs`. The implementations here
are what the command line uses; embedders pass their own.
"""

import pathlib
import shlex
import subprocess
from typing import List, Optional, Sequence, Union

SOURCE_EXTENSION = '.vscc'


def load_file_source(name: str) -> str:
    """Read a module's source text. I/O errors propagate to the caller."""
    return pathlib.Path(name).read_text(encoding='utf-8')


class SubprocessNative:
    """Runs native snippets through an external command.

    The snippet is passed as the last argument of `command` and the
    command's stdout, with the trailing newline removed, is the result.
    A non-zero exit status is an error.
    """
    def __init__(self, command: Union[str, Sequence[str]], timeout: Optional[float] = None):
        if isinstance(command, str):
            command = shlex.split(command)
        self.command: List[str] = list(command)
        self.timeout = timeout

    def __call__(self, source: str) -> str:
        completed = subprocess.run(
            self.command + [source],
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            timeout=self.timeout,
        )
        if completed.returncode != 0:
            err = (completed.stderr or '').strip()
            raise RuntimeError(f"{self.command[0]} exited with status {completed.returncode}: {err}")
        return (completed.stdout or '').rstrip('\n')

    def __repr__(self) -> str:
        return f"<native {' '.join(self.command)}>"
