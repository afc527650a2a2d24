"""External filter commands.

A filter is an arbitrary shell command configured by the user. The payload
is written to a private temporary file and fed to the command through
``cat <tmpfile> | <command>``; whatever the command prints replaces the
payload. Unset commands are a silent pass-through.
"""

from __future__ import annotations

import os
import shlex
import subprocess
import tempfile
from pathlib import Path

import structlog

from maildir_message.exceptions import FilterCommandError

logger = structlog.get_logger()


class ExternalFilterPipeline:
    """Pipe a payload through a user-configured shell command."""

    def __init__(
        self,
        command: str | None,
        tmp_dir: str | Path | None = None,
        prefix: str = "filter.",
    ) -> None:
        """Create a pipeline.

        Args:
            command: Shell command to run. None or blank disables the pipeline.
            tmp_dir: Directory for the temporary payload file.
            prefix: Temporary filename prefix.
        """
        self.command = (command or "").strip()
        self.tmp_dir = str(tmp_dir) if tmp_dir is not None else None
        self.prefix = prefix

    @property
    def enabled(self) -> bool:
        return bool(self.command)

    def run(self, payload: bytes) -> bytes:
        """Return the command's standard output for ``payload``.

        Raises:
            FilterCommandError: If the temporary file or the shell cannot be created.
        """
        if not self.enabled:
            return payload

        try:
            fd, tmp_path = tempfile.mkstemp(prefix=self.prefix, dir=self.tmp_dir)
        except OSError as exc:
            raise FilterCommandError(f"Cannot create filter temporary file: {exc}") from exc

        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(payload)

            pipeline = f"cat {shlex.quote(tmp_path)} | {self.command}"
            logger.debug("filter_started", command=self.command, payload_size=len(payload))
            try:
                completed = subprocess.run(
                    pipeline,
                    shell=True,
                    stdout=subprocess.PIPE,
                    check=False,
                )
            except OSError as exc:
                raise FilterCommandError(f"Cannot run filter {self.command!r}: {exc}") from exc

            if completed.returncode != 0:
                logger.warning(
                    "filter_nonzero_exit",
                    command=self.command,
                    returncode=completed.returncode,
                )
            return completed.stdout
        finally:
            try:
                os.unlink(tmp_path)
            except FileNotFoundError:
                pass

    def run_text(self, text: str) -> str:
        """Text variant of :meth:`run`; output is decoded as UTF-8."""
        if not self.enabled:
            return text
        return self.run(text.encode("utf-8")).decode("utf-8", errors="replace")
