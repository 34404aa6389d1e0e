"""
Printer sinks -- deliver encoded label documents to a print queue.

A sink takes the EZPL text and a device (queue) name and reports whether
the job was accepted.  Sinks never raise for transport problems: OS and
subprocess errors are logged with their traceback and turned into a
``False`` result.  ``LabelService.print_label`` converts ``False`` into
``PrintFailedError``.
"""

from __future__ import annotations

import os
import subprocess
import tempfile
from pathlib import Path
from typing import Protocol, runtime_checkable

from trace_kernel.logging_config import LogContext, get_logger

logger = get_logger("labels.printer")

DEFAULT_DEVICE = "godex_raw"


@runtime_checkable
class PrinterSink(Protocol):
    """Anything that can send a document to a named device."""

    def send(self, document: str, device: str) -> bool: ...


class LprPrinterSink:
    """
    Spools the document to a file and submits it with ``lpr -P <device>``.

    Args:
        spool_dir: Directory for spool files (system temp dir by default).
        command: lpr executable.
        keep_files: Leave spool files behind for inspection.
    """

    def __init__(
        self,
        spool_dir: str | Path | None = None,
        command: str = "lpr",
        keep_files: bool = False,
    ):
        self.spool_dir = Path(spool_dir) if spool_dir is not None else None
        self.command = command
        self.keep_files = keep_files

    def send(self, document: str, device: str = DEFAULT_DEVICE) -> bool:
        with LogContext.bind(device=device):
            try:
                path = self._spool(document)
            except OSError:
                logger.error("print_spool_failed", exc_info=True)
                return False

            argv = [self.command, "-P", device, str(path)]
            try:
                result = subprocess.run(argv, capture_output=True, text=True)
            except OSError:
                logger.error("print_job_failed", extra={"spool_file": str(path)}, exc_info=True)
                return False
            finally:
                if not self.keep_files:
                    path.unlink(missing_ok=True)

            output = ((result.stdout or "") + (result.stderr or "")).strip()
            if result.returncode != 0:
                logger.error(
                    "print_job_failed",
                    extra={
                        "spool_file": str(path),
                        "exit_code": result.returncode,
                        "output": output,
                    },
                )
                return False

            logger.info(
                "print_job_sent",
                extra={"spool_file": str(path), "exit_code": 0, "output": output},
            )
            return True

    def _spool(self, document: str) -> Path:
        if self.spool_dir is not None:
            self.spool_dir.mkdir(parents=True, exist_ok=True)
        fd, name = tempfile.mkstemp(
            prefix="label_",
            suffix=".ezpl",
            dir=self.spool_dir,
        )
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as handle:
            handle.write(document)
        return Path(name)
