"""Tests for the lpr printer sink (trace_labels/printer.py)."""

import subprocess
from pathlib import Path

import pytest

from trace_labels import printer
from trace_labels.printer import DEFAULT_DEVICE, LprPrinterSink, PrinterSink

DOCUMENT = "^L\nAA,10,260,1,1,0,0E,Tomate\nE\n"


class FakeRun:
    """Stands in for subprocess.run and records what it was asked to do."""

    def __init__(self, returncode=0, stdout="", stderr="", error=None):
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        self.error = error
        self.calls = []
        self.spooled = []

    def __call__(self, argv, **kwargs):
        self.calls.append((argv, kwargs))
        self.spooled.append(Path(argv[-1]).read_text(encoding="utf-8"))
        if self.error is not None:
            raise self.error
        return subprocess.CompletedProcess(argv, self.returncode, self.stdout, self.stderr)


@pytest.fixture
def fake_run(monkeypatch):
    def install(**kwargs):
        fake = FakeRun(**kwargs)
        monkeypatch.setattr(printer.subprocess, "run", fake)
        return fake
    return install


def test_sink_satisfies_protocol():
    assert isinstance(LprPrinterSink(), PrinterSink)


def test_successful_job(fake_run, tmp_path, captured_logs):
    fake = fake_run(stdout="request id is godex_raw-12\n")
    sink = LprPrinterSink(spool_dir=tmp_path)

    assert sink.send(DOCUMENT, "godex_raw") is True

    argv, kwargs = fake.calls[0]
    assert argv[:3] == ["lpr", "-P", "godex_raw"]
    assert Path(argv[3]).parent == tmp_path
    assert Path(argv[3]).name.startswith("label_")
    assert Path(argv[3]).suffix == ".ezpl"
    assert kwargs == {"capture_output": True, "text": True}
    assert fake.spooled == [DOCUMENT]
    assert list(tmp_path.iterdir()) == []

    sent = [r for r in captured_logs() if r["message"] == "print_job_sent"]
    assert len(sent) == 1
    assert sent[0]["output"] == "request id is godex_raw-12"
    assert sent[0]["device"] == "godex_raw"


def test_default_device(fake_run, tmp_path):
    fake = fake_run()
    assert LprPrinterSink(spool_dir=tmp_path).send(DOCUMENT) is True
    assert fake.calls[0][0][2] == DEFAULT_DEVICE


def test_custom_command(fake_run, tmp_path):
    fake = fake_run()
    LprPrinterSink(spool_dir=tmp_path, command="/usr/bin/lp-wrapper").send(DOCUMENT, "zebra")
    assert fake.calls[0][0][:3] == ["/usr/bin/lp-wrapper", "-P", "zebra"]


def test_nonzero_exit_reports_failure(fake_run, tmp_path, captured_logs):
    fake_run(returncode=1, stderr="lpr: The printer or class does not exist.")
    sink = LprPrinterSink(spool_dir=tmp_path)

    assert sink.send(DOCUMENT, "missing") is False

    failed = [r for r in captured_logs() if r["message"] == "print_job_failed"]
    assert len(failed) == 1
    assert failed[0]["exit_code"] == 1
    assert "does not exist" in failed[0]["output"]
    assert list(tmp_path.iterdir()) == []


def test_missing_executable_reports_failure(fake_run, tmp_path, captured_logs):
    fake_run(error=FileNotFoundError(2, "No such file or directory", "lpr"))
    sink = LprPrinterSink(spool_dir=tmp_path)

    assert sink.send(DOCUMENT, "godex_raw") is False
    assert list(tmp_path.iterdir()) == []
    failed = [r for r in captured_logs() if r["message"] == "print_job_failed"]
    assert failed and failed[0]["exc_type"] == "FileNotFoundError"


def test_keep_files(fake_run, tmp_path):
    fake_run()
    sink = LprPrinterSink(spool_dir=tmp_path, keep_files=True)

    assert sink.send(DOCUMENT, "godex_raw") is True

    files = list(tmp_path.iterdir())
    assert len(files) == 1
    assert files[0].read_text(encoding="utf-8") == DOCUMENT


def test_spool_directory_created(fake_run, tmp_path):
    fake_run()
    spool = tmp_path / "spool" / "labels"
    assert LprPrinterSink(spool_dir=spool).send(DOCUMENT, "godex_raw") is True
    assert spool.is_dir()


def test_unwritable_spool_reports_failure(fake_run, tmp_path, captured_logs):
    fake = fake_run()
    blocker = tmp_path / "not_a_dir"
    blocker.write_text("x")
    sink = LprPrinterSink(spool_dir=blocker / "spool")

    assert sink.send(DOCUMENT, "godex_raw") is False
    assert fake.calls == []
    assert [r for r in captured_logs() if r["message"] == "print_spool_failed"]
