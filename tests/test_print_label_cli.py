"""Tests for the print_label command-line entry point."""

import json
import logging

import pytest

from scripts.print_label import main
from trace_kernel.db.engine import create_tables, init_engine_from_url, reset_engine, session_scope
from trace_kernel.domain.clock import DeterministicClock
from trace_kernel.domain.types import ElaborationType
from trace_kernel.services.catalog_service import CatalogService
from trace_kernel.services.lot_service import LotService
from trace_labels.printer import LprPrinterSink

REQUEST = {
    "nombreLb": "Salsa de tomate",
    "ingredientesLb": "Tomate, aceite de oliva, sal",
    "loteCodigo": "251003001",
    "fechaCaducidad": "03/10/2025",
}


@pytest.fixture(autouse=True)
def _cli_environment(monkeypatch):
    monkeypatch.delenv("REGISTRO_SANITARIO", raising=False)
    monkeypatch.delenv("TRACE_PRINTER_DEVICE", raising=False)
    yield
    logging.disable(logging.NOTSET)


@pytest.fixture
def request_file(tmp_path):
    path = tmp_path / "label.json"
    path.write_text(json.dumps(REQUEST), encoding="utf-8")
    return path


def test_renders_request_to_stdout(request_file, capsys):
    assert main(["--request", str(request_file), "--copies", "2"]) == 0

    out = capsys.readouterr().out
    lines = out.split("\n")
    assert "^P2" in lines
    assert "AD,55,175,1,1,0,0E,SALSA DE TOMATE" in lines
    assert "AB,307,400,1,1,0,0E,251003001" in lines
    assert "AA,146,435,1,1,0,0E,Reg Nº RSX-0001-0001" in lines
    assert out.endswith("\nE\n")


def test_operator_config(request_file, tmp_path, capsys):
    config = tmp_path / "labels.yaml"
    config.write_text("registry_number: ES-10.01234/M\n", encoding="utf-8")

    assert main(["--request", str(request_file), "--config", str(config)]) == 0
    assert "Reg Nº ES-10.01234/M" in capsys.readouterr().out


def test_invalid_config(request_file, tmp_path, capsys):
    config = tmp_path / "labels.yaml"
    config.write_text("header:\n  brightness: 3\n", encoding="utf-8")

    assert main(["--request", str(request_file), "--config", str(config)]) == 1
    assert "Invalid configuration" in capsys.readouterr().err


def test_missing_request_file(tmp_path, capsys):
    assert main(["--request", str(tmp_path / "absent.json")]) == 1
    assert "Cannot read request" in capsys.readouterr().err


def test_invalid_copies(request_file, capsys):
    assert main(["--request", str(request_file), "--copies", "0"]) == 1
    assert "ERROR [LABEL_VALIDATION]" in capsys.readouterr().err


def test_expiry_out_of_range(tmp_path, capsys):
    path = tmp_path / "label.json"
    request = {key: value for key, value in REQUEST.items() if key != "fechaCaducidad"}
    path.write_text(json.dumps({**request, "days_valid": "99999999"}), encoding="utf-8")

    assert main(["--request", str(path)]) == 1
    err = capsys.readouterr().err
    assert "ERROR [LABEL_VALIDATION]" in err
    assert "Traceback" not in err


def test_blank_registry_in_config(request_file, tmp_path, capsys):
    config = tmp_path / "labels.yaml"
    config.write_text("registry_number:\n", encoding="utf-8")

    assert main(["--request", str(request_file), "--config", str(config)]) == 0
    out = capsys.readouterr().out
    assert "AA,146,435,1,1,0,0E,Reg Nº RSX-0001-0001" in out
    assert "None" not in out


def test_print_to_device(request_file, monkeypatch, capsys):
    sent = []

    def fake_send(self, document, device):
        sent.append((device, document))
        return True

    monkeypatch.setattr(LprPrinterSink, "send", fake_send)

    assert main(["--request", str(request_file), "--print", "--device", "cocina"]) == 0
    assert sent[0][0] == "cocina"
    assert "Sent 1 label(s) to cocina" in capsys.readouterr().out


def test_print_failure(request_file, monkeypatch, capsys):
    monkeypatch.setattr(LprPrinterSink, "send", lambda self, document, device: False)

    assert main(["--request", str(request_file), "--print"]) == 1
    assert "ERROR [PRINT_FAILED]" in capsys.readouterr().err


class TestStoredLot:

    @pytest.fixture
    def database(self, tmp_path):
        url = f"sqlite:///{tmp_path / 'trace.db'}"
        init_engine_from_url(url)
        create_tables()
        clock = DeterministicClock()
        with session_scope() as session:
            catalog = CatalogService(session, clock)
            tomato = catalog.create_ingredient("Tomate")
            catalog.create_elaboration("Pan de pueblo", type=ElaborationType.ELABORATION)
            catalog.create_elaboration("Queso fresco", type=ElaborationType.PACKAGING)
            sauce = catalog.create_elaboration("Salsa de tomate", type=ElaborationType.ELABORATION)
            created = LotService(session, clock).create_lot(
                {
                    "elaboration_id": sauce,
                    "production_date": "2025-10-01",
                    "total_weight": "12.5",
                    "weight_unit": "kg",
                },
                [{"ingredient_id": tomato, "weight": "12"}],
            )
        yield url, created.lot_id
        reset_engine()

    def test_renders_stored_lot(self, database, capsys):
        url, lot_id = database
        assert main(["--lot-id", str(lot_id), "--db-url", url]) == 0

        lines = capsys.readouterr().out.split("\n")
        assert "AD,55,175,1,1,0,0E,SALSA DE TOMATE" in lines
        assert "AA,10,260,1,1,0,0E,Tomate" in lines
        assert "AB,90,400,1,1,0,0E,03/10/2025" in lines
        assert "AB,307,400,1,1,0,0E,251003001" in lines

    def test_unknown_lot(self, database, capsys):
        url, _ = database
        assert main(["--lot-id", "999", "--db-url", url]) == 1
        assert "ERROR [LOT_NOT_FOUND]" in capsys.readouterr().err
