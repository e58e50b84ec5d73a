import io
import json
import sys
from unittest.mock import AsyncMock, patch

import pytest

from aranetscan.__main__ import build_config, main, parse_args
from aranetscan.errors import AdapterUnavailable, ConnectionFailure, NoDeviceFound
from aranetscan.models import ErrorPolicy, ScanConfig
from conftest import make_record


def test_build_config_defaults():
    assert build_config(parse_args([])) == ScanConfig()


def test_build_config_cli_overrides_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("timeout: 30\nworkers: 2\nadapter: hci1\n", encoding="utf-8")

    config = build_config(parse_args(["-c", str(path), "-t", "5", "-n", "1", "--skip-errors"]))

    assert config == ScanConfig(
        timeout=5.0,
        max_devices=1,
        adapter="hci1",
        on_error=ErrorPolicy.SKIP,
        workers=2,
    )


def test_main_prints_json(capsys):
    records = [make_record("AA:00:00:00:00:01", "Aranet4 00001")]
    with patch("aranetscan.__main__.run_scan", new_callable=AsyncMock) as mock_scan:
        mock_scan.return_value = records

        assert main(["-t", "2", "-n", "1"]) == 0

    config = mock_scan.call_args.args[0]
    assert config.timeout == 2.0
    assert config.max_devices == 1
    output = json.loads(capsys.readouterr().out)
    assert output[0]["name"] == "Aranet4 00001"
    assert output[0]["data"]["co2"] == 500


def test_main_empty_result_is_success(capsys):
    with patch("aranetscan.__main__.run_scan", new_callable=AsyncMock) as mock_scan:
        mock_scan.return_value = []

        assert main([]) == 0

    assert capsys.readouterr().out.strip() == "[]"


def test_main_text_format(capsys):
    with patch("aranetscan.__main__.run_scan", new_callable=AsyncMock) as mock_scan:
        mock_scan.return_value = [make_record("AA:00:00:00:00:01", "Aranet4 00001")]

        assert main(["--format", "text"]) == 0

    assert capsys.readouterr().out.startswith("Aranet4 00001 (AA:00:00:00:00:01)")


@pytest.mark.parametrize(
    "error",
    [
        AdapterUnavailable("Bluetooth adapter unavailable"),
        ConnectionFailure("AA:00:00:00:00:01", "connect failed"),
        NoDeviceFound("could not find any Aranet4 device"),
    ],
)
def test_main_fatal_errors(capsys, error):
    with patch("aranetscan.__main__.run_scan", new_callable=AsyncMock) as mock_scan:
        mock_scan.side_effect = error

        assert main([]) == 1

    assert capsys.readouterr().out == ""


def test_main_require_device_flag_passed():
    with patch("aranetscan.__main__.run_scan", new_callable=AsyncMock) as mock_scan:
        mock_scan.return_value = []

        main(["--require-device"])

    assert mock_scan.call_args.kwargs["require_device"] is True


def test_main_invalid_timeout():
    assert main(["-t", "0"]) == 1


def test_main_missing_config(tmp_path):
    assert main(["-c", str(tmp_path / "missing.yaml")]) == 1


def test_main_text_output_on_ascii_stdout(monkeypatch):
    record = make_record("AA:00:00:00:00:01", "Aranet4 �0001")
    buffer = io.BytesIO()
    monkeypatch.setattr(sys, "stdout", io.TextIOWrapper(buffer, encoding="ascii"))

    with patch("aranetscan.__main__.run_scan", new_callable=AsyncMock) as mock_scan:
        mock_scan.return_value = [record]

        assert main(["--format", "text"]) == 0

    sys.stdout.flush()
    output = buffer.getvalue().decode("ascii")
    assert output.startswith("Aranet4 ?0001 (AA:00:00:00:00:01)")
    assert "10.00 ?C" in output
