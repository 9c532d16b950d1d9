"""
Tests for the evvm-relayer CLI.
"""

from typer.testing import CliRunner

from evvm_relayer import __version__
from evvm_relayer.cli import app

from fakes import RECIPIENT, SENDER

runner = CliRunner()


class TestQRCommands:
    """Tests for `qr encode` and `qr decode`."""

    def test_encode(self):
        result = runner.invoke(app, ["qr", "encode", RECIPIENT, "1000000", "MATE", "-d", "Coffee"])
        assert result.exit_code == 0
        assert result.output.strip() == (
            f"evvm://pay?to={RECIPIENT}&amount=1000000&token=MATE&description=Coffee"
        )

    def test_encode_rejects_bad_amount(self):
        result = runner.invoke(app, ["qr", "encode", RECIPIENT, "1.5", "MATE"])
        assert result.exit_code == 1
        assert "must be a positive integer" in result.output

    def test_encode_rejects_unsupported_token(self):
        result = runner.invoke(app, ["qr", "encode", RECIPIENT, "5", "DOGE"])
        assert result.exit_code == 1

    def test_decode(self):
        payload = f"evvm://pay?to={RECIPIENT}&amount=5&token=MATE&from={SENDER}"
        result = runner.invoke(app, ["qr", "decode", payload])
        assert result.exit_code == 0
        assert f"to: {RECIPIENT}" in result.output
        assert "amount: 5" in result.output
        assert f"sender: {SENDER}" in result.output
        assert "description" not in result.output

    def test_decode_missing_fields(self):
        result = runner.invoke(app, ["qr", "decode", f"evvm://pay?to={RECIPIENT}"])
        assert result.exit_code == 2
        assert "Missing required fields: amount, token" in result.output

    def test_decode_malformed(self):
        result = runner.invoke(app, ["qr", "decode", "not a payload"])
        assert result.exit_code == 1
        assert "Error:" in result.output


class TestVersion:
    def test_version(self):
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert result.output.strip() == f"evvm-relayer v{__version__}"
