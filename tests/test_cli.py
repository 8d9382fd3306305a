from typer.testing import CliRunner

from okxtrader.cli.main import app
from fixtures.okx import make_candles


runner = CliRunner()


class DummyRestAdapter:
    def __init__(self, *args, **kwargs):
        self.closed = False

    async def fetch(self, symbol, interval, count):
        return make_candles([10, 10, 10, 10, 10, 12, 10, 10, 10, 10])[-count:]

    async def close(self):
        self.closed = True


def test_bands_prints_series(monkeypatch):
    monkeypatch.setattr("okxtrader.adapters.OKXRestAdapter", DummyRestAdapter)
    monkeypatch.setattr("okxtrader.cli.commands.market.setup_logging", lambda: None)

    result = runner.invoke(app, ["bands", "BTC-USDT", "--period", "5", "--limit", "3"])

    assert result.exit_code == 0, result.output
    assert "percent_b" in result.output
    rows = [line for line in result.output.splitlines() if line.startswith("2024-01-01")]
    assert len(rows) == 3


def test_bands_writes_csv(monkeypatch, tmp_path):
    monkeypatch.setattr("okxtrader.adapters.OKXRestAdapter", DummyRestAdapter)
    monkeypatch.setattr("okxtrader.cli.commands.market.setup_logging", lambda: None)
    out = tmp_path / "bands.csv"

    result = runner.invoke(app, ["bands", "BTCUSDT", "--period", "5", "--csv", str(out)])

    assert result.exit_code == 0, result.output
    lines = out.read_text().splitlines()
    assert lines[0].startswith("timestamp,price,middle,upper,lower")
    assert len(lines) == 7


def test_bands_rejects_unknown_interval(monkeypatch):
    monkeypatch.setattr("okxtrader.cli.commands.market.setup_logging", lambda: None)
    result = runner.invoke(app, ["bands", "BTC-USDT", "--interval", "7m"])
    assert result.exit_code != 0


def test_bands_without_history_exits_nonzero(monkeypatch):
    class EmptyAdapter(DummyRestAdapter):
        async def fetch(self, symbol, interval, count):
            return []

    monkeypatch.setattr("okxtrader.adapters.OKXRestAdapter", EmptyAdapter)
    monkeypatch.setattr("okxtrader.cli.commands.market.setup_logging", lambda: None)
    result = runner.invoke(app, ["bands", "BTC-USDT", "--period", "5"])
    assert result.exit_code == 1
