"""Tests for shared.config."""
from shared.config import Config


def test_config_defaults():
    cfg = Config()
    assert cfg.PAPER_TRADING_MODE is True
    assert cfg.MIN_LIQUIDITY_USD == 10000.0
    assert cfg.STOP_LOSS_PCT == 15.0
    assert cfg.TAKE_PROFIT_PCT == 30.0
    assert cfg.AUTO_BUY_THRESHOLD == 80
    assert cfg.scanners_list == ["market", "pump"]


def test_config_from_env(monkeypatch):
    monkeypatch.setenv("PAPER_TRADING_MODE", "false")
    monkeypatch.setenv("MIN_LIQUIDITY_USD", "5000")
    monkeypatch.setenv("STOP_LOSS_PCT", "10")
    monkeypatch.setenv("SCANNERS", "pump")
    cfg = Config.from_env()
    assert cfg.PAPER_TRADING_MODE is False
    assert cfg.MIN_LIQUIDITY_USD == 5000.0
    assert cfg.STOP_LOSS_PCT == 10.0
    assert cfg.scanners_list == ["pump"]


def test_config_paper_flag_variants(monkeypatch):
    for raw, expected in [("TRUE", True), ("1", True), ("yes", True), ("0", False), ("off", False)]:
        monkeypatch.setenv("PAPER_TRADING_MODE", raw)
        assert Config.from_env().PAPER_TRADING_MODE is expected


def test_config_scanners_list_strips():
    cfg = Config(SCANNERS=" Market , pump ,")
    assert cfg.scanners_list == ["market", "pump"]


def test_config_thresholds():
    cfg = Config(MIN_VOLUME_24H=1.0, SAFETY_THRESHOLD=50)
    t = cfg.thresholds
    assert t.min_volume_24h == 1.0
    assert t.safety_threshold == 50
    assert t.min_liquidity_usd == cfg.MIN_LIQUIDITY_USD


def test_config_max_coin_age_seconds():
    assert Config(MAX_COIN_AGE_DAYS=1).max_coin_age_seconds == 86400
