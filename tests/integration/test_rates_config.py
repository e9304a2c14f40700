from __future__ import annotations

import json

import pytest

from src.core.rates import InvalidRateError, flat_rate, percent_rate
from src.integration.rates_config import (
    RatesEngineConfig,
    config_from_env,
    load_rates_file,
    parse_rates_document,
    rate_entries_from_list,
)

RATES_YAML = """\
last_timestamp: 1000
rates:
  - rate: {flat: {amount: "20", denom: uusd}}
    is_additive: true
    description: desc2
    recipients: [recipient1]
    threshold: {unit: 2, duration: 60, value: "5"}
  - rate: {percent: {percent: "0.1"}}
    description: desc1
    recipients: [{address: recipient2}]
"""


def test_config_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("RATES_CONTRACT_ADDRESS", "RATES_MAX_ENTRIES", "RATES_MAX_RECIPIENTS"):
        monkeypatch.delenv(name, raising=False)
    assert config_from_env() == RatesEngineConfig()


def test_config_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RATES_CONTRACT_ADDRESS", " market ")
    monkeypatch.setenv("RATES_MAX_ENTRIES", "3")
    monkeypatch.setenv("RATES_MAX_RECIPIENTS", "999999")
    cfg = config_from_env()
    assert cfg.contract_address == "market"
    assert cfg.max_rate_entries == 3
    assert cfg.max_recipients_per_entry == 1024


def test_config_invalid_int_falls_back(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RATES_MAX_ENTRIES", "lots")
    assert config_from_env().max_rate_entries == 64


def test_config_validation() -> None:
    with pytest.raises(ValueError):
        RatesEngineConfig(contract_address="")
    with pytest.raises(ValueError):
        RatesEngineConfig(max_recipients_per_entry=0)


def test_load_yaml(tmp_path) -> None:
    path = tmp_path / "rates.yaml"
    path.write_text(RATES_YAML, encoding="utf-8")
    state = load_rates_file(path, RatesEngineConfig())
    assert state.last_timestamp == 1000
    assert [e.rate for e in state.rates] == [flat_rate(20, "uusd"), percent_rate(10)]
    assert state.rates[0].threshold is not None
    assert state.rates[1].is_additive is False
    assert state.rates[1].recipients == ("recipient2",)


def test_load_json_list(tmp_path) -> None:
    path = tmp_path / "rates.json"
    path.write_text(
        json.dumps([{"rate": {"flat": {"amount": "1", "denom": "uusd"}}, "recipients": ["a"]}]),
        encoding="utf-8",
    )
    state = load_rates_file(path, RatesEngineConfig())
    assert state.last_timestamp == 0
    assert len(state.rates) == 1


def test_load_yaml_float_percent_rejected(tmp_path) -> None:
    path = tmp_path / "rates.yml"
    path.write_text("- rate: {percent: {percent: 0.1}}\n  recipients: [a]\n", encoding="utf-8")
    with pytest.raises(TypeError):
        load_rates_file(path, RatesEngineConfig())


def test_load_malformed(tmp_path) -> None:
    path = tmp_path / "rates.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(ValueError):
        load_rates_file(path, RatesEngineConfig())


def test_document_shape() -> None:
    with pytest.raises(ValueError):
        parse_rates_document({"payments": []}, RatesEngineConfig())
    with pytest.raises(ValueError):
        parse_rates_document("rates", RatesEngineConfig())


def test_limits_applied() -> None:
    items = [{"rate": {"flat": {"amount": "1", "denom": "uusd"}}, "recipients": ["a", "b"]}] * 2
    assert len(rate_entries_from_list(items, RatesEngineConfig())) == 2
    with pytest.raises(InvalidRateError):
        rate_entries_from_list(items, RatesEngineConfig(max_rate_entries=1))
    with pytest.raises(InvalidRateError):
        parse_rates_document(items, RatesEngineConfig(max_recipients_per_entry=1))
