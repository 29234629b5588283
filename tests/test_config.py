import json

import pytest

from firehose.config import FirehoseConfig, SourceConfig
from firehose.config_loader import load_config

ENV_KEYS = (
    "FIREHOSE_URL",
    "FIREHOSE_USERNAME",
    "FIREHOSE_PASSWORD",
    "FIREHOSE_QUEUE_CAPACITY",
    "FIREHOSE_DRIFT_POLICY",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def test_config_defaults():
    cfg = FirehoseConfig()
    assert cfg.name == "firehose"
    assert cfg.queue_capacity == 50
    assert cfg.drift_policy == "fallback"
    assert cfg.source.url.endswith("/statuses/sample.json")
    assert cfg.source.read_timeout is None


def test_config_customization():
    cfg = FirehoseConfig(
        name="custom",
        queue_capacity=10,
        drift_policy="fatal",
        source=SourceConfig(url="http://localhost:8080/feed", username="u", password="p"),
    )
    assert cfg.name == "custom"
    assert cfg.source.username == "u"
    assert cfg.queue_capacity == 10


def test_load_config_without_path_uses_defaults():
    assert load_config(None) == FirehoseConfig()


def test_load_yaml_flat_style(tmp_path):
    p = tmp_path / "firehose.yaml"
    p.write_text(
        "url: http://localhost/feed.json\nusername: alice\nqueue_capacity: 7\n",
        encoding="utf-8",
    )
    cfg = load_config(str(p))
    assert cfg.source.url == "http://localhost/feed.json"
    assert cfg.source.username == "alice"
    assert cfg.queue_capacity == 7


def test_load_json_nested_style(tmp_path):
    p = tmp_path / "firehose.json"
    p.write_text(
        json.dumps({"source": {"url": "http://x/feed", "chunk_size": 512}, "drift_policy": "skip"}),
        encoding="utf-8",
    )
    cfg = load_config(str(p))
    assert cfg.source.chunk_size == 512
    assert cfg.drift_policy == "skip"


def test_env_overrides(tmp_path, monkeypatch):
    p = tmp_path / "firehose.json"
    p.write_text(json.dumps({"queue_capacity": 3}), encoding="utf-8")
    monkeypatch.setenv("FIREHOSE_QUEUE_CAPACITY", "5")
    monkeypatch.setenv("FIREHOSE_DRIFT_POLICY", "fatal")
    monkeypatch.setenv("FIREHOSE_PASSWORD", "secret")
    cfg = load_config(str(p))
    assert cfg.queue_capacity == 5
    assert cfg.drift_policy == "fatal"
    assert cfg.source.password == "secret"


def test_invalid_config_raises(tmp_path):
    p = tmp_path / "firehose.yaml"
    p.write_text("queue_capacity: 0\n", encoding="utf-8")
    with pytest.raises(RuntimeError, match="Invalid configuration"):
        load_config(str(p))


def test_log_level_is_normalised():
    assert FirehoseConfig(log_level="debug").log_level == "DEBUG"


def test_unknown_log_level_is_invalid_config(tmp_path):
    p = tmp_path / "firehose.yaml"
    p.write_text("log_level: chatty\n", encoding="utf-8")
    with pytest.raises(RuntimeError, match="Invalid configuration"):
        load_config(str(p))
