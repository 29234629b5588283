from __future__ import annotations

import json
import os
from pathlib import Path

import yaml
from pydantic import ValidationError

from firehose.config import FirehoseConfig, SourceConfig


def _apply_env_overrides(cfg: FirehoseConfig) -> FirehoseConfig:
    url = os.environ.get("FIREHOSE_URL")
    if url:
        cfg.source.url = url
    username = os.environ.get("FIREHOSE_USERNAME")
    if username:
        cfg.source.username = username
    password = os.environ.get("FIREHOSE_PASSWORD")
    if password:
        cfg.source.password = password
    capacity = os.environ.get("FIREHOSE_QUEUE_CAPACITY")
    if capacity and capacity.isdigit() and int(capacity) > 0:
        cfg.queue_capacity = int(capacity)
    policy = os.environ.get("FIREHOSE_DRIFT_POLICY")
    if policy in {"fallback", "skip", "fatal"}:
        cfg.drift_policy = policy  # type: ignore[assignment]
    return cfg


def load_config(path: str | None = None) -> FirehoseConfig:
    """Load a YAML/JSON config file (or defaults) and apply FIREHOSE_* env overrides."""
    data: object = {}
    if path:
        p = Path(path)
        text = p.read_text(encoding="utf-8")
        if p.suffix.lower() in {".yaml", ".yml"}:
            data = yaml.safe_load(text) or {}
        else:
            data = json.loads(text)

    # Flat style: { url, username, password, ... } next to the top-level keys
    if isinstance(data, dict) and "source" not in data:
        source_keys = set(SourceConfig.model_fields)
        source = {k: v for k, v in data.items() if k in source_keys}
        if source:
            data = {k: v for k, v in data.items() if k not in source_keys}
            data["source"] = source

    try:
        cfg = FirehoseConfig.model_validate(data)
    except ValidationError as e:
        raise RuntimeError(f"Invalid configuration: {e}") from e
    return _apply_env_overrides(cfg)
