from __future__ import annotations

import json

from firehose.records.models import DeleteNotice, StatusRecord, Tweet

SEPARATOR = "-" * 50


def format_record(record: StatusRecord) -> str:
    """One console block per record, as the sample-stream demo prints them."""
    if isinstance(record, Tweet):
        if record.user is not None:
            user = record.user
            head = f"Tweet from {user.name or user.screen_name} ({user.screen_name})"
        else:
            head = f"Tweet {record.id}"
        return f"{head}\n  {record.text or ''}\n{SEPARATOR}"
    if isinstance(record, DeleteNotice):
        return f"Tweet {record.status_id} deleted by {record.user_id}\n{SEPARATOR}"
    raw = json.dumps(record.raw, ensure_ascii=False, separators=(",", ":"))
    return f"Not sure what this object is...\n{raw}\n{SEPARATOR}"
