"""BSON values (MinKey, ObjectId, Timestamp, ...) to plain JSON-safe structures for API responses."""

import json
from typing import Any

from bson import json_util


def to_jsonable(value: Any) -> Any:
    """Round-trip through relaxed Extended JSON so MinKey becomes {"$minKey": 1} and so on."""
    return json.loads(json_util.dumps(value, json_options=json_util.RELAXED_JSON_OPTIONS))
