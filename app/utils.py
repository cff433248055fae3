import base64
import datetime
import decimal
import json
from typing import Any, Dict, List


def json_default(obj):
    """JSON serializer for values coming back from the database driver.

    Handles:
    - datetime/date/time -> ISO format str
    - timedelta (MySQL TIME columns) -> total seconds
    - Decimal representing whole number -> int, other Decimal -> str
    - bytes -> utf-8 text, base64 when not decodable
    """
    if isinstance(obj, (datetime.datetime, datetime.date, datetime.time)):
        return obj.isoformat()
    if isinstance(obj, datetime.timedelta):
        return obj.total_seconds()
    if isinstance(obj, decimal.Decimal):
        if obj % 1 == 0:
            return int(obj)
        else:
            return str(obj)
    if isinstance(obj, (bytes, bytearray)):
        try:
            return bytes(obj).decode("utf-8")
        except UnicodeDecodeError:
            return base64.b64encode(bytes(obj)).decode("ascii")
    raise TypeError(f"Object of type {obj.__class__.__name__} is not JSON serializable")


def rows_to_dicts(result) -> List[Dict[str, Any]]:
    """Turn a SQLAlchemy result into plain dicts keyed by column label."""
    return [dict(row) for row in result.mappings().all()]


def to_jsonable(rows: Any) -> Any:
    """Round-trip through json so arbitrary console results serialize cleanly."""
    return json.loads(json.dumps(rows, default=json_default))


def today_iso() -> str:
    return datetime.date.today().isoformat()


def _bind_value(value: Any) -> Any:
    if isinstance(value, (datetime.date, datetime.datetime)):
        return value.isoformat()
    if isinstance(value, decimal.Decimal):
        return str(value)
    return value


def to_bind_params(values: Dict[str, Any]) -> Dict[str, Any]:
    """Dates and decimals are bound as strings so every driver stores them the same way."""
    return {key: _bind_value(value) for key, value in values.items()}
