"""
Response helpers: turn service results into JSON-ready values.
"""

from datetime import date, datetime
from typing import Any


def dump(value: Any) -> Any:
    """
    Recursively convert models (anything with to_dict), dicts, lists and dates.

    Models serialize through their own to_dict so private columns such as the
    password hash never leave the service layer.
    """
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if isinstance(value, dict):
        return {k: dump(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [dump(v) for v in value]
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def page(result: dict) -> dict:
    """Serialize a paginate() result."""
    return {**result, "items": dump(result["items"])}
