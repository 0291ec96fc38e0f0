"""Value normalizers shared by the quota fetchers.

Provider payloads are loose: the same field can arrive as camelCase or
snake_case, numbers can be strings, and bodies can be JSON text or an
already-decoded object. These helpers collapse that variety into plain
Python values or None.
"""

import base64
import json
import math
from typing import Any, Optional


def normalize_string_value(value: Any) -> Optional[str]:
    """Return a stripped non-empty string, or None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return None


def normalize_number_value(value: Any) -> Optional[float]:
    """Return a finite float from a number or numeric string, or None."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def normalize_quota_fraction(value: Any) -> Optional[float]:
    """Return a remaining fraction; "75%" becomes 0.75."""
    if isinstance(value, str) and value.strip().endswith("%"):
        number = normalize_number_value(value.strip()[:-1])
        return number / 100 if number is not None else None
    return normalize_number_value(value)


def normalize_auth_index_value(value: Any) -> Optional[str]:
    """Auth indexes are opaque strings; integers are accepted too."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return str(value)
    return normalize_string_value(value)


def normalize_plan_type(value: Any) -> Optional[str]:
    text = normalize_string_value(value)
    return text.lower() if text else None


def parse_json_object(body: Any) -> Optional[dict]:
    """Decode a response body that may be a dict or JSON text."""
    if isinstance(body, dict):
        return body
    if isinstance(body, (bytes, bytearray)):
        body = body.decode("utf-8", errors="replace")
    if not isinstance(body, str) or not body.strip():
        return None
    try:
        parsed = json.loads(body)
    except json.JSONDecodeError:
        return None
    return parsed if isinstance(parsed, dict) else None


def decode_jwt(token: str) -> Optional[dict]:
    """Decode a JWT payload without verifying it."""
    if not isinstance(token, str):
        return None
    parts = token.split(".")
    if len(parts) < 2:
        return None

    payload = parts[1]
    padding = 4 - len(payload) % 4
    if padding != 4:
        payload += "=" * padding

    try:
        decoded = base64.urlsafe_b64decode(payload)
        claims = json.loads(decoded)
    except (ValueError, json.JSONDecodeError):
        return None
    return claims if isinstance(claims, dict) else None
