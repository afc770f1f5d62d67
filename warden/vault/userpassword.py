"""Username/password extraction from Vault secret data.

Secrets read from Vault come in two shapes: a flat mapping of attributes,
or the KV-v2 envelope ``{"data": {...}, "metadata": {...}}``. ``extract``
tries the flat shape first, then the envelope.
"""

from collections.abc import Mapping
from typing import Any


def extract(
    data: Mapping[str, Any],
    username_attr: str,
    password_attr: str,
) -> tuple[str, str] | None:
    """Extract a username and password pair from secret data.

    Never returns partial results: when only one of the two attributes is
    found (or one is not a non-empty string) the pair is not returned.

    Args:
        data: Secret data returned by Vault
        username_attr: Attribute holding the username
        password_attr: Attribute holding the password

    Returns:
        ``(username, password)`` or None when the pair is not present
    """
    for candidate in (data, _kv2_data(data)):
        if candidate is None:
            continue
        username = _string_attr(candidate, username_attr)
        password = _string_attr(candidate, password_attr)
        if username and password:
            return username, password
    return None


def _string_attr(data: Mapping[str, Any], attr: str) -> str:
    value = data.get(attr)
    return value if isinstance(value, str) else ""


def _kv2_data(data: Mapping[str, Any]) -> Mapping[str, Any] | None:
    """The inner ``data`` mapping of a KV-v2 envelope, or None if not one.

    A KV-v2 envelope has exactly the ``data`` and ``metadata`` keys, both
    mappings.
    """
    if set(data) != {"data", "metadata"}:
        return None
    inner, metadata = data["data"], data["metadata"]
    if not isinstance(inner, Mapping) or not isinstance(metadata, Mapping):
        return None
    return inner
