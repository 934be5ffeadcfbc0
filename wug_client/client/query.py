"""
Построение query string для endpoint WUG API.

Имена параметров передаются как есть (camelCase, с учётом регистра),
None значения отбрасываются, bool -> "true"/"false", списки -> повтор ключа.
"""

from typing import Any, Dict, Optional
from urllib.parse import urlencode, quote


def build_query(params: Optional[Dict[str, Any]] = None) -> str:
    """
    Собирает query string без ведущего '?'.

    Example:
        build_query({"view": "card", "pageId": None, "limit": 250})
        # "view=card&limit=250"
    """
    pairs = []
    for key, value in (params or {}).items():
        if value is None:
            continue
        if isinstance(value, bool):
            pairs.append((key, "true" if value else "false"))
        elif isinstance(value, (list, tuple, set)):
            for item in value:
                if item is not None:
                    pairs.append((key, str(item)))
        else:
            pairs.append((key, str(value)))
    return urlencode(pairs, quote_via=quote)


def build_uri(path: str, **params: Any) -> str:
    """
    Путь + query string.

    Example:
        build_uri("/api/v1/device-groups/1/devices/-", pageId="abc", limit=250)
        # "/api/v1/device-groups/1/devices/-?pageId=abc&limit=250"
    """
    query = build_query(params)
    if not query:
        return path
    separator = "&" if "?" in path else "?"
    return f"{path}{separator}{query}"


def path_segment(value: Any) -> str:
    """Экранирует значение для подстановки в путь (/devices/{id})."""
    return quote(str(value), safe="-")
