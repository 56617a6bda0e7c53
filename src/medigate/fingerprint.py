"""Request fingerprinting for cache keys.

A fingerprint is built only from the fields that change the upstream
answer: the query text, the declared filters and the declared
pagination fields. Anything else on the request (timestamps, request
ids, tokens, headers) never reaches the key.

Key layout::

    <query>|<filters>|<pagination>

    diabetes|default-filters|pageSize=20
    diabetes|phase=phase3&status=completed|pageSize=50&pageToken=NF0g5Jq

`<filters>` collapses to ``default-filters`` when every filter equals its
declared default, so an unset filter and a filter explicitly set to its
default share a key.
"""

import re
from collections.abc import Mapping
from typing import Any

from medigate.errors import ValidationError

DEFAULT_FILTERS = "default-filters"

_WHITESPACE = re.compile(r"\s+")

# Characters that delimit the key layout are escaped inside values
_ESCAPES = str.maketrans({"%": "%25", "|": "%7C", "&": "%26", "=": "%3D"})


def normalize_value(value: Any, fold_case: bool = True) -> str | None:
    """Normalise one field value into its canonical string form.

    Strings are trimmed and whitespace runs collapsed (and lower-cased
    unless ``fold_case`` is False). Collections are normalised item by
    item and sorted. Empty values normalise to None.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        text = _WHITESPACE.sub(" ", value.strip())
        if fold_case:
            text = text.lower()
        return text.translate(_ESCAPES) or None
    if isinstance(value, (list, tuple, set, frozenset)):
        items = sorted(
            item
            for item in (normalize_value(v, fold_case) for v in value)
            if item is not None
        )
        return ",".join(items) or None
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


class FingerprintBuilder:
    """Deterministic cache-key builder for one request schema.

    Example:
        ```python
        builder = FingerprintBuilder(
            query_field="query",
            filter_defaults={"status": "RECRUITING", "phase": None},
            pagination_defaults={"pageSize": 20, "pageToken": None},
        )
        builder.build({"query": "Diabetes "})
        # 'diabetes|default-filters|pageSize=20'
        ```
    """

    def __init__(
        self,
        query_field: str = "query",
        filter_defaults: Mapping[str, Any] | None = None,
        pagination_defaults: Mapping[str, Any] | None = None,
    ) -> None:
        """Initialize the builder.

        Args:
            query_field: Name of the free-text field. Required on every request.
            filter_defaults: Filter field names and their default values.
            pagination_defaults: Pagination field names and their default values.
        """
        self._query_field = query_field
        self._filter_defaults = {
            name: normalize_value(default)
            for name, default in (filter_defaults or {}).items()
        }
        self._pagination_defaults = {
            name: normalize_value(default, fold_case=False)
            for name, default in (pagination_defaults or {}).items()
        }

    @property
    def fields(self) -> frozenset[str]:
        """Every field name that participates in the key."""
        return frozenset(
            {self._query_field, *self._filter_defaults, *self._pagination_defaults}
        )

    def build(self, request: Mapping[str, Any]) -> str:
        """Build the fingerprint for a request.

        Args:
            request: Mapping of request fields. Undeclared fields are ignored.

        Returns:
            The cache key

        Raises:
            ValidationError: If the query field is missing or blank
        """
        query = normalize_value(request.get(self._query_field))
        if query is None:
            raise ValidationError(f"'{self._query_field}' is required")

        filters = []
        for name in sorted(self._filter_defaults):
            default = self._filter_defaults[name]
            value = normalize_value(request.get(name))
            if value is None:
                value = default
            if value != default:
                filters.append(f"{name}={value}")

        pagination = []
        for name in sorted(self._pagination_defaults):
            value = normalize_value(request.get(name), fold_case=False)
            if value is None:
                value = self._pagination_defaults[name]
            if value is not None:
                pagination.append(f"{name}={value}")

        return "|".join([query, "&".join(filters) or DEFAULT_FILTERS, "&".join(pagination)])
