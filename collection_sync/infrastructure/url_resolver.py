"""Resource URL Resolver — hierarchical resource paths from path parameters.

Invariants:
    - Every `{placeholder}` in the template must be supplied and non-empty
    - Parameter values are URL-quoted (no "/" injection into the path)
    - trailing_slash applies uniformly to collection and item URLs
"""

import string
from typing import Any
from urllib.parse import quote

from collection_sync.core.errors import UrlResolutionError

_FORMATTER = string.Formatter()


class ResourceUrlResolver:
    """Resolves e.g. "countries/{country_id}/cities" to "countries/3/cities/7/"."""

    def __init__(self, template: str, trailing_slash: bool = True):
        self.template = template.strip("/")
        self.trailing_slash = trailing_slash
        self.placeholders = tuple(
            name for _, name, _, _ in _FORMATTER.parse(self.template) if name
        )

    def resolve(self, item_id: Any = None, **params: Any) -> str:
        missing = [
            name for name in self.placeholders
            if params.get(name) is None or str(params[name]) == ""
        ]
        if missing:
            raise UrlResolutionError(self.template, missing)

        path = self.template.format_map(
            {name: quote(str(params[name]), safe="") for name in self.placeholders}
        )
        if item_id is not None:
            if str(item_id) == "":
                raise UrlResolutionError(self.template, ["item_id"])
            path = f"{path}/{quote(str(item_id), safe='')}"
        return f"{path}/" if self.trailing_slash else path

    def collection_url(self, **params: Any) -> str:
        return self.resolve(None, **params)

    def item_url(self, item_id: Any, **params: Any) -> str:
        return self.resolve(item_id, **params)
