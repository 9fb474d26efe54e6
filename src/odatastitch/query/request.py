from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import quote

_QUERY_SAFE_CHARS = "$(),;=/'"


@dataclass(frozen=True)
class Expand:
    """A ``$expand`` directive, optionally carrying its own nested options."""

    name: str
    select: tuple[str, ...] = ()
    filter: str | None = None
    expand: tuple["Expand", ...] = ()

    def render(self) -> str:
        options = []
        if self.select:
            options.append("$select=" + ",".join(self.select))
        if self.expand:
            options.append("$expand=" + ",".join(item.render() for item in self.expand))
        if self.filter:
            options.append("$filter=" + self.filter)
        if not options:
            return self.name
        return f"{self.name}({';'.join(options)})"


@dataclass(frozen=True)
class CollectionRequest:
    resource: str
    select: tuple[str, ...] = ()
    filter: str | None = None
    expand: tuple[Expand, ...] = ()

    def query_options(self) -> list[tuple[str, str]]:
        options = []
        if self.select:
            options.append(("$select", ",".join(self.select)))
        if self.expand:
            options.append(("$expand", ",".join(item.render() for item in self.expand)))
        if self.filter:
            options.append(("$filter", self.filter))
        return options

    def query_string(self) -> str:
        return "&".join(
            f"{name}={quote(value, safe=_QUERY_SAFE_CHARS)}" for name, value in self.query_options()
        )

    def url(self, base_url: str) -> str:
        root = f"{base_url.rstrip('/')}/{self.resource.strip('/')}"
        query = self.query_string()
        return f"{root}?{query}" if query else root

    def describe(self) -> dict[str, object]:
        return {
            "resource": self.resource,
            "select_count": len(self.select),
            "expand": [item.name for item in self.expand] or None,
            "filter": self.filter,
        }


__all__ = ["CollectionRequest", "Expand"]
