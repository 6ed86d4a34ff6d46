# src/resolve/schema.py - v1
"""Resolver-backed field registration for the content graph schema.

A resolver map has the shape ``{type_name: {field_name: FieldResolver}}``.
Only the reference id is stored on the node; the linked entity is looked up
each time the field is read.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from docthumb.core.models import THUMBNAIL_FIELD
from docthumb.resolve.link_resolver import LinkResolver

ResolveFn = Callable[[dict[str, Any], dict[str, Any]], Awaitable[Any]]
ResolverMap = dict[str, dict[str, "FieldResolver"]]


class UnknownFieldError(KeyError):
    """Raised when no resolver is registered for a type/field pair."""


@dataclass(frozen=True)
class FieldResolver:
    """A typed, lazily resolved field."""

    type: str
    resolve: ResolveFn


def build_thumbnail_resolvers(
    link_resolver: LinkResolver,
    source_type: str = "Asset",
    artifact_type: str = "File",
) -> ResolverMap:
    """Expose ``thumbnail`` on ``source_type`` as a reference to ``artifact_type``."""

    async def _resolve(source: dict[str, Any], context: dict[str, Any]) -> Any:
        return await link_resolver.resolve_field(source, context)

    return {source_type: {THUMBNAIL_FIELD: FieldResolver(type=artifact_type, resolve=_resolve)}}


class ResolverRegistry:
    """Merged resolver maps with field dispatch."""

    def __init__(self) -> None:
        self._resolvers: ResolverMap = {}

    def register(self, resolvers: ResolverMap) -> None:
        for type_name, fields in resolvers.items():
            self._resolvers.setdefault(type_name, {}).update(fields)

    def field_type(self, type_name: str, field_name: str) -> str:
        return self._get(type_name, field_name).type

    def fields_for(self, type_name: str) -> dict[str, str]:
        return {name: r.type for name, r in self._resolvers.get(type_name, {}).items()}

    async def resolve_field(
        self,
        type_name: str,
        field_name: str,
        source: dict[str, Any],
        context: dict[str, Any] | None = None,
    ) -> Any:
        return await self._get(type_name, field_name).resolve(source, context or {})

    def _get(self, type_name: str, field_name: str) -> FieldResolver:
        try:
            return self._resolvers[type_name][field_name]
        except KeyError:
            raise UnknownFieldError(f"No resolver for {type_name}.{field_name}") from None
