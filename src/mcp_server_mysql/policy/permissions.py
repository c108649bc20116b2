"""Two-level write permissions: global flags overridden per schema."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING

from loguru import logger

from mcp_server_mysql.policy._types import WRITE_CATEGORIES, OperationCategory

if TYPE_CHECKING:
    from mcp_server_mysql.config import ServerConfig

# Operator-facing setting names, per category.
FLAG_SETTINGS: dict[OperationCategory, str] = {
    OperationCategory.WRITE_INSERT: "ALLOW_INSERT_OPERATION",
    OperationCategory.WRITE_UPDATE: "ALLOW_UPDATE_OPERATION",
    OperationCategory.WRITE_DELETE: "ALLOW_DELETE_OPERATION",
    OperationCategory.DDL: "ALLOW_DDL_OPERATION",
}
OVERRIDE_SETTINGS: dict[OperationCategory, str] = {
    OperationCategory.WRITE_INSERT: "SCHEMA_INSERT_PERMISSIONS",
    OperationCategory.WRITE_UPDATE: "SCHEMA_UPDATE_PERMISSIONS",
    OperationCategory.WRITE_DELETE: "SCHEMA_DELETE_PERMISSIONS",
    OperationCategory.DDL: "SCHEMA_DDL_PERMISSIONS",
}


def parse_schema_permissions(text: str | None) -> dict[str, bool]:
    """Parse `schema1:true,schema2:false` into a mapping.

    Pairs without both a name and a value are skipped. Only the literal
    `true` grants; any other value denies.
    """
    permissions: dict[str, bool] = {}
    if not text:
        return permissions

    for pair in text.split(","):
        schema, _, value = pair.partition(":")
        schema, value = schema.strip(), value.strip()
        if schema and value:
            permissions[schema] = value == "true"
    return permissions


def _frozen(mapping: Mapping) -> Mapping:
    return MappingProxyType(dict(mapping))


@dataclass(frozen=True)
class PermissionPolicy:
    """Immutable write policy, built once at startup."""

    flags: Mapping[OperationCategory, bool] = field(default_factory=dict)
    overrides: Mapping[OperationCategory, Mapping[str, bool]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        flags = {c: bool(self.flags.get(c, False)) for c in WRITE_CATEGORIES}
        overrides = {c: _frozen(self.overrides.get(c, {})) for c in WRITE_CATEGORIES}
        object.__setattr__(self, "flags", _frozen(flags))
        object.__setattr__(self, "overrides", _frozen(overrides))

    @classmethod
    def from_config(cls, config: ServerConfig) -> PermissionPolicy:
        """Build the policy from resolved settings.

        Multi-DB mode clears every global write flag unless
        MULTI_DB_WRITE_MODE is set. Schema overrides still apply.
        """
        flags = {
            OperationCategory.WRITE_INSERT: config.allow_insert,
            OperationCategory.WRITE_UPDATE: config.allow_update,
            OperationCategory.WRITE_DELETE: config.allow_delete,
            OperationCategory.DDL: config.allow_ddl,
        }
        if config.multi_db and not config.multi_db_write_mode:
            logger.warning("Multi-DB mode detected - global write operations disabled")
            flags = dict.fromkeys(flags, False)

        return cls(
            flags=flags,
            overrides={
                OperationCategory.WRITE_INSERT: config.schema_insert_permissions,
                OperationCategory.WRITE_UPDATE: config.schema_update_permissions,
                OperationCategory.WRITE_DELETE: config.schema_delete_permissions,
                OperationCategory.DDL: config.schema_ddl_permissions,
            },
        )

    def is_allowed(self, category: OperationCategory, schema: str | None) -> bool:
        if not category.is_write:
            return True
        override = self.overrides[category]
        if schema is not None and schema in override:
            return override[schema]
        return self.flags[category]

    def allowed_categories(self) -> list[OperationCategory]:
        """Write categories enabled by a global flag."""
        return [c for c in WRITE_CATEGORIES if self.flags[c]]

    @property
    def has_schema_overrides(self) -> bool:
        return any(self.overrides[c] for c in WRITE_CATEGORIES)
