"""Server configuration, resolved once from the environment."""

from __future__ import annotations

import os
import ssl
from collections.abc import Mapping
from dataclasses import dataclass, field

from mcp_server_mysql.policy.permissions import parse_schema_permissions

DEFAULT_POOL_SIZE = 10
DEFAULT_HTTP_PORT = 3000
TRANSPORTS = ("stdio", "streamable-http")


def _flag(environ: Mapping[str, str], name: str) -> bool:
    return environ.get(name, "").strip().lower() == "true"


@dataclass(frozen=True)
class MysqlSettings:
    host: str = "127.0.0.1"
    port: int = 3306
    socket_path: str | None = None
    user: str = "root"
    password: str = ""
    database: str | None = None
    ssl: bool = False
    ssl_reject_unauthorized: bool = False

    def ssl_context(self) -> ssl.SSLContext | None:
        if not self.ssl:
            return None
        ctx = ssl.create_default_context()
        if not self.ssl_reject_unauthorized:
            ctx.check_hostname = False
            ctx.verify_mode = ssl.CERT_NONE
        return ctx

    def connect_kwargs(self) -> dict[str, object]:
        """Keyword arguments for aiomysql.create_pool."""
        kwargs: dict[str, object] = {
            "user": self.user,
            "password": self.password,
            "autocommit": False,
        }
        if self.socket_path:
            kwargs["unix_socket"] = self.socket_path
        else:
            kwargs["host"] = self.host
            kwargs["port"] = self.port
        if self.database:
            kwargs["db"] = self.database
        ctx = self.ssl_context()
        if ctx is not None:
            kwargs["ssl"] = ctx
        return kwargs

    def describe(self) -> dict[str, str]:
        """Loggable view with the password masked."""
        if self.socket_path:
            endpoint = {"socketPath": self.socket_path, "connectionType": "Unix Socket"}
        else:
            endpoint = {"host": self.host, "port": str(self.port), "connectionType": "TCP/IP"}
        return {
            **endpoint,
            "user": self.user,
            "password": "******" if self.password else "not set",
            "database": self.database or "MULTI_DB_MODE",
            "ssl": "enabled" if self.ssl else "disabled",
        }


@dataclass(frozen=True)
class ServerConfig:
    mysql: MysqlSettings = field(default_factory=MysqlSettings)
    pool_size: int = DEFAULT_POOL_SIZE

    allow_insert: bool = False
    allow_update: bool = False
    allow_delete: bool = False
    allow_ddl: bool = False
    schema_insert_permissions: Mapping[str, bool] = field(default_factory=dict)
    schema_update_permissions: Mapping[str, bool] = field(default_factory=dict)
    schema_delete_permissions: Mapping[str, bool] = field(default_factory=dict)
    schema_ddl_permissions: Mapping[str, bool] = field(default_factory=dict)

    multi_db_write_mode: bool = False
    read_only_transactions: bool = True

    enable_logging: bool = False
    log_level: str = "INFO"
    transport: str = "stdio"
    http_port: int = DEFAULT_HTTP_PORT
    test_environment: bool = False

    @property
    def default_schema(self) -> str | None:
        return self.mysql.database

    @property
    def multi_db(self) -> bool:
        """No single database configured: every query resolves its own schema."""
        return not (self.mysql.database or "").strip()

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> ServerConfig:
        env = os.environ if environ is None else environ

        database = env.get("MYSQL_DB", "").strip() or None
        mysql = MysqlSettings(
            host=env.get("MYSQL_HOST") or "127.0.0.1",
            port=int(env.get("MYSQL_PORT") or 3306),
            socket_path=env.get("MYSQL_SOCKET_PATH") or None,
            user=env.get("MYSQL_USER") or "root",
            password=env.get("MYSQL_PASS", ""),
            database=database,
            ssl=_flag(env, "MYSQL_SSL"),
            ssl_reject_unauthorized=_flag(env, "MYSQL_SSL_REJECT_UNAUTHORIZED"),
        )

        transport = env.get("MCP_TRANSPORT") or "stdio"
        if transport not in TRANSPORTS:
            raise ValueError(
                f"Unknown MCP_TRANSPORT '{transport}'. Valid: {', '.join(TRANSPORTS)}"
            )

        return cls(
            mysql=mysql,
            pool_size=int(env.get("MYSQL_POOL_SIZE") or DEFAULT_POOL_SIZE),
            allow_insert=_flag(env, "ALLOW_INSERT_OPERATION"),
            allow_update=_flag(env, "ALLOW_UPDATE_OPERATION"),
            allow_delete=_flag(env, "ALLOW_DELETE_OPERATION"),
            allow_ddl=_flag(env, "ALLOW_DDL_OPERATION"),
            schema_insert_permissions=parse_schema_permissions(env.get("SCHEMA_INSERT_PERMISSIONS")),
            schema_update_permissions=parse_schema_permissions(env.get("SCHEMA_UPDATE_PERMISSIONS")),
            schema_delete_permissions=parse_schema_permissions(env.get("SCHEMA_DELETE_PERMISSIONS")),
            schema_ddl_permissions=parse_schema_permissions(env.get("SCHEMA_DDL_PERMISSIONS")),
            multi_db_write_mode=_flag(env, "MULTI_DB_WRITE_MODE"),
            read_only_transactions=not _flag(env, "MYSQL_DISABLE_READ_ONLY_TRANSACTIONS"),
            enable_logging=env.get("ENABLE_LOGGING", "").strip().lower() in ("true", "1"),
            log_level=(env.get("LOG_LEVEL") or "INFO").upper(),
            transport=transport,
            http_port=int(env.get("PORT") or DEFAULT_HTTP_PORT),
            test_environment=env.get("MCP_ENV") == "test" or "PYTEST_CURRENT_TEST" in env,
        )
