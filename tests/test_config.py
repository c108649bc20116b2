"""ServerConfig.from_env tests."""

from __future__ import annotations

import ssl

import pytest

from mcp_server_mysql.config import DEFAULT_POOL_SIZE, MysqlSettings, ServerConfig


def test_defaults() -> None:
    config = ServerConfig.from_env({})
    assert config.mysql.host == "127.0.0.1"
    assert config.mysql.port == 3306
    assert config.mysql.user == "root"
    assert config.pool_size == DEFAULT_POOL_SIZE
    assert config.multi_db
    assert config.default_schema is None
    assert config.read_only_transactions
    assert config.transport == "stdio"
    assert not config.allow_insert


def test_full_environment() -> None:
    config = ServerConfig.from_env({
        "MYSQL_HOST": "db.internal",
        "MYSQL_PORT": "3307",
        "MYSQL_USER": "app",
        "MYSQL_PASS": "secret",
        "MYSQL_DB": "shop",
        "MYSQL_POOL_SIZE": "4",
        "ALLOW_INSERT_OPERATION": "true",
        "ALLOW_DDL_OPERATION": "false",
        "SCHEMA_DELETE_PERMISSIONS": "shop:true,archive:false",
        "MYSQL_DISABLE_READ_ONLY_TRANSACTIONS": "true",
        "ENABLE_LOGGING": "1",
        "LOG_LEVEL": "debug",
        "MCP_TRANSPORT": "streamable-http",
        "PORT": "8080",
        "MCP_ENV": "test",
    })
    assert config.mysql.port == 3307
    assert config.default_schema == "shop"
    assert not config.multi_db
    assert config.pool_size == 4
    assert config.allow_insert and not config.allow_ddl
    assert config.schema_delete_permissions == {"shop": True, "archive": False}
    assert not config.read_only_transactions
    assert config.enable_logging
    assert config.log_level == "DEBUG"
    assert config.transport == "streamable-http"
    assert config.http_port == 8080
    assert config.test_environment


def test_blank_database_is_multi_db() -> None:
    assert ServerConfig.from_env({"MYSQL_DB": "  "}).multi_db


def test_unknown_transport_rejected() -> None:
    with pytest.raises(ValueError, match="MCP_TRANSPORT"):
        ServerConfig.from_env({"MCP_TRANSPORT": "carrier-pigeon"})


def test_socket_wins_over_host() -> None:
    settings = MysqlSettings(host="db", socket_path="/var/run/mysqld/mysqld.sock")
    kwargs = settings.connect_kwargs()
    assert kwargs["unix_socket"] == "/var/run/mysqld/mysqld.sock"
    assert "host" not in kwargs
    assert settings.describe()["connectionType"] == "Unix Socket"


def test_ssl_context() -> None:
    assert MysqlSettings().ssl_context() is None
    relaxed = MysqlSettings(ssl=True).ssl_context()
    assert relaxed.verify_mode == ssl.CERT_NONE
    strict = MysqlSettings(ssl=True, ssl_reject_unauthorized=True).ssl_context()
    assert strict.verify_mode == ssl.CERT_REQUIRED


def test_describe_masks_password() -> None:
    described = MysqlSettings(password="hunter2").describe()
    assert described["password"] == "******"
    assert "hunter2" not in str(described)
