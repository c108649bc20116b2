"""mcp-server-mysql: a MySQL MCP server with per-schema write permissions."""
