"""Command-line entry point for the civicprep MCP server."""

if __name__ == "__main__":
    import uvicorn

    from civicprep.config import ServerConfig
    from civicprep.observability import setup_logging
    from civicprep.server import create_server

    config = ServerConfig()
    setup_logging(config.log_level)
    mcp = create_server(config)
    app = mcp.http_app(transport="streamable-http")
    uvicorn.run(app, host=config.host, port=config.port)
