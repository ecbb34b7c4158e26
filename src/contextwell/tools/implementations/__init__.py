"""Built-in tools, discovered by ToolRegistry.discover()."""
