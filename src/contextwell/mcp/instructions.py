"""MCP server instructions for Contextwell.

Provides system prompt/instructions for AI agents using Contextwell via MCP.
"""

CONTEXTWELL_INSTRUCTIONS = """Contextwell gives you structured, token-budgeted context about the Python application in this workspace: database schema, routes, settings, recent errors and project guidelines.

## Quick Start

1. **List what is available** with `context-manifest()`. Every slice shows its category, parameters and approximate token cost; `live` slices are read from the running application.
2. **Load only what you need** with `resolve-context(slices={...}, bundles=[...])`.
3. **Run code** against the application with `execute(code)` when no slice answers the question.

## Slices and Bundles

`slices` maps slice ids to parameters (use `{}` for none):

```
resolve-context(slices={"db-schema": {"summary": true}, "get-config": {"key": "database.url"}})
```

Bundles are pre-compiled groups of slices, prefixed with `@`:

```
resolve-context(bundles=["@debug"])
```

A slice requested both explicitly and through a bundle is loaded once, with your explicit parameters.

## Reading the Response

Each loaded slice appears as a `=== slice-id ===` section. Slices that could not be loaded are listed on a final `[failed: ...]` line; the rest of the response is still valid.

## Execution

Read-only tools run inside the server. `execute` and every state-changing tool run in a fresh process with a timeout (default 180 seconds), so they always see the current code on disk.
"""
