"""Pytest fixtures for Contextwell tests."""

import logging
from pathlib import Path

import pytest
import yaml
from sqlalchemy import create_engine, text

from contextwell.application import Application
from contextwell.config import load_config
from contextwell.runtime import Runtime
from contextwell.tools import ToolExecutor, ToolRegistry

WEBAPP_SOURCE = '''
class Route:
    def __init__(self, path, methods, name):
        self.path = path
        self.methods = set(methods)
        self.name = name


class WebApp:
    def __init__(self):
        self.routes = [
            Route("/", ["GET"], "home"),
            Route("/users", ["GET", "POST"], "users"),
            Route("/users/{user_id}", ["GET", "DELETE"], "user_detail"),
        ]


app = WebApp()
'''

WORKSPACE_TOOLS_SOURCE = '''
import os
import time

from contextwell.tools.base import BaseTool, ToolResponse, tool_metadata


@tool_metadata(name="process-id", description="Report the executing process id", read_only=False)
class ProcessIdTool(BaseTool):
    def handle(self, arguments):
        return ToolResponse.text(str(os.getpid()))


@tool_metadata(name="process-id-read-only", description="Report the executing process id")
class ReadOnlyProcessIdTool(BaseTool):
    def handle(self, arguments):
        return ToolResponse.text(str(os.getpid()))


@tool_metadata(name="sleepy", description="Sleep for a while", read_only=False)
class SleepyTool(BaseTool):
    def handle(self, arguments):
        time.sleep(float(arguments.get("seconds", 10)))
        return ToolResponse.text("awake")


@tool_metadata(name="explode", description="Always raises")
class ExplodingTool(BaseTool):
    def handle(self, arguments):
        raise RuntimeError("kaboom")


@tool_metadata(name="echo", description="Echo the arguments back", read_only=False)
class EchoTool(BaseTool):
    def handle(self, arguments):
        return ToolResponse.json(arguments)
'''

MANAGE_SOURCE = '''
import click


@click.group()
def cli():
    """Shop management commands."""


@cli.command()
def seed():
    """Load demo data."""


@cli.group()
def db():
    """Database commands."""


@db.command()
def migrate():
    """Apply pending migrations."""


@cli.command(hidden=True)
def internal():
    pass
'''

APP_LOG = """\
2026-03-01 09:00:00,001 INFO app.startup: Application started
2026-03-01 09:05:12,441 ERROR app.views: Failed to render dashboard
Traceback (most recent call last):
  File "app/views.py", line 42, in dashboard
    total = orders / count
ZeroDivisionError: division by zero
2026-03-01 09:06:00,000 WARNING app.cache: Cache miss for key user:1
2026-03-01 09:07:30,900 INFO app.requests: GET /users 200
"""

BROWSER_LOG = "".join(
    f"2026-03-01 10:00:{i:02d},000 browser.INFO: console message {i}\n" for i in range(25)
)


@pytest.fixture(autouse=True)
def _restore_root_logger():
    """CLI invocations reconfigure logging; undo that after each test."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """A small application workspace with settings, logs, a database and tools."""
    ws = tmp_path / "project"
    ws.mkdir()

    (ws / "pyproject.toml").write_text(
        '[project]\nname = "demo-shop"\nversion = "1.4.0"\n'
        'requires-python = ">=3.11"\ndependencies = ["sqlalchemy>=2.0"]\n'
        '\n[project.scripts]\nshop = "webapp:main"\n'
    )
    (ws / ".env").write_text("APP_NAME=Demo Shop\nexport SECRET_TOKEN='abc123'\n# comment\nDEBUG=true\n")
    (ws / "settings.yaml").write_text(
        yaml.safe_dump({
            "app": {"name": "Demo Shop", "timezone": "UTC"},
            "database": {"pool_size": 5},
            "features": {"signup": True},
        })
    )

    logs = ws / "logs"
    logs.mkdir()
    (logs / "app.log").write_text(APP_LOG)
    (logs / "browser.log").write_text(BROWSER_LOG)

    (ws / "webapp.py").write_text(WEBAPP_SOURCE)
    (ws / "workspace_tools.py").write_text(WORKSPACE_TOOLS_SOURCE)
    (ws / "manage.py").write_text(MANAGE_SOURCE)

    guidelines = ws / ".contextwell" / "guidelines"
    (guidelines / "project").mkdir(parents=True)
    (guidelines / "project" / "conventions.md").write_text(
        "---\ndescription: Shop conventions\n---\n# Conventions\n\nMoney is stored in cents.\n"
    )

    engine = create_engine(f"sqlite:///{ws / 'app.db'}")
    with engine.begin() as conn:
        conn.execute(text("CREATE TABLE users (id INTEGER PRIMARY KEY, email TEXT NOT NULL UNIQUE)"))
        conn.execute(text(
            "CREATE TABLE orders (id INTEGER PRIMARY KEY, "
            "user_id INTEGER REFERENCES users(id), total INTEGER NOT NULL)"
        ))
        conn.execute(text("CREATE INDEX ix_orders_user_id ON orders (user_id)"))
        conn.execute(text("INSERT INTO users (id, email) VALUES (1, 'ada@example.com'), (2, 'bob@example.com')"))
        conn.execute(text("INSERT INTO orders (id, user_id, total) VALUES (1, 1, 1250)"))
    engine.dispose()

    config = {
        "tools": {"modules": ["workspace_tools"]},
        "application": {
            "base_url": "https://shop.test",
            "entrypoint": "webapp:app",
            "cli": "manage:cli",
            "settings_files": ["settings.yaml"],
            "databases": {"default": "sqlite:///app.db"},
        },
    }
    (ws / ".contextwell" / "config.yaml").write_text(yaml.safe_dump(config))

    return ws


@pytest.fixture
def config(workspace: Path):
    """Config loaded from the workspace's .contextwell/config.yaml."""
    return load_config(workspace=workspace)


@pytest.fixture
def application(workspace: Path, config):
    app = Application(workspace, config.application)
    yield app
    app.dispose()


@pytest.fixture
def registry(application) -> ToolRegistry:
    reg = ToolRegistry(application, modules=["workspace_tools"])
    reg.discover()
    return reg


@pytest.fixture
def executor(registry, config) -> ToolExecutor:
    return ToolExecutor(registry, config.execution)


@pytest.fixture
def runtime(workspace: Path):
    rt = Runtime(workspace)
    yield rt
    rt.invalidate()
