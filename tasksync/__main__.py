"""CLI entry point for tasksync."""

import argparse
import asyncio
import json
import logging
import sys
import traceback
from datetime import datetime
from pathlib import Path

from .cache import LocalStore, SnapshotCache
from .config import Config, load_config
from .models import Collection, Record


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "component": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_data["exception"] = "".join(traceback.format_exception(*record.exc_info))

        try:
            return json.dumps(log_data)
        except (TypeError, ValueError):
            log_data["message"] = str(log_data["message"])
            return json.dumps(log_data)


def setup_logging(verbose: bool = False, log_level: str | None = None, json_output: bool = False) -> None:
    """Configure logging.

    Args:
        verbose: Enable debug logging (ignored if log_level is set).
        log_level: Explicit log level (warning, info, debug).
        json_output: Output logs as JSON lines for machine parsing.
    """
    if log_level:
        level_map = {
            "warning": logging.WARNING,
            "info": logging.INFO,
            "debug": logging.DEBUG,
        }
        level = level_map.get(log_level, logging.INFO)
    else:
        level = logging.DEBUG if verbose else logging.WARNING

    handler = logging.StreamHandler()
    if json_output:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(
            logging.Formatter(
                fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )

    logging.basicConfig(level=level, handlers=[handler])


def _build_engine(config: Config, local_store: LocalStore):
    """Wire the remote client, snapshot cache and engine from config."""
    from .sync import PersistPolicy, RemoteStoreClient, SyncEngine

    client = RemoteStoreClient(
        api_url=config.remote.url,
        timeout=config.remote.timeout_seconds,
        health_timeout=config.remote.health_timeout_seconds,
    )
    engine = SyncEngine(
        client,
        SnapshotCache(local_store),
        safety_timeout=config.sync.safety_timeout_seconds,
        persist_policy=PersistPolicy(
            max_attempts=1 + config.sync.write_retry_attempts,
            backoff_seconds=config.sync.write_retry_backoff_seconds,
        ),
    )
    return client, engine


def _find_user(users: list[Record], username: str) -> Record | None:
    return next((u for u in users if u.get("username") == username), None)


async def _load_as(config: Config, local_store: LocalStore, username: str):
    """Load data and sign in as ``username``. Returns (client, engine) or None."""
    client, engine = _build_engine(config, local_store)
    result = await engine.load()
    if engine.connection_error:
        print(f"Warning: {engine.connection_error}", file=sys.stderr)

    user = _find_user(engine.raw_users, username)
    if user is None:
        print(f"Unknown user: {username}", file=sys.stderr)
        await client.close()
        return None

    engine.set_current_user(user)
    print(f"Data source: {result.status.value}", file=sys.stderr)
    return client, engine


async def cmd_serve(args: argparse.Namespace) -> int:
    """Run the remote store service."""
    import uvicorn

    from .server import DocumentStore, create_app

    config = load_config(args.config)
    host = args.host or config.server.host
    port = args.port or config.server.port

    store = DocumentStore(config.server.db_path)
    store.connect()

    print("Starting tasksync store")
    print(f"URL: http://{host}:{port}/api")

    app = create_app(config, store)

    try:
        server = uvicorn.Server(
            uvicorn.Config(
                app,
                host=host,
                port=port,
                log_level="info" if args.verbose else "warning",
            )
        )
        await server.serve()
    finally:
        store.close()

    return 0


async def cmd_status(args: argparse.Namespace) -> int:
    """Check remote store connectivity and collection sizes."""
    from .sync import RemoteStoreClient, RemoteStoreError

    config = load_config(args.config)
    client = RemoteStoreClient(
        api_url=config.remote.url,
        timeout=config.remote.timeout_seconds,
        health_timeout=config.remote.health_timeout_seconds,
    )

    status_data = {
        "timestamp": datetime.now().isoformat(),
        "remote_url": config.remote.url,
        "connected": False,
        "counts": {},
    }

    try:
        status_data["connected"] = await client.health_check()
        if status_data["connected"]:
            for collection in Collection:
                try:
                    records = await client.fetch(collection)
                    status_data["counts"][collection.value] = len(records)
                except RemoteStoreError as e:
                    status_data["counts"][collection.value] = None
                    status_data["error"] = str(e)
    finally:
        await client.close()

    if args.json:
        print(json.dumps(status_data, indent=2))
    else:
        state = "connected" if status_data["connected"] else "unreachable"
        print(f"Remote store: {config.remote.url} ({state})")
        for name, count in status_data["counts"].items():
            print(f"  {name}: {count if count is not None else 'error'}")

    return 0 if status_data["connected"] else 1


async def cmd_tasks(args: argparse.Namespace) -> int:
    """List the tasks visible to a user."""
    config = load_config(args.config)
    local_store = LocalStore(config.cache.db_path)
    local_store.connect()

    client = None
    try:
        loaded = await _load_as(config, local_store, args.user)
        if loaded is None:
            return 1
        client, engine = loaded

        tasks = engine.tasks
        if not tasks:
            print("No tasks visible.")
        for task in tasks:
            print(
                f"{task.get('id')}  [{task.get('status')}]  {task.get('deadline', '')}  "
                f"{task.get('title', '')}"
            )
    finally:
        if client:
            await client.close()
        local_store.close()

    return 0


async def cmd_export(args: argparse.Namespace) -> int:
    """Export the tasks visible to a user as CSV."""
    from .actions import DataActions
    from .export import export_filename, write_csv

    config = load_config(args.config)
    local_store = LocalStore(config.cache.db_path)
    local_store.connect()

    client = None
    try:
        loaded = await _load_as(config, local_store, args.user)
        if loaded is None:
            return 1
        client, engine = loaded

        content = DataActions(engine).export_csv()
        path = write_csv(args.output or export_filename(), content)
        print(f"Exported {len(engine.tasks)} tasks to {path}")
    finally:
        if client:
            await client.close()
        local_store.close()

    return 0


async def cmd_diagnose(args: argparse.Namespace) -> int:
    """Run the persistence self-test against the remote store."""
    from .diagnostics import StepStatus, run_backend_test

    config = load_config(args.config)
    local_store = LocalStore(config.cache.db_path)
    local_store.connect()

    client, engine = _build_engine(config, local_store)
    try:
        results = await run_backend_test(client, engine)
    finally:
        await client.close()
        local_store.close()

    if args.json:
        print(json.dumps([r.to_dict() for r in results], indent=2, default=str))
    else:
        for r in results:
            print(f"[{r.status.value.upper():7}] {r.step}: {r.message}")

    failed = any(r.status is StepStatus.ERROR for r in results)
    return 1 if failed else 0


def cmd_settings(args: argparse.Namespace) -> int:
    """Show or change persisted settings."""
    from .settings import SettingsStore

    config = load_config(args.config)
    local_store = LocalStore(config.cache.db_path)
    local_store.connect()

    try:
        settings = SettingsStore(local_store, default_api_key=config.settings.api_key)

        if args.settings_command == "toggle-dark":
            settings.toggle_dark_mode()
        elif args.settings_command == "toggle-theme":
            settings.toggle_theme_mode()
        elif args.settings_command == "christmas":
            settings.set_christmas_enabled(args.state == "on")

        for key, value in settings.to_dict().items():
            print(f"{key}: {value}")
    finally:
        local_store.close()

    return 0


def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        prog="tasksync",
        description="Offline-resilient multi-tenant task tracking data layer",
    )
    parser.add_argument(
        "-c", "--config",
        type=Path,
        default=None,
        help="Path to config file (default: built-in defaults)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["warning", "info", "debug"],
        default=None,
        help="Set log level explicitly (overrides -v/--verbose)",
    )
    parser.add_argument(
        "--json-logs",
        action="store_true",
        help="Output logs as JSON for machine parsing",
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    serve_parser = subparsers.add_parser("serve", help="Run the remote store service")
    serve_parser.add_argument("-p", "--port", type=int, default=None, help="Port to listen on")
    serve_parser.add_argument("--host", type=str, default=None, help="Host to bind to")
    serve_parser.set_defaults(func=cmd_serve)

    status_parser = subparsers.add_parser("status", help="Check remote store connectivity")
    status_parser.add_argument("--json", action="store_true", help="Output status as JSON")
    status_parser.set_defaults(func=cmd_status)

    tasks_parser = subparsers.add_parser("tasks", help="List tasks visible to a user")
    tasks_parser.add_argument("-u", "--user", required=True, help="Username to act as")
    tasks_parser.set_defaults(func=cmd_tasks)

    export_parser = subparsers.add_parser("export", help="Export visible tasks as CSV")
    export_parser.add_argument("-u", "--user", required=True, help="Username to act as")
    export_parser.add_argument(
        "-o", "--output",
        type=Path,
        default=None,
        help="Output file (default: task_report_<date>.csv)",
    )
    export_parser.set_defaults(func=cmd_export)

    diagnose_parser = subparsers.add_parser("diagnose", help="Run the backend persistence self-test")
    diagnose_parser.add_argument("--json", action="store_true", help="Output steps as JSON")
    diagnose_parser.set_defaults(func=cmd_diagnose)

    settings_parser = subparsers.add_parser("settings", help="Show or change settings")
    settings_subparsers = settings_parser.add_subparsers(dest="settings_command")
    settings_subparsers.add_parser("show", help="Show current settings")
    settings_subparsers.add_parser("toggle-dark", help="Toggle dark mode")
    settings_subparsers.add_parser("toggle-theme", help="Toggle the seasonal theme")
    christmas_parser = settings_subparsers.add_parser("christmas", help="Enable or disable the seasonal theme")
    christmas_parser.add_argument("state", choices=["on", "off"])
    settings_parser.set_defaults(func=cmd_settings)

    args = parser.parse_args()

    setup_logging(args.verbose, args.log_level, args.json_logs)

    if not args.command:
        parser.print_help()
        return 1

    func = args.func
    if asyncio.iscoroutinefunction(func):
        return asyncio.run(func(args))
    return func(args)


if __name__ == "__main__":
    sys.exit(main())
