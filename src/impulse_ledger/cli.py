"""
Command-line interface for the Impulse Ledger server.

Provides CLI commands for server management:
- init-db: Apply pending schema migrations
- run: Start the JSON API server

Usage:
    impulse-ledger init-db
    impulse-ledger run [--host HOST] [--port PORT]

Environment Variables:
    IMPULSE_DB_PATH: Database file (default: data/impulse.db)
    IMPULSE_HOST: Host to bind the API server (default: 0.0.0.0)
    IMPULSE_PORT: Port for the API server (default: 8000)
"""

import argparse
import sys


def cmd_init_db(args: argparse.Namespace) -> int:
    """
    Apply pending schema migrations.

    Returns:
        0 on success, 1 on error
    """
    from impulse_ledger.config import config
    from impulse_ledger.db.schema import init_database

    try:
        applied = init_database()
    except Exception as e:
        print(f"Error initializing database: {e}", file=sys.stderr)
        return 1

    if applied:
        print(f"Applied migrations {applied} to {config.database.absolute_path}")
    else:
        print(f"Database at {config.database.absolute_path} is already up to date.")
    return 0


def cmd_run(args: argparse.Namespace) -> int:
    """
    Run the API server in the foreground.

    Configuration Priority:
        1. CLI arguments (--host, --port)
        2. Environment variables (IMPULSE_HOST, IMPULSE_PORT)
        3. config/server.ini
        4. Default values (0.0.0.0:8000)

    Returns:
        0 on clean shutdown (Ctrl+C), 1 on startup error
    """
    from impulse_ledger.config import config, get_config_status
    from impulse_ledger.logging_setup import configure_logging

    configure_logging(config.logging)

    status = get_config_status()
    print(f"Database:  {status['database_path']}")
    print(f"Timezone:  {status['timezone']}")
    if status["using_example"]:
        print("Using config/server.example.ini (copy to server.ini to customize)")

    try:
        from impulse_ledger.api.server import start_server

        start_server(host=args.host, port=args.port)
        return 0
    except KeyboardInterrupt:
        print("\nShutting down.")
        return 0
    except Exception as e:
        print(f"Error starting server: {e}", file=sys.stderr)
        return 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="impulse-ledger",
        description="Impulse Ledger server management",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    init_parser = subparsers.add_parser("init-db", help="Apply pending schema migrations")
    init_parser.set_defaults(func=cmd_init_db)

    run_parser = subparsers.add_parser("run", help="Start the API server")
    run_parser.add_argument("--host", type=str, default=None, help="Host to bind to")
    run_parser.add_argument("--port", type=int, default=None, help="Port to listen on")
    run_parser.set_defaults(func=cmd_run)

    return parser


def main() -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args()

    if not getattr(args, "func", None):
        parser.print_help()
        return 0

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
