"""SQLite persistence layer: connections, schema, retrying writes and repositories."""
