"""Core migration logic: configuration, ledger, work selection and the engine."""

__all__ = [
    "config",
    "context",
    "engine",
    "ledger",
    "migration_logging",
    "preflight",
    "selector",
    "state",
]
