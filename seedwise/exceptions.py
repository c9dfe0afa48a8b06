"""Custom exceptions with helpful error messages."""


class SeedwiseError(Exception):
    """Base exception for seedwise errors."""

    pass


class SessionNotFoundError(SeedwiseError):
    """Debugging session is unknown or has already been ended."""

    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(
            f"Debugging session not found: {session_id}\n\n"
            f"Suggestions:\n"
            f"1. Start a session first: debugger.start_debugging_session(table, constraints)\n"
            f"2. Check the id against debugger.get_active_sessions()\n"
            f"3. Sessions are removed by end_debugging_session(); render reports before ending"
        )


class IntrospectionConnectionError(SeedwiseError):
    """Database rejected the connection or credentials."""

    def __init__(self, detail: str):
        super().__init__(
            f"Could not introspect the database: {detail}\n\n"
            f"Suggestions:\n"
            f"1. Check the connection URL in seedwise.toml ([database] url)\n"
            f"2. Verify the user name and password are valid for this database\n"
            f"3. Ensure the database server is reachable from this machine"
        )


class SchemaNotFoundError(SeedwiseError):
    """Configured schema does not exist in the database."""

    def __init__(self, schema: str):
        super().__init__(
            f"Schema '{schema}' not found in database.\n\n"
            f"Suggestions:\n"
            f"1. Check schema name spelling\n"
            f"2. Set [database] schema in seedwise.toml\n"
            f"3. Check database connection settings"
        )


class UnknownStrategyError(SeedwiseError):
    """No seeding strategy registered under the requested name."""

    def __init__(self, name: str, available: list[str]):
        available_str = ", ".join(sorted(available)) or "(none registered)"
        super().__init__(
            f"Unknown seeding strategy: '{name}'\n\n"
            f"Suggestions:\n"
            f"1. Use one of: {available_str}\n"
            f"2. Register a custom strategy: registry.register(MyStrategy())"
        )


class ConfigurationError(SeedwiseError):
    """Configuration file could not be parsed or validated."""

    def __init__(self, path: str, detail: str):
        super().__init__(
            f"Invalid configuration in {path}: {detail}\n\n"
            f"Suggestions:\n"
            f"1. Compare with a fresh template: seedwise init --force\n"
            f"2. Check value types (numbers are not quoted in TOML)"
        )


class InvalidReportFormatError(SeedwiseError):
    """Requested report format is not supported."""

    def __init__(self, fmt: str):
        super().__init__(
            f"Unsupported report format: '{fmt}'\n\n"
            f"Suggestions:\n"
            f"1. Use one of: markdown, json, html"
        )
