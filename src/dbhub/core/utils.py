"""Small helpers shared by config, executor, connectors and logging."""

from typing import Union


class ValidationUtils:
    """Utility class for validation operations."""

    @staticmethod
    def validate_port(port: Union[int, str]) -> bool:
        """True if ``port`` is a TCP port number (1-65535)."""
        try:
            port_int = int(port)
        except (TypeError, ValueError):
            return False
        return 1 <= port_int <= 65535


class StringUtils:
    """Utility class for string operations."""

    @staticmethod
    def compact_sql(sql: str, max_length: int = 200, *, suffix: str = "...") -> str:
        """Collapse whitespace in SQL text and truncate it for logging.

        Example:
            >>> StringUtils.compact_sql("SELECT *\\n  FROM   orders", 14)
            'SELECT * FR...'
        """
        text = " ".join(sql.split())
        if len(text) <= max_length:
            return text
        return text[:max(max_length - len(suffix), 0)] + suffix


class QuoteUtils:
    """Identifier quoting for statements that cannot take bind parameters."""

    @staticmethod
    def backtick(identifier: str) -> str:
        """MySQL and MariaDB quoting."""
        return "`" + identifier.replace("`", "``") + "`"


class FormatUtils:
    """Utility class for formatting operations."""

    @staticmethod
    def format_duration(seconds: Union[int, float]) -> str:
        """Format an operation duration for log output.

        Example:
            >>> FormatUtils.format_duration(0.0125)
            '12.50ms'
            >>> FormatUtils.format_duration(2.5)
            '2.50s'
        """
        if seconds < 0.001:
            return f"{seconds * 1_000_000:.0f}us"
        if seconds < 1:
            return f"{seconds * 1000:.2f}ms"
        return f"{seconds:.2f}s"
