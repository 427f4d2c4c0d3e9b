"""scriptshell library modules.

Script loading and configuration.
"""

__all__ = [
    "config_parser",
    "loader",
]
