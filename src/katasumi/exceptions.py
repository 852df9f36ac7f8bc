"""
Katasumi Exception Hierarchy

Structured exceptions for the facade, importer, and CLI.  The search
engine itself never raises these: repository failures reach the caller
unchanged, and empty or unknown input degrades to empty results.

Usage::

    from katasumi.exceptions import KatasumiError, CatalogNotFoundError

    try:
        hits = client.search("copy line")
    except CatalogNotFoundError:
        print("Run 'katasumi import' first.")
    except KatasumiError as exc:
        print(f"Katasumi error: {exc}")
"""


class KatasumiError(Exception):
    """Base exception for all Katasumi errors."""


class ConfigError(KatasumiError, ValueError):
    """Configuration is invalid (e.g. non-positive limits).

    Inherits from ``ValueError`` so callers validating input generically
    keep working.
    """


class CatalogNotFoundError(KatasumiError, FileNotFoundError):
    """No shortcut catalog exists at the configured path.

    Inherits from ``FileNotFoundError`` for intuitive exception handling.
    """


class CatalogFormatError(KatasumiError, ValueError):
    """A catalog record is malformed (missing app/action, bad keys mapping)."""
