"""Print the effective configuration."""

from rich.table import Table

from tempinbox import config
from tempinbox.utils.identifiers import ENCODINGS

from .shared import console, logger


def validate_config() -> None:
    """Show effective settings and flag obviously invalid ones."""
    rows = [
        ("API base URL", config.api_base_url()),
        ("Request timeout (s)", str(config.REQUEST_TIMEOUT)),
        ("Poll interval (ms)", str(config.POLL_INTERVAL_MS)),
        ("Local id bytes", str(config.ID_LENGTH_BYTES)),
        ("Local id encoding", config.ID_ENCODING),
        ("Log level", "DEBUG (verbose)" if config.VERBOSE_LOGGING else config.LOG_LEVEL),
        ("Log file", config.LOG_FILE or "(disabled)"),
    ]
    table = Table(title="tempinbox configuration")
    table.add_column("Setting")
    table.add_column("Value")
    for name, value in rows:
        table.add_row(name, value)
    console.print(table)

    problems = []
    if config.API_SCHEME not in ("http", "https"):
        problems.append(f"TEMPINBOX_API_SCHEME must be http or https, got {config.API_SCHEME!r}")
    if config.ID_LENGTH_BYTES < 1:
        problems.append("TEMPINBOX_ID_BYTES must be at least 1")
    if config.ID_ENCODING not in ENCODINGS:
        problems.append(f"TEMPINBOX_ID_ENCODING must be one of {', '.join(ENCODINGS)}, got {config.ID_ENCODING!r}")
    if config.POLL_INTERVAL_MS < 0:
        problems.append("TEMPINBOX_POLL_INTERVAL_MS must not be negative")
    for p in problems:
        console.print(f"[red]{p}[/red]")
    logger.info("validate_config.complete", problems=len(problems))
    if problems:
        raise SystemExit(1)
