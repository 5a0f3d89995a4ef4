"""CLI commands: one module per mode (address, inbox, watch)."""

from typer import Typer

from tempinbox.cli import address_mode, inbox_mode, validate_config as validate_config_module, watch_mode

app = Typer(help="Disposable inbox client")


def register_commands() -> None:
    """Register all CLI commands on the global app."""
    app.command()(address_mode.create)
    app.command()(address_mode.domains)
    app.command()(inbox_mode.inbox)
    app.command()(watch_mode.watch)
    app.command(name="validate-config")(validate_config_module.validate_config)


register_commands()
