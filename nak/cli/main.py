"""Main CLI entry point for NaK."""

import signal
import sys
from typing import Callable, Optional

import click
from rich.console import Console

from nak.core.config import NakConfig
from nak.core.lib_logger import get_component_logger, setup_logging
from nak.logic.context import AppContext
from nak.logic.menus import Orchestrator
from nak.services.system_tools import command_exists
from nak.version import __version__

EXIT_INTERRUPTED = 130


class NakApp:
    """Main NaK application."""

    def __init__(
        self,
        config: Optional[NakConfig] = None,
        console: Optional[Console] = None,
        reader: Optional[Callable[[str], str]] = None
    ):
        """Initialize NaK application."""
        self.config = config or NakConfig()
        self.console = console or Console()
        self.ctx = AppContext.create(self.config, console=self.console, reader=reader)
        self.orchestrator = Orchestrator(self.ctx)
        self.logger = None
        self._initialized = False

    def initialize(self, install_signal_handlers: bool = True) -> None:
        """Set up logging, settings and the startup dependency check."""
        if self._initialized:
            return

        ctx = self.ctx
        ctx.config_store.ensure_exists()
        ctx.logging_manager = setup_logging(self.config, ctx.config_store.get("logging_level", "0"))
        self.logger = get_component_logger("cli")
        ctx.reload_cached_values()

        missing = ctx.dependency_checker.check_critical_dependencies()
        if missing:
            ctx.reporter.error_exit(
                f"Missing critical dependencies: {', '.join(missing)}",
                help_text="Install them with your distribution's package manager."
            )

        ctx.logging_manager.log_system_info(command_exists)

        if install_signal_handlers:
            signal.signal(signal.SIGINT, self.handle_interrupt)
            signal.signal(signal.SIGTERM, self.handle_interrupt)

        self._initialized = True
        self.logger.info("NaK application initialized")

    def handle_interrupt(self, signum=None, frame=None) -> None:
        """Roll back an active transaction, clean up and exit with 130."""
        self.console.print("\n[yellow]Interrupted by user[/yellow]")
        if self.logger:
            self.logger.warning(f"Interrupted by signal {signum}")

        if self.ctx.transactions.active:
            report = self.ctx.transactions.rollback()
            for description, error in report.failed:
                self.console.print(f"[red]Rollback step failed: {description}: {error}[/red]")

        self.cleanup()
        sys.exit(EXIT_INTERRUPTED)

    def run(self) -> int:
        """Welcome screen and main menu. Returns the exit code."""
        self.initialize()
        try:
            self.orchestrator.welcome()
            self.ctx.ui.pause()
            return self.orchestrator.main_menu()
        finally:
            self.cleanup()

    def cleanup(self) -> None:
        """Clean up temporary files and flush logs."""
        self.ctx.cleanup()
        if self.logger:
            self.logger.info("NaK session ended")


@click.command()
@click.version_option(__version__, "--version", "-v", help="Show version and exit")
@click.pass_context
def main(ctx: click.Context):
    """NaK - The Linux Modding Helper.

    Interactive menus for setting up Mod Organizer 2, Vortex, Limo and
    Hoolamike with Proton, plus game-specific fixes.
    """
    app = NakApp()
    try:
        code = app.run()
    except KeyboardInterrupt:
        app.console.print("\n[yellow]Interrupted by user[/yellow]")
        code = EXIT_INTERRUPTED
    except EOFError:
        # stdin closed, nothing left to read
        code = 0
    ctx.exit(code)


# CLI alias
cli = main

if __name__ == "__main__":
    main()
