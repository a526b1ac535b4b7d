"""Application context: the single owner of NaK's shared state.

Every menu, wizard and workflow receives this object instead of reaching
for module-level globals.
"""

from dataclasses import dataclass, field
from typing import Callable, Optional

from rich.console import Console

from nak.core.config import NakConfig
from nak.core.lib_logger import LoggingManager, get_logger
from nak.services.config_store import CachedValues, ConfigStore
from nak.services.dependency_checker import DependencyChecker
from nak.services.diagnostics_service import DiagnosticsService
from nak.services.error_context import ErrorContextStack, ErrorReporter
from nak.services.log_service import LogService
from nak.services.menu_ui_service import MenuUIService
from nak.services.module_loader import ModuleLoader
from nak.services.navigation import NavigationStack
from nak.services.operation_cache import OperationCache
from nak.services.progress_reporter import ProgressTracker, Spinner
from nak.services.steam_service import SteamService
from nak.services.steam_shortcuts import SteamShortcuts
from nak.services.system_tools import (
    ArchiveExtractor,
    CommandRunner,
    Downloader,
    ProtontricksRunner,
)
from nak.services.temp_files import TempFileRegistry
from nak.services.transaction_manager import TransactionManager

logger = get_logger(__name__)


@dataclass
class AppContext:
    """All state and services of one NaK session."""

    config: NakConfig
    console: Console
    ui: MenuUIService
    config_store: ConfigStore
    cache: OperationCache
    error_stack: ErrorContextStack
    reporter: ErrorReporter
    transactions: TransactionManager
    navigation: NavigationStack
    loader: ModuleLoader
    temp_files: TempFileRegistry
    log_service: LogService
    runner: CommandRunner
    downloader: Downloader
    extractor: ArchiveExtractor
    protontricks: ProtontricksRunner
    steam: SteamService
    shortcuts: SteamShortcuts
    dependency_checker: DependencyChecker
    diagnostics: DiagnosticsService
    cached_values: CachedValues = field(default_factory=CachedValues)
    logging_manager: Optional[LoggingManager] = None

    @classmethod
    def create(
        cls,
        config: NakConfig,
        console: Optional[Console] = None,
        reader: Optional[Callable[[str], str]] = None
    ) -> "AppContext":
        """Wire up a context from configuration.

        Args:
            config: Application configuration
            console: Output console, a new one when omitted
            reader: Input source for all prompts, console input when omitted
        """
        console = console or Console()
        ui = MenuUIService(console=console, reader=reader, page_size=config.page_size)
        config_store = ConfigStore(config.config_file)
        error_stack = ErrorContextStack()
        log_service = LogService(config.log_file, console=console)
        temp_files = TempFileRegistry()
        runner = CommandRunner(spinner=Spinner(console=console))
        dependency_checker = DependencyChecker(console=console)
        cache = OperationCache(default_ttl=config.cache_ttl)
        steam = SteamService(config_store)

        ctx = cls(
            config=config,
            console=console,
            ui=ui,
            config_store=config_store,
            cache=cache,
            error_stack=error_stack,
            reporter=ErrorReporter(
                error_stack,
                log_service,
                console=console,
                confirm=lambda prompt: ui.confirm_action(prompt, default="n"),
            ),
            transactions=TransactionManager(error_stack),
            navigation=NavigationStack(),
            loader=ModuleLoader(error_stack),
            temp_files=temp_files,
            log_service=log_service,
            runner=runner,
            downloader=Downloader(runner),
            extractor=ArchiveExtractor(runner),
            protontricks=ProtontricksRunner(runner),
            steam=steam,
            shortcuts=SteamShortcuts(steam),
            dependency_checker=dependency_checker,
            diagnostics=DiagnosticsService(
                config, config_store, cache, log_service, dependency_checker, console=console
            ),
        )
        ctx.reporter.cleanup = ctx.cleanup
        ctx.loader.init_arg = ctx
        return ctx

    def progress(self) -> ProgressTracker:
        """New progress tracker honouring the detailed-progress preference."""
        detailed = self.config_store.get_bool("enable_detailed_progress", True)
        return ProgressTracker(console=self.console, detailed=detailed)

    def reload_cached_values(self) -> CachedValues:
        """Re-read the settings kept in memory."""
        self.cached_values = self.config_store.load_cached_values()
        return self.cached_values

    def cleanup(self) -> None:
        """Global cleanup hook: remove temp files."""
        logger.info("Running cleanup procedures")
        self.temp_files.cleanup()
