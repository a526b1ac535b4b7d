"""System utilities: logs, configuration, cache and diagnostics."""

from enum import Enum

from rich.table import Table

from nak.core.lib_logger import get_logger
from nak.logic.menus import MenuEntry, Orchestrator, choose_action, run_submenu
from nak.version import __version__

logger = get_logger(__name__)

LOGGING_LEVELS = {
    "0": "Info (everything)",
    "1": "Warnings and errors",
    "2": "Errors only",
}


class UtilityAction(str, Enum):
    VIEW_LOGS = "view_logs"
    SYSTEM_CHECK = "system_check"
    CONFIGURATION = "configuration"
    CLEAR_CACHE = "clear_cache"
    EXPORT_DIAGNOSTICS = "export_diagnostics"
    CHECK_UPDATES = "check_updates"
    ABOUT = "about"
    BACK = "back"


MENU = [
    MenuEntry(UtilityAction.VIEW_LOGS, "View Logs", "Show the most recent log entries"),
    MenuEntry(UtilityAction.SYSTEM_CHECK, "System Check", "System information and dependency status"),
    MenuEntry(UtilityAction.CONFIGURATION, "Configuration", "Change NaK settings"),
    MenuEntry(UtilityAction.CLEAR_CACHE, "Clear Cache", "Forget cached checks and remove temporary files"),
    MenuEntry(UtilityAction.EXPORT_DIAGNOSTICS, "Export Diagnostics", "Write a YAML report for bug reports"),
    MenuEntry(UtilityAction.CHECK_UPDATES, "Check for Updates", "Look for a newer NaK release"),
    MenuEntry(UtilityAction.ABOUT, "About", "Version and file locations"),
    MenuEntry(UtilityAction.BACK, "Back to Main Menu", "Return to the main menu"),
]


class ConfigAction(str, Enum):
    CHECK_UPDATES = "check_updates"
    SHOW_ADVANCED = "show_advanced_options"
    SHOW_ADVICE = "show_advice"
    LOGGING_LEVEL = "logging_level"
    SHOW_ALL = "show_all"
    RESET = "reset"
    BACK = "back"


BOOLEAN_SETTINGS = {
    ConfigAction.CHECK_UPDATES: ("check_updates", True),
    ConfigAction.SHOW_ADVANCED: ("show_advanced_options", False),
    ConfigAction.SHOW_ADVICE: ("show_advice", True),
}


def view_logs(ctx) -> None:
    ctx.ui.print_section(f"Log file: {ctx.log_service.log_file}")
    ctx.log_service.show_tail()
    backups = ctx.log_service.backups()
    if backups:
        ctx.ui.info(f"{len(backups)} rotated log file(s): {', '.join(b.name for b in backups)}")
    ctx.ui.pause()


def system_check(ctx) -> None:
    ctx.ui.print_section("System Check")
    ctx.console.print(f"System Status: {ctx.diagnostics.system_status().render()}")
    if ctx.diagnostics.comprehensive_check():
        ctx.ui.success("System check passed.")
    else:
        ctx.ui.warning("Install the missing dependencies listed above.")
    ctx.ui.pause()


def toggle_setting(ctx, key: str, default: bool) -> bool:
    """Flip a boolean setting, refresh cached values and return the new value."""
    value = not ctx.config_store.get_bool(key, default)
    ctx.config_store.set(key, "true" if value else "false")
    ctx.reload_cached_values()
    logger.info(f"Setting {key} changed to {value}")
    return value


def set_logging_level(ctx) -> str:
    options = [(f"{level} - {label}", "") for level, label in LOGGING_LEVELS.items()]
    choice = ctx.ui.display_menu("Select Logging Level", options)
    level = list(LOGGING_LEVELS)[choice - 1]
    ctx.config_store.set("logging_level", level)
    if ctx.logging_manager is not None:
        ctx.logging_manager.set_level(level)
    ctx.ui.success(f"Logging level set to {LOGGING_LEVELS[level]}")
    return level


def show_settings(ctx) -> None:
    table = Table(title="Current Settings", show_header=True, header_style="bold magenta")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    for key, value in ctx.config_store.all().items():
        table.add_row(key, value)
    ctx.console.print(table)
    ctx.ui.pause()


def configuration_menu(ctx) -> None:
    """Settings loop; each entry shows the current value in its label."""
    while True:
        ctx.ui.print_header(ctx.navigation.breadcrumb())
        entries = []
        for action, (key, default) in BOOLEAN_SETTINGS.items():
            state = "enabled" if ctx.config_store.get_bool(key, default) else "disabled"
            entries.append(MenuEntry(action, f"Toggle {key} ({state})"))
        level = ctx.config_store.get("logging_level", "0")
        entries.extend([
            MenuEntry(ConfigAction.LOGGING_LEVEL, f"Logging level ({LOGGING_LEVELS.get(level, level)})"),
            MenuEntry(ConfigAction.SHOW_ALL, "Show all settings"),
            MenuEntry(ConfigAction.RESET, "Reset to defaults"),
            MenuEntry(ConfigAction.BACK, "Back"),
        ])

        action = choose_action(ctx, "Configuration", entries)
        if action is ConfigAction.BACK:
            return
        if action in BOOLEAN_SETTINGS:
            key, default = BOOLEAN_SETTINGS[action]
            value = toggle_setting(ctx, key, default)
            ctx.ui.success(f"{key} {'enabled' if value else 'disabled'}")
        elif action is ConfigAction.LOGGING_LEVEL:
            set_logging_level(ctx)
        elif action is ConfigAction.SHOW_ALL:
            show_settings(ctx)
        elif action is ConfigAction.RESET:
            if ctx.ui.confirm_action("Reset all settings to defaults?", default="n"):
                ctx.config_store.reset()
                ctx.reload_cached_values()
                if ctx.logging_manager is not None:
                    ctx.logging_manager.set_level(ctx.config_store.get("logging_level", "0"))
                ctx.ui.success("Configuration reset to defaults.")


def clear_cache(ctx) -> None:
    entries = ctx.cache.clear()
    removed = ctx.temp_files.cleanup()
    ctx.ui.success(f"Cleared {entries} cached result(s) and {removed} temporary file(s).")
    ctx.ui.pause()


def export_diagnostics(ctx) -> None:
    path = ctx.diagnostics.export_diagnostics()
    ctx.ui.success(f"Diagnostics written to [blue]{path}[/blue]")
    ctx.ui.info("Attach this file when reporting a problem.")
    ctx.ui.pause()


def check_for_updates(ctx) -> None:
    ctx.cache.invalidate("update_check")
    Orchestrator(ctx).check_for_updates()
    ctx.ui.pause()


def about(ctx) -> None:
    ctx.ui.print_section("About NaK")
    ctx.console.print(f"NaK - The Linux Modding Helper v{__version__}")
    ctx.console.print(f"Project: https://github.com/{ctx.config.update_repository}")
    ctx.console.print(f"Config file: {ctx.config.config_file}")
    ctx.console.print(f"Log file: {ctx.config.log_file}")
    ctx.ui.pause()


def run_menu(ctx) -> None:
    handlers = {
        UtilityAction.VIEW_LOGS: lambda: view_logs(ctx),
        UtilityAction.SYSTEM_CHECK: lambda: system_check(ctx),
        UtilityAction.CONFIGURATION: lambda: configuration_menu(ctx),
        UtilityAction.CLEAR_CACHE: lambda: clear_cache(ctx),
        UtilityAction.EXPORT_DIAGNOSTICS: lambda: export_diagnostics(ctx),
        UtilityAction.CHECK_UPDATES: lambda: check_for_updates(ctx),
        UtilityAction.ABOUT: lambda: about(ctx),
    }
    run_submenu(ctx, "System Utilities", MENU, handlers)
