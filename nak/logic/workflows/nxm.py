"""Removal of NaK's nxm:// handlers."""

from nak.core.lib_logger import get_logger
from nak.logic.prefix_tools import remove_nxm_handlers

logger = get_logger(__name__)


def remove_handlers(ctx) -> int:
    """Confirm, then delete handler desktop files and mimeapps.list entries."""
    ctx.ui.print_header(ctx.navigation.breadcrumb())
    ctx.ui.print_section("Remove NXM Handlers")
    if not ctx.ui.confirm_action("Remove all NXM handlers configured by NaK?", default="n"):
        ctx.ui.info("Nothing removed.")
        return 0

    removed = remove_nxm_handlers(ctx)
    if removed:
        ctx.ui.success(f"Removed {removed} NXM handler entr{'y' if removed == 1 else 'ies'}.")
    else:
        ctx.ui.info("No NXM handlers found.")
    logger.info(f"Removed {removed} NXM handler entries")
    ctx.ui.pause()
    return removed
