"""Breadcrumb navigation stack for nested menus."""

from typing import List

ROOT_MENU = "Main Menu"
SEPARATOR = " > "


class NavigationStack:
    """Menu names from the root to the current submenu.

    The root entry is never removed, so the stack is never empty.
    """

    def __init__(self, root: str = ROOT_MENU):
        self._stack: List[str] = [root]

    def push(self, label: str) -> None:
        """Enter a submenu."""
        self._stack.append(label)

    def pop(self) -> str:
        """Leave the current submenu and return the menu now shown."""
        if len(self._stack) > 1:
            self._stack.pop()
        return self._stack[-1]

    def reset(self) -> None:
        """Return to the root menu."""
        del self._stack[1:]

    @property
    def current(self) -> str:
        """Name of the menu being shown."""
        return self._stack[-1]

    def breadcrumb(self) -> str:
        """Trail like ``Main Menu > Mod Organizer Setup``."""
        return SEPARATOR.join(self._stack)

    def __len__(self) -> int:
        return len(self._stack)
