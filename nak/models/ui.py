"""
UI models for numbered menus and paginated selection.
"""

import math
from typing import List, Tuple

from pydantic import BaseModel, Field, field_validator

# Keyword -> indicator shown in front of a menu label
INDICATORS = (
    (("back", "exit"), "↩"),
    (("download",), "⬇"),
    (("install",), "📦"),
    (("configure", "setup", "set up"), "⚙"),
)


class MenuOption(BaseModel):
    """One numbered entry of a fixed-choice menu."""

    label: str = Field(..., description="Text shown for the option")
    description: str = Field(default="", description="Help text shown after the label")

    @property
    def indicator(self) -> str:
        """Pick an icon from keywords in the label."""
        lowered = self.label.lower()
        for keywords, icon in INDICATORS:
            if any(word in lowered for word in keywords):
                return icon
        return ""


class SelectionState(BaseModel):
    """Transient state of the paginated list selector.

    Pages and indices are 1-based. ``result`` holds the chosen index into
    ``items`` or 0 when the user backed out.
    """

    items: List[str] = Field(default_factory=list)
    page_size: int = Field(default=10, ge=1)
    current_page: int = Field(default=1, ge=1)
    result: int = Field(default=0, ge=0)

    @field_validator("items", mode="before")
    @classmethod
    def coerce_items(cls, v):
        """Accept any iterable of labels."""
        return [str(item) for item in v]

    @property
    def total_pages(self) -> int:
        """Number of pages, zero for an empty list."""
        return math.ceil(len(self.items) / self.page_size)

    @property
    def page_start(self) -> int:
        """1-based index of the first item on the current page."""
        return (self.current_page - 1) * self.page_size + 1

    @property
    def page_end(self) -> int:
        """1-based index of the last item on the current page."""
        return min(self.current_page * self.page_size, len(self.items))

    def page_items(self) -> List[Tuple[int, str]]:
        """Items on the current page with their global 1-based index."""
        return [
            (index, self.items[index - 1])
            for index in range(self.page_start, self.page_end + 1)
        ]

    def on_current_page(self, index: int) -> bool:
        """Check whether a 1-based index is displayed on the current page."""
        return self.page_start <= index <= self.page_end

    def next_page(self) -> bool:
        """Advance one page; False when already on the last page."""
        if self.current_page >= self.total_pages:
            return False
        self.current_page += 1
        return True

    def previous_page(self) -> bool:
        """Go back one page; False when already on the first page."""
        if self.current_page <= 1:
            return False
        self.current_page -= 1
        return True
