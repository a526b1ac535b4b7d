"""Game records and per-game Proton component tables."""

from typing import Dict, List

from pydantic import BaseModel, Field

FALLOUT_NEW_VEGAS = "22380"
ENDERAL_SE = "976620"
BALDURS_GATE_3 = "1086940"

GAME_COMPONENTS: Dict[str, List[str]] = {
    FALLOUT_NEW_VEGAS: [
        "fontsmooth=rgb", "xact", "xact_x64", "d3dx9_43", "d3dx9", "vcrun2022",
    ],
    ENDERAL_SE: [
        "fontsmooth=rgb", "xact", "xact_x64", "d3dx11_43", "d3dcompiler_43",
        "d3dcompiler_47", "vcrun2022", "dotnet6", "dotnet7", "dotnet8",
    ],
}

DEFAULT_COMPONENTS: List[str] = [
    "fontsmooth=rgb", "xact", "xact_x64", "vcrun2022", "dotnet6", "dotnet7",
    "dotnet8", "d3dcompiler_47", "d3dx11_43", "d3dcompiler_43", "d3dx9_43",
    "d3dx9", "vkd3d",
]

# Installed from Microsoft's SDK installer, not through protontricks
DOTNET9 = "dotnet9"


class Game(BaseModel):
    """A Steam game or non-Steam shortcut known to protontricks."""

    appid: str = Field(..., pattern=r"^[0-9]+$")
    name: str
    non_steam: bool = Field(default=False)

    @property
    def label(self) -> str:
        """Label used in selection lists."""
        suffix = " [Non-Steam]" if self.non_steam else ""
        return f"{self.name} (AppID: {self.appid}){suffix}"


def get_game_components(appid: str) -> List[str]:
    """Return the protontricks components for a game, plus .NET 9."""
    components = list(GAME_COMPONENTS.get(appid, DEFAULT_COMPONENTS))
    components.append(DOTNET9)
    return components
