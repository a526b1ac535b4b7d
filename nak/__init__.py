# NaK - The Linux Modding Helper

from .version import __version__

__all__ = ["__version__"]
