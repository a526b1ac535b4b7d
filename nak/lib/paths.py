"""
XDG-compliant directory utilities for NaK.
"""

import os
from pathlib import Path

def get_home() -> Path:
    """Get the user's home directory."""
    return Path.home()

def get_xdg_config_home() -> Path:
    """Get XDG config home directory."""
    xdg_config = os.environ.get('XDG_CONFIG_HOME')
    if xdg_config:
        return Path(xdg_config)
    return get_home() / '.config'

def get_xdg_data_home() -> Path:
    """Get XDG data home directory."""
    xdg_data = os.environ.get('XDG_DATA_HOME')
    if xdg_data:
        return Path(xdg_data)
    return get_home() / '.local' / 'share'

def get_nak_config_dir() -> Path:
    """Get NaK configuration directory (not created here)."""
    return get_xdg_config_home() / 'nak'

def get_nak_log_file() -> Path:
    """Get the NaK log file path."""
    return get_home() / 'nak.log'

def get_applications_dir() -> Path:
    """Get the directory holding user .desktop entries."""
    return get_xdg_data_home() / 'applications'

def get_mimeapps_list() -> Path:
    """Get the user's mimeapps.list."""
    return get_xdg_config_home() / 'mimeapps.list'

def get_nak_data_dir() -> Path:
    """Get NaK's data directory for downloaded tools (not created here)."""
    return get_xdg_data_home() / 'nak'
