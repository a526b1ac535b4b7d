"""Multi-step install wizards."""

from .runner import Wizard, WizardRunner

__all__ = ["Wizard", "WizardRunner"]
