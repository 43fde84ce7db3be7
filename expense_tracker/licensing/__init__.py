"""Device-activation license gate."""

from expense_tracker.licensing.manager import LicenseActivationManager

__all__ = ["LicenseActivationManager"]
