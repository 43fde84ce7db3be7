"""
Expense Tracker Pro - Source Package

A personal expense tracker whose data never leaves the device.
Access is gated by a license key that may be activated on a
limited number of devices.

DESIGN PRINCIPLES:
1. Local-first: every record lives in the device's key-value store
2. Fail closed: missing or corrupt license state means "not licensed"
3. Rejected actions leave no trace in storage
4. Every significant action is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Expense Tracker Pro Team"
