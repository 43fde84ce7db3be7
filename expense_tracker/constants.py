"""
Build-time constants.

VALID_LICENSE_KEYS is the closed universe of keys that can ever be
activated. It is shipped with the application and cannot be changed
at runtime; there is no revocation and no expiry.
"""

VALID_LICENSE_KEYS: frozenset[str] = frozenset({
    "ETP-7Q2M-9XKD-4HWN",
    "ETP-3FJR-8LPC-2VTA",
    "ETP-5NZB-1GQE-6MSY",
    "ETP-9WDK-4RHU-7CXF",
    "ETP-2TLA-6YVP-3BJM",
    "ETP-8KSE-5QNG-1ZRD",
    "ETP-4HCX-7MWT-9PLU",
    "ETP-6BVR-2JFK-5EQA",
})

DEFAULT_DEVICE_LIMIT = 5

# Keys in the device's key-value store
DEVICE_ID_KEY = "device_id"
ACTIVATED_LICENSE_KEY = "activated_license_key"
LICENSE_ACTIVATIONS_KEY = "license_activations"
EXPENSES_KEY = "expenses"
BUDGETS_KEY = "budgets"
GOALS_KEY = "goals"
CURRENCY_KEY = "currency"

# code -> (name, symbol)
CURRENCIES: dict[str, tuple[str, str]] = {
    "USD": ("United States Dollar", "$"),
    "EUR": ("Euro", "€"),
    "JPY": ("Japanese Yen", "¥"),
    "GBP": ("British Pound Sterling", "£"),
    "PKR": ("Pakistani Rupee", "₨"),
}

DEFAULT_CURRENCY_CODE = "USD"
