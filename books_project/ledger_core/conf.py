from decimal import Decimal

from django.conf import settings

# Fallbacks for keys missing from settings.LEDGER_CORE
DEFAULTS = {
    "JOURNAL_BALANCE_TOLERANCE": "0.001",
    "BALANCE_SHEET_TOLERANCE": "0.01",
    "MAX_REPORT_RANGE_DAYS": 1096,
    "RETAINED_EARNINGS_LABEL": "Retained Earnings",
}

# Settings that are amounts and must be compared as Decimal
DECIMAL_SETTINGS = {"JOURNAL_BALANCE_TOLERANCE", "BALANCE_SHEET_TOLERANCE"}


def get_setting(name):
    """Read one ledger_core setting, applying defaults and Decimal coercion."""
    if name not in DEFAULTS:
        raise KeyError(f"Unknown ledger_core setting: {name}")
    value = getattr(settings, "LEDGER_CORE", {}).get(name, DEFAULTS[name])
    if name in DECIMAL_SETTINGS:
        return Decimal(str(value))
    return value
