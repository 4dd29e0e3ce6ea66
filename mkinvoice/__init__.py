"""Generate PDF invoices from TOML files."""

__version__ = "0.1.0"
