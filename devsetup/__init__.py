"""Non-administrator developer environment provisioning for Windows."""

__version__ = "0.1.0"
