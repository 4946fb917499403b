"""hostguard - canonical host and open-redirect safe redirect policy."""

__version__ = "0.1.0"
