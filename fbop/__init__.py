"""First Bank of Pig: family allowance tracking server."""

__version__ = "0.1.0"
