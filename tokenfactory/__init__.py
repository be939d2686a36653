"""Token Factory — an administrator-gated registry of token definitions."""

__version__ = "0.1.0"
