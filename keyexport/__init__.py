"""Export signing keys from an identity's key store."""

__version__ = "0.3.0"

__all__ = ["__version__"]
