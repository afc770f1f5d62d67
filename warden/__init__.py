"""Warden: Vault dynamic secret lifecycle jobs.

Renews and revokes the Vault tokens held by credential stores and the
dynamic credentials leased under them.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
