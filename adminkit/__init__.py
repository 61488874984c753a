"""
Adminkit package.

Provides a CLI with two independent tools: a dice-indexed passphrase
generator and a fleet scanner that reports Windows services running under
non-default accounts, with bounded concurrency and per-host failure
isolation.
"""

from .cli import main

__all__ = ["main"]
