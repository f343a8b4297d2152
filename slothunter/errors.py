# slothunter/errors.py
from __future__ import annotations


class HunterError(Exception):
    pass


class ConfigurationError(HunterError):
    """The operator's configuration can never work; abort before (or instead of) bidding."""


class FatalError(HunterError):
    """An error surfaced while the node connection is still alive."""


class StreamError(HunterError):
    """The block stream ended or broke."""


class LedgerError(HunterError):
    """Winning arithmetic produced a value its inputs should make impossible."""
