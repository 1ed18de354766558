# gendata/markets/errors.py
from __future__ import annotations

from typing import Optional


class SettlementError(Exception):
    """Base class for everything the settlement engine raises."""


class ConfigError(SettlementError):
    pass


# ---- Row-level (reject the row, keep the batch) ------------------------------
class NormalizationError(SettlementError):
    def __init__(self, reason: str, field: Optional[str] = None) -> None:
        self.reason = reason
        self.field = field
        super().__init__(f"{field}: {reason}" if field else reason)

    @property
    def kind(self) -> str:
        return type(self).__name__


class MissingRequiredField(NormalizationError):
    def __init__(self, field: str) -> None:
        super().__init__("required field is missing or empty", field=field)


class InvalidValue(NormalizationError):
    pass


class UnknownMarket(NormalizationError):
    def __init__(self, value: str) -> None:
        super().__init__(f"unrecognized market tag {value!r}", field="market")


class UnknownMechanism(NormalizationError):
    def __init__(self, value: str) -> None:
        super().__init__(f"unrecognized settlement mechanism {value!r}", field="mechanism")


# ---- Local (resolved where raised, never fatal) ------------------------------
class DivisionUndefined(SettlementError, ZeroDivisionError):
    pass
