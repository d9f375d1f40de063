from __future__ import annotations

from typing import Iterable, Optional


class AssetLedgerError(Exception):
    status_code = 500

    def __init__(self, message: str, *, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause


class ValidationError(AssetLedgerError):
    status_code = 400

    def __init__(self, message: str, fields: Iterable[str] = ()):
        super().__init__(message)
        self.fields = list(fields)

    @classmethod
    def missing(cls, fields: Iterable[str]) -> "ValidationError":
        fields = list(fields)
        return cls("Missing required fields: {}".format(", ".join(fields)), fields)


class NotFoundError(AssetLedgerError):
    status_code = 404


class ReferenceResolutionError(AssetLedgerError):
    pass


class TransactionError(AssetLedgerError):
    pass


class AttachmentError(AssetLedgerError):
    pass


__all__ = [
    "AssetLedgerError",
    "AttachmentError",
    "NotFoundError",
    "ReferenceResolutionError",
    "TransactionError",
    "ValidationError",
]
