from __future__ import annotations

from typing import Optional


class ReconcileError(Exception):
    pass


class SourceFormatError(ReconcileError):
    """The authoritative source is missing a sheet/section or a required field."""


class StoreUnavailable(ReconcileError):
    """The relational store could not be reached."""


class RecordError(ReconcileError):
    """A per-record anomaly; logged and skipped, never fatal to the run."""

    def __init__(self, message: str, *, name: Optional[str] = None, code: Optional[str] = None,
                 scope: Optional[str] = None) -> None:
        super().__init__(message)
        self.name = name
        self.code = code
        self.scope = scope

    def as_dict(self) -> dict:
        return {
            "kind": type(self).__name__,
            "message": str(self),
            "name": self.name,
            "code": self.code,
            "scope": self.scope,
        }


class UnresolvedParentError(RecordError):
    pass


class NameCollisionError(RecordError):
    pass


class ConstraintViolation(RecordError):
    pass
