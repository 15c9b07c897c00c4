"""What every service call hands back to the CLI.

Services never raise ordering or workspace errors to the command layer.
They return a :class:`ServiceResult` whose ``error.code`` is one of the
stable ``OrderingError``/``WorkspaceError`` codes, and the command decides
how to print it and which exit status to use.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class ServiceError(BaseModel):
    """Why a call failed: a stable code, the user-facing message, structured detail."""

    model_config = {"frozen": True}

    code: str
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)


class ServiceResult(BaseModel):
    """Outcome of one service call.

    ``data`` also carries partial progress on failure, so a broken build
    still reports which projects completed and which never ran. ``meta``
    holds verbose-only extras such as the telemetry span tree.
    """

    model_config = {"frozen": True}

    ok: bool
    op: str
    data: dict[str, Any] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    error: ServiceError | None = None
    meta: dict[str, Any] | None = None

    @classmethod
    def failure(
        cls,
        op: str,
        code: str,
        message: str,
        *,
        detail: dict[str, Any] | None = None,
        data: dict[str, Any] | None = None,
    ) -> ServiceResult:
        return cls(
            ok=False,
            op=op,
            data=data or {},
            error=ServiceError(code=code, message=message, detail=detail or {}),
        )

    def with_meta(self, **entries: Any) -> ServiceResult:
        """Copy of this result with *entries* merged over the existing meta."""
        return self.model_copy(update={"meta": {**(self.meta or {}), **entries}})
