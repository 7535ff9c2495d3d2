"""Exception types shared by the report composer and intake orchestration."""

from __future__ import annotations


class OstecnicoError(Exception):
    """Base application exception."""

    def __init__(self, message: str, code: str = "APP_ERROR"):
        super().__init__(message)
        self.code = code


class OperationError(OstecnicoError):
    """A backend/storage collaborator call failed; the operation is abandoned."""

    def __init__(self, message: str, code: str = "OPERATION_FAILED"):
        super().__init__(message, code)


class NotAuthenticatedError(OstecnicoError):
    def __init__(self, message: str = "Usuário não autenticado"):
        super().__init__(message, "NOT_AUTHENTICATED")


class ImageLoadError(OstecnicoError):
    """An image could not be fetched or decoded.  Always recovered locally."""

    def __init__(self, message: str):
        super().__init__(message, "IMAGE_LOAD_FAILED")


class ReportSaveError(OstecnicoError):
    def __init__(self, message: str):
        super().__init__(message, "REPORT_SAVE_FAILED")


def failure_notice(action: str, exc: BaseException) -> str:
    """Operator-facing toast text: ``Erro ao <action>: <message>``."""
    message = str(exc).strip() or exc.__class__.__name__
    return f"Erro ao {action}: {message}"
