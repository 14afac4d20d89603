# tt_stock_api/services/_shared/base.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from http import HTTPStatus

from tt_stock_api.core import errors as api_errors
from tt_stock_api.services._shared.errors import (
    AuthenticationError,
    InternalError,
    ServiceError,
    StoreError,
    TokenExpiredError,
    TokenRevokedError,
    ValidationError,
    WrongTokenTypeError,
)
from tt_stock_api.uow.sqlalchemy_uow import (
    SQLAlchemyReadOnlyUnitOfWork,
    SQLAlchemyUnitOfWork,
)


@dataclass(slots=True)
class ServiceContext:
    """
    Carry cross-cutting request-scoped data.

    :param request_id: Correlation id for logging/tracing.
    """

    request_id: str | None = None


class BaseService:
    """
    Base class for application services.

    Responsibilities
    ----------------
    * Provide helpers to run read-only and read-write units of work.
    * Centralize error translation to HTTP errors.
    * Keep services thin, orchestration-only, no web/ORM leakage.

    Notes
    -----
    - Services must never touch the global session; always use a Unit of Work.
    """

    def __init__(self, *, ctx: ServiceContext | None = None) -> None:
        self.ctx = ctx or ServiceContext()

    # -------------------------- UoW helpers ---------------------------------

    def rw_uow(self) -> SQLAlchemyUnitOfWork:
        """
        Create a read-write Unit of Work.

        :rtype: SQLAlchemyUnitOfWork
        """
        return SQLAlchemyUnitOfWork()

    def ro_uow(self, *, enforce_db_readonly: bool = True) -> SQLAlchemyReadOnlyUnitOfWork:
        """
        Create a read-only Unit of Work.

        :param enforce_db_readonly: Apply `SET TRANSACTION READ ONLY` when supported.
        :rtype: SQLAlchemyReadOnlyUnitOfWork
        """
        return SQLAlchemyReadOnlyUnitOfWork(enforce_db_readonly=enforce_db_readonly)

    @staticmethod
    def now_utc() -> datetime:
        return datetime.now(UTC)

    # -------------------------- Error handling ------------------------------

    @staticmethod
    def translate_exceptions(exc: Exception) -> Exception:
        """
        Map service-level errors to API-level (HTTP) errors.

        Subclasses are tested before their parents so the most specific
        ``code`` wins (e.g. ``token_expired`` over ``authentication_error``).

        :param exc: Exception raised within the service.
        :type exc: Exception
        :returns: Translated exception ready to be re-raised.
        :rtype: Exception
        """
        if isinstance(exc, ValidationError):
            # → 422 Unprocessable Entity
            return api_errors.APIError(
                message=str(exc),
                status_code=HTTPStatus.UNPROCESSABLE_ENTITY,
                code="validation_error",
            )

        if isinstance(exc, TokenExpiredError):
            return api_errors.Unauthorized(str(exc), code="token_expired")

        if isinstance(exc, TokenRevokedError):
            return api_errors.Unauthorized(str(exc), code="token_revoked")

        if isinstance(exc, WrongTokenTypeError):
            return api_errors.Unauthorized(str(exc), code="wrong_token_type")

        if isinstance(exc, AuthenticationError):
            # → 401 (covers InvalidTokenError and bad credentials)
            return api_errors.Unauthorized(str(exc), code="authentication_error")

        if isinstance(exc, (InternalError, StoreError)):
            # → 500 with an opaque message
            return api_errors.APIError(
                message="Internal server error",
                status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
                code="internal_server_error",
            )

        # Any other ServiceError subclass → 400 Bad Request
        if isinstance(exc, ServiceError):
            return api_errors.APIError(
                message=str(exc),
                status_code=HTTPStatus.BAD_REQUEST,
                code="bad_request",
            )

        # Fallback: return untouched (will bubble up to Flask handler)
        return exc
