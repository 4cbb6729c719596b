"""Shared API dependencies for identity, admin auth and service results."""

from typing import Annotated, TypeVar

from fastapi import Depends, Header, HTTPException, Request, status
from fastapi.responses import JSONResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from resto_pulse.core.security import ADMIN_SUBJECT, decode_admin_token
from resto_pulse.db.session import get_db
from resto_pulse.schemas.common import ErrorResponse
from resto_pulse.services import (
    BlobStorageService,
    RatingService,
    RestaurantService,
    ReviewService,
    SuggestionService,
)
from resto_pulse.services.identity import FingerprintIdentityProvider, normalize_identity
from resto_pulse.services.results import ErrorKind, ServiceResult

T = TypeVar("T")

DEVICE_HEADER = "X-Device-Id"

STATUS_BY_KIND = {
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.TRANSIENT: status.HTTP_503_SERVICE_UNAVAILABLE,
    ErrorKind.QUOTA_EXCEEDED: status.HTTP_429_TOO_MANY_REQUESTS,
    ErrorKind.OWNERSHIP: status.HTTP_403_FORBIDDEN,
}

# HTTP Bearer scheme for admin tokens; missing credentials are handled below
bearer_scheme = HTTPBearer(auto_error=False)

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


class ServiceFailure(Exception):
    """Raised by endpoints when a service returns a failed result."""

    def __init__(self, kind: ErrorKind, error: str) -> None:
        super().__init__(error)
        self.kind = kind
        self.error = error

    @property
    def status_code(self) -> int:
        return STATUS_BY_KIND.get(self.kind, status.HTTP_400_BAD_REQUEST)


def unwrap(result: ServiceResult[T]) -> T:
    """Return the result's value or raise :class:`ServiceFailure`."""
    if not result.success:
        raise ServiceFailure(result.kind or ErrorKind.VALIDATION, result.error or "Request failed")
    return result.value  # type: ignore[return-value]


async def service_failure_handler(request: Request, exc: ServiceFailure) -> JSONResponse:
    """Render a service failure as ``{"success": false, "error", "kind"}``."""
    body = ErrorResponse(error=exc.error, kind=exc.kind.value)
    return JSONResponse(status_code=exc.status_code, content=body.model_dump())


def get_identity(
    request: Request,
    x_device_id: Annotated[str | None, Header(alias=DEVICE_HEADER)] = None,
) -> str:
    """Resolve the visitor's identity token.

    Prefers the device id sent by the client; otherwise derives a fingerprint
    from request headers. Never fails the request.
    """
    token = normalize_identity(x_device_id)
    if token is not None:
        return token
    provider = FingerprintIdentityProvider(
        user_agent=request.headers.get("user-agent", ""),
        language=request.headers.get("accept-language", ""),
        platform=request.client.host if request.client else "",
    )
    return provider.resolve_identity()


def require_admin(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> str:
    """Validate the admin bearer token.

    Raises:
        HTTPException: If the token is missing, invalid or expired.
    """
    if credentials is None or not decode_admin_token(credentials.credentials):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return ADMIN_SUBJECT


_rating_service = RatingService()
_review_service = ReviewService()
_suggestion_service = SuggestionService()
_restaurant_service = RestaurantService()
_storage_service: BlobStorageService | None = None


def get_rating_service() -> RatingService:
    """Return the shared rating service."""
    return _rating_service


def get_review_service() -> ReviewService:
    """Return the shared review service."""
    return _review_service


def get_suggestion_service() -> SuggestionService:
    """Return the shared suggestion service."""
    return _suggestion_service


def get_restaurant_service() -> RestaurantService:
    """Return the shared restaurant service."""
    return _restaurant_service


def get_storage_service() -> BlobStorageService:
    """Return the shared blob storage service, configuring it on first use."""
    global _storage_service
    if _storage_service is None:
        _storage_service = BlobStorageService()
    return _storage_service


IdentityDep = Annotated[str, Depends(get_identity)]
AdminDep = Annotated[str, Depends(require_admin)]
RatingServiceDep = Annotated[RatingService, Depends(get_rating_service)]
ReviewServiceDep = Annotated[ReviewService, Depends(get_review_service)]
SuggestionServiceDep = Annotated[SuggestionService, Depends(get_suggestion_service)]
RestaurantServiceDep = Annotated[RestaurantService, Depends(get_restaurant_service)]
StorageServiceDep = Annotated[BlobStorageService, Depends(get_storage_service)]
