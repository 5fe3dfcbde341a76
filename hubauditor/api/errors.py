"""
Translation of domain exceptions into HTTP errors.

Every error response carries ``{"error": <kind>, "message": <text>}`` as its
detail so the dashboard can branch on the kind and show the message.
"""

from fastapi import HTTPException, status

from hubauditor.models.enums import GenerationErrorKind, HubSpotErrorKind
from hubauditor.services.generation_client import GenerationError
from hubauditor.services.hubspot_client import HubSpotError


GENERATION_STATUS = {
    GenerationErrorKind.INVALID_CREDENTIALS: status.HTTP_502_BAD_GATEWAY,
    GenerationErrorKind.RATE_LIMITED: status.HTTP_429_TOO_MANY_REQUESTS,
    GenerationErrorKind.UPSTREAM_ERROR: status.HTTP_503_SERVICE_UNAVAILABLE,
    GenerationErrorKind.UNKNOWN: status.HTTP_500_INTERNAL_SERVER_ERROR,
}

HUBSPOT_STATUS = {
    HubSpotErrorKind.INVALID_TOKEN: status.HTTP_401_UNAUTHORIZED,
    HubSpotErrorKind.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    HubSpotErrorKind.RATE_LIMITED: status.HTTP_429_TOO_MANY_REQUESTS,
}


def api_error(status_code: int, error: str, message: str) -> HTTPException:
    return HTTPException(status_code=status_code, detail={"error": error, "message": message})


def generation_http_error(e: GenerationError) -> HTTPException:
    # invalid_credentials is a server misconfiguration, not the caller's fault
    return api_error(GENERATION_STATUS[e.kind], e.kind.value, e.message)


def hubspot_http_error(e: HubSpotError) -> HTTPException:
    return api_error(HUBSPOT_STATUS.get(e.kind, status.HTTP_502_BAD_GATEWAY), e.kind.value, e.message)
