"""API authentication using bearer API keys"""
import logging
import secrets
from fastapi import HTTPException, Request, Security, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from greenverse.exceptions import AuthenticationError

logger = logging.getLogger(__name__)

security = HTTPBearer()


def _key_matches(candidate: str, valid_keys: list[str]) -> bool:
    return any(secrets.compare_digest(candidate, key) for key in valid_keys)


async def verify_api_key(
    request: Request,
    credentials: HTTPAuthorizationCredentials = Security(security)
) -> str:
    """
    Verify API key from Authorization header

    Valid keys are configured per application (app.state.api_keys).

    Returns:
        The verified API key

    Raises:
        HTTPException: 503 if no keys are configured
        AuthenticationError: If the key is wrong (mapped to 401)
    """
    api_key = credentials.credentials
    valid_keys: list[str] = getattr(request.app.state, "api_keys", [])

    if not valid_keys:
        logger.error("No API keys configured - rejecting all requests")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="API authentication not configured"
        )

    if not _key_matches(api_key, valid_keys):
        raise AuthenticationError(f"Invalid API key attempt: {api_key[:4]}...")

    return api_key
