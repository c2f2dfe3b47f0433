# Shared-secret check for admin (write) endpoints.
# A single static key compared for equality; swap for real auth before exposing this anywhere.
import logging
from typing import Mapping, Optional

from fastapi import HTTPException, Request

from . import config

logger = logging.getLogger(__name__)

UNAUTHORIZED_DETAIL = "Unauthorized: Invalid or missing API key"


def get_api_key(headers: Mapping[str, str]) -> Optional[str]:
    """Pull the admin key from ``x-api-key``, falling back to ``Authorization: Bearer``.

    ``headers`` is Starlette's case-insensitive Headers or any mapping with
    lower-case keys.
    """
    api_key = headers.get("x-api-key")
    if api_key:
        return api_key

    authorization = headers.get("authorization")
    if authorization and authorization.startswith("Bearer "):
        return authorization[len("Bearer "):]

    return None


def verify_admin_key(api_key: Optional[str]) -> bool:
    if not api_key:
        return False
    return api_key == config.admin_api_key()


async def require_admin_key(request: Request) -> None:
    if not verify_admin_key(get_api_key(request.headers)):
        logger.warning("rejected %s %s: bad or missing API key", request.method, request.url.path)
        raise HTTPException(status_code=401, detail=UNAUTHORIZED_DETAIL)
