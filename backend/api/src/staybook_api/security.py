"""Caller identity for refund endpoints.

Trust Model:
- API Gateway validates the JWT using the Cognito authorizer
- After validation, API Gateway injects x-user-sub and x-user-groups headers
- Backend trusts these headers since they come from API Gateway, not the client

REST API deployments without claim mapping expose the claims in the Lambda
event instead; Mangum passes that event through as ``aws.event``.
"""

from fastapi import Depends, Request
from pydantic import BaseModel, ConfigDict

from staybook_shared.config import get_settings
from staybook_shared.models.errors import AuthorizationError, ErrorCode
from staybook_shared.utils.logging import get_logger

logger = get_logger(__name__)

USER_SUB_HEADER = "x-user-sub"
USER_GROUPS_HEADER = "x-user-groups"


class CurrentUser(BaseModel):
    """Authenticated caller."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    groups: frozenset[str]

    @property
    def is_admin(self) -> bool:
        return get_settings().admin_group in self.groups


def _authorizer_claims(request: Request) -> dict:
    event = request.scope.get("aws.event") or {}
    return event.get("requestContext", {}).get("authorizer", {}).get("claims", {}) or {}


def _parse_groups(raw: str | list | None) -> frozenset[str]:
    if not raw:
        return frozenset()
    if isinstance(raw, list):
        return frozenset(str(g).strip() for g in raw if str(g).strip())
    # Cognito renders list claims as "[a b]" in REST API contexts
    cleaned = raw.strip().strip("[]").replace(" ", ",")
    return frozenset(g.strip() for g in cleaned.split(",") if g.strip())


def get_current_user(request: Request) -> CurrentUser:
    """Resolve the caller from gateway headers or authorizer claims.

    Raises:
        AuthorizationError: 401 if no identity is present
    """
    user_id = (request.headers.get(USER_SUB_HEADER) or "").strip()
    groups_raw: str | list | None = request.headers.get(USER_GROUPS_HEADER)

    if not user_id:
        claims = _authorizer_claims(request)
        user_id = str(claims.get("sub") or "").strip()
        groups_raw = claims.get("cognito:groups")

    if not user_id:
        logger.warning("Request to %s without caller identity", request.url.path)
        raise AuthorizationError(code=ErrorCode.AUTH_REQUIRED)

    return CurrentUser(user_id=user_id, groups=_parse_groups(groups_raw))


def require_admin(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    """Dependency that only lets admins through.

    Raises:
        AuthorizationError: 403 for authenticated non-admins
    """
    if not user.is_admin:
        logger.warning("Non-admin %s attempted an admin refund action", user.user_id)
        raise AuthorizationError(code=ErrorCode.ADMIN_REQUIRED, details={"user_id": user.user_id})
    return user
