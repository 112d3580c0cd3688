"""SSM Parameter Store access for refund processor secrets.

The Stripe secret key and webhook signing secret live as SecureString
parameters under ``/staybook/{environment}/stripe/``.
"""

import logging
from functools import lru_cache
from typing import ClassVar

import boto3
from botocore.exceptions import ClientError

logger = logging.getLogger(__name__)

PARAMETER_ROOT = "/staybook"

_ERROR_MESSAGES = {
    "ParameterNotFound": "SSM parameter not found: {name}",
    "AccessDeniedException": (
        "Access denied to SSM parameter: {name}. Check IAM permissions for ssm:GetParameter."
    ),
}


def parameter_path(environment: str, *parts: str) -> str:
    """Build a parameter name, e.g. ``parameter_path("dev", "stripe", "secret_key")``."""
    return "/".join([PARAMETER_ROOT, environment, *parts])


class SSMServiceError(Exception):
    """Raised when SSM parameter retrieval fails."""


class SSMService:
    """Decrypting, caching reader for SSM parameters.

    The cache is shared by all instances, so each secret is fetched at most
    once per Lambda container.
    """

    _cache: ClassVar[dict[str, str]] = {}

    def __init__(self) -> None:
        self._client = boto3.client("ssm")

    def get_parameter(self, name: str, *, use_cache: bool = True) -> str:
        """Return the decrypted value of ``name``.

        Raises:
            SSMServiceError: If the parameter is missing or unreadable.
        """
        if use_cache and name in self._cache:
            return self._cache[name]

        logger.info("Fetching SSM parameter: %s", name)
        try:
            response = self._client.get_parameter(Name=name, WithDecryption=True)
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "Unknown")
            template = _ERROR_MESSAGES.get(code, "Failed to retrieve SSM parameter {name}: {error}")
            raise SSMServiceError(template.format(name=name, error=e)) from e

        value: str = response["Parameter"]["Value"]
        self._cache[name] = value
        return value


@lru_cache(maxsize=1)
def get_ssm_service() -> SSMService:
    return SSMService()
