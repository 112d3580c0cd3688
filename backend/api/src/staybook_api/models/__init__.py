"""API request/response models."""

from staybook_api.models.common import (
    ValidationErrorDetail,
    ValidationErrorResponse,
    format_validation_errors,
)
from staybook_api.models.refunds import (
    AdminRefundListResponse,
    CompletePersonalRequest,
    ConfirmIntentRequest,
    RefundCreateRequest,
    RefundListResponse,
    RefundProcessRequest,
)

__all__ = [
    "AdminRefundListResponse",
    "CompletePersonalRequest",
    "ConfirmIntentRequest",
    "RefundCreateRequest",
    "RefundListResponse",
    "RefundProcessRequest",
    "ValidationErrorDetail",
    "ValidationErrorResponse",
    "format_validation_errors",
]
