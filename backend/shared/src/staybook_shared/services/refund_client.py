"""HTTP client for the refund endpoints.

Wraps the REST API for the web app and scripts, and returns display-ready
RefundView objects. All business rules live on the server; this client only
transports requests and formats responses.

Usage:
    with RefundClient("https://api.staybook.ph", user_id="sub-123") as client:
        view = client.request_refund("BKG-123", "Family emergency, cannot travel")
        print(view.status_label, view.formatted_refund_amount)
"""

from typing import Any

import httpx
from pydantic import BaseModel

from staybook_shared.models.enums import RefundAction, RefundStatus
from staybook_shared.models.refund import Pagination, RefundRequest, RefundStatistics
from staybook_shared.services.refund_presenter import RefundView, present_refund

USER_SUB_HEADER = "x-user-sub"
USER_GROUPS_HEADER = "x-user-groups"


class RefundClientError(Exception):
    """Raised when the API rejects a refund call."""

    def __init__(
        self,
        status_code: int,
        message: str,
        error_code: str | None = None,
        details: Any = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.error_code = error_code
        self.message = message
        self.details = details


class AdminRefundList(BaseModel):
    """Admin listing with display views."""

    refunds: list[RefundView]
    statistics: RefundStatistics
    pagination: Pagination


class RefundClient:
    """Client for the refund REST API.

    Identity headers are normally added by API Gateway after JWT
    validation; when calling the app directly (local runs, tests) the
    client sends them itself.
    """

    def __init__(
        self,
        base_url: str | None = None,
        *,
        user_id: str | None = None,
        groups: list[str] | None = None,
        http_client: httpx.Client | None = None,
        timeout: float = 30.0,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: API root, e.g. "https://api.staybook.ph"
            user_id: Identity sent as x-user-sub
            groups: Identity groups sent as x-user-groups
            http_client: Pre-built client (e.g. FastAPI TestClient)
            timeout: Request timeout in seconds
        """
        if http_client is None and base_url is None:
            raise ValueError("base_url or http_client is required")
        self._owns_client = http_client is None
        self._http = http_client or httpx.Client(base_url=base_url or "", timeout=timeout)
        self._headers: dict[str, str] = {}
        if user_id:
            self._headers[USER_SUB_HEADER] = user_id
        if groups:
            self._headers[USER_GROUPS_HEADER] = ",".join(groups)

    def __enter__(self) -> "RefundClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_client:
            self._http.close()

    # Customer

    def request_refund(self, booking_id: str, reason: str) -> RefundView:
        data = self._call("POST", "/api/refunds", json={"booking_id": booking_id, "reason": reason})
        return self._view(data)

    def get_my_refunds(self, status: RefundStatus | None = None) -> list[RefundView]:
        params = {"status": status.value} if status else None
        data = self._call("GET", "/api/refunds/mine", params=params)
        return [self._view(item) for item in data["refunds"]]

    def get_refund(self, refund_id: str) -> RefundView:
        return self._view(self._call("GET", f"/api/refunds/{refund_id}"))

    # Admin

    def get_all_refund_requests(
        self,
        status: RefundStatus | None = None,
        page: int = 1,
        limit: int = 50,
    ) -> AdminRefundList:
        params: dict[str, Any] = {"page": page, "limit": limit}
        if status:
            params["status"] = status.value
        data = self._call("GET", "/api/admin/refunds", params=params)
        return AdminRefundList(
            refunds=[self._view(item) for item in data["refunds"]],
            statistics=RefundStatistics.model_validate(data["statistics"]),
            pagination=Pagination.model_validate(data["pagination"]),
        )

    def get_refund_details(self, refund_id: str) -> RefundView:
        return self._view(self._call("GET", f"/api/admin/refunds/{refund_id}"))

    def process_refund(
        self,
        refund_id: str,
        action: RefundAction,
        notes: str | None = None,
        custom_amount: int | None = None,
    ) -> RefundView:
        body: dict[str, Any] = {"action": RefundAction(action).value}
        if notes is not None:
            body["notes"] = notes
        if custom_amount is not None:
            body["custom_amount"] = custom_amount
        data = self._call("POST", f"/api/admin/refunds/{refund_id}/process", json=body)
        return self._view(data)

    def confirm_refund_intent(self, refund_intent_id: str) -> RefundView:
        data = self._call(
            "POST",
            "/api/admin/refunds/confirm-intent",
            json={"refund_intent_id": refund_intent_id},
        )
        return self._view(data)

    def complete_personal_refund(self, refund_id: str, notes: str) -> RefundView:
        data = self._call(
            "POST",
            f"/api/admin/refunds/{refund_id}/complete-personal",
            json={"notes": notes},
        )
        return self._view(data)

    # Internals

    def _call(self, method: str, path: str, **kwargs: Any) -> Any:
        response = self._http.request(method, path, headers=self._headers, **kwargs)
        if response.is_success:
            return response.json()

        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        raise RefundClientError(
            status_code=response.status_code,
            message=body.get("message") or response.reason_phrase or "Request failed",
            error_code=body.get("error_code"),
            details=body.get("details"),
        )

    @staticmethod
    def _view(data: dict[str, Any]) -> RefundView:
        return present_refund(RefundRequest.model_validate(data))
