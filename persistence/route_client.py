#Purpose: The route service "adapter/client".
#Sole responsibility: talk to the route REST API via HTTP and return normalized outputs.
#Encapsulates API-specific details:
#URL construction (/api/routes, /api/admin/routes/{id})
#bearer token headers for admin calls
#the {success, data, message} response envelope
#timeouts and error handling (never raises to the caller, returns RemoteResult)
#It should not contain save/auth policy; that lives in the coordinator.


from dotenv import load_dotenv
import logging
import os
from typing import Any, Callable, Dict, List, Optional

import requests

from .collaborators import RemoteResult
from .wire import RouteRecord, RouteRequest

# Read the route API base URL from environment
# Example in .env:
# ROUTES_API_BASE_URL=https://api.example.com
load_dotenv()
BASE_URL = os.getenv("ROUTES_API_BASE_URL")

logger = logging.getLogger(__name__)

TokenProvider = Callable[[], Optional[str]]


class HttpRouteService:
    """
    Route API Adapter / Client

    Sole responsibility:
    - Talk to the route API via HTTP
    - Send RouteRequest bodies, parse RouteRecord responses
    - Turn every outcome (including transport errors) into a RemoteResult

    """
    def __init__(self,
                 base_url: Optional[str] = None,
                 token_provider: Optional[TokenProvider] = None,
                 timeout: int = 10,
                 max_detail_fetch: int = 20,
                 session: Optional[requests.Session] = None):
        self.base_url = (base_url or BASE_URL or "").rstrip("/")
        self.token_provider = token_provider
        self.timeout = timeout #seconds to wait for the API before giving up
        self.max_detail_fetch = max_detail_fetch #list endpoint returns summaries, details are fetched one by one
        self.session = session or requests.Session()

        if not self.base_url:
            raise ValueError("Route API base URL not set. Please set ROUTES_API_BASE_URL in the .env file.")

    #----------------
    # Internal helpers for URL construction, headers, envelope parsing
    #----------------
    @property
    def routes_url(self) -> str:
        return f"{self.base_url}/api/routes"

    @property
    def admin_routes_url(self) -> str:
        return f"{self.base_url}/api/admin/routes"

    def auth_headers(self) -> Dict[str, str]:
        token = self.token_provider() if self.token_provider else None
        if not token:
            return {}
        return {"Authorization": f"Bearer {token}"}

    def _request(self, method: str, url: str, *, admin: bool = False, body: Optional[Dict[str, Any]] = None) -> RemoteResult:
        """
        Perform one HTTP call and unwrap the {success, data, message} envelope.
        """
        headers = {"Content-Type": "application/json"}
        if admin:
            headers.update(self.auth_headers())

        try:
            response = self.session.request(
                method,
                url,
                json=body,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"Route API {method} {url} failed: {e}")
            return RemoteResult.failure(str(e) or e.__class__.__name__)

        try:
            payload = response.json() if response.content else {}
        except ValueError:
            payload = {}

        if not response.ok:
            message = payload.get("message") if isinstance(payload, dict) else None
            return RemoteResult.failure(
                message or f"HTTP error! status: {response.status_code}",
                status=response.status_code,
            )

        if isinstance(payload, dict) and payload.get("success") is False:
            return RemoteResult.failure(payload.get("message") or "Request failed", status=response.status_code)

        data = payload.get("data") if isinstance(payload, dict) else payload
        return RemoteResult.success(data, status=response.status_code)

    def _record_result(self, result: RemoteResult) -> RemoteResult:
        """
        Parse a success payload into a RouteRecord (malformed payload -> failure).
        """
        if not result.ok:
            return result
        try:
            return RemoteResult.success(RouteRecord.from_json(result.data), status=result.status)
        except ValueError as e:
            return RemoteResult.failure(f"Malformed route response: {e}", status=result.status)

    #----------------
    # Public read methods
    #----------------
    def get_by_id(self, route_id: str) -> RemoteResult:
        """
        GET /api/routes/{id} -> RemoteResult(data=RouteRecord)
        """
        return self._record_result(self._request("GET", f"{self.routes_url}/{route_id}"))

    def list(self) -> RemoteResult:
        """
        GET /api/routes/all, then the detail of every active route that has geometry.

        Returns:
            RemoteResult(data=List[RouteRecord])
        A detail call that fails is logged and skipped; only the summary call
        failing fails the whole list.
        """
        summaries = self._request("GET", f"{self.routes_url}/all")
        if not summaries.ok:
            return summaries

        wanted = [
            summary for summary in (summaries.data or [])
            if summary.get("hasGeometry") and summary.get("isActive")
        ][: self.max_detail_fetch]

        records: List[RouteRecord] = []
        for summary in wanted:
            detail = self.get_by_id(summary["id"])
            if not detail.ok:
                logger.warning(f"Failed to fetch details for route {summary['id']}: {detail.message}")
                continue
            records.append(detail.data)

        return RemoteResult.success(records, status=summaries.status)

    #----------------
    # Public admin methods (bearer token)
    #----------------
    def create(self, request: RouteRequest) -> RemoteResult:
        """POST /api/admin/routes"""
        return self._record_result(
            self._request("POST", self.admin_routes_url, admin=True, body=request.to_json())
        )

    def update(self, route_id: str, request: RouteRequest) -> RemoteResult:
        """PUT /api/admin/routes/{id}"""
        return self._record_result(
            self._request("PUT", f"{self.admin_routes_url}/{route_id}", admin=True, body=request.to_json())
        )

    def delete(self, route_id: str) -> RemoteResult:
        """DELETE /api/admin/routes/{id}"""
        result = self._request("DELETE", f"{self.admin_routes_url}/{route_id}", admin=True)
        if not result.ok:
            return result
        return RemoteResult.success(None, status=result.status)
