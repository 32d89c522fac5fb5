"""
HTTP client for UI-side callers of the membership API.

Transport failures (connection refused, timeouts) are retried once with no
backoff; anything the server answered is never retried. Error responses are
mapped back onto the ``academy.core.errors`` taxonomy.
"""

import logging
from typing import Any, Dict, List, Optional, Union
from uuid import UUID

import httpx
from pydantic import BaseModel
from tenacity import retry, retry_if_exception_type, stop_after_attempt

from .core.errors import ERRORS_BY_CODE, AlreadyReviewed, StaleRequest, WorkflowError

logger = logging.getLogger(__name__)

SUBMIT_PATHS = {
    "master_role": "/master-role-requests",
    "staff": "/staff-requests",
    "resignation": "/resignation-requests",
    "enrollment": "/classroom-memberships",
}

DECISION_PATHS = {
    "master_role": "/master-role-requests/{id}/status",
    "staff": "/staff-requests/{id}/status",
    "resignation": "/resignation-requests/{id}/status",
    "enrollment": "/classroom-memberships/{id}/status",
}

MENTOR_LIST_PATHS = {
    "master_role": "/mentors/{id}/master-role-requests",
    "staff": "/mentors/{id}/staff-requests",
    "resignation": "/mentors/{id}/resignation-requests",
}


def error_from_response(response: httpx.Response) -> WorkflowError:
    """Rebuild the server-side error from an error response."""
    try:
        body = response.json()
    except ValueError:
        body = {}

    error_cls = ERRORS_BY_CODE.get(body.get("error"), WorkflowError)
    detail = body.get("detail") or response.reason_phrase
    if not isinstance(detail, str):
        detail = str(detail)
    return error_cls(detail)


class WorkflowClient:
    """Thin wrapper over ``httpx.Client`` speaking the ``/api/v1`` routes."""

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        self.http = httpx.Client(
            base_url=f"{base_url.rstrip('/')}/api/v1",
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    def close(self) -> None:
        self.http.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    @retry(
        stop=stop_after_attempt(2),
        retry=retry_if_exception_type(httpx.TransportError),
        reraise=True,
    )
    def _send(self, method: str, path: str, **kwargs) -> httpx.Response:
        return self.http.request(method, path, **kwargs)

    def _request(self, method: str, path: str, **kwargs) -> Any:
        try:
            response = self._send(method, path, **kwargs)
        except httpx.TransportError as e:
            logger.error(f"{method} {path} failed after retry: {e}")
            raise

        if response.is_error:
            raise error_from_response(response)
        return response.json()

    @staticmethod
    def _params(**params) -> Dict[str, str]:
        return {name: str(value) for name, value in params.items() if value is not None}

    # --- Session ---

    def me(self) -> Dict[str, Any]:
        return self._request("GET", "/me")

    def access(self, capability: str) -> Dict[str, Any]:
        return self._request("GET", f"/access/{capability}")

    # --- Writes ---

    def submit(self, submission: Union[BaseModel, Dict[str, Any]]) -> Dict[str, Any]:
        """POST a tagged submission to the route for its ``kind``."""
        if isinstance(submission, BaseModel):
            payload = submission.model_dump(mode="json", by_alias=True, exclude_none=True)
        else:
            payload = dict(submission)
        return self._request("POST", SUBMIT_PATHS[payload["kind"]], json=payload)

    def decide(
        self,
        kind: str,
        item_id: Union[str, UUID],
        status: str,
        notes: Optional[str] = None,
        reviewed_by: Optional[Union[str, UUID]] = None,
    ) -> Dict[str, Any]:
        body: Dict[str, Any] = {"status": status}
        if notes is not None:
            body["notes"] = notes
        if reviewed_by is not None:
            body["reviewedBy"] = str(reviewed_by)
        return self._request("PATCH", DECISION_PATHS[kind].format(id=item_id), json=body)

    # --- Reads ---

    def master_role_board(self, search: Optional[str] = None) -> Dict[str, Any]:
        return self._request(
            "GET", "/master-role-requests/board", params=self._params(search=search)
        )

    def list_master_role_requests(
        self, status: Optional[str] = None, search: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        return self._request(
            "GET", "/master-role-requests", params=self._params(status=status, search=search)
        )

    def classroom_board(
        self, classroom_id: Union[str, UUID], kind: str, search: Optional[str] = None
    ) -> Dict[str, Any]:
        return self._request(
            "GET",
            f"/classrooms/{classroom_id}/requests",
            params=self._params(kind=kind, search=search),
        )

    def mentor_requests(
        self, mentor_id: Union[str, UUID], kind: str, status: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        return self._request(
            "GET", MENTOR_LIST_PATHS[kind].format(id=mentor_id), params=self._params(status=status)
        )

    def memberships(
        self,
        classroom_id: Optional[Union[str, UUID]] = None,
        user_id: Optional[Union[str, UUID]] = None,
        role: Optional[str] = None,
        status: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """A classroom roster, or one actor's memberships when ``user_id`` is given."""
        params = self._params(classroomId=classroom_id, userId=user_id, role=role, status=status)
        return self._request("GET", "/classroom-memberships", params=params)

    def staff_classrooms(self, mentor_id: Union[str, UUID]) -> List[Dict[str, Any]]:
        return self._request("GET", f"/mentors/{mentor_id}/staff-classrooms")


class ReviewSurface:
    """
    A reviewer's board that always reflects the server after a write.

    Every successful decision is followed by a refresh. A decision that lost
    a race (AlreadyReviewed) or whose precondition vanished (StaleRequest)
    also refreshes before the error is re-raised, so the stale row is gone
    from the board the caller renders next.
    """

    def __init__(
        self,
        client: WorkflowClient,
        kind: str,
        classroom_id: Optional[Union[str, UUID]] = None,
        search: Optional[str] = None,
    ):
        if kind != "master_role" and classroom_id is None:
            raise ValueError(f"{kind} boards are scoped to a classroom")
        self.client = client
        self.kind = kind
        self.classroom_id = classroom_id
        self.search = search
        self.board: Dict[str, Any] = {}

    def refresh(self) -> Dict[str, Any]:
        if self.kind == "master_role":
            self.board = self.client.master_role_board(self.search)
        else:
            self.board = self.client.classroom_board(self.classroom_id, self.kind, self.search)
        return self.board

    def filter(self, search: Optional[str]) -> Dict[str, Any]:
        self.search = search
        return self.refresh()

    @property
    def pending(self) -> List[Dict[str, Any]]:
        return self.board.get("pending", [])

    @property
    def counts(self) -> Dict[str, int]:
        return self.board.get("counts", {})

    def decide(self, item_id: Union[str, UUID], status: str, notes: Optional[str] = None) -> Dict[str, Any]:
        try:
            decided = self.client.decide(self.kind, item_id, status, notes)
        except (AlreadyReviewed, StaleRequest) as e:
            logger.info(f"Decision on {self.kind} {item_id} is out of date ({e.code}); refreshing")
            self.refresh()
            raise
        self.refresh()
        return decided
