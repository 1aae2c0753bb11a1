"""
REST backend for taskboard.

Thin request wrappers over the dashboard API. Every response is expected to
carry the ``{success, data?, error?}`` envelope; transport failures and HTTP
errors are folded into a failed ActionResult so callers never see an
exception from the network.
"""

import asyncio
from typing import Any, Callable, Dict, List, Optional, Type

import requests
from pydantic import BaseModel, ValidationError

from taskboard.logging_config import get_logger
from taskboard.models import ActionResult, Client, Project, Subtask, Task
from taskboard.services.backend import Backend

logger = get_logger(__name__)


class RestBackend(Backend):
    """Backend talking JSON over HTTP with a shared requests session."""

    def __init__(
        self,
        base_url: str,
        session: Optional[requests.Session] = None,
        token: Optional[str] = None,
        timeout: int = 30,
    ) -> None:
        """
        Args:
            base_url: API root, e.g. http://localhost:3000/api
            session: Optional pre-configured session (tests pass a fake)
            token: Optional bearer token
            timeout: Per-request timeout in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout
        self.headers = {"Accept": "application/json"}
        if token:
            self.headers["Authorization"] = f"Bearer {token}"

    @classmethod
    def from_config(cls, api_config: Dict[str, Any]) -> "RestBackend":
        return cls(
            api_config["base_url"],
            token=api_config.get("token"),
            timeout=api_config.get("timeout", 30),
        )

    # ==============================================================================
    # TRANSPORT
    # ==============================================================================

    def _send(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> ActionResult:
        """
        Perform one blocking request and unwrap the envelope.

        Returns:
            ActionResult; failures carry a human-readable error
        """
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(
                method,
                url,
                params=params,
                json=json,
                headers=self.headers,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"{method} {url} failed: {e}", exc_info=True)
            return ActionResult.fail(f"Network error: {e}")

        try:
            payload = response.json()
        except ValueError:
            payload = None

        if response.status_code >= 400:
            error = payload.get("error") if isinstance(payload, dict) else None
            logger.warning(f"{method} {url} returned HTTP {response.status_code}: {error}")
            return ActionResult.fail(error or f"HTTP {response.status_code}")

        if not isinstance(payload, dict):
            logger.warning(f"{method} {url} returned a non-JSON body")
            return ActionResult.fail("Invalid response from server")

        if not payload.get("success", False):
            return ActionResult.fail(payload.get("error") or "Request failed")
        return ActionResult.ok(payload.get("data"))

    async def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
        parse: Optional[Callable[[Any], Any]] = None,
    ) -> ActionResult:
        """Run a request off the event loop and parse ``data`` on success."""
        result = await asyncio.to_thread(self._send, method, path, params, json)
        if not result.success or parse is None:
            return result
        try:
            return ActionResult.ok(parse(result.data))
        except ValidationError as e:
            logger.error(f"Malformed payload from {path}: {e}")
            return ActionResult.fail(f"Malformed response from server: {path}")

    @staticmethod
    def _one(model: Type[BaseModel]) -> Callable[[Any], Any]:
        return lambda data: None if data is None else model.model_validate(data)

    @staticmethod
    def _many(model: Type[BaseModel]) -> Callable[[Any], List[Any]]:
        return lambda data: [model.model_validate(item) for item in (data or [])]

    # ==============================================================================
    # SUBTASKS
    # ==============================================================================

    async def get_subtasks(self, task_id: str) -> ActionResult:
        return await self._request("GET", f"/tasks/{task_id}/subtasks", parse=self._many(Subtask))

    async def toggle_subtask_completion(self, subtask_id: str, completed: bool) -> ActionResult:
        return await self._request("PUT", f"/subtasks/{subtask_id}/completion", json={"completed": completed})

    async def create_subtask(
        self,
        task_id: str,
        title: str,
        provider_id: Optional[str] = None,
        description: Optional[str] = None,
    ) -> ActionResult:
        body = {"task_id": task_id, "title": title, "provider_id": provider_id, "description": description}
        return await self._request("POST", "/subtasks", json=body, parse=self._one(Subtask))

    async def update_subtask(self, subtask_id: str, fields: Dict[str, Any]) -> ActionResult:
        return await self._request("PATCH", f"/subtasks/{subtask_id}", json=fields)

    async def delete_subtask(self, subtask_id: str) -> ActionResult:
        return await self._request("DELETE", f"/subtasks/{subtask_id}")

    # ==============================================================================
    # TASKS
    # ==============================================================================

    async def get_tasks(
        self,
        provider_id: Optional[str] = None,
        project_id: Optional[str] = None,
    ) -> ActionResult:
        params = {key: value for key, value in (("provider_id", provider_id), ("project_id", project_id)) if value}
        return await self._request("GET", "/tasks", params=params or None, parse=self._many(Task))

    async def get_task(self, task_id: str) -> ActionResult:
        return await self._request("GET", f"/tasks/{task_id}", parse=self._one(Task))

    async def create_task(self, fields: Dict[str, Any]) -> ActionResult:
        return await self._request("POST", "/tasks", json=_jsonable(fields), parse=self._one(Task))

    async def update_task(self, task_id: str, fields: Dict[str, Any]) -> ActionResult:
        return await self._request("PATCH", f"/tasks/{task_id}", json=_jsonable(fields))

    async def toggle_task_completion(self, task_id: str, completed: bool) -> ActionResult:
        return await self._request("PUT", f"/tasks/{task_id}/completion", json={"completed": completed})

    async def delete_task(self, task_id: str) -> ActionResult:
        return await self._request("DELETE", f"/tasks/{task_id}")

    # ==============================================================================
    # PROJECTS AND CLIENTS
    # ==============================================================================

    async def get_project(self, project_id: str) -> ActionResult:
        return await self._request("GET", f"/projects/{project_id}", parse=self._one(Project))

    async def update_project(self, project_id: str, fields: Dict[str, Any]) -> ActionResult:
        return await self._request("PATCH", f"/projects/{project_id}", json=_jsonable(fields))

    async def get_clients(self, provider_id: Optional[str] = None) -> ActionResult:
        params = {"provider_id": provider_id} if provider_id else None
        return await self._request("GET", "/clients", params=params, parse=self._many(Client))

    async def close(self) -> None:
        self.session.close()


def _jsonable(fields: Dict[str, Any]) -> Dict[str, Any]:
    """Convert dates and enums in a patch to their JSON forms."""
    converted = {}
    for key, value in fields.items():
        if hasattr(value, "isoformat"):
            value = value.isoformat()
        elif hasattr(value, "value"):
            value = value.value
        converted[key] = value
    return converted
