"""Async HTTP client for the task endpoints."""
import json
from typing import Any, AsyncIterator, Dict, List, Optional, Tuple

import httpx
from pydantic.alias_generators import to_camel

from taskrelay.client.models import ClientTask


class TaskApiError(Exception):
    """The server refused or failed a task request."""

    def __init__(self, status_code: int, detail: Any):
        super().__init__(f"{status_code}: {detail}")
        self.status_code = status_code
        self.detail = detail


class TaskApiClient:
    """Thin wrapper over ``/api/v1/tasks``."""

    def __init__(
        self,
        base_url: str,
        *,
        api_prefix: str = "/api/v1",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._client = httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)
        self._tasks_path = f"{api_prefix}/tasks"

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "TaskApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            raise TaskApiError(0, str(exc)) from exc
        if not response.is_success:
            try:
                detail = response.json().get("detail")
            except ValueError:
                detail = response.text
            raise TaskApiError(response.status_code, detail)
        return response.json()

    async def list_tasks(self) -> List[ClientTask]:
        data = await self._request("GET", self._tasks_path)
        return [ClientTask.model_validate(row) for row in data]

    async def create_task(self, title: str, description: Optional[str] = None) -> ClientTask:
        body: Dict[str, Any] = {"title": title}
        if description is not None:
            body["description"] = description
        data = await self._request("POST", self._tasks_path, json=body)
        return ClientTask.model_validate(data)

    async def update_task(self, task_id: str, changes: Dict[str, Any]) -> ClientTask:
        body = {to_camel(key): value for key, value in changes.items()}
        data = await self._request("PATCH", f"{self._tasks_path}/{task_id}", json=body)
        return ClientTask.model_validate(data)

    async def delete_task(self, task_id: str) -> None:
        await self._request("DELETE", f"{self._tasks_path}/{task_id}")

    async def enhance_task(self, task_id: str) -> ClientTask:
        data = await self._request("POST", f"{self._tasks_path}/{task_id}/enhance")
        return ClientTask.model_validate(data)

    async def stream_events(self) -> AsyncIterator[Tuple[str, ClientTask]]:
        """Yield (event_type, task) pairs from the server-sent change feed."""
        async with self._client.stream("GET", f"{self._tasks_path}/events", timeout=None) as response:
            event_type: Optional[str] = None
            data_lines: List[str] = []
            async for line in response.aiter_lines():
                if line.startswith("event:"):
                    event_type = line[len("event:"):].strip()
                elif line.startswith("data:"):
                    data_lines.append(line[len("data:"):].strip())
                elif line == "":
                    if event_type and data_lines:
                        row = json.loads("\n".join(data_lines))
                        yield event_type, ClientTask.model_validate(row)
                    event_type, data_lines = None, []
