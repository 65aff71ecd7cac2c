"""Async client for the agent backend's graph and execution endpoints."""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from graphsync.errors import BackendAPIError
from graphsync.models.block import Block, GraphMeta
from graphsync.models.execution import GraphExecutionInfo
from graphsync.models.graph import Graph, GraphPayload

logger = structlog.get_logger(__name__)


class BackendAPI:
    """Thin wrapper over the backend REST API.

    Every failure, whether the server could not be reached or answered
    with an error status, is raised as ``BackendAPIError``.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8006/api",
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Args:
            base_url: Base URL of the backend API
            timeout: HTTP request timeout in seconds
            client: Preconfigured client (tests pass one with a mock transport)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "BackendAPI":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        url = f"{self.base_url}{path}"
        try:
            response = await self._client.request(method, url, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise BackendAPIError(
                f"{method} {path} failed with {e.response.status_code}: {e.response.text}",
                status_code=e.response.status_code,
            ) from e
        except httpx.RequestError as e:
            raise BackendAPIError(
                f"Failed to connect to server at {self.base_url}: {e}"
            ) from e

        logger.debug("backend call", method=method, path=path, status=response.status_code)
        if not response.content:
            return None
        return response.json()

    async def get_blocks(self) -> list[Block]:
        data = await self._request("GET", "/blocks")
        return [Block.model_validate(item) for item in data]

    async def list_graphs(self) -> list[GraphMeta]:
        data = await self._request("GET", "/graphs")
        return [GraphMeta.model_validate(item) for item in data]

    async def get_graph(self, graph_id: str, version: int | None = None) -> Graph:
        params = {"version": version} if version is not None else None
        data = await self._request("GET", f"/graphs/{graph_id}", params=params)
        return Graph.model_validate(data)

    async def create_graph(self, payload: GraphPayload) -> Graph:
        body = {"graph": payload.model_dump(exclude_none=True)}
        data = await self._request("POST", "/graphs", json=body)
        return Graph.model_validate(data)

    async def update_graph(self, graph_id: str, payload: GraphPayload) -> Graph:
        body = payload.model_copy(update={"id": graph_id}).model_dump()
        data = await self._request("PUT", f"/graphs/{graph_id}", json=body)
        return Graph.model_validate(data)

    async def execute_graph(
        self,
        graph_id: str,
        version: int,
        inputs: dict[str, Any] | None = None,
    ) -> str:
        """Start an execution and return its ``graph_exec_id``."""
        data = await self._request(
            "POST", f"/graphs/{graph_id}/execute/{version}", json=inputs or {}
        )
        return data["graph_exec_id"]

    async def stop_graph_execution(self, graph_id: str, execution_id: str) -> None:
        await self._request("POST", f"/graphs/{graph_id}/executions/{execution_id}/stop")

    async def get_graph_execution_info(
        self, graph_id: str, execution_id: str
    ) -> GraphExecutionInfo:
        data = await self._request("GET", f"/graphs/{graph_id}/executions/{execution_id}")
        return GraphExecutionInfo.model_validate(data)

    async def create_graph_execution_schedule(
        self,
        graph_id: str,
        graph_version: int,
        name: str,
        cron: str,
        inputs: dict[str, Any],
    ) -> None:
        await self._request(
            "POST",
            "/schedules",
            json={
                "graph_id": graph_id,
                "graph_version": graph_version,
                "name": name,
                "cron": cron,
                "inputs": inputs,
            },
        )
