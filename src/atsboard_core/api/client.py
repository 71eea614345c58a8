from __future__ import annotations

import asyncio
import logging
import os
from typing import Any, Protocol
from urllib.parse import quote

import requests
from pydantic import ValidationError

from atsboard_core.schemas import PipelineSnapshot

DEFAULT_API_URL = "http://127.0.0.1:8080"
DEFAULT_ORG_ID = "demo-org"
DEFAULT_TIMEOUT_SECONDS = 15.0

logger = logging.getLogger(__name__)


class PipelineApiError(RuntimeError):
    """Raised when the pipeline backend cannot be reached or rejects a call."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class PipelineBackend(Protocol):
    async def fetch_pipeline(self, job_id: str) -> PipelineSnapshot:
        """Load job, stages and candidates for one job."""

    async def update_candidate_stage(self, candidate_id: str, stage_id: str) -> dict[str, Any]:
        """Move one candidate to another stage."""


class PipelineApiClient:
    """Blocking client for the pipeline and candidate endpoints."""

    def __init__(
        self,
        *,
        base_url: str = DEFAULT_API_URL,
        org_id: str = DEFAULT_ORG_ID,
        api_key: str | None = None,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        session: requests.Session | None = None,
    ) -> None:
        if not base_url.strip():
            raise ValueError("API base URL is empty.")
        if not org_id.strip():
            raise ValueError("Org id is empty.")
        if timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be > 0.")

        self.base_url = base_url.strip().rstrip("/")
        self.org_id = org_id.strip()
        self.api_key = (api_key or "").strip() or None
        self.timeout_seconds = timeout_seconds
        self.session = session or requests.Session()

    @classmethod
    def from_env(
        cls,
        *,
        url_env: str = "ATSBOARD_API_URL",
        org_env: str = "ATSBOARD_ORG_ID",
        api_key_env: str = "ATSBOARD_API_KEY",
        base_url: str = DEFAULT_API_URL,
        org_id: str = DEFAULT_ORG_ID,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        session: requests.Session | None = None,
    ) -> PipelineApiClient:
        return cls(
            base_url=os.getenv(url_env, "").strip() or base_url,
            org_id=os.getenv(org_env, "").strip() or org_id,
            api_key=os.getenv(api_key_env, "").strip() or None,
            timeout_seconds=timeout_seconds,
            session=session,
        )

    def fetch_pipeline(self, job_id: str) -> PipelineSnapshot:
        if not job_id.strip():
            raise ValueError("job_id is empty.")

        payload = self._request("GET", f"/jobs/{quote(job_id, safe='')}/pipeline")
        if not isinstance(payload, dict):
            raise PipelineApiError("Pipeline response is not an object.")
        try:
            return PipelineSnapshot.model_validate(payload)
        except ValidationError as exc:
            raise PipelineApiError(f"Pipeline response is invalid: {exc}") from exc

    def update_candidate_stage(self, candidate_id: str, stage_id: str) -> dict[str, Any]:
        if not candidate_id.strip():
            raise ValueError("candidate_id is empty.")
        if not stage_id.strip():
            raise ValueError("stage_id is empty.")

        payload = self._request(
            "PATCH",
            f"/candidates/{quote(candidate_id, safe='')}",
            body={"stageId": stage_id},
        )
        return payload if isinstance(payload, dict) else {}

    def _headers(self) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "X-Org-Id": self.org_id,
        }
        if self.api_key:
            headers["X-API-Key"] = self.api_key
        return headers

    def _request(
        self,
        method: str,
        path: str,
        *,
        body: dict[str, Any] | None = None,
    ) -> Any:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(
                method,
                url,
                json=body,
                headers=self._headers(),
                timeout=self.timeout_seconds,
            )
        except requests.RequestException as exc:
            raise PipelineApiError(f"API request failed: {method} {path}: {exc}") from exc

        if response.status_code >= 400:
            message = self._error_message(response)
            logger.warning(
                "api_error method=%s path=%s status=%d message=%s",
                method,
                path,
                response.status_code,
                message,
            )
            raise PipelineApiError(message, status_code=response.status_code)

        content_type = response.headers.get("content-type", "")
        if "application/json" not in content_type:
            return {}
        try:
            return response.json()
        except ValueError as exc:
            raise PipelineApiError(f"API returned invalid JSON: {method} {path}") from exc

    @staticmethod
    def _error_message(response: requests.Response) -> str:
        try:
            payload = response.json()
        except ValueError:
            payload = None

        if isinstance(payload, dict):
            for key in ("message", "error"):
                value = payload.get(key)
                if isinstance(value, str) and value.strip():
                    return value.strip()
                if isinstance(value, dict):
                    nested = value.get("message")
                    if isinstance(nested, str) and nested.strip():
                        return nested.strip()

        reason = (response.reason or "").strip()
        return f"API {response.status_code} {reason}".strip()


class AsyncPipelineBackend:
    """Runs a blocking client off the event loop so other work keeps going."""

    def __init__(self, client: PipelineApiClient) -> None:
        self.client = client

    async def fetch_pipeline(self, job_id: str) -> PipelineSnapshot:
        return await asyncio.to_thread(self.client.fetch_pipeline, job_id)

    async def update_candidate_stage(self, candidate_id: str, stage_id: str) -> dict[str, Any]:
        return await asyncio.to_thread(
            self.client.update_candidate_stage,
            candidate_id,
            stage_id,
        )
