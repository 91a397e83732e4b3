"""
Claim Assist — AI Workflow Backends

Both AI features (next interview question, condition suggestions) are
named workflows that take string variables and return a JSON object.
Two interchangeable backends run them:

  • HostedWorkflowBackend — the external AI workflow service over HTTP
  • ClaudeWorkflowBackend — the same workflows run directly on Claude

Every failure (transport error, timeout, non-2xx, unusable payload) is
raised as UpstreamError so callers see a single failure type.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Protocol

import anthropic
import httpx

from claim_assist.config import settings
from claim_assist.errors import ClaimAssistError, UpstreamError
from claim_assist.prompts import build_workflow_prompt

logger = logging.getLogger(__name__)

INTERVIEW_WORKFLOW = "interview"
SUGGESTION_WORKFLOW = "suggest_conditions"


class WorkflowBackend(Protocol):
    def run(self, workflow: str, variables: dict[str, str]) -> dict: ...


def _coerce_result(result: object) -> dict:
    """Workflow outputs may arrive as an object or as a JSON string."""
    if isinstance(result, str):
        try:
            result = json.loads(result)
        except json.JSONDecodeError:
            raise UpstreamError("AI workflow returned non-object result")
    if not isinstance(result, dict):
        raise UpstreamError("AI workflow returned non-object result")
    return result


# ── Hosted workflow service ──────────────────────────────────────────

class HostedWorkflowBackend:
    """
    Runs a workflow on the hosted AI workflow service.

    Request:  POST {api_url}  {"appId": ..., "variables": {...}}
    Response: {"success": bool, "result": {...}, "error": {...}?,
               "billingCost": ...}
    """

    def __init__(
        self,
        api_url: str | None = None,
        api_key: str | None = None,
        workflow_ids: dict[str, str] | None = None,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        self._api_url = api_url or settings.workflow_api_url
        self._api_key = api_key if api_key is not None else settings.workflow_api_key
        self._workflow_ids = workflow_ids if workflow_ids is not None else {
            INTERVIEW_WORKFLOW: settings.interview_workflow_id,
            SUGGESTION_WORKFLOW: settings.suggestion_workflow_id,
        }
        self._timeout = timeout or settings.generator_timeout_seconds
        self._transport = transport

    def run(self, workflow: str, variables: dict[str, str]) -> dict:
        app_id = self._workflow_ids.get(workflow, "")
        if not self._api_key or not app_id:
            logger.error(
                "Missing AI workflow credentials (key=%s, app=%s)",
                bool(self._api_key), bool(app_id),
            )
            raise ClaimAssistError(
                f"AI workflow API key or '{workflow}' app id not configured."
            )

        logger.info("Calling AI workflow %s (%s)", workflow, app_id)
        try:
            with httpx.Client(timeout=self._timeout, transport=self._transport) as client:
                resp = client.post(
                    self._api_url,
                    json={"appId": app_id, "variables": variables},
                    headers={"Authorization": f"Bearer {self._api_key}"},
                )
                resp.raise_for_status()
                data = resp.json()
        except httpx.TimeoutException as exc:
            logger.error("AI workflow %s timed out after %.0fs", workflow, self._timeout)
            raise UpstreamError("AI workflow timed out") from exc
        except httpx.HTTPStatusError as exc:
            logger.error("AI workflow %s returned HTTP %d", workflow, exc.response.status_code)
            raise UpstreamError(
                f"AI workflow returned HTTP {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            logger.error("AI workflow %s request failed: %s", workflow, exc)
            raise UpstreamError(f"AI workflow request failed: {exc}") from exc
        except ValueError as exc:
            raise UpstreamError("AI workflow returned invalid JSON") from exc

        if not isinstance(data, dict):
            raise UpstreamError("AI workflow returned non-object result")
        if data.get("success") is False:
            error = data.get("error") or {}
            message = error.get("message") if isinstance(error, dict) else str(error)
            raise UpstreamError(message or "AI workflow reported failure")

        logger.info("AI workflow %s billing cost: %s", workflow, data.get("billingCost"))
        return _coerce_result(data.get("result"))


# ── Claude ───────────────────────────────────────────────────────────

class ClaudeWorkflowBackend:
    """Runs workflows on Claude using the prompts in claim_assist.prompts."""

    def __init__(self, client: anthropic.Anthropic | None = None):
        self._client = client or anthropic.Anthropic(
            api_key=settings.anthropic_api_key,
            timeout=settings.generator_timeout_seconds,
        )
        logger.info("ClaudeWorkflowBackend ready — model=%s", settings.claude_model)

    def run(self, workflow: str, variables: dict[str, str]) -> dict:
        system_prompt = build_workflow_prompt(workflow, variables)

        logger.info("Calling %s for workflow %s …", settings.claude_model, workflow)
        try:
            message = self._client.messages.create(
                model=settings.claude_model,
                max_tokens=settings.claude_max_tokens,
                temperature=settings.claude_temperature,
                system=system_prompt,
                messages=[{"role": "user", "content": "Respond with the JSON object now."}],
            )
        except anthropic.APITimeoutError as exc:
            raise UpstreamError("AI workflow timed out") from exc
        except anthropic.APIError as exc:
            logger.error("Claude call failed for workflow %s: %s", workflow, exc)
            raise UpstreamError(f"Claude request failed: {exc}") from exc

        text = "".join(
            block.text for block in message.content if getattr(block, "type", "") == "text"
        )
        # Extract JSON from response (handle potential markdown wrapping)
        json_match = re.search(r"\{[\s\S]*\}", text)
        if not json_match:
            raise UpstreamError("No JSON found in AI response")
        try:
            data = json.loads(json_match.group())
        except json.JSONDecodeError as exc:
            raise UpstreamError("AI response was not valid JSON") from exc
        return _coerce_result(data)


def build_workflow_backend(provider: str | None = None) -> WorkflowBackend:
    """Pick the backend named by settings.ai_provider."""
    provider = (provider or settings.ai_provider).lower()
    if provider == "anthropic":
        return ClaudeWorkflowBackend()
    if provider == "workflow":
        return HostedWorkflowBackend()
    raise ClaimAssistError(f"Unknown ai_provider '{provider}'")
