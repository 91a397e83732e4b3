"""
Claim Assist — Condition Catalogue & Suggestions

The common-conditions list offered for one-click selection, and the
"suggest_conditions" AI workflow that proposes likely conditions from a
veteran's branch and job.
"""

from __future__ import annotations

import logging

from claim_assist.errors import UpstreamError
from claim_assist.workflows import SUGGESTION_WORKFLOW, WorkflowBackend

logger = logging.getLogger(__name__)


# Conditions most frequently claimed; offered as checkboxes before custom entry.
COMMON_CONDITIONS: list[str] = [
    "Back Pain (Lumbosacral Strain)",
    "Tinnitus (Ringing in Ears)",
    "PTSD (Post-Traumatic Stress Disorder)",
    "Knee Condition (e.g., Patellofemoral Syndrome)",
    "Hearing Loss",
    "Migraines",
    "Shoulder Condition (e.g., Rotator Cuff)",
    "Ankle Condition (e.g., Sprain/Strain)",
    "Sleep Apnea",
    "Depression",
    "Anxiety Disorder",
]


class ConditionSuggester:
    def __init__(self, backend: WorkflowBackend):
        self._backend = backend

    def suggest(self, service_branch: str, job_title: str) -> list[str]:
        logger.info("Requesting condition suggestions for branch=%s", service_branch)
        result = self._backend.run(SUGGESTION_WORKFLOW, {
            "service_branch": service_branch,
            "job_title": job_title,
        })

        suggestions = result.get("suggested_conditions")
        if not isinstance(suggestions, list):
            logger.error("Invalid suggestion structure: keys=%s", sorted(result))
            raise UpstreamError(
                "Received invalid or unexpected data structure from the AI workflow."
            )

        # Keep order, drop blanks and repeats
        seen: set[str] = set()
        cleaned: list[str] = []
        for item in suggestions:
            name = str(item).strip()
            if name and name.lower() not in seen:
                seen.add(name.lower())
                cleaned.append(name)
        logger.info("Received %d condition suggestions", len(cleaned))
        return cleaned
