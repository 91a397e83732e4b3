"""
Claim Assist — Question Generator

Thin client over the "interview" AI workflow. It serializes the interview
context into the workflow's string variables and validates the reply.
An empty string is a valid reply: it means the generator has nothing
further to ask.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field

from claim_assist.errors import UpstreamError
from claim_assist.workflows import INTERVIEW_WORKFLOW, WorkflowBackend

logger = logging.getLogger(__name__)


@dataclass
class QuestionContext:
    """Everything the generator needs to phrase the next question."""
    condition_name: str
    claim_type: str
    service_history_context: dict
    target_section: str
    previous_qa_pairs: list[dict] = field(default_factory=list)

    def to_variables(self) -> dict[str, str]:
        return {
            "condition_name": self.condition_name,
            "claim_type": self.claim_type,
            "service_history_context": json.dumps(self.service_history_context),
            "previous_qa_pairs": json.dumps(self.previous_qa_pairs),
            "target_section": self.target_section,
        }


class QuestionGenerator:
    def __init__(self, backend: WorkflowBackend):
        self._backend = backend

    def next_question(self, context: QuestionContext) -> str:
        """
        Return the next question text ("" when the interview is exhausted).
        Raises UpstreamError on any failure or malformed result.
        """
        try:
            result = self._backend.run(INTERVIEW_WORKFLOW, context.to_variables())
        except UpstreamError as exc:
            raise UpstreamError(f"AI interaction failed: {exc.message}") from exc

        question = result.get("next_question")
        if not isinstance(question, str):
            logger.error("AI result missing 'next_question' string: keys=%s", sorted(result))
            raise UpstreamError(
                "AI interaction failed: result missing 'next_question' string"
            )
        return question.strip()
