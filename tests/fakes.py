"""Test doubles for the AI workflow backend."""

from __future__ import annotations

from claim_assist.workflows import INTERVIEW_WORKFLOW


class FakeWorkflowBackend:
    """
    Returns scripted results in order and records every call.

    Once the script runs out, interview calls return an empty question
    (interview finished) and other workflows return an empty object.
    """

    def __init__(self, results: list | None = None, error: Exception | None = None):
        self.results = list(results or [])
        self.error = error
        self.calls: list[tuple[str, dict]] = []

    def queue_questions(self, *questions: str) -> None:
        self.results.extend({"next_question": q} for q in questions)

    def run(self, workflow: str, variables: dict[str, str]) -> dict:
        self.calls.append((workflow, dict(variables)))
        if self.error is not None:
            raise self.error
        if self.results:
            return self.results.pop(0)
        if workflow == INTERVIEW_WORKFLOW:
            return {"next_question": ""}
        return {}

    @property
    def last_variables(self) -> dict:
        return self.calls[-1][1]
