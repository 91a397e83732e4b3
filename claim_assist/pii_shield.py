"""
Claim Assist — PII Shield

Conditions, interview answers and uploaded evidence describe a veteran's
medical history. Three safeguards cover them:

  - Log leakage    → every log record is rendered, scrubbed, then emitted
  - Insider access → each PHI/PII read or write leaves an audit entry
  - Storage breach → document blobs are Fernet-encrypted at rest
"""

from __future__ import annotations

import logging
import re
import time
import uuid
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import NamedTuple

from cryptography.fernet import Fernet, InvalidToken

from claim_assist.config import settings

logger = logging.getLogger(__name__)


# ── Data classification ──────────────────────────────────────────────

class DataClass(str, Enum):
    INTERNAL = "internal"
    PII = "pii"                   # service record, email
    PHI = "phi"                   # conditions, interview Q&A, medical documents
    CREDENTIAL = "credential"


RESOURCE_CLASSES: dict[str, DataClass] = {
    "condition": DataClass.PHI,
    "interview_answer": DataClass.PHI,
    "interview_question": DataClass.PHI,
    "document": DataClass.PHI,
    "service_history": DataClass.PII,
    "access_token": DataClass.CREDENTIAL,
}


# ── Audit trail ──────────────────────────────────────────────────────

@dataclass
class AuditEntry:
    """One access to a classified resource."""
    user_id: str = ""
    action: str = ""          # read | write | delete | download
    resource: str = ""        # key of RESOURCE_CLASSES
    resource_id: str = ""
    success: bool = True
    reason: str = ""
    entry_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    timestamp: float = field(default_factory=time.time)

    @property
    def data_class(self) -> str:
        return RESOURCE_CLASSES.get(self.resource, DataClass.INTERNAL).value


class AuditLog:
    """
    Emits entries on the `claim_assist.audit` logger, which deployments
    route to a separate append-only sink. The most recent entries are also
    kept in memory for compliance lookups.
    """

    def __init__(self, max_entries: int = 10_000):
        self._recent: deque[AuditEntry] = deque(maxlen=max_entries)
        self._sink = logging.getLogger("claim_assist.audit")

    def record(self, entry: AuditEntry) -> None:
        self._recent.append(entry)
        self._sink.info(
            "AUDIT %s user=%s %s %s:%s class=%s ok=%s (%s)",
            entry.entry_id,
            entry.user_id or "system",
            entry.action,
            entry.resource,
            entry.resource_id,
            entry.data_class,
            entry.success,
            entry.reason,
        )

    def get_entries_for_user(self, user_id: str) -> list[AuditEntry]:
        return [e for e in self._recent if e.user_id == user_id]


# ── Blob encryption ──────────────────────────────────────────────────

class BlobCipher:
    """Fernet wrapper for document bytes kept in object storage."""

    def __init__(self, key: str | None = None):
        self._fernet = Fernet((key or settings.encryption_key).encode())

    def encrypt(self, data: bytes) -> bytes:
        return self._fernet.encrypt(data)

    def decrypt(self, token: bytes) -> bytes:
        try:
            return self._fernet.decrypt(token)
        except InvalidToken:
            logger.error("Document blob failed to decrypt; ENCRYPTION_KEY changed?")
            raise


# ── Log scrubbing ────────────────────────────────────────────────────

class ScrubRule(NamedTuple):
    name: str
    pattern: re.Pattern
    replacement: str


# Order matters: tokens before generic digit runs, SSN before phone.
SCRUB_RULES: list[ScrubRule] = [
    ScrubRule("jwt", re.compile(r"eyJ[\w-]+\.eyJ[\w-]+\.[\w-]+"), "[TOKEN-SCRUBBED]"),
    ScrubRule("fernet", re.compile(r"gAAAAA[\w=+/-]{40,}"), "[ENCRYPTED-SCRUBBED]"),
    ScrubRule("ssn", re.compile(r"\b\d{3}-\d{2}-\d{4}\b|\b\d{9}\b"), "[SSN-SCRUBBED]"),
    ScrubRule("va_file", re.compile(r"\bC-?\d{7,9}\b"), "[VAFILE-SCRUBBED]"),
    ScrubRule(
        "dob",
        re.compile(r"\b(0[1-9]|1[0-2])[/-](0[1-9]|[12]\d|3[01])[/-](19|20)\d{2}\b"),
        "[DOB-SCRUBBED]",
    ),
    ScrubRule("email", re.compile(r"\b[\w.+-]+@[\w-]+\.[\w.-]+\b"), "[EMAIL-SCRUBBED]"),
    ScrubRule(
        "phone",
        re.compile(r"\(?\b\d{3}\)?[-.\s]?\d{3}[-.\s]?\d{4}\b"),
        "[PHONE-SCRUBBED]",
    ),
]


def scrub_pii_from_string(text: str) -> str:
    for rule in SCRUB_RULES:
        text = rule.pattern.sub(rule.replacement, text)
    return text


class PIIScrubFilter(logging.Filter):
    """
    Renders the record's message and replaces it with a scrubbed copy, so
    PII passed as a %-argument of any type is caught too.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        try:
            message = record.getMessage()
        except (TypeError, ValueError):
            message = str(record.msg)
        record.msg = scrub_pii_from_string(message)
        record.args = None
        return True


audit_log = AuditLog()

_scrubber_installed = False


def install_log_scrubber() -> None:
    """Attach PIIScrubFilter to the root logger and its handlers (once)."""
    global _scrubber_installed
    if _scrubber_installed:
        return
    scrub = PIIScrubFilter()
    root = logging.getLogger()
    root.addFilter(scrub)
    for handler in root.handlers:
        handler.addFilter(scrub)
    _scrubber_installed = True
    logger.info("PII log scrubber installed")
