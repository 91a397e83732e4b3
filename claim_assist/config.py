"""
Claim Assist — Configuration

Centralizes all settings: database URL, identity verification, AI workflow
credentials, document storage, HTTP security, and server options.
Uses pydantic-settings so values can be overridden with environment
variables or a .env file.
"""

from pathlib import Path

from cryptography.fernet import Fernet
from pydantic_settings import BaseSettings


# ── Paths ────────────────────────────────────────────────────────────
BASE_DIR = Path(__file__).resolve().parent
DATA_DIR = BASE_DIR / "data"
DOCUMENTS_DIR = DATA_DIR / "documents"


class Settings(BaseSettings):
    """Runtime settings — override via env vars or .env file."""

    # ── Relational store ─────────────────────────────────────────────
    database_url: str = "sqlite:///./claim_assist.db"
    database_echo: bool = False

    # ── Identity verification ────────────────────────────────────────
    # Shared secret of the auth provider that issues user access tokens.
    jwt_secret_key: str = Fernet.generate_key().decode()
    jwt_algorithm: str = "HS256"
    jwt_audience: str = "authenticated"
    jwt_issuer: str = ""                 # empty = issuer not checked
    jwt_access_token_ttl: int = 3600     # only used for locally minted tokens

    # ── AI workflow service ──────────────────────────────────────────
    ai_provider: str = "workflow"        # "workflow" or "anthropic"
    workflow_api_url: str = "https://v1.mindstudio-api.com/developer/v2/apps/run"
    workflow_api_key: str = ""
    interview_workflow_id: str = ""
    suggestion_workflow_id: str = ""
    generator_timeout_seconds: float = 20.0

    # ── Anthropic / Claude (ai_provider="anthropic") ─────────────────
    anthropic_api_key: str = ""
    claude_model: str = "claude-sonnet-4-20250514"
    claude_max_tokens: int = 1024
    claude_temperature: float = 0.3

    # ── Documents ────────────────────────────────────────────────────
    storage_dir: str = str(DOCUMENTS_DIR)
    # Fernet key for encrypting document blobs at rest.
    # Generate with:
    # python -c "from cryptography.fernet import Fernet; \
    #   print(Fernet.generate_key().decode())"
    encryption_key: str = Fernet.generate_key().decode()
    max_upload_size_mb: int = 10

    # ── Security / CORS ──────────────────────────────────────────────
    allowed_origins: list[str] = ["http://localhost:3000"]
    rate_limit_max_requests: int = 60    # per window per IP
    rate_limit_window_seconds: int = 60
    enable_hsts: bool = False            # enable in production behind HTTPS

    # ── Server ───────────────────────────────────────────────────────
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"

    model_config = {
        "env_file": str(BASE_DIR.parent / ".env"),
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


settings = Settings()
