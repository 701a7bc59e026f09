"""Sourcebook configuration: loaded from environment variables."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {"env_prefix": "SOURCEBOOK_", "env_file": ".env", "extra": "ignore"}

    # Chat completion gateway (OpenAI-compatible)
    llm_api_url: str = "https://ai.gateway.lovable.dev/v1/chat/completions"
    llm_api_key: str = ""
    llm_model: str = "google/gemini-2.5-flash"
    llm_timeout: float = 120.0

    # Google OAuth / Drive
    google_client_id: str = ""
    google_client_secret: str = ""
    google_redirect_uri: str = "http://localhost:8000/api/drive/auth/callback"
    google_token_url: str = "https://oauth2.googleapis.com/token"
    google_auth_url: str = "https://accounts.google.com/o/oauth2/v2/auth"
    drive_api_url: str = "https://www.googleapis.com/drive/v3"

    # Blob storage
    storage_backend: str = "local"
    storage_root: str = "storage"
    storage_url: str = ""
    storage_key: str = ""
    storage_bucket: str = "sources"

    # Record store
    database_path: str = "sourcebook.db"

    # Owner of the Drive connection (single-user workspace)
    workspace_user: str = "default"

    # Document handling
    pdf_extractor: str = "heuristic"
    max_file_bytes: int = 5 * 1024 * 1024
    max_context_documents: int = 10
    max_document_chars: int = 8000
    max_note_chars: int = 200
    max_summary_chars: int = 30000
    http_timeout: float = 30.0

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    cors_origins: list[str] = ["http://localhost:5173"]
    log_level: str = "INFO"


settings = Settings()
