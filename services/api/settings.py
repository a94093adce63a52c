# services/api/settings.py
from pydantic_settings import BaseSettings
from pydantic import ConfigDict, Field
from typing import List, Optional
from pathlib import Path

class Settings(BaseSettings):
    # Storage settings
    # "sqlite" (default) or "json"; override via .env (STORAGE_BACKEND=json)
    storage_backend: str = "sqlite"
    db_url: str = "sqlite:///data/signatures.db"
    # Used by the json backend
    data_dir: str = "data"

    # Where baked PDFs are written and served from (/signed-pdfs/<file>)
    signed_pdf_dir: str = "signed-pdfs"

    # Fallback lookup when a request carries neither pdfBase64 nor pdfUrl:
    # <sample_pdf_dir>/<pdfId>.pdf
    sample_pdf_dir: str = "sample-pdfs"

    # Optional: public origin used to build signedPdfUrl behind a proxy.
    # Example: PUBLIC_BASE_URL=https://sign.example.com
    public_base_url: Optional[str] = Field(
        default=None,
        description="Overrides the request base URL when building signedPdfUrl",
    )

    # CORS settings
    allowed_origins: str = "http://localhost:3000,http://localhost:3001"

    # Remote PDF fetch (pdfUrl)
    pdf_fetch_timeout: float = 30.0

    # Max number of /sign-pdf bakes running in parallel per instance.
    # 1 = strictly serialize them (one document, one writer).
    max_parallel_signings: int = 1

    # Seconds that GET /audit/{pdfId} results stay cached
    audit_cache_ttl: int = 5

    # How an unchecked checkbox is drawn: "none" (border only) or "cross"
    checkbox_unchecked_style: str = "none"

    # Upper bound for /pages/render scale (1.0 = 72 DPI)
    preview_max_scale: float = 4.0

    model_config = ConfigDict(
        # Always load .env from the same folder as this settings.py
        env_file=str(Path(__file__).resolve().parent / ".env"),
        extra="ignore",
    )

    def get_origins_list(self) -> List[str]:
        """Parse comma-separated origins into a list."""
        if not self.allowed_origins:
            return ["*"]
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]


_settings_instance = None

def get_settings() -> Settings:
    """Singleton pattern for settings."""
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance
