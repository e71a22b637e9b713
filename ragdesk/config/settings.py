"""Application settings loaded once at startup via pydantic-settings.

# ─── HOW SETTINGS WORK ────────────────────────────────────────────────
#
# Settings are read from these sources (highest priority first):
#
#   1. Keyword arguments    - Settings(groq_model="...") in tests / CLI
#   2. Environment vars     - e.g. GROQ_API_KEY=gsk_abc123
#   3. .env file            - local developer overrides (not committed)
#   4. config/config.yaml   - non-secret defaults checked into the repo
#
# Field name `internal_topk` maps to env var `INTERNAL_TOPK`
# (pydantic-settings matches case-insensitively).
#
# The Settings object is built once in main.py / the CLI and handed to
# every provider and service constructor.  Nothing else reads os.environ.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from pydantic import field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

_TOPK_MIN = 1
_TOPK_MAX = 10


class Settings(BaseSettings):
    """ragdesk application settings.

    Environment variables override YAML defaults. Loaded from .env when present.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        yaml_file="config/config.yaml",
        extra="ignore",
    )

    # === App Config ===
    app_name: str = "ragdesk"
    app_version: str = "0.1.0"
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_env: str = "development"
    log_level: str = "INFO"
    cors_allowed_origins: list[str] = ["*"]
    http_timeout_seconds: float = 30.0
    chat_timeout_seconds: float = 60.0

    # === Chat policy ===
    assistant_name: str = "RagDesk"
    data_boundary_default: str = "Public"
    internal_topk: int = 2
    web_topk: int = 3
    # Evidence assessment threshold: best internal score below this is "weak".
    search_min_score: float = 0.01

    # === Retrieval (document index) ===
    retrieval_mode: str = "azureaisearch"  # azureaisearch | chromadb | off
    retrieval_query_mode: str = "hybrid"  # keyword | vector | hybrid
    search_endpoint: str = ""
    search_index: str = ""
    search_api_key: str = ""
    search_admin_key: str = ""
    search_api_version: str = "2024-07-01"
    search_vector_field: str = "contentVector"
    search_field_classification: str = "classification"
    search_filter_template: str = ""
    search_select: str = "id,content,source,path,chunkid,page,createdUtc"
    # Index hits scoring below this are dropped before they become evidence.
    search_hit_min_score: float = 0.0
    chromadb_persist_dir: str = "./data/chromadb"
    chromadb_collection: str = "ragdesk_chunks"

    # === Web search ===
    websearch_mode: str = "off"  # off | tavily | duckduckgo
    tavily_api_key: str = ""
    tavily_base_url: str = "https://api.tavily.com"
    websearch_confirm_secret: str = ""
    websearch_confirm_ttl_seconds: int = 300

    # === LLM (OpenAI-compatible chat completions, Groq by default) ===
    groq_api_key: str = ""
    groq_model: str = "llama-3.3-70b-versatile"
    groq_base_url: str = "https://api.groq.com/openai/v1"
    llm_temperature: float = 0.2
    llm_max_tokens: int = 500

    # === Embeddings ===
    openai_api_key: str = ""
    openai_base_url: str = ""
    openai_embed_model: str = "text-embedding-3-small"
    embedding_dimension: int = 1536
    embed_max_attempts: int = 6
    embed_max_backoff_seconds: float = 30.0

    # === PDF analysis ===
    docintel_endpoint: str = ""
    docintel_api_key: str = ""
    docintel_api_version: str = "2023-07-31"
    docintel_model: str = "prebuilt-read"
    docintel_poll_attempts: int = 30
    docintel_poll_interval_seconds: float = 1.0

    # === Ingestion ===
    ingest_source: str = "local"  # local | azureblob
    ingest_local_root: str = "./data/documents"
    blob_container_url: str = ""  # container URL including a SAS query string
    chunk_size: int = 1200
    chunk_overlap: int = 150
    ingest_batch_size: int = 16
    ingest_default_max_files: int = 20
    ingest_max_files_limit: int = 200

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlConfigSettingsSource(settings_cls),
            file_secret_settings,
        )

    @field_validator("internal_topk", "web_topk")
    @classmethod
    def _clamp_topk(cls, value: int) -> int:
        return max(_TOPK_MIN, min(_TOPK_MAX, value))

    # ------------------------------------------------------------------
    # Derived flags
    # ------------------------------------------------------------------

    def is_llm_configured(self) -> bool:
        return bool(self.groq_api_key.strip())

    def llm_mode(self) -> str:
        """Label reported in chat responses under ``mode.llm``."""
        return "groq" if self.is_llm_configured() else "stub"
