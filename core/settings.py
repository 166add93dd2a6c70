"""
Application settings and configuration.
"""
from pydantic_settings import BaseSettings
from pydantic import Field, ConfigDict
from typing import List
from dotenv import load_dotenv

# Load .env file explicitly
load_dotenv()

class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # ========== App Settings ==========
    APP_NAME: str = "WebCraft AI"
    APP_VERSION: str = "1.0.0"
    APP_DESCRIPTION: str = "Describe UI changes in plain language and get component code back"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 7860
    DEBUG: bool = False

    # ========== LLM Settings ==========
    LLM_PROVIDER: str = Field("openai", validation_alias="LLM_PROVIDER")
    MODEL_NAME: str | None = Field(None, validation_alias="MODEL_NAME")
    TEMPERATURE: float = 0.2
    ENV: str = Field("development", validation_alias="ENV")

    # Nebius LLM Configuration
    NEBIUS_API_KEY: str | None = Field(None, validation_alias="NEBIUS_API_KEY")
    NEBIUS_ENDPOINT: str | None = Field(None, validation_alias="NEBIUS_ENDPOINT")

    # SambaNova LLM Configuration
    SAMBANOVA_API_KEY: str | None = Field(None, validation_alias="SAMBANOVA_API_KEY")
    SAMBANOVA_ENDPOINT: str | None = Field(None, validation_alias="SAMBANOVA_ENDPOINT")

    # OpenAI LLM Configuration
    OPENAI_API_KEY: str | None = Field(None, validation_alias="OPENAI_API_KEY")
    # Gemini LLM Configuration
    GEMINI_API_KEY: str | None = Field(None, validation_alias="GEMINI_API_KEY")

    # ========== Upload & Archive Limits ==========
    MAX_UPLOAD_BYTES: int = 10 * 1024 * 1024
    MAX_ARCHIVE_UNCOMPRESSED_BYTES: int = 50 * 1024 * 1024
    MAX_SCREENSHOTS: int = 5

    # ========== Codebase Tree Reconstruction ==========
    # Generic folder names that often wrap an exported project
    WRAPPER_DIRECTORY_NAMES: List[str] = ["project", "app", "main", "source"]
    # Folder names added by export tools; stripped even for short paths
    ARCHIVE_EXPORT_WRAPPERS: List[str] = ["replit"]
    STRIP_COMMON_ROOT: bool = False
    DEFAULT_MODULE_EXTENSION: str = ".tsx"

    # ========== Store ==========
    SEED_SAMPLE_DATA: bool = True

    model_config = ConfigDict(
            env_file=".env",
            env_file_encoding="utf-8",
            case_sensitive=False,
            extra="ignore",
        )
# Create settings instance
settings = Settings()
