from typing import Optional
from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # pydantic-settings v2 config (ignore unknown keys left over in .env)
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Deepgram
    deepgram_api_key: Optional[str] = None
    deepgram_base_url: str = "https://api.deepgram.com/v1/speak"
    tts_max_chars: int = 2000
    tts_timeout_seconds: float = 60.0

    # Lexicon (published Google Sheet CSV or any CSV URL)
    lexicon_csv_url: Optional[str] = None
    lexicon_ttl_seconds: float = 300.0
    lexicon_retry_seconds: float = 30.0

    # Application
    host: str = "0.0.0.0"
    port: int = 8787
    log_level: str = "INFO"
    log_dir: str = "logs"
    environment: str = "development"
    allowed_origin: str = ""  # blank allows every origin

    # Synthesis defaults
    default_model: str = "aura-2-thalia-en"
    default_container: str = "wav"
    default_encoding: str = "linear16"
    default_sample_rate: int = 48000
    default_bit_rate: int = 128000

    # Pause tags
    long_pause_dots: int = 6
    use_silent_pause: bool = False

    # Batch processing
    chunk_concurrency: int = 1
    script_concurrency: int = 4
    max_upload_bytes: int = 5 * 1024 * 1024
    max_upload_files: int = 50


settings = Settings()
