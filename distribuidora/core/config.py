# distribuidora/core/config.py

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from functools import lru_cache
from typing import Literal
from loguru import logger
from pathlib import Path


def find_dotenv_path(filename: str = '.env', usecwd: bool = False) -> str | None:
    """Procura o arquivo .env subindo a partir deste módulo (ou do CWD)."""
    start_dir = Path.cwd() if usecwd else Path(__file__).resolve().parent
    current_dir = start_dir
    for _ in range(10):
        env_path = current_dir / filename
        if env_path.is_file():
            logger.debug(f"Found {filename} file at: {env_path}")
            return str(env_path)
        parent_dir = current_dir.parent
        if parent_dir == current_dir:
            break
        current_dir = parent_dir
    if not usecwd:
        env_path_cwd = Path.cwd() / filename
        if env_path_cwd.is_file():
            logger.debug(f"Found {filename} file at CWD: {env_path_cwd}")
            return str(env_path_cwd)
    return None


def _env_files() -> tuple[str, ...] | None:
    # .env.local vem por último para poder sobrescrever o .env
    found = tuple(p for p in (find_dotenv_path('.env'), find_dotenv_path('.env.local')) if p)
    return found or None


class Settings(BaseSettings):
    PROJECT_NAME: str = "Distribuidora Back-office"
    API_V1_STR: str = "/api/v1"
    LOG_LEVEL: str = "INFO"
    FRONTEND_ORIGIN: str = "http://localhost:3000"

    # Database
    MONGODB_URI: str = "mongodb://localhost:27017/distribuidora"

    # Security (chave estática enviada no header X-API-Key)
    API_KEY: str | None = None

    # Telefones sem DDI recebem este prefixo
    DEFAULT_COUNTRY_PREFIX: str = Field(default="55", pattern=r"^\d+$")

    # WhatsApp session (bridge WhatsApp Web)
    WHATSAPP_ENABLED: bool = True
    WHATSAPP_BRIDGE_URL: str = "ws://localhost:8765"
    WHATSAPP_AUTH_DIR: str = "whatsapp_auth"
    WHATSAPP_CREDENTIALS_BACKEND: Literal["file", "mongo"] = "file"
    WHATSAPP_RECONNECT_BASE_DELAY: float = Field(default=1.0, ge=0)
    WHATSAPP_RECONNECT_MAX_DELAY: float = Field(default=30.0, ge=0)
    WHATSAPP_MAX_RECONNECT_ATTEMPTS: int | None = Field(default=None, ge=1)
    WHATSAPP_SEND_TIMEOUT: float = Field(default=25.0, gt=0)
    WHATSAPP_SEND_CHANNEL: Literal["session", "zapi"] = "session"

    # Z-API (envio HTTP alternativo; credenciais ficam na config do banco)
    ZAPI_BASE_URL: str = "https://api.z-api.io"

    model_config = SettingsConfigDict(
        env_file=_env_files(),
        env_file_encoding='utf-8',
        extra='ignore',
        case_sensitive=False,
    )


@lru_cache()
def get_settings() -> Settings:
    """Carrega e valida as configurações da aplicação."""
    logger.info("Loading application settings...")
    env_files_found = _env_files()
    if env_files_found:
        logger.info(f"Loading environment variables from: {', '.join(env_files_found)}")
    else:
        logger.warning("No .env file found. Loading settings from system environment variables only.")

    try:
        settings_instance = Settings()
    except ValueError as val_err:
        logger.critical(f"CRITICAL ERROR in settings validation: {val_err}")
        raise SystemExit(f"Settings validation failed: {val_err}")

    if not settings_instance.API_KEY:
        logger.warning("API_KEY not set. Business endpoints are NOT protected (development mode).")
    if settings_instance.WHATSAPP_RECONNECT_MAX_DELAY < settings_instance.WHATSAPP_RECONNECT_BASE_DELAY:
        logger.warning("WHATSAPP_RECONNECT_MAX_DELAY is lower than the base delay; base delay will be used as cap.")

    logger.info("Settings loaded and validated successfully.")
    return settings_instance


settings = get_settings()
