# gpdb/core/config.py
# Configuration settings for gpdb, loaded from GPDB_* environment variables
# and an optional .gpdb.env file.

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_FILE_NAME = ".gpdb.env"


def find_env_file(start_dir: Optional[Path] = None) -> Optional[Path]:
    """
    Looks for a .gpdb.env file in start_dir and each of its parents, then
    falls back to ~/.gpdb.env. Returns None when no file exists.
    """
    directory = Path(start_dir or Path.cwd()).expanduser().resolve()
    for candidate_dir in (directory, *directory.parents):
        candidate = candidate_dir / ENV_FILE_NAME
        if candidate.is_file():
            return candidate

    home_candidate = Path.home() / ENV_FILE_NAME
    return home_candidate if home_candidate.is_file() else None


class Settings(BaseSettings):
    """
    The Settings class holds the configuration of a gpdb session.
    Every field can be set through an environment variable with the GPDB_
    prefix (e.g. GPDB_LLM_PROVIDER) or through the .gpdb.env file.
    Attributes:
        LLM_PROVIDER (str): The name of the endpoint to use (OPENAI, DEEPSEEK,
            GEMINI, CLAUDE or OLLAMA).
        <NAME>_API_KEY (str): API key for the endpoint.
        <NAME>_MODEL (str): Model name for the endpoint.
        <NAME>_BASE_URL (str): Base URL of the OpenAI-compatible API.
        REQUEST_TIMEOUT (float): Network timeout of a single request, in seconds.
        DEBUG (bool): Log provider responses and tool traces.
        CUSTOM_PROMPT (str): Extra instructions appended to every system prompt.
        SESSION_ID (str): Enables persistence of the conversation under this id.
        SESSION_BACKEND (str): "file" or "redis".
        SESSIONS_DIR (str): Directory for session files.
        REDIS_URL (str): Redis connection URL for the redis backend.
        SESSION_TTL (int): Expiry of a Redis session key, in seconds.
        SUMMARIZE_ON_INTERRUPT (bool): Ask the model for a short summary after Ctrl-C.
        SHOW_TOOL_CALLS (bool): Print a "[gpdb] Tool: ..." line for every tool call.
    """
    model_config = SettingsConfigDict(
        env_prefix="GPDB_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # LLM Provider Switch
    LLM_PROVIDER: str = "OPENAI"

    # OPENAI
    OPENAI_API_KEY: Optional[str] = None
    OPENAI_MODEL: str = "gpt-4o-mini"
    OPENAI_BASE_URL: Optional[str] = None

    # DEEPSEEK
    DEEPSEEK_API_KEY: Optional[str] = None
    DEEPSEEK_MODEL: str = "deepseek-chat"
    DEEPSEEK_BASE_URL: str = "https://api.deepseek.com"

    # GEMINI
    GEMINI_API_KEY: Optional[str] = None
    GEMINI_MODEL: str = "gemini-2.5-flash"
    GEMINI_BASE_URL: str = "https://generativelanguage.googleapis.com/v1beta/openai/"

    # CLAUDE
    CLAUDE_API_KEY: Optional[str] = None
    CLAUDE_MODEL: str = "claude-sonnet-4-5"
    CLAUDE_BASE_URL: str = "https://api.anthropic.com/v1/"

    # OLLAMA (local, key is not checked by the server)
    OLLAMA_API_KEY: Optional[str] = None
    OLLAMA_MODEL: str = "llama3.1"
    OLLAMA_BASE_URL: str = "http://localhost:11434/v1"

    REQUEST_TIMEOUT: float = 120.0
    DEBUG: bool = False
    CUSTOM_PROMPT: Optional[str] = None

    # SESSIONS
    SESSION_ID: Optional[str] = None
    SESSION_BACKEND: Literal["file", "redis"] = "file"
    SESSIONS_DIR: Optional[str] = None
    REDIS_URL: Optional[str] = None
    SESSION_TTL: int = 86400

    SUMMARIZE_ON_INTERRUPT: bool = True
    SHOW_TOOL_CALLS: bool = True

    @property
    def persistence_enabled(self) -> bool:
        return bool(self.SESSION_ID)


# lru_cache to cache the settings instance.
@lru_cache
def get_settings() -> Settings:
    return Settings(_env_file=find_env_file())
