"""Configuration system for callpipe.

Supports loading from YAML files, dicts, the process environment (``.env``),
or programmatic construction via Pydantic models. The config drives provider
selection, the audio conversion step and the server's listen settings.
"""

from __future__ import annotations

import os
import re
from enum import Enum
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from callpipe.errors import ConfigError


class ServerConfig(BaseModel):
    """HTTP + WebSocket listener configuration."""

    listen_host: str = "0.0.0.0"
    listen_port: int = 3000
    listen_path: str = "/media"
    # Externally reachable base URL, e.g. https://abcd.ngrok-free.app
    public_base_url: str = ""

    @property
    def stream_url(self) -> str:
        """WebSocket URL Twilio should stream call audio to."""
        base = self.public_base_url.rstrip("/")
        if base.startswith("https://"):
            base = "wss://" + base[len("https://"):]
        elif base.startswith("http://"):
            base = "ws://" + base[len("http://"):]
        return f"{base}{self.listen_path}"

    @property
    def voice_url(self) -> str:
        """TwiML webhook URL for outbound calls."""
        return f"{self.public_base_url.rstrip('/')}/voice"


class TwilioConfig(BaseModel):
    """Twilio credentials and addressing for calls and WhatsApp."""

    account_sid: str = ""
    auth_token: str = ""
    # Voice: call is placed from from_number to to_number
    from_number: str = ""
    to_number: str = ""
    # WhatsApp: notifications go from whatsapp_from to whatsapp_to
    whatsapp_from: str = ""
    whatsapp_to: str = ""


class OpenAIConfig(BaseModel):
    """OpenAI speech-to-text and chat settings."""

    api_key: str = ""
    base_url: str | None = None
    stt_model: str = "gpt-4o-mini-transcribe"
    llm_model: str = "gpt-4.1-mini"
    max_retries: int = 2


class AudioConfig(BaseModel):
    """Offline conversion of buffered call audio to WAV."""

    ffmpeg_path: str = "ffmpeg"
    input_format: str = "mulaw"
    sample_rate: int = 8000
    channels: int = 1
    max_duration_seconds: int = 60
    # Where per-call temporary artifacts are written
    work_dir: str = "."


class EmptyTranscriptPolicy(str, Enum):
    """What the result cache records when no speech was detected."""

    TRANSCRIPT_ONLY = "transcript_only"
    FALLBACK_TEXT = "fallback_text"
    UNTOUCHED = "untouched"


class PipelineSettings(BaseModel):
    """Pipeline behaviour and collaborator selection."""

    prompt_profile: str = "sehat-assist-v1"
    summary_char_budget: int = 120
    empty_transcript_policy: EmptyTranscriptPolicy = EmptyTranscriptPolicy.TRANSCRIPT_ONLY
    stt_provider: str = "openai"
    llm_provider: str = "openai"
    notifier_provider: str = "twilio_whatsapp"
    telephony_provider: str = "twilio"


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"


class AppConfig(BaseModel):
    """Top-level callpipe configuration.

    Examples:
        # Programmatic
        config = AppConfig(server=ServerConfig(listen_port=8080))

        # From YAML
        config = AppConfig.from_yaml("callpipe.yaml")

        # Shorthand
        config = AppConfig.from_dict({"port": 8080, "log_level": "DEBUG"})

        # From environment / .env
        config = AppConfig.from_env()
    """

    server: ServerConfig = Field(default_factory=ServerConfig)
    twilio: TwilioConfig = Field(default_factory=TwilioConfig)
    openai: OpenAIConfig = Field(default_factory=OpenAIConfig)
    audio: AudioConfig = Field(default_factory=AudioConfig)
    pipeline: PipelineSettings = Field(default_factory=PipelineSettings)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def from_yaml(cls, path: str | Path) -> AppConfig:
        """Load configuration from a YAML file.

        ``${VAR}`` placeholders are expanded from the environment.
        """
        path = Path(path)
        with path.open() as f:
            data = yaml.safe_load(_expand_env(f.read())) or {}
        return cls._from_raw(data)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AppConfig:
        """Load configuration from a dictionary.

        Supports both the full nested format and a flat shorthand format:

        Full format:
            {"server": {"listen_port": 3000}, "logging": {"level": "DEBUG"}}

        Shorthand format:
            {"port": 3000, "log_level": "DEBUG"}
        """
        return cls._from_raw(dict(data))

    @classmethod
    def from_env(cls, env_file: str | None = ".env") -> AppConfig:
        """Build configuration from environment variables (and ``.env``)."""
        env = EnvSettings(_env_file=env_file)
        return cls._from_raw(env.as_config_dict())

    @classmethod
    def _from_raw(cls, data: dict[str, Any]) -> AppConfig:
        """Normalize and construct config from a raw dict."""
        flat_mappings = {
            "host": ("server", "listen_host"),
            "port": ("server", "listen_port"),
            "listen_path": ("server", "listen_path"),
            "public_base_url": ("server", "public_base_url"),
            "openai_api_key": ("openai", "api_key"),
            "prompt_profile": ("pipeline", "prompt_profile"),
            "log_level": ("logging", "level"),
        }

        for flat_key, (section, nested_key) in flat_mappings.items():
            if flat_key in data:
                section_data = dict(data.get(section) or {})
                section_data[nested_key] = data.pop(flat_key)
                data[section] = section_data

        try:
            return cls(**data)
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration: {e}") from e


class EnvSettings(BaseSettings):
    """Environment variables understood by callpipe.

    Names follow the deployment's ``.env`` file, so existing setups keep
    working unchanged.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    openai_api_key: str = ""
    twilio_account_sid: str = ""
    twilio_auth_token: str = ""
    twilio_from_number: str = ""
    my_phone_number: str = ""
    twilio_whatsapp_from: str = ""
    my_whatsapp_number: str = ""
    ngrok_base_url: str = ""
    port: int = 3000
    log_level: str = "INFO"
    callpipe_work_dir: str = "."
    ffmpeg_path: str = "ffmpeg"

    def as_config_dict(self) -> dict[str, Any]:
        return {
            "server": {
                "listen_port": self.port,
                "public_base_url": self.ngrok_base_url,
            },
            "twilio": {
                "account_sid": self.twilio_account_sid,
                "auth_token": self.twilio_auth_token,
                "from_number": self.twilio_from_number,
                "to_number": self.my_phone_number,
                "whatsapp_from": self.twilio_whatsapp_from,
                "whatsapp_to": self.my_whatsapp_number,
            },
            "openai": {"api_key": self.openai_api_key},
            "audio": {
                "work_dir": self.callpipe_work_dir,
                "ffmpeg_path": self.ffmpeg_path,
            },
            "logging": {"level": self.log_level},
        }


_ENV_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")


def _expand_env(text: str) -> str:
    """Replace ``${VAR}`` with the environment value (empty if unset)."""
    return _ENV_PATTERN.sub(lambda m: os.environ.get(m.group(1), ""), text)


def load_config(source: str | Path | dict[str, Any] | AppConfig | None = None) -> AppConfig:
    """Load an AppConfig from any supported source.

    Args:
        source: A YAML file path (str/Path), a dict, an existing AppConfig,
            or None to read the environment.

    Returns:
        An AppConfig instance.
    """
    if source is None:
        return AppConfig.from_env()
    if isinstance(source, AppConfig):
        return source
    if isinstance(source, dict):
        return AppConfig.from_dict(source)
    if isinstance(source, (str, Path)):
        path = Path(source)
        if path.exists() and path.suffix in (".yaml", ".yml"):
            return AppConfig.from_yaml(path)
        raise FileNotFoundError(f"Config file not found: {path}")
    raise TypeError(f"Cannot load config from {type(source)}")


# Default YAML template for `callpipe init`
DEFAULT_CONFIG_YAML = """\
# callpipe configuration
# ${VAR} values are read from the environment at load time.

server:
  listen_host: 0.0.0.0
  listen_port: 3000
  listen_path: /media
  public_base_url: "${NGROK_BASE_URL}"     # e.g. https://abcd.ngrok-free.app

twilio:
  account_sid: "${TWILIO_ACCOUNT_SID}"
  auth_token: "${TWILIO_AUTH_TOKEN}"
  from_number: "${TWILIO_FROM_NUMBER}"
  to_number: "${MY_PHONE_NUMBER}"
  whatsapp_from: "${TWILIO_WHATSAPP_FROM}"
  whatsapp_to: "${MY_WHATSAPP_NUMBER}"

openai:
  api_key: "${OPENAI_API_KEY}"
  stt_model: gpt-4o-mini-transcribe
  llm_model: gpt-4.1-mini

audio:
  ffmpeg_path: ffmpeg
  input_format: mulaw
  sample_rate: 8000
  channels: 1
  max_duration_seconds: 60
  work_dir: .

pipeline:
  prompt_profile: sehat-assist-v1     # sehat-assist-v1 | plain-v1
  summary_char_budget: 120
  empty_transcript_policy: transcript_only   # transcript_only | fallback_text | untouched

logging:
  level: INFO
"""
