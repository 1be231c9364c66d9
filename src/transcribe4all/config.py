"""Runtime configuration for the transcription service."""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any


@dataclass(slots=True)
class EmailSettings:
    """Outgoing mail settings."""

    username: str = ""
    password: str = ""
    host: str = "smtp.gmail.com"
    port: int = 587
    use_tls: bool = True
    sender: str | None = None

    @property
    def from_address(self) -> str:
        return self.sender or self.username


@dataclass(slots=True)
class TranscriptionSettings:
    """Audio download, conversion and chunking settings."""

    services: tuple[str, ...] = ()
    work_dir: Path = Path(".transcribe4all")
    ffmpeg_binary: str = "ffmpeg"
    chunk_split_bytes: int = 95_000_000
    chunk_length_seconds: int = 2968
    chunk_overlap_seconds: int = 5
    download_timeout_seconds: float = 60.0
    download_max_retries: int = 3
    keep_work_files: bool = False


@dataclass(slots=True)
class ServerSettings:
    """HTTP server settings."""

    host: str = "127.0.0.1"
    port: int = 8080
    debug: bool = False


@dataclass(slots=True)
class Settings:
    """Application settings grouped by concern."""

    email: EmailSettings = field(default_factory=EmailSettings)
    transcription: TranscriptionSettings = field(default_factory=TranscriptionSettings)
    server: ServerSettings = field(default_factory=ServerSettings)

    @classmethod
    def from_env(cls) -> Settings:
        """Load settings from environment with defaults for local development."""

        return cls(
            email=EmailSettings(
                username=os.getenv("TRANSCRIBE4ALL_EMAIL_USERNAME", ""),
                password=os.getenv("TRANSCRIBE4ALL_EMAIL_PASSWORD", ""),
                host=os.getenv("TRANSCRIBE4ALL_EMAIL_HOST", "smtp.gmail.com"),
                port=int(os.getenv("TRANSCRIBE4ALL_EMAIL_PORT", "587")),
                use_tls=_env_bool("TRANSCRIBE4ALL_EMAIL_USE_TLS", default=True),
                sender=os.getenv("TRANSCRIBE4ALL_EMAIL_SENDER") or None,
            ),
            transcription=TranscriptionSettings(
                services=_split_csv(os.getenv("TRANSCRIBE4ALL_TRANSCRIPTION_SERVICES", "")),
                work_dir=Path(os.getenv("TRANSCRIBE4ALL_WORK_DIR", ".transcribe4all")),
                ffmpeg_binary=os.getenv("TRANSCRIBE4ALL_FFMPEG_BINARY", "ffmpeg"),
                chunk_split_bytes=int(
                    os.getenv("TRANSCRIBE4ALL_CHUNK_SPLIT_BYTES", "95000000"),
                ),
                chunk_length_seconds=int(
                    os.getenv("TRANSCRIBE4ALL_CHUNK_LENGTH_SECONDS", "2968"),
                ),
                chunk_overlap_seconds=int(
                    os.getenv("TRANSCRIBE4ALL_CHUNK_OVERLAP_SECONDS", "5"),
                ),
                download_timeout_seconds=float(
                    os.getenv("TRANSCRIBE4ALL_DOWNLOAD_TIMEOUT_SECONDS", "60.0"),
                ),
                download_max_retries=int(
                    os.getenv("TRANSCRIBE4ALL_DOWNLOAD_MAX_RETRIES", "3"),
                ),
                keep_work_files=_env_bool("TRANSCRIBE4ALL_KEEP_WORK_FILES", default=False),
            ),
            server=ServerSettings(
                host=os.getenv("TRANSCRIBE4ALL_HOST", "127.0.0.1"),
                port=int(os.getenv("TRANSCRIBE4ALL_PORT", "8080")),
                debug=_env_bool("TRANSCRIBE4ALL_DEBUG", default=False),
            ),
        )

    @classmethod
    def from_toml(cls, path: Path) -> Settings:
        """Load settings from a TOML file.

        Accepts the flat legacy keys (``EmailUsername``, ``EmailPassword``,
        ``TranscriptionServices``) as well as ``[email]``, ``[transcription]``
        and ``[server]`` tables. Table values win over legacy keys.
        """

        with path.open("rb") as handle:
            try:
                data = tomllib.load(handle)
            except tomllib.TOMLDecodeError as error:
                raise ValueError(f"Invalid config file {path}: {error}") from error

        email_table = _table(data, "email")
        transcription_table = _table(data, "transcription")
        server_table = _table(data, "server")

        defaults = TranscriptionSettings()
        email_defaults = EmailSettings()
        server_defaults = ServerSettings()
        services = transcription_table.get("services", data.get("TranscriptionServices", []))
        if not isinstance(services, list) or not all(isinstance(item, str) for item in services):
            raise ValueError("TranscriptionServices must be a list of strings.")

        return cls(
            email=EmailSettings(
                username=str(email_table.get("username", data.get("EmailUsername", ""))),
                password=str(email_table.get("password", data.get("EmailPassword", ""))),
                host=str(email_table.get("host", email_defaults.host)),
                port=int(email_table.get("port", email_defaults.port)),
                use_tls=bool(email_table.get("use_tls", True)),
                sender=email_table.get("sender") or None,
            ),
            transcription=TranscriptionSettings(
                services=tuple(services),
                work_dir=Path(transcription_table.get("work_dir", defaults.work_dir)),
                ffmpeg_binary=str(
                    transcription_table.get("ffmpeg_binary", defaults.ffmpeg_binary),
                ),
                chunk_split_bytes=int(
                    transcription_table.get("chunk_split_bytes", defaults.chunk_split_bytes),
                ),
                chunk_length_seconds=int(
                    transcription_table.get("chunk_length_seconds", defaults.chunk_length_seconds),
                ),
                chunk_overlap_seconds=int(
                    transcription_table.get(
                        "chunk_overlap_seconds",
                        defaults.chunk_overlap_seconds,
                    ),
                ),
                download_timeout_seconds=float(
                    transcription_table.get(
                        "download_timeout_seconds",
                        defaults.download_timeout_seconds,
                    ),
                ),
                download_max_retries=int(
                    transcription_table.get(
                        "download_max_retries",
                        defaults.download_max_retries,
                    ),
                ),
                keep_work_files=bool(
                    transcription_table.get("keep_work_files", defaults.keep_work_files),
                ),
            ),
            server=ServerSettings(
                host=str(server_table.get("host", server_defaults.host)),
                port=int(server_table.get("port", server_defaults.port)),
                debug=bool(server_table.get("debug", data.get("Debug", False))),
            ),
        )

    @classmethod
    def load(cls, config_path: Path | None = None) -> Settings:
        """Load from ``config_path`` when given, otherwise from environment."""

        settings = cls.from_toml(config_path) if config_path is not None else cls.from_env()
        settings.validate()
        return settings

    def validate(self) -> None:
        """Raise configuration error on out-of-range values."""

        if not self.server.host.strip():
            raise ValueError("TRANSCRIBE4ALL_HOST must not be empty.")
        if not 0 < self.server.port < 65_536:
            raise ValueError("TRANSCRIBE4ALL_PORT must be between 1 and 65535.")
        if not 0 < self.email.port < 65_536:
            raise ValueError("TRANSCRIBE4ALL_EMAIL_PORT must be between 1 and 65535.")

        transcription = self.transcription
        if transcription.chunk_split_bytes <= 0:
            raise ValueError("TRANSCRIBE4ALL_CHUNK_SPLIT_BYTES must be > 0.")
        if transcription.chunk_length_seconds <= 0:
            raise ValueError("TRANSCRIBE4ALL_CHUNK_LENGTH_SECONDS must be > 0.")
        if not 0 <= transcription.chunk_overlap_seconds < transcription.chunk_length_seconds:
            raise ValueError(
                "TRANSCRIBE4ALL_CHUNK_OVERLAP_SECONDS must be >= 0 and "
                "smaller than the chunk length.",
            )
        if transcription.download_timeout_seconds <= 0:
            raise ValueError("TRANSCRIBE4ALL_DOWNLOAD_TIMEOUT_SECONDS must be > 0.")
        if transcription.download_max_retries < 0:
            raise ValueError("TRANSCRIBE4ALL_DOWNLOAD_MAX_RETRIES must be >= 0.")


def _table(data: dict[str, Any], name: str) -> dict[str, Any]:
    value = data.get(name, {})
    if not isinstance(value, dict):
        raise ValueError(f"Config section [{name}] must be a table.")
    return value


def _split_csv(raw: str) -> tuple[str, ...]:
    return tuple(part.strip() for part in raw.split(",") if part.strip())


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    raise ValueError(f"Invalid boolean value for {name}: {value!r}")
