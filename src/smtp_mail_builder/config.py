"""SMTP connection settings, read from arguments or from ``SMTP_*`` variables."""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import load_dotenv

DEFAULT_PORT = 587
DEFAULT_TIMEOUT = 60.0


@dataclass(frozen=True)
class SMTPSettings:
    host: str
    port: int = DEFAULT_PORT
    secure: bool = False  # SMTPS (implicit TLS), usually port 465
    user: Optional[str] = None
    password: Optional[str] = None
    timeout: float = DEFAULT_TIMEOUT
    default_sender: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.host:
            raise ValueError("SMTP host is required")
        if not 0 < self.port < 65536:
            raise ValueError(f"SMTP port out of range: {self.port}")
        if bool(self.user) != bool(self.password):
            raise ValueError("SMTP user and password must be given together")
        if self.timeout <= 0:
            raise ValueError("SMTP timeout must be positive")

    @property
    def start_tls(self) -> bool:
        # 587 -> STARTTLS, 465 -> implicit TLS
        return not self.secure

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "SMTPSettings":
        """Build settings from ``SMTP_HOST``, ``SMTP_PORT``, ``SMTP_SECURE``,
        ``SMTP_USER``, ``SMTP_PASS``, ``SMTP_TIMEOUT`` and ``SMTP_FROM``.

        When ``environ`` is omitted, a ``.env`` file in the working directory
        is loaded first and ``os.environ`` is used.
        """
        if environ is None:
            load_dotenv()
            environ = os.environ

        host = environ.get("SMTP_HOST")
        if not host:
            raise ValueError("SMTP_HOST is required")

        port_str = environ.get("SMTP_PORT", str(DEFAULT_PORT))
        try:
            port = int(port_str)
        except ValueError:
            port = DEFAULT_PORT

        timeout_str = environ.get("SMTP_TIMEOUT", str(DEFAULT_TIMEOUT))
        try:
            timeout = float(timeout_str)
        except ValueError:
            timeout = DEFAULT_TIMEOUT

        user = environ.get("SMTP_USER") or None
        return cls(
            host=host,
            port=port,
            secure=environ.get("SMTP_SECURE", "false").lower() == "true",
            user=user,
            password=environ.get("SMTP_PASS") or None,
            timeout=timeout,
            default_sender=environ.get("SMTP_FROM") or user,
        )
