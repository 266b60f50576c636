# calculator_api/config.py

import os
import re
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import load_dotenv

# Name of the collection holding every calculation record
COLLECTION_NAME = "calculations"

DEFAULT_DB_NAME = "calculator"
DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8080

_CREDENTIALS = re.compile(r"//[^:/@]+:[^@]+@")


class ConfigurationError(RuntimeError):
    """Raised when a required setting is missing or malformed."""


@dataclass(frozen=True)
class Settings:
    """
    Runtime configuration for the calculator service.
    Values come from the process environment, with a .env file loaded first.
    """
    mongodb_uri: str
    mongodb_db: str = DEFAULT_DB_NAME
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """
        Builds settings from the given mapping, or from os.environ after
        loading .env when no mapping is passed.
        """
        if environ is None:
            load_dotenv()
            environ = os.environ

        mongodb_uri = environ.get("MONGODB_URI")
        if not mongodb_uri:
            raise ConfigurationError("MONGODB_URI is not set")

        raw_port = environ.get("PORT", str(DEFAULT_PORT))
        try:
            port = int(raw_port)
        except ValueError:
            raise ConfigurationError(f"PORT must be an integer, got {raw_port!r}") from None

        return cls(
            mongodb_uri=mongodb_uri,
            mongodb_db=environ.get("MONGODB_DB") or DEFAULT_DB_NAME,
            host=environ.get("HOST") or DEFAULT_HOST,
            port=port,
            log_level=(environ.get("LOG_LEVEL") or "INFO").upper(),
        )

    def redacted_uri(self) -> str:
        """The connection string with any user:password@ part masked."""
        return _CREDENTIALS.sub("//<credentials>@", self.mongodb_uri)
