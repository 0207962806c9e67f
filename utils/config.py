"""
Configuration management.
"""

import os
from dataclasses import dataclass, field


@dataclass
class Config:
    """
    Application configuration.

    Loads from environment variables with sensible defaults.
    """

    # Server
    host: str = field(default_factory=lambda: os.getenv("HOST", "127.0.0.1"))
    port: int = field(default_factory=lambda: int(os.getenv("PORT", "8000")))
    debug: bool = field(default_factory=lambda: os.getenv("DEBUG", "false").lower() == "true")
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper())

    # Extraction service
    extraction_api_base_url: str = field(
        default_factory=lambda: os.getenv("EXTRACTION_API_BASE_URL", "http://127.0.0.1:8080")
    )
    request_timeout: int = field(default_factory=lambda: int(os.getenv("REQUEST_TIMEOUT", "30")))

    # Error monitoring
    error_history_size: int = field(
        default_factory=lambda: int(os.getenv("ERROR_HISTORY_SIZE", "50"))
    )

    @classmethod
    def load(cls) -> "Config":
        """Load configuration from environment."""
        return cls()

    def to_dict(self) -> dict:
        """Convert config to dictionary."""
        return {
            "host": self.host,
            "port": self.port,
            "debug": self.debug,
            "log_level": self.log_level,
            "extraction_api_base_url": self.extraction_api_base_url,
            "request_timeout": self.request_timeout,
            "error_history_size": self.error_history_size,
        }
