"""
Configuration management for the Graph Batcher.

Supports configuration via environment variables and .env files.
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class GraphBatchConfig(BaseSettings):
    """
    Configuration settings for the Graph Batcher.

    All settings can be configured via environment variables with the GRAPHBATCH_ prefix.
    The configuration is treated as read-only once installed with set_config().
    """

    model_config = SettingsConfigDict(
        env_prefix="GRAPHBATCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
    )

    # Server endpoints
    graph_url: str = Field(
        default="https://graph.facebook.com",
        description="API root that receives batched requests"
    )
    graph_url_base: str = Field(
        default="https://graph.facebook.com/",
        description="Base URL prepended to graph paths for single requests"
    )
    rest_url_base: str = Field(
        default="https://api.facebook.com/method/",
        description="Base URL prepended to REST method names for single requests"
    )
    batched_rest_method_url_base: str = Field(
        default="method/",
        description="Relative base for REST method names inside a batch"
    )

    # Client identification
    sdk_marker: str = Field(
        default="python",
        description="Value of the sdk parameter added to every request"
    )
    user_agent: str = Field(
        default="GraphBatchPythonSDK",
        description="User-Agent header sent with every request"
    )

    # Wire format
    mime_boundary: str = Field(
        default="3i2ndDfv2rTHiSisAbouNdArYfORhtTPEefj3q2f",
        min_length=1,
        description="Multipart boundary token shared by all requests"
    )

    # Sessionless batches
    default_application_id: Optional[str] = Field(
        default=None,
        description="Application ID used for batches where no request has a session"
    )

    # Transport settings
    request_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Timeout applied by the default HTTP transport"
    )

    # Logging settings
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )
    log_json: bool = Field(
        default=False,
        description="Output logs in JSON format"
    )

    @property
    def multipart_content_type(self) -> str:
        """Content-Type header value for multipart bodies."""
        return f"multipart/form-data; boundary={self.mime_boundary}"


# Global config instance
_config: Optional[GraphBatchConfig] = None


def get_config() -> GraphBatchConfig:
    """Get or create the global configuration instance."""
    global _config
    if _config is None:
        _config = GraphBatchConfig()
    return _config


def set_config(config: GraphBatchConfig) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config


def get_default_application_id() -> Optional[str]:
    """Get the application ID used for sessionless batches."""
    return get_config().default_application_id


def set_default_application_id(application_id: Optional[str]) -> None:
    """
    Set the application ID used for sessionless batches.

    Intended to be called once at startup; the configuration is replaced
    rather than mutated so encoders holding the previous instance are unaffected.
    """
    set_config(get_config().model_copy(update={"default_application_id": application_id}))
