"""
Configuration for the PharmaRisk service.
Centralizes tunable parameters for file ingestion and the explanation collaborator.
"""

import os

from dotenv import load_dotenv, find_dotenv
from pydantic import BaseModel, Field

# Load .env file (walks up directories to find it)
load_dotenv(find_dotenv())


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.environ.get(name, default))
    except ValueError:
        return default


class UploadPolicyConfig(BaseModel):
    """File acceptance policy applied before parsing is attempted."""

    max_file_bytes: int = Field(
        default=5 * 1024 * 1024,
        gt=0,
        description="Largest accepted VCF upload in bytes (5 MiB)"
    )

    allowed_extension: str = Field(
        default=".vcf",
        description="Required filename suffix for uploads"
    )


class ExplanationConfig(BaseModel):
    """Configuration for the LLM explanation collaborator."""

    enabled: bool = Field(
        default_factory=lambda: _env_flag("PHARMARISK_EXPLAIN", True),
        description="Call the LLM at all; when False the templated explanation is used"
    )

    api_url: str = Field(
        default_factory=lambda: os.environ.get(
            "GROQ_API_URL", "https://api.groq.com/openai/v1/chat/completions"
        ),
        description="OpenAI-compatible chat completions endpoint"
    )

    model: str = Field(
        default_factory=lambda: os.environ.get("GROQ_MODEL", "llama-3.1-8b-instant"),
        description="Model name sent with each request"
    )

    api_key: str = Field(
        default_factory=lambda: os.environ.get("GROQ_API_KEY", ""),
        description="Bearer token for the completions endpoint"
    )

    timeout_seconds: float = Field(
        default_factory=lambda: _env_float("PHARMARISK_EXPLAIN_TIMEOUT", 20.0),
        gt=0.0,
        description="Caller-side timeout for one explanation"
    )

    max_tries: int = Field(
        default=2,
        ge=1,
        description="Attempts per request (transport errors and 5xx only)"
    )

    temperature: float = Field(default=0.1, ge=0.0, le=2.0)

    max_tokens: int = Field(default=400, gt=0)


class PharmaRiskConfig(BaseModel):
    """Main configuration for the PharmaRisk service."""

    upload: UploadPolicyConfig = Field(
        default_factory=UploadPolicyConfig,
        description="Upload acceptance policy"
    )

    explanation: ExplanationConfig = Field(
        default_factory=ExplanationConfig,
        description="Explanation collaborator configuration"
    )

    log_level: str = Field(
        default_factory=lambda: os.environ.get("PHARMARISK_LOG_LEVEL", "INFO"),
        description="Root log level"
    )


# Global configuration instance
_config: PharmaRiskConfig = PharmaRiskConfig()


def get_config() -> PharmaRiskConfig:
    """Get the global configuration instance."""
    return _config


def update_config(**kwargs) -> PharmaRiskConfig:
    """Update configuration parameters."""
    global _config
    current_dict = _config.model_dump()

    for key, value in kwargs.items():
        if '.' in key:
            # Nested keys like 'explanation.timeout_seconds'
            parts = key.split('.')
            current = current_dict
            for part in parts[:-1]:
                current = current[part]
            current[parts[-1]] = value
        else:
            current_dict[key] = value

    _config = PharmaRiskConfig(**current_dict)
    return _config


def reset_config() -> PharmaRiskConfig:
    """Rebuild the configuration from defaults and the current environment."""
    global _config
    _config = PharmaRiskConfig()
    return _config


# Convenience accessors
def get_upload_policy() -> UploadPolicyConfig:
    return _config.upload


def get_explanation_config() -> ExplanationConfig:
    return _config.explanation
