"""
Configuration for field-level encryption.

The master secret is read once from the environment and handed to
CryptoService explicitly; nothing in the crypto layer reads it globally.
"""

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

MIN_KDF_ITERATIONS = 1_000
MAX_KDF_ITERATIONS = 600_000


class CryptoSettings(BaseSettings):
    """Encryption configuration using Pydantic settings."""

    model_config = SettingsConfigDict(
        case_sensitive=False, extra="ignore", env_prefix="ENCRYPTION_"
    )

    key: SecretStr = Field(description="Master secret used to derive field keys")
    kdf_iterations: int = Field(
        default=100_000,
        ge=MIN_KDF_ITERATIONS,
        le=MAX_KDF_ITERATIONS,
        description="PBKDF2 iterations; bounded so a reveal stays well under a second",
    )


_crypto_settings: CryptoSettings | None = None


def get_crypto_settings() -> CryptoSettings:
    """
    Get the global crypto settings instance.

    Returns:
        CryptoSettings: The global settings instance
    """
    global _crypto_settings
    if _crypto_settings is None:
        _crypto_settings = CryptoSettings()
    return _crypto_settings


def set_crypto_settings(settings: CryptoSettings) -> None:
    """
    Set the global crypto settings instance.

    Useful for testing.

    Args:
        settings: The settings to set
    """
    global _crypto_settings
    _crypto_settings = settings
