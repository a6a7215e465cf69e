"""Configuration for the WebAuthn proving service."""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from ``ZKWEBAUTHN_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="ZKWEBAUTHN_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Noir program directories (each holding Nargo.toml and target/<name>.json)
    registration_program_dir: Path = Field(
        default=Path("../noir_webauthn_registration"),
        description="Noir package of the registration circuit",
    )
    registration_circuit: str = Field(
        default="noir_webauthn_registration", description="Registration circuit name"
    )
    authentication_program_dir: Path = Field(
        default=Path("../noir_webauthn_authentication"),
        description="Noir package of the authentication circuit",
    )
    authentication_circuit: str = Field(
        default="noir_webauthn_authentication", description="Authentication circuit name"
    )

    # Toolchain
    nargo_binary: str = Field(default="nargo", description="Noir CLI used for witness generation")
    bb_binary: str = Field(default="bb", description="Barretenberg CLI used for proving")
    threads: int = Field(default=4, ge=1, description="Proving threads")

    # Diagnostics
    log_level: str = Field(default="INFO", description="Logging level")
    show_raw_bytes: bool = Field(
        default=False, description="Log byte fields as arrays instead of base64"
    )


# Global settings instance
settings = Settings()
