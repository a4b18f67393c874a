"""
Runtime Configuration

Environment-driven settings for the async client and signer. A ``.env`` file
in the working directory is loaded on import, then values are read with
``os.getenv`` and validated into ``EscrowSettings``.

Environment Variables:
    - TRADETRUST_RPC_URL: JSON-RPC endpoint
    - TRADETRUST_PRIVATE_KEY: Signer private key (0x-prefixed hex)
    - TRADETRUST_CHAIN_ID: Optional chain id override
    - TRADETRUST_DOMAIN_NAME: EIP-712 domain name of title escrows
    - TRADETRUST_DOMAIN_VERSION: EIP-712 domain version of title escrows
    - TRADETRUST_LOG_LEVEL: Package log level
"""

import os
from typing import Optional

import dotenv
from pydantic import BaseModel, Field, ValidationError

from .exceptions import ConfigurationError

dotenv.load_dotenv()

#: EIP-712 domain name used by TitleEscrow clones.
DEFAULT_DOMAIN_NAME = "TradeTrust Title Escrow"

#: EIP-712 domain version used by TitleEscrow clones.
DEFAULT_DOMAIN_VERSION = "1"


class EscrowSettings(BaseModel):
    """Validated runtime settings."""
    rpc_url: Optional[str] = Field(None, description="JSON-RPC endpoint URL")
    private_key: Optional[str] = Field(None, description="Signer private key", repr=False)
    chain_id: Optional[int] = Field(None, ge=1, description="Chain id override")
    domain_name: str = Field(DEFAULT_DOMAIN_NAME, description="EIP-712 domain name")
    domain_version: str = Field(DEFAULT_DOMAIN_VERSION, description="EIP-712 domain version")
    log_level: str = Field("INFO", description="Package log level")


def get_private_key_from_env() -> Optional[str]:
    """
    Load the signer private key from ``TRADETRUST_PRIVATE_KEY``.

    Returns:
        str: Private key from environment, or None if not configured
    """
    return os.getenv("TRADETRUST_PRIVATE_KEY") or None


def get_rpc_url_from_env() -> Optional[str]:
    """
    Load the JSON-RPC endpoint from ``TRADETRUST_RPC_URL``.

    Returns:
        str: RPC URL from environment, or None if not configured
    """
    return os.getenv("TRADETRUST_RPC_URL") or None


def get_settings() -> EscrowSettings:
    """
    Build ``EscrowSettings`` from the current environment.

    Unset variables fall back to the model defaults.

    Raises:
        ConfigurationError: If a variable is set to an invalid value
            (e.g. a non-numeric chain id).
    """
    raw = {
        "rpc_url": get_rpc_url_from_env(),
        "private_key": get_private_key_from_env(),
        "chain_id": os.getenv("TRADETRUST_CHAIN_ID") or None,
        "domain_name": os.getenv("TRADETRUST_DOMAIN_NAME") or None,
        "domain_version": os.getenv("TRADETRUST_DOMAIN_VERSION") or None,
        "log_level": os.getenv("TRADETRUST_LOG_LEVEL") or None,
    }
    try:
        return EscrowSettings(**{k: v for k, v in raw.items() if v is not None})
    except ValidationError as e:
        raise ConfigurationError(f"Invalid environment configuration: {e}") from e
