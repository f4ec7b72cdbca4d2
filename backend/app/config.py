"""
Configuration settings for the vault simulation API

Loads environment variables and provides application configuration.
"""
import os
from typing import List, Optional
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def _optional(name: str, default: Optional[str] = None) -> Optional[str]:
    value = os.getenv(name, default)
    return value or None


class Settings:
    """Application settings"""

    # API Configuration
    API_VERSION: str = "0.1.0"
    API_TITLE: str = "LP Vault Simulation API"
    API_DESCRIPTION: str = "Concentrated liquidity vault running on a simulated Uniswap V3 pool"

    # Vault Configuration
    VAULT_CONFIG_PATH: str = os.getenv("VAULT_CONFIG_PATH", "")

    # Simulated Pool (overrides the `pool:` section of the vault config)
    POOL_INITIAL_TICK: Optional[str] = _optional("POOL_INITIAL_TICK")
    POOL_TICK_SPACING: Optional[str] = _optional("POOL_TICK_SPACING")
    POOL_FEE: Optional[str] = _optional("POOL_FEE")

    # Roles
    GOVERNANCE_ADDRESS: str = os.getenv("GOVERNANCE_ADDRESS", "governance")
    KEEPER_ADDRESS: Optional[str] = _optional("KEEPER_ADDRESS")
    TEAM_ADDRESS: Optional[str] = _optional("TEAM_ADDRESS", "team")

    # CORS Configuration
    CORS_ORIGINS: List[str] = os.getenv(
        "CORS_ORIGINS",
        "http://localhost:3000"
    ).split(",")

    # Server Configuration
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", 8000))
    DEBUG: bool = os.getenv("DEBUG", "False").lower() == "true"


# Create global settings instance
settings = Settings()


# Validate critical settings on import
if settings.KEEPER_ADDRESS is None:
    print("⚠️  WARNING: KEEPER_ADDRESS not set!")
    print("   Anyone can call rebalance on the simulated vault")
