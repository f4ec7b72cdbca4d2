"""
Simulation holder

Builds the vault simulation from the YAML config and keeps one instance per process.
"""
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from app.config import settings
from lp_vault.sim import SimEnvironment
from lp_vault.vault import VaultConfig

logger = logging.getLogger(__name__)

# Global simulation instance
_simulation: Dict[str, SimEnvironment] = {}


def find_config_path() -> Path:
    """Locate vault config"""
    config_paths = [
        Path("config/vault.yaml"),
        Path("../config/vault.yaml"),
        Path(__file__).resolve().parents[3] / "config" / "vault.yaml"
    ]
    if settings.VAULT_CONFIG_PATH:
        config_paths.insert(0, Path(settings.VAULT_CONFIG_PATH))

    for path in config_paths:
        if path.exists():
            return path

    raise FileNotFoundError("Vault config not found")


def load_config(path: Optional[Path] = None) -> Dict[str, Any]:
    """Load the raw vault config mapping (`vault:` and `pool:` sections)"""
    if path is None:
        path = find_config_path()
    with open(path, 'r') as f:
        return yaml.safe_load(f) or {}


def _pool_param(override: Optional[str], section: Dict[str, Any], key: str, default: Optional[int]) -> Optional[int]:
    if override is not None:
        return int(override)
    value = section.get(key, default)
    return None if value is None else int(value)


def build_simulation(raw: Optional[Dict[str, Any]] = None) -> SimEnvironment:
    """Create a fresh simulation from a raw config mapping, or from the config file"""
    if raw is None:
        path = find_config_path()
        config = VaultConfig.from_yaml(path)
        pool = load_config(path).get("pool") or {}
    else:
        config = VaultConfig.from_dict(raw.get("vault", {}))
        pool = raw.get("pool") or {}

    return SimEnvironment.create(
        config,
        initial_tick=_pool_param(settings.POOL_INITIAL_TICK, pool, "initial_tick", 0),
        tick_spacing=_pool_param(settings.POOL_TICK_SPACING, pool, "tick_spacing", None),
        fee=_pool_param(settings.POOL_FEE, pool, "fee", 3000),
        governance=settings.GOVERNANCE_ADDRESS,
        keeper=settings.KEEPER_ADDRESS,
        team=settings.TEAM_ADDRESS
    )


def get_simulation() -> SimEnvironment:
    """Return the running simulation, creating it on first use"""
    if "env" not in _simulation:
        _simulation["env"] = build_simulation()
    return _simulation["env"]


def reset_simulation(raw: Optional[Dict[str, Any]] = None) -> SimEnvironment:
    """Discard the running simulation and start over"""
    _simulation["env"] = build_simulation(raw)
    return _simulation["env"]
