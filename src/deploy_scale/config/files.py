"""Loader for the on-disk CLI configuration.

The global config directory holds two JSON files:

    auth.json    {"credentials": [{"provider": "sh", "token": "..."}]}
    config.json  {"sh": {"currentTeam": "team_123"}}

A project may also carry a local ``now.json`` whose ``scope`` names the team.
"""
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from deploy_scale.errors import UsageError

logger = logging.getLogger(__name__)

PROVIDER = "sh"
AUTH_FILE = "auth.json"
CONFIG_FILE = "config.json"


@dataclass
class CLIConfig:
    """Credentials and scope read from the CLI config files."""
    token: Optional[str] = None
    team: Optional[str] = None


def _read_json(path: Path) -> Dict[str, Any]:
    if not path.exists():
        logger.debug(f"Config file {path} not found, skipping")
        return {}
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise UsageError(f"Could not read config file {path}: {e}", meta={"path": str(path)}) from e
    if not isinstance(data, dict):
        raise UsageError(f"Config file {path} must contain a JSON object", meta={"path": str(path)})
    return data


def load_cli_config(global_dir: str, local_config: Optional[str] = None) -> CLIConfig:
    """Read token and team from the global config directory and local config.

    Args:
        global_dir: Directory holding auth.json and config.json ("~" expanded)
        local_config: Optional path to a project now.json

    Returns:
        CLIConfig; the local ``scope`` wins over the global ``currentTeam``

    Raises:
        UsageError: a config file exists but is not valid JSON
    """
    root = Path(global_dir).expanduser()
    auth = _read_json(root / AUTH_FILE)
    config = _read_json(root / CONFIG_FILE)

    token = None
    for item in auth.get("credentials", []):
        if isinstance(item, dict) and item.get("provider") == PROVIDER:
            token = item.get("token")
            break

    team = (config.get(PROVIDER) or {}).get("currentTeam")

    if local_config:
        local = _read_json(Path(local_config).expanduser())
        if local.get("scope"):
            team = local["scope"]
            logger.debug(f"Using scope {team} from {local_config}")

    return CLIConfig(token=token, team=team)
