import logging
import os
import re
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)

ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}")


def load_config(app, config_dir: str | Path = "configs") -> dict:
    # read stage from cdk context or env var; default 'dev'
    stage = app.node.try_get_context("stage") or os.getenv("STAGE", "dev")
    config_path = Path(config_dir) / f"{stage}_config.yaml"
    if not config_path.exists():
        raise FileNotFoundError(f"Config not found: {config_path}")

    logger.info("Loading %s config from %s", stage, config_path)
    with open(config_path, "r") as f:
        cfg_content = f.read()

    cfg_content = substitute_env_vars(cfg_content, config_path)
    cfg = yaml.safe_load(cfg_content) or {}
    cfg["stage"] = stage
    return cfg


def substitute_env_vars(content: str, source: str | Path = "<config>") -> str:
    """
    Fill ${VAR_NAME} and ${VAR_NAME:default} from the environment.

    ``source`` names the config file in the error raised for a required
    variable that is unset.
    """
    def replace_env_var(match):
        var_expr = match.group(1)
        if ':' in var_expr:
            var_name, default_value = var_expr.split(':', 1)
        else:
            var_name, default_value = var_expr, None

        env_value = os.getenv(var_name.strip())
        if env_value is not None:
            return env_value
        if default_value is not None:
            return default_value.strip()
        raise ValueError(
            f"{source}: environment variable '{var_name.strip()}' is required but not set"
        )

    return ENV_VAR_PATTERN.sub(replace_env_var, content)


def validate_config(cfg: dict) -> dict:
    """Fail fast on settings the stack cannot be built from."""
    if not cfg.get("stackName"):
        raise ValueError("Config is missing 'stackName'")

    # the bucket accepts browser requests from exactly one declared origin
    origins = (cfg.get("cors") or {}).get("allowedOrigins")
    if origins is not None and (not isinstance(origins, list) or len(origins) != 1):
        raise ValueError(
            f"'cors.allowedOrigins' must list exactly one origin, got {origins!r}"
        )
    return cfg
