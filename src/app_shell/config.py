import logging
import os
from pathlib import Path

from src.rules.models import Rules

logger = logging.getLogger(__name__)


class ConfigError(RuntimeError):
    """Operational requirements are not met; the service must not start."""


def validate_ops_rules(rules: Rules, data_dir: Path) -> None:
    """
    Validate operational requirements before startup.
    Raises ConfigError listing every problem found.
    """
    ops = rules.ops
    problems = []

    # 1. Data dir must exist (or be creatable) and be writable
    if ops.data_dir_required:
        try:
            data_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            problems.append(f"data directory {data_dir} cannot be created: {e}")
        else:
            if not os.access(data_dir, os.W_OK):
                problems.append(f"data directory {data_dir} is not writable")

    # 2. Required env
    missing = [env_var for env_var in ops.required_env if env_var not in os.environ]
    if missing:
        problems.append(f"missing required environment variables: {', '.join(missing)}")

    if problems:
        raise ConfigError("; ".join(problems))

    logger.info("Configuration validated (data dir %s)", data_dir)
