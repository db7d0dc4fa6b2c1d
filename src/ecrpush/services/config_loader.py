"""Configuration loader for ecrpush."""

from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from ecrpush.errors import PusherError


class ConfigLoader:
    """Loads YAML configuration files for CLI defaults."""

    SUPPORTED_KEYS = {
        "image",
        "tag",
        "region",
        "account",
        "repository",
        "namespace",
        "secret_name",
        "helper_path",
        "helper_version",
        "kube_config_dir",
        "manifest_file",
        "non_interactive",
        "verbose",
        "log_file",
        "answers",
    }

    STRING_KEYS = (
        "image",
        "tag",
        "region",
        "account",
        "repository",
        "namespace",
        "secret_name",
    )

    def load(self, config_path: Optional[str]) -> Dict[str, Any]:
        if not config_path:
            return {}

        path = Path(config_path)
        if not path.exists():
            raise PusherError(f"Config file not found: {config_path}")

        try:
            parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
        except (yaml.YAMLError, OSError) as exc:
            raise PusherError(f"Invalid config file '{config_path}': {exc}") from exc

        if parsed is None:
            return {}
        if not isinstance(parsed, dict):
            raise PusherError("Config file must contain a YAML mapping at the root.")

        unknown = sorted(set(parsed.keys()) - self.SUPPORTED_KEYS)
        if unknown:
            unknown_list = ", ".join(unknown)
            raise PusherError(f"Unknown configuration keys: {unknown_list}")

        for key in self.STRING_KEYS:
            value = parsed.get(key)
            if value is not None and not isinstance(value, str):
                raise PusherError(
                    f"Config key '{key}' must be a string, got {type(value).__name__}. "
                    "Quote the value in the config file so YAML keeps it verbatim."
                )

        answers = parsed.get("answers")
        if answers is not None and not isinstance(answers, dict):
            raise PusherError("Config key 'answers' must be a mapping of decision names to answers.")

        return parsed
