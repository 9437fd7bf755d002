"""Configuration loading from CLI args, env vars, and an optional YAML file.

Precedence, lowest first: dataclass defaults, YAML file, environment,
command-line flags.
"""

import logging
import os
from dataclasses import dataclass, field

import yaml

logger = logging.getLogger(__name__)

CONFIG_PATH_ENV = "SB_LOG_ANALYZER_CONFIG"
SORT_ORDERS = ("asc", "desc")


def _parse_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("true", "1", "yes")


def parse_list(value: str) -> list[str]:
    """Split a comma-separated CLI value, dropping empty entries."""
    if not value:
        return []
    return [item for item in value.split(",") if item]


@dataclass(frozen=True)
class Config:
    sb_path: str = ""
    search_string: str = ""
    file_patterns: list[str] = field(default_factory=list)
    exclude_string: str = ""
    output_file: str = ""
    sort_order: str = "asc"
    annotate_pods: bool = False
    prefetch_identities: bool = False
    identity_namespace: str = "longhorn-system"
    inventory_path: str = "yamls/namespaced/{namespace}/v1/pods.json"
    kubectl: str = "kubectl"
    kubectl_timeout: float = 30.0
    log_level: str = "INFO"

    @property
    def search_dir(self) -> str:
        return os.path.join(self.sb_path, "logs")

    @property
    def descending(self) -> bool:
        return self.sort_order == "desc"

    @property
    def inventory_file(self) -> str:
        relative = self.inventory_path.format(namespace=self.identity_namespace)
        return os.path.join(self.sb_path, relative)


def load_yaml_config(path: str | None) -> dict:
    """Load settings from a YAML file. Returns empty dict if no path."""
    path = path or os.environ.get(CONFIG_PATH_ENV)
    if not path:
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        logger.warning("Config file %s not found, using defaults", path)
        return {}
    if not isinstance(data, dict):
        logger.warning("Config file %s is not a mapping, ignoring it", path)
        return {}
    logger.info("Loaded YAML config from %s", path)
    return data


def _normalize_sort_order(value: str) -> str:
    value = (value or "asc").strip().lower()
    if value not in SORT_ORDERS:
        logger.warning("Unknown SORT_ORDER %r, using asc", value)
        return "asc"
    return value


def _parse_timeout(value) -> float:
    try:
        timeout = float(value)
    except (TypeError, ValueError):
        logger.warning("Invalid kubectl timeout %r, using %ss", value, Config.kubectl_timeout)
        return Config.kubectl_timeout
    if timeout <= 0:
        logger.warning("Non-positive kubectl timeout %r, using %ss", value, Config.kubectl_timeout)
        return Config.kubectl_timeout
    return timeout


def _setting(env_name: str, yaml_section: dict, yaml_key: str, default):
    if env_name and env_name in os.environ:
        return os.environ[env_name]
    return yaml_section.get(yaml_key, default)


def load_config(cli_args, yaml_data: dict) -> Config:
    """Build Config from parsed CLI args, env vars, and parsed YAML data."""
    identity = yaml_data.get("identity") or {}

    annotate = _parse_bool(yaml_data.get("annotate_pods", Config.annotate_pods))
    if getattr(cli_args, "annotate_pods", False):
        annotate = True
    prefetch = _parse_bool(_setting("PREFETCH_IDENTITIES", identity, "prefetch",
                                    Config.prefetch_identities))
    if getattr(cli_args, "prefetch_identities", False):
        prefetch = True

    return Config(
        sb_path=getattr(cli_args, "sb_path", None) or "",
        search_string=getattr(cli_args, "search_string", "") or "",
        file_patterns=parse_list(getattr(cli_args, "file_patterns", "")),
        exclude_string=getattr(cli_args, "exclude_string", "") or "",
        output_file=getattr(cli_args, "output_file", "") or "",
        sort_order=_normalize_sort_order(
            str(_setting("SORT_ORDER", yaml_data, "sort_order", Config.sort_order))
        ),
        annotate_pods=annotate,
        prefetch_identities=prefetch,
        identity_namespace=str(_setting("IDENTITY_NAMESPACE", identity, "namespace",
                                        Config.identity_namespace)),
        inventory_path=str(_setting("INVENTORY_PATH", identity, "inventory_path",
                                    Config.inventory_path)),
        kubectl=str(_setting("KUBECTL", identity, "kubectl", Config.kubectl)),
        kubectl_timeout=_parse_timeout(_setting("KUBECTL_TIMEOUT", identity, "kubectl_timeout",
                                                Config.kubectl_timeout)),
        log_level=str(_setting("LOG_LEVEL", yaml_data, "log_level", Config.log_level)).upper(),
    )
