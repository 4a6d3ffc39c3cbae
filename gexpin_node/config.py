# gexpin_node/config.py
import copy
import os
import yaml
from typing import Any, Dict, Optional

CONFIG_FILE = "gexpin_config.yaml"

# -------- Defaults --------
_DEFAULT: Dict[str, Any] = {
    "server": {
        "host": "0.0.0.0",
        "port": 9444,
        "static_dir": ".",  # everything that isn't an API route is served from here
    },
    "pinlog": {"path": "pinlogs"},
    "ipfs": {
        "api_url": "http://127.0.0.1:5001",
        "swarm_port": 4001,  # advertised in /node_addr
    },
    "github": {
        "lastpubver_url": "https://raw.githubusercontent.com/{path}/master/.gx/lastpubver",
    },
    "netinfo": {"ip_lookup_url": "https://api.ipify.org"},
    "timeouts": {
        "fetch_timeout_sec": 30.0,
        # None = wait for the node as long as it takes
        "pin_timeout_sec": None,
    },
    "logging": {"level": "INFO"},
}


def _float_or_none(val: str) -> Optional[float]:
    if val.strip().lower() in ("", "none", "0"):
        return None
    return float(val)


# -------- ENV overrides --------
_ENV_MAP = {
    ("server", "host"): ("GEXPIN_HOST", str),
    ("server", "port"): ("GEXPIN_PORT", int),
    ("server", "static_dir"): ("GEXPIN_STATIC_DIR", str),
    ("pinlog", "path"): ("GEXPIN_PINLOG", str),
    ("ipfs", "api_url"): ("IPFS_HTTP_API", str),
    ("ipfs", "swarm_port"): ("GEXPIN_SWARM_PORT", int),
    ("github", "lastpubver_url"): ("GEXPIN_LASTPUBVER_URL", str),
    ("netinfo", "ip_lookup_url"): ("GEXPIN_IP_LOOKUP_URL", str),
    ("timeouts", "fetch_timeout_sec"): ("GEXPIN_FETCH_TIMEOUT_SEC", _float_or_none),
    ("timeouts", "pin_timeout_sec"): ("GEXPIN_PIN_TIMEOUT_SEC", _float_or_none),
    ("logging", "level"): ("GEXPIN_LOG_LEVEL", str),
}


def _deep_merge(base: Dict[str, Any], overlay: Dict[str, Any]) -> Dict[str, Any]:
    out = dict(base)
    for k, v in (overlay or {}).items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _deep_merge(out[k], v)
        else:
            out[k] = v
    return out


def _apply_env_overrides(cfg: Dict[str, Any]) -> Dict[str, Any]:
    for (section, key), (env_name, cast) in _ENV_MAP.items():
        val = os.getenv(env_name)
        if val is not None:
            try:
                casted = cast(val)
            except Exception:
                casted = val
            cfg[section] = dict(cfg.get(section) or {})
            cfg[section][key] = casted
    return cfg


def load_config(repo_root: str = ".") -> Dict[str, Any]:
    """
    Loads repo_root/gexpin_config.yaml on top of the defaults.
    Returns defaults if the file doesn't exist or can't be parsed.
    Environment variables win over both.
    """
    path = os.path.join(repo_root, CONFIG_FILE)
    cfg = copy.deepcopy(_DEFAULT)

    if os.path.exists(path):
        try:
            with open(path, "r") as f:
                data = yaml.safe_load(f) or {}
            if isinstance(data, dict):
                cfg = _deep_merge(cfg, data)
        except Exception:
            # fall back to defaults
            pass

    return _apply_env_overrides(cfg)


# -------- Small helpers used by the app --------
def get_bind_host(cfg: Dict[str, Any]) -> str:
    return str(cfg.get("server", {}).get("host", "0.0.0.0"))


def get_bind_port(cfg: Dict[str, Any]) -> int:
    return int(cfg.get("server", {}).get("port", 9444))


def get_static_dir(cfg: Dict[str, Any]) -> str:
    return str(cfg.get("server", {}).get("static_dir") or ".")


def get_pinlog_path(cfg: Dict[str, Any]) -> str:
    return str(cfg.get("pinlog", {}).get("path") or "pinlogs")


def get_ipfs_api_url(cfg: Dict[str, Any]) -> str:
    return str(cfg.get("ipfs", {}).get("api_url") or "http://127.0.0.1:5001")


def get_swarm_port(cfg: Dict[str, Any]) -> int:
    return int(cfg.get("ipfs", {}).get("swarm_port", 4001))


def get_lastpubver_url(cfg: Dict[str, Any]) -> str:
    return str(cfg.get("github", {}).get("lastpubver_url") or _DEFAULT["github"]["lastpubver_url"])


def get_ip_lookup_url(cfg: Dict[str, Any]) -> str:
    return str(cfg.get("netinfo", {}).get("ip_lookup_url") or "https://api.ipify.org")


def _timeout(cfg: Dict[str, Any], key: str) -> Optional[float]:
    val = cfg.get("timeouts", {}).get(key)
    if val is None:
        return None
    val = float(val)
    return val if val > 0 else None


def get_fetch_timeout(cfg: Dict[str, Any]) -> Optional[float]:
    return _timeout(cfg, "fetch_timeout_sec")


def get_pin_timeout(cfg: Dict[str, Any]) -> Optional[float]:
    return _timeout(cfg, "pin_timeout_sec")


def get_log_level(cfg: Dict[str, Any]) -> str:
    return str(cfg.get("logging", {}).get("level", "INFO")).upper()
