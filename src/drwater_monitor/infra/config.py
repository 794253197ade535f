from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml


@dataclass
class NetworkConfig:
    host: str = "0.0.0.0"
    api_port: int = 8080


@dataclass
class DeviceLinkConfig:
    base_url: str = "http://192.168.4.1"
    data_path: str = "/data"
    reset_path: str = "/reset"
    timeout_s: Optional[float] = 5.0


@dataclass
class PollerConfig:
    interval_s: float = 2.0
    autostart: bool = True


@dataclass
class AuthConfig:
    # Client-side gate only; the unit's /reset handler owns real authorization.
    user_id: str = "drwtr01"
    password: str = "1234"
    prefill_credentials: bool = True
    max_sessions: int = 64


@dataclass
class CartridgeConfig:
    count: int = 7


@dataclass
class LoggingConfig:
    level: str = "INFO"


@dataclass
class MonitorConfig:
    device_id: str = "drwater-01"
    network: NetworkConfig = field(default_factory=NetworkConfig)
    device: DeviceLinkConfig = field(default_factory=DeviceLinkConfig)
    poller: PollerConfig = field(default_factory=PollerConfig)
    auth: AuthConfig = field(default_factory=AuthConfig)
    cartridges: CartridgeConfig = field(default_factory=CartridgeConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _load_yaml(path: str) -> Dict[str, Any]:
    raw = Path(path).read_text(encoding="utf-8")
    data = yaml.safe_load(raw) if raw else {}
    return data or {}


def _section(cls, data: Dict[str, Any], key: str):
    raw = data.get(key) or {}
    known = {name: raw[name] for name in cls.__dataclass_fields__ if name in raw}
    return cls(**known)


def load_config(path: Optional[str]) -> MonitorConfig:
    """
    Read YAML config into a typed MonitorConfig with sensible defaults.

    A missing path or file yields the defaults. Unknown keys are ignored.
    """
    if not path or not Path(path).exists():
        return MonitorConfig()

    data = _load_yaml(path)

    return MonitorConfig(
        device_id=str(data.get("device_id", "drwater-01")),
        network=_section(NetworkConfig, data, "network"),
        device=_section(DeviceLinkConfig, data, "device"),
        poller=_section(PollerConfig, data, "poller"),
        auth=_section(AuthConfig, data, "auth"),
        cartridges=_section(CartridgeConfig, data, "cartridges"),
        logging=_section(LoggingConfig, data, "logging"),
    )
