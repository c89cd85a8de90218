# hwrelay/app/config.py
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml
from websockets.exceptions import InvalidURI
from websockets.uri import parse_uri

from hwrelay.core.errors import RelayConfigError
from hwrelay.model.transport import TransportMode

_log = logging.getLogger(__name__)

DEFAULT_LISTEN_HOST = "0.0.0.0"
DEFAULT_LISTEN_PORT = 8080
DEFAULT_SERIAL_BAUD = 115200
DEFAULT_RECONNECT_DELAY_S = 5.0
DEFAULT_OPEN_TIMEOUT_S = 10.0

# env var -> config field (names kept compatible with the Node relay's .env.local)
ENV_VARS: Dict[str, str] = {
    "WS_PROXY_HOST": "listen_host",
    "WS_PROXY_PORT": "listen_port",
    "SERIAL_PORT": "serial_port",
    "SERIAL_BAUD": "serial_baud",
    "ESP32_WS_URL": "remote_url",
    "HWRELAY_MODE": "mode",
}

# field -> schema type (same vocabulary as transport param schemas)
_FIELD_TYPES: Dict[str, str] = {
    "mode": "str",
    "listen_host": "str",
    "listen_port": "int",
    "serial_port": "str",
    "serial_baud": "int",
    "remote_url": "str",
    "reconnect_delay_s": "float",
    "open_timeout_s": "float",
    "log_level": "str",
    "log_file": "str",
}


@dataclass(frozen=True)
class RelayConfig:
    """
    Process-wide relay configuration, read once at startup.

    `mode` selects exactly one hardware channel; the serial_* fields only
    matter in serial mode and `remote_url` only in remote-socket mode.
    """
    mode: TransportMode = TransportMode.NONE
    listen_host: str = DEFAULT_LISTEN_HOST
    listen_port: int = DEFAULT_LISTEN_PORT
    serial_port: Optional[str] = None
    serial_baud: int = DEFAULT_SERIAL_BAUD
    remote_url: Optional[str] = None
    reconnect_delay_s: float = DEFAULT_RECONNECT_DELAY_S
    open_timeout_s: float = DEFAULT_OPEN_TIMEOUT_S
    log_level: str = "INFO"
    log_file: Optional[str] = None

    @property
    def target(self) -> str:
        """Human-readable hardware target for logs and banners."""
        if self.mode is TransportMode.SERIAL:
            return f"{self.serial_port} @ {self.serial_baud}"
        if self.mode is TransportMode.REMOTE:
            return str(self.remote_url)
        return "-"

    def transport_params(self) -> Dict[str, Any]:
        """Constructor kwargs for the transport driver of `mode`."""
        if self.mode is TransportMode.SERIAL:
            return {"port": self.serial_port, "baudrate": self.serial_baud}
        if self.mode is TransportMode.REMOTE:
            return {"url": self.remote_url, "open_timeout": self.open_timeout_s}
        return {}

    @classmethod
    def load(
        cls,
        *,
        config_file: str | Path | None = None,
        environ: Optional[Mapping[str, str]] = None,
        overrides: Optional[Mapping[str, Any]] = None,
    ) -> "RelayConfig":
        """
        Resolve configuration from (lowest to highest precedence):
        defaults, YAML file, environment, explicit overrides (CLI flags).

        Raises:
            RelayConfigError: on malformed values or an unreadable file.
        """
        raw: Dict[str, Any] = {}
        # field -> precedence of the layer that set it (file=0, env=1, overrides=2)
        origin: Dict[str, int] = {}

        if config_file is not None:
            for key, value in _read_config_file(Path(config_file)).items():
                raw[key] = value
                if value is not None:
                    origin[key] = 0

        env = os.environ if environ is None else environ
        for var, field in ENV_VARS.items():
            value = env.get(var)
            if value is not None and str(value).strip() != "":
                raw[field] = str(value).strip()
                origin[field] = 1

        for key, value in (overrides or {}).items():
            if value is not None:
                raw[key] = value
                origin[key] = 2

        return cls.from_mapping(raw, prefer=_preferred_target(origin))

    @classmethod
    def from_mapping(
        cls,
        raw: Mapping[str, Any],
        *,
        prefer: Optional[TransportMode] = None,
    ) -> "RelayConfig":
        """
        Build a config from already-merged raw values.

        Keys with no value (e.g. `listen_port:` in YAML) keep their default.
        `prefer` breaks the tie when both targets are set and no mode is given.
        """
        for key in raw:
            if key not in _FIELD_TYPES:
                raise RelayConfigError(
                    f"Unknown config key '{key}'.",
                    hint=f"Valid keys: {sorted(_FIELD_TYPES)}",
                    details={"key": key},
                ) from None

        values: Dict[str, Any] = {}
        for name, value in raw.items():
            if value is None:
                continue
            try:
                values[name] = _cast(value, _FIELD_TYPES[name])
            except (TypeError, ValueError) as e:
                raise RelayConfigError(
                    f"Invalid value for config key '{name}'.",
                    hint=str(e),
                    details={"key": name, "value": value, "expected_type": _FIELD_TYPES[name]},
                ) from None

        explicit_mode = values.pop("mode", None)
        cfg = cls(**values)
        cfg = replace(cfg, mode=_select_mode(cfg, explicit_mode, prefer))
        cfg.validate()
        return cfg

    def validate(self) -> None:
        if not (0 <= self.listen_port <= 65535):
            raise RelayConfigError(
                f"Listen port {self.listen_port} out of range.",
                hint="Use a TCP port between 0 and 65535.",
                details={"listen_port": self.listen_port},
            )
        if self.serial_baud <= 0:
            raise RelayConfigError(
                f"Invalid serial baud rate {self.serial_baud}.",
                hint="Typical values: 9600, 115200.",
                details={"serial_baud": self.serial_baud},
            )
        if self.reconnect_delay_s <= 0:
            raise RelayConfigError(
                "Reconnect delay must be positive.",
                details={"reconnect_delay_s": self.reconnect_delay_s},
            )
        if self.open_timeout_s <= 0:
            raise RelayConfigError(
                "Open timeout must be positive.",
                details={"open_timeout_s": self.open_timeout_s},
            )
        if self.mode is TransportMode.REMOTE:
            try:
                parse_uri(str(self.remote_url))
            except InvalidURI as e:
                raise RelayConfigError(
                    f"Invalid remote device URL {self.remote_url!r}.",
                    hint=f"Expected ws://host:port or wss://host:port ({e}).",
                    details={"remote_url": self.remote_url},
                ) from None


def _preferred_target(origin: Mapping[str, int]) -> Optional[TransportMode]:
    serial = origin.get("serial_port")
    remote = origin.get("remote_url")
    if serial is None or remote is None or serial == remote:
        return None
    return TransportMode.SERIAL if serial > remote else TransportMode.REMOTE


def _select_mode(
    cfg: RelayConfig,
    explicit: Optional[str],
    prefer: Optional[TransportMode] = None,
) -> TransportMode:
    if explicit is not None:
        try:
            mode = TransportMode.parse(explicit)
        except ValueError:
            raise RelayConfigError(
                f"Unknown transport mode '{explicit}'.",
                hint=f"Valid modes: {[m.value for m in TransportMode]}",
                details={"mode": explicit},
            ) from None

        if mode is TransportMode.SERIAL and not cfg.serial_port:
            _log.warning("CONFIG_INCOMPLETE mode=serial missing=serial_port -> running without hardware")
            return TransportMode.NONE
        if mode is TransportMode.REMOTE and not cfg.remote_url:
            _log.warning("CONFIG_INCOMPLETE mode=remote-socket missing=remote_url -> running without hardware")
            return TransportMode.NONE
        return mode

    if cfg.serial_port and cfg.remote_url:
        chosen = prefer or TransportMode.SERIAL
        _log.warning(
            "CONFIG_AMBIGUOUS serial_port=%s remote_url=%s -> using %s",
            cfg.serial_port,
            cfg.remote_url,
            chosen,
        )
        return chosen
    if cfg.serial_port:
        return TransportMode.SERIAL
    if cfg.remote_url:
        return TransportMode.REMOTE
    return TransportMode.NONE


def _read_config_file(path: Path) -> Dict[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except FileNotFoundError:
        raise RelayConfigError(
            f"Config file not found: {path}",
            details={"config_file": str(path)},
        ) from None
    except (OSError, yaml.YAMLError) as e:
        raise RelayConfigError(
            f"Failed to read config file {path}.",
            hint=str(e),
            details={"config_file": str(path)},
        ) from None

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise RelayConfigError(
            f"Config file {path} must contain a mapping at top level.",
            details={"config_file": str(path)},
        )

    # YAML files may use dashes (listen-port) as well as underscores
    return {str(k).replace("-", "_"): v for k, v in data.items()}


def _cast(value: Any, type_name: str) -> Any:
    if type_name == "str":
        if isinstance(value, (dict, list, tuple, set)):
            raise TypeError(f"Expected str, got {type(value).__name__}")
        return str(value).strip()

    if type_name == "int":
        if isinstance(value, bool):
            raise TypeError("Expected int, got bool")
        if isinstance(value, int):
            return value
        if isinstance(value, str):
            return int(value.strip())
        raise TypeError(f"Expected int, got {type(value).__name__}")

    if type_name == "float":
        if isinstance(value, bool):
            raise TypeError("Expected float, got bool")
        if isinstance(value, (int, float)):
            return float(value)
        if isinstance(value, str):
            return float(value.strip())
        raise TypeError(f"Expected float, got {type(value).__name__}")

    raise TypeError(f"Unknown schema type '{type_name}'")
