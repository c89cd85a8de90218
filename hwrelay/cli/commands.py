# hwrelay/cli/commands.py
from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional

from serial.tools import list_ports

from hwrelay.app.config import RelayConfig
from hwrelay.app.relay import Relay
from hwrelay.core.context import RelayContext
from hwrelay.model.transport import TransportMode

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


# ---------------- Logging ----------------

def configure_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    """
    Console handler on the root logger, plus an optional file handler.
    Both are added at most once (idempotent).
    """
    root = logging.getLogger()
    lvl = getattr(logging, str(level).upper(), logging.INFO)
    root.setLevel(lvl)

    if not any(type(h) is logging.StreamHandler for h in root.handlers):
        sh = logging.StreamHandler()
        sh.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(sh)

    if log_file:
        configure_file_logging(Path(log_file), level=lvl)


def configure_file_logging(app_log_path: Path, *, level: int = logging.INFO) -> None:
    root = logging.getLogger()
    app_log_path.parent.mkdir(parents=True, exist_ok=True)
    target = str(app_log_path.resolve())

    for h in root.handlers:
        if isinstance(h, logging.FileHandler) and getattr(h, "baseFilename", None) == target:
            return

    fh = logging.FileHandler(app_log_path, encoding="utf-8", delay=True)
    fh.setLevel(level)
    fh.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(fh)


# ---------------- Banner ----------------

def banner(cfg: RelayConfig) -> str:
    if cfg.mode is TransportMode.NONE:
        return f"WebSocket server on port {cfg.listen_port} | no hardware target"
    label = "Serial" if cfg.mode is TransportMode.SERIAL else "Remote"
    return f"WebSocket server on port {cfg.listen_port} | {label}: {cfg.target}"


# ---------------- Commands ----------------

def cmd_ports() -> int:
    ports = list(list_ports.comports())
    if not ports:
        print("(no serial ports found)")
        return 0

    for p in ports:
        ids = f" [{p.vid:04X}:{p.pid:04X}]" if (p.vid is not None and p.pid is not None) else ""
        desc = " ".join(filter(None, [p.manufacturer, p.product, p.description]))
        print(f"- {p.device}{ids} {desc}".rstrip())
    return 0


def cmd_serve(cfg: RelayConfig) -> int:
    configure_logging(cfg.log_level, cfg.log_file)
    print(banner(cfg))

    async def _run() -> None:
        ctx = RelayContext.build(cfg)
        await Relay(ctx).serve_forever()

    asyncio.run(_run())
    return 0
