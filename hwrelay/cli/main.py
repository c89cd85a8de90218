# hwrelay/cli/main.py
from __future__ import annotations

import sys
from typing import Optional

from hwrelay.app.config import RelayConfig
from hwrelay.core.errors import RelayError

from hwrelay.cli.args import config_overrides, parse_args
from hwrelay.cli.commands import cmd_ports, cmd_serve


def main(argv: Optional[list[str]] = None) -> int:
    try:
        args = parse_args(argv)

        if args.cmd == "ports":
            return cmd_ports()

        if args.cmd == "serve":
            cfg = RelayConfig.load(config_file=args.config, overrides=config_overrides(args))
            return cmd_serve(cfg)

        return 2
    except RelayError as e:
        print(f"ERROR: {e.message}")
        if e.hint:
            print(f"Hint: {e.hint}")
        return 1
    except KeyboardInterrupt:
        print("Relay stopped.")
        return 130


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
