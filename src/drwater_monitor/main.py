import argparse
from typing import Optional, Sequence

import uvicorn

from drwater_monitor.infra.config import MonitorConfig, load_config
from drwater_monitor.infra.logging_setup import normalize_level, setup_logging
from drwater_monitor.interfaces.api import create_app


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Dr. Water live monitor")
    parser.add_argument(
        "--config",
        type=str,
        default="config/monitor.yaml",
        help="Path to YAML configuration file",
    )
    parser.add_argument("--device-url", type=str, default=None, help="Override device.base_url")
    parser.add_argument("--port", type=int, default=None, help="Override network.api_port")
    parser.add_argument("--log-level", type=str, default=None, help="Override logging.level")
    return parser.parse_args(argv)


def apply_overrides(cfg: MonitorConfig, args: argparse.Namespace) -> MonitorConfig:
    if args.device_url:
        cfg.device.base_url = args.device_url
    if args.port is not None:
        cfg.network.api_port = args.port
    if args.log_level:
        cfg.logging.level = args.log_level
    cfg.logging.level = normalize_level(cfg.logging.level)
    return cfg


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = parse_args(argv)

    cfg = apply_overrides(load_config(args.config), args)
    setup_logging(cfg.logging.level)

    app = create_app(config=cfg)

    uvicorn.run(
        app,
        host=cfg.network.host,
        port=cfg.network.api_port,
        log_level=cfg.logging.level.lower(),
    )


if __name__ == "__main__":
    main()
