from __future__ import annotations

from orderdesk.cli import run_cli
from orderdesk.config import ConfigError, load_config
from orderdesk.log import configure_logging
from orderdesk.services.order_service import build_order_service


def main() -> int:
    try:
        cfg = load_config()
        configure_logging(cfg.log_level, cfg.log_format)
        run_cli(build_order_service(cfg))
        return 0
    except ConfigError as e:
        print(f"[CONFIG ERROR] {e}")
        return 2
    except KeyboardInterrupt:
        print("\nInterrupted.")
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
