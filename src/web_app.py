from __future__ import annotations

from orderdesk.config import ConfigError, load_config
from orderdesk.log import configure_logging
from orderdesk.services.order_service import build_order_service
from orderdesk.web import create_app

if __name__ == "__main__":
    try:
        cfg = load_config()
    except ConfigError as e:
        print(f"[CONFIG ERROR] {e}")
        raise SystemExit(2)

    configure_logging(cfg.log_level, cfg.log_format)
    app = create_app(build_order_service(cfg))
    app.run(host=cfg.web.host, port=cfg.web.port)
