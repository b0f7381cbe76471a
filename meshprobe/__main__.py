from __future__ import annotations

import argparse
import sys

from meshprobe.config import get_settings
from meshprobe.observability.logging import configure_logging
from meshprobe.server import serve


def main() -> None:
    parser = argparse.ArgumentParser(description="meshprobe HTTP test-double service")
    parser.add_argument("--host", default=None, help="Listen address (overrides HOST)")
    parser.add_argument("--port", type=int, default=None, help="Listen port (overrides PORT)")
    parser.add_argument("--log-level", default=None, help="Log level (overrides LOG_LEVEL)")
    args = parser.parse_args()

    overrides = {
        key: value
        for key, value in (("host", args.host), ("port", args.port), ("log_level", args.log_level))
        if value is not None
    }
    settings = get_settings()
    if overrides:
        settings = settings.model_copy(update=overrides)

    configure_logging(settings.log_level)
    sys.exit(serve(settings))


if __name__ == "__main__":
    main()
