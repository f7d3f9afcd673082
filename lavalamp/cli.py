"""
Command line entry point.

    lavalamp --mode [watch|list|notify] --type [problem|custom|recovery] \
             --name [AIN|switch name] --label <label> --debug

``watch`` is meant for cron (keep the lamp off at night, after too long, or
while the off-marker exists). ``notify`` is the alert handler (Nagios,
Jenkins, ...). ``list`` prints the recorded history.
"""

from __future__ import annotations

from typing import List, Optional
import argparse
import logging
import sys

from .config import ConfigError, Settings
from .database import HistoryStoreError
from .hardware import BaseSwitchController, DeviceError, build_controller
from .repositories import HistoryListing
from .services import LampService
from .services.lamp_service import normalize_alert_type, normalize_mode

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CONFIG = 2


def build_argparser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="lavalamp",
        description="Switch a lava lamp on alerts while keeping it within its time and rest rules",
    )
    ap.add_argument("--mode", default="list", help="watch, notify or list (default: list)")
    ap.add_argument("--type", dest="alert_type", help="problem, custom or recovery (notify mode)")
    ap.add_argument("--name", help="switch name or AIN overriding LAMP_SWITCH")
    ap.add_argument("--label", help="free text stored with notify entries")
    ap.add_argument("--debug", action="store_true", help="log debug output and dump the history")
    return ap


def main(
    argv: Optional[List[str]] = None,
    settings: Optional[Settings] = None,
    hardware: Optional[BaseSwitchController] = None,
) -> int:
    args = build_argparser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    owned: Optional[BaseSwitchController] = None
    try:
        mode = normalize_mode(args.mode)
        if mode == "notify":
            normalize_alert_type(args.alert_type)
        settings = settings or Settings()
        settings.debug = settings.debug or args.debug
        if hardware is None and mode != "list":
            hardware = owned = build_controller(settings, args.name)
        service = LampService(settings, hardware)
        result = service.run(mode, args.alert_type, args.label)
    except ConfigError as exc:
        logger.error("%s", exc)
        return EXIT_CONFIG
    except (HistoryStoreError, DeviceError) as exc:
        logger.error("%s", exc)
        return EXIT_FAILURE
    finally:
        if owned is not None:
            owned.close()

    if isinstance(result, HistoryListing):
        for line in result:
            print(line)
    else:
        logger.debug("result %s", result.model_dump_json())
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
