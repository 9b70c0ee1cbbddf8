"""
RGB Light Controller - Main Entry Point

Usage: rgblight [export-config [FILE] | CONFIG_FILE]
"""
import argparse
import asyncio
import signal
import sys
from typing import List, Optional

import structlog

from rgblight import __version__
from rgblight.config import DEFAULT_CONFIG_FILE, Settings, export_settings, load_settings
from rgblight.errors import ConfigError, TransportError
from rgblight.logging_config import setup_logging
from rgblight.logic.controller import LightController
from rgblight.transport.mqtt import MqttTransport

logger = structlog.get_logger(__name__)

EXPORT_COMMAND = "export-config"


class RgbLightDaemon:
    """Wires settings, controller and MQTT transport together"""

    def __init__(self, settings: Settings):
        self.settings = settings
        client_id = f"{settings.mqtt.client_id_prefix}-v.{__version__}"
        self.transport = MqttTransport(settings.mqtt, client_id)
        self.controller = LightController(settings, self.transport)
        self.stop_requested: Optional[asyncio.Event] = None

    async def run(self) -> None:
        """
        Run until a shutdown signal arrives or the broker connection is lost

        Raises:
            TransportError: If the broker connection fails
        """
        logger.info("rgblight_starting", version=__version__, host=self.settings.mqtt.host)
        self.stop_requested = asyncio.Event()

        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, self.handle_signal, sig)

        transport_task = asyncio.create_task(self.transport.run(self.controller))
        stop_task = asyncio.create_task(self.stop_requested.wait())

        try:
            done, _ = await asyncio.wait(
                {transport_task, stop_task}, return_when=asyncio.FIRST_COMPLETED
            )
            if transport_task in done:
                transport_task.result()
        finally:
            await self.shutdown()
            for task in (transport_task, stop_task):
                task.cancel()
            await asyncio.gather(transport_task, stop_task, return_exceptions=True)

    async def shutdown(self) -> None:
        """Stop any running animation"""
        logger.info("rgblight_shutting_down")
        await self.controller.shutdown()
        logger.info("rgblight_stopped", statistics=self.controller.get_statistics())

    def handle_signal(self, signum: int) -> None:
        """Handle shutdown signals"""
        logger.info("signal_received", signal=signal.Signals(signum).name)
        if self.stop_requested is not None:
            self.stop_requested.set()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rgblight",
        description=(
            f"Controller for one five-channel light driven by motion and door "
            f"sensors over MQTT. Version: {__version__}"
        ),
    )
    parser.add_argument(
        "config",
        nargs="?",
        help=f"config file to use, or '{EXPORT_COMMAND}' to write the effective config",
    )
    parser.add_argument(
        "target",
        nargs="?",
        help=f"file written by {EXPORT_COMMAND} (default {DEFAULT_CONFIG_FILE})",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for the controller"""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        if args.config == EXPORT_COMMAND:
            target = export_settings(load_settings(), args.target or DEFAULT_CONFIG_FILE)
            print(f"Config successfully written to {target}")
            return 0
        settings = load_settings(args.config)
    except ConfigError as e:
        parser.print_usage()
        print(f"\n{e}")
        return -1

    setup_logging(
        log_level=settings.log_level,
        json_logs=settings.json_logs,
        log_file=settings.log_file,
    )

    daemon = RgbLightDaemon(settings)
    try:
        asyncio.run(daemon.run())
    except TransportError as e:
        logger.error("transport_failed", error=str(e))
        return 1
    except KeyboardInterrupt:
        logger.info("interrupted_by_user")
    return 0


if __name__ == "__main__":
    sys.exit(main())
