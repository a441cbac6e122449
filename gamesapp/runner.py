"""Entry point for the games app process: settings, logging, catalog, file server, bus controller."""

import asyncio
import contextlib
import logging
import signal
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from gamesapp.bus import HttpEventBusClient
from gamesapp.catalog import GameCatalog
from gamesapp.controller import GamesApp
from gamesapp.i18n import Translator
from gamesapp.logging_config import setup_logging
from gamesapp.server import create_server
from gamesapp.settings import get_setting, load_settings

_PROJECT_ROOT = Path(__file__).resolve().parent.parent

logger = logging.getLogger(__name__)


def _resolve(path: str) -> Path:
    p = Path(path)
    return p if p.is_absolute() else _PROJECT_ROOT / p


def _build_catalog(settings: dict[str, Any]) -> GameCatalog:
    return GameCatalog.scan(
        _resolve(get_setting(settings, "catalog.games_folder", "games")),
        extension=get_setting(settings, "catalog.extension", ".swf"),
        image_prefix=get_setting(settings, "catalog.image_prefix", "/_img/mario"),
    )


def _build_bus(settings: dict[str, Any]) -> HttpEventBusClient:
    return HttpEventBusClient(
        base_url=get_setting(settings, "bus.url", "http://localhost:8080"),
        timeout=float(get_setting(settings, "bus.timeout", 10.0)),
    )


def _install_signal_handlers(shutdown_event: asyncio.Event) -> None:
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        with contextlib.suppress(NotImplementedError):
            loop.add_signal_handler(sig, shutdown_event.set)


async def main_async() -> None:
    """Bootstrap: settings -> logging -> catalog -> file server -> subscribe -> wait for shutdown."""
    load_dotenv(_PROJECT_ROOT / ".env")
    settings = load_settings()
    setup_logging(_PROJECT_ROOT, settings)
    catalog = _build_catalog(settings)
    translator = Translator.load(_resolve(get_setting(settings, "locales.dir", "locales")))
    server = create_server(
        catalog,
        host=get_setting(settings, "server.host", "0.0.0.0"),
        port=int(get_setting(settings, "server.port", 8085)),
    )
    app = GamesApp(_build_bus(settings), catalog, translator, settings)

    shutdown_event = asyncio.Event()
    _install_signal_handlers(shutdown_event)
    server_task = asyncio.create_task(server.serve(), name="file-server")
    run_task = asyncio.create_task(app.run(), name="subscribe:taskmanager")
    # uvicorn captures SIGINT/SIGTERM itself while serving; its exit also means shutdown.
    shutdown_wait = asyncio.create_task(shutdown_event.wait(), name="shutdown-wait")
    try:
        await asyncio.wait({shutdown_wait, server_task}, return_when=asyncio.FIRST_COMPLETED)
    except asyncio.CancelledError:
        pass
    finally:
        logger.info("shutting down")
        shutdown_wait.cancel()
        run_task.cancel()
        await asyncio.gather(run_task, return_exceptions=True)
        await app.close()
        server.should_exit = True
        await asyncio.gather(server_task, return_exceptions=True)


def main() -> None:
    """Sync entry point for `python -m gamesapp` and the console script."""
    try:
        asyncio.run(main_async())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
