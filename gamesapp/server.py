"""HTTP file server for catalog entries: GET /<file name> streams the game file."""

import logging

import uvicorn
from fastapi import FastAPI
from fastapi.responses import FileResponse, PlainTextResponse, Response

from gamesapp.catalog import GameCatalog

logger = logging.getLogger(__name__)


def create_file_app(catalog: GameCatalog) -> FastAPI:
    """FastAPI app serving only the files the catalog knows about."""
    app = FastAPI(title="gamesapp", description="Game file server", version="0.2.0")

    @app.get("/{name:path}")
    async def serve_game(name: str) -> Response:
        name = name.strip("/")
        logger.info("search for: %s", name)
        path = catalog.path_for(name)
        if path is None:
            logger.info("game not found: %s", name)
            return PlainTextResponse("404 Not Found\n", status_code=404)
        if not path.is_file():
            logger.warning("catalog entry %s is not a file", path)
            return Response(status_code=500)
        return FileResponse(path, media_type="application/octet-stream")

    return app


def create_server(catalog: GameCatalog, host: str, port: int) -> uvicorn.Server:
    """uvicorn server for the file app; run with `await server.serve()`."""
    config = uvicorn.Config(
        create_file_app(catalog),
        host=host,
        port=port,
        log_config=None,
        lifespan="off",
    )
    return uvicorn.Server(config)
