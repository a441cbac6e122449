"""Game catalog: the launchable files found in the games folder at startup."""

import logging
from pathlib import Path
from urllib.parse import quote

logger = logging.getLogger(__name__)


class GameCatalog:
    """Immutable list of game files. Entries are stored with their extension (`mario.swf`)."""

    def __init__(
        self,
        folder: Path,
        files: list[str] | None = None,
        extension: str = ".swf",
        image_prefix: str = "/_img/mario",
    ) -> None:
        self._folder = folder
        self._files: tuple[str, ...] = tuple(files or ())
        self._extension = extension
        self._image_prefix = image_prefix.rstrip("/")

    @classmethod
    def scan(
        cls, folder: Path, extension: str = ".swf", image_prefix: str = "/_img/mario"
    ) -> "GameCatalog":
        """Collect every regular file in `folder`, sorted by name."""
        if not folder.is_dir():
            logger.warning("Games folder %s not found; catalog is empty", folder)
            return cls(folder, [], extension, image_prefix)
        files = sorted(p.name for p in folder.iterdir() if p.is_file())
        logger.info("Found %d games in %s", len(files), folder)
        return cls(folder, files, extension, image_prefix)

    @property
    def folder(self) -> Path:
        return self._folder

    @property
    def files(self) -> tuple[str, ...]:
        return self._files

    @property
    def game_names(self) -> list[str]:
        """Entry names without their extension, in catalog order."""
        return [Path(f).stem for f in self._files]

    def __len__(self) -> int:
        return len(self._files)

    def resolve(self, game: str) -> str | None:
        """Stored file name for a game, matched exactly as `<game><extension>`."""
        filename = game + self._extension
        return filename if filename in self._files else None

    def path_for(self, filename: str) -> Path | None:
        """Filesystem path of a stored entry, looked up by exact file name."""
        if filename not in self._files:
            return None
        return self._folder / filename

    def url_for(self, game: str, host: str, port: int) -> str | None:
        if self.resolve(game) is None:
            return None
        return f"http://{host}:{port}/{quote(game, safe='')}{self._extension}"

    def image_for(self, game: str) -> str:
        return f"{self._image_prefix}/games/{game}.png"

    def asset(self, name: str) -> str:
        return f"{self._image_prefix}/{name}"
