"""Localization source: one flat YAML catalog per locale domain (locales/<domain>.yaml)."""

import logging
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)


class Translator:
    """Maps (locale, key) to display text. Missing domain or key yields the key itself."""

    def __init__(self, domains: dict[str, dict[str, str]] | None = None) -> None:
        self._domains: dict[str, dict[str, str]] = domains or {}

    @classmethod
    def load(cls, locales_dir: Path) -> "Translator":
        translator = cls()
        if not locales_dir.is_dir():
            logger.warning("Locales directory %s not found; using untranslated keys", locales_dir)
            return translator
        for path in sorted(locales_dir.glob("*.yaml")):
            translator.add_domain(path.stem, path)
        return translator

    def add_domain(self, domain: str, path: Path) -> None:
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        except (yaml.YAMLError, OSError) as e:
            logger.warning("Skipping locale %s: %s", path, e)
            return
        if not isinstance(data, dict):
            logger.warning("Skipping locale %s: expected a mapping", path)
            return
        self._domains[domain] = {str(k): str(v) for k, v in data.items()}
        logger.debug("Loaded %d messages for %s", len(data), domain)

    @property
    def domains(self) -> list[str]:
        return sorted(self._domains)

    def dgettext(self, domain: str, key: str) -> str:
        return self._domains.get(domain, {}).get(key, key)
