"""
Locale message catalogs.

Catalogs are YAML files in ./locales, loaded once per locale. Every locale is
layered on top of the English catalog so untranslated rules still render.
"""

import copy
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List

import yaml

from shared.utils.logger import setup_logger

logger = setup_logger(__name__)

LOCALES_DIR = Path(__file__).parent / "locales"
DEFAULT_LOCALE = "en"

# Catalogs supplied at runtime (take precedence over files with the same locale)
_REGISTERED_CATALOGS: Dict[str, Dict[str, Any]] = {}


def _read_catalog_file(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        logger.error(f"Failed to parse message catalog {path}: {e}")
        raise


def _merge(base: Dict[str, Any], overlay: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in overlay.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def available_locales() -> List[str]:
    """Locales with a shipped or registered catalog"""
    shipped = sorted(path.stem for path in LOCALES_DIR.glob("*.yaml"))
    extra = [name for name in _REGISTERED_CATALOGS if name not in shipped]
    return shipped + extra


@lru_cache(maxsize=None)
def get_catalog(locale: str = DEFAULT_LOCALE) -> Dict[str, Any]:
    """
    Get the message catalog for a locale.

    Unknown locales log a warning and fall back to the default locale.

    Args:
        locale: Locale code, e.g. "en", "fr"

    Returns:
        Catalog dictionary (rule -> template or scope -> template)
    """
    base = _read_catalog_file(LOCALES_DIR / f"{DEFAULT_LOCALE}.yaml")
    base = _merge(base, _REGISTERED_CATALOGS.get(DEFAULT_LOCALE, {}))
    if locale == DEFAULT_LOCALE:
        return base

    path = LOCALES_DIR / f"{locale}.yaml"
    if not path.exists() and locale not in _REGISTERED_CATALOGS:
        logger.warning(f"Locale '{locale}' not found. Using default locale '{DEFAULT_LOCALE}'.")
        return base

    overlay = _read_catalog_file(path) if path.exists() else {}
    overlay = _merge(overlay, _REGISTERED_CATALOGS.get(locale, {}))
    logger.debug(f"Loaded message catalog for locale: {locale}")
    return _merge(base, overlay)


def register_catalog(locale: str, messages: Dict[str, Any]) -> None:
    """
    Add or extend a locale catalog at runtime.

    Call at configuration time, before validations run.
    """
    existing = _REGISTERED_CATALOGS.get(locale, {})
    _REGISTERED_CATALOGS[locale] = _merge(existing, messages)
    get_catalog.cache_clear()
    logger.info(f"Registered message catalog for locale: {locale}")
