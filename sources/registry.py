"""
Source registry for the Tender Portal Monitor.

Source classes register themselves by name with @register_source. The
``sources`` section of config.yaml maps portal ids to source names; a
portal without a mapping, or mapped to an unknown name, is served by the
mock generator.
"""

import importlib
import logging
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional, Type

from database.models import Portal
from sources.base import TenderSource

logger = logging.getLogger(__name__)

DEFAULT_SOURCE = "mock"

# Global registry of source classes
_SOURCE_REGISTRY: Dict[str, Type[TenderSource]] = {}


def register_source(cls: Type[TenderSource]) -> Type[TenderSource]:
    """
    Decorator to register a source class.

    Usage:
        @register_source
        class MySource(TenderSource):
            SOURCE_NAME = "my_source"
            ...
    """
    name = cls.SOURCE_NAME
    if name in _SOURCE_REGISTRY:
        logger.warning(f"Overwriting source registration: {name}")

    _SOURCE_REGISTRY[name] = cls
    logger.debug(f"Registered source: {name} -> {cls.__name__}")

    return cls


def get_source_class(name: str) -> Optional[Type[TenderSource]]:
    """Get a source class by name, or None if not registered."""
    return _SOURCE_REGISTRY.get(name)


def get_source_names() -> List[str]:
    """Get list of all registered source names."""
    return sorted(_SOURCE_REGISTRY.keys())


def discover_sources(sources_dir: Optional[str] = None) -> None:
    """
    Import all source modules so their @register_source decorators run.

    Args:
        sources_dir: Path to sources directory (default: this package)
    """
    sources_path = Path(sources_dir) if sources_dir else Path(__file__).parent

    excluded = {"__init__", "base", "registry", "utils"}

    for py_file in sorted(sources_path.glob("*.py")):
        module_name = py_file.stem
        if module_name in excluded:
            continue

        module = f"sources.{module_name}"
        try:
            importlib.import_module(module)
            logger.debug(f"Imported source module: {module}")
        except ImportError as e:
            logger.warning(f"Failed to import {module_name}: {e}")


def source_name_for(portal: Portal, config: Dict[str, Any]) -> str:
    """Resolve the configured source name for a portal."""
    return (config.get("sources") or {}).get(portal.id, DEFAULT_SOURCE)


def create_source(
    portal: Portal,
    config: Dict[str, Any],
    logger_instance: Optional[logging.Logger] = None,
) -> TenderSource:
    """
    Create the source instance for a portal.

    Args:
        portal: Portal to serve
        config: Configuration dictionary
        logger_instance: Logger instance for the source

    Returns:
        Source instance (mock generator when nothing better is registered)
    """
    name = source_name_for(portal, config)
    source_cls = get_source_class(name)

    if source_cls is None:
        logger.warning(f"Source '{name}' not found for {portal.id}, using {DEFAULT_SOURCE}")
        source_cls = get_source_class(DEFAULT_SOURCE)
        if source_cls is None:
            raise LookupError(f"Default source '{DEFAULT_SOURCE}' is not registered")

    return source_cls(config, logger_instance)


class SourceRegistry:
    """
    Per-portal source cache.

    The scanner calls get() once per portal per cycle; instances are reused
    across cycles so stateful sources (e.g. a seeded generator) keep state.
    """

    def __init__(self, config: Dict[str, Any]):
        """
        Initialize registry.

        Args:
            config: Configuration dictionary
        """
        self.config = config
        self._discovered = False
        self._instances: Dict[str, TenderSource] = {}
        self._lock = threading.Lock()

    def discover(self) -> None:
        """Discover and register all source modules."""
        if not self._discovered:
            discover_sources()
            self._discovered = True

    def get(self, portal: Portal) -> TenderSource:
        """
        Get the source instance for a portal.

        Args:
            portal: Portal to serve

        Returns:
            Source instance
        """
        self.discover()
        with self._lock:
            source = self._instances.get(portal.id)
            if source is None:
                source = create_source(portal, self.config)
                self._instances[portal.id] = source
            return source

    def __call__(self, portal: Portal) -> TenderSource:
        return self.get(portal)

    @property
    def registered_names(self) -> List[str]:
        """Get list of all registered source names."""
        self.discover()
        return get_source_names()
