"""
Block Loader for blockreg.

This module registers the block definitions declared in the configuration
file, so that blocks with declarative attribute rules can be added without
writing code.
"""

import logging
from typing import List, Optional

from .registry import BlockRegistry, RegistryResult, block_registry
from .config import ConfigManager, config


class BlockLoader:
    """
    Loads configuration-declared block definitions into a registry.
    """

    def __init__(self, registry: Optional[BlockRegistry] = None, config_manager: Optional[ConfigManager] = None):
        """
        Initialize the block loader.

        Args:
            registry: Registry to load into (defaults to the global registry)
            config_manager: Configuration to read (defaults to the global configuration)
        """
        self.registry = registry if registry is not None else block_registry
        self.config_manager = config_manager if config_manager is not None else config
        self._loaded: List[str] = []

    @property
    def loaded_slugs(self) -> List[str]:
        """Slugs registered by this loader."""
        return list(self._loaded)

    def load_definitions(self) -> List[RegistryResult]:
        """
        Register every block definition from configuration.

        Returns:
            One result per declared definition that was attempted
        """
        results = []

        for slug, settings in self.config_manager.block_definitions.items():
            if settings is None:
                settings = {}
            if not isinstance(settings, dict):
                logging.error(f"Skipping block definition '{slug}': settings must be a mapping")
                continue

            result = self.registry.register(slug, settings)
            results.append(result)

            if result:
                self._loaded.append(slug)
                logging.info(f"Loaded block definition: {slug}")

        return results

    def reload_definitions(self) -> List[RegistryResult]:
        """Unregister loaded blocks, reload configuration, and load again."""
        for slug in self._loaded:
            self.registry.unregister(slug)
        self._loaded.clear()

        self.config_manager.reload()
        results = self.load_definitions()
        logging.info("Block definitions reloaded")
        return results
