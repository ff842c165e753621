"""
Block Registry for blockreg.

This module holds the registry of block definitions keyed by their namespaced
slug. Registration misuse (malformed slugs, duplicates, unknown blocks) is
logged and reported through a RegistryResult instead of being raised, so that
one misbehaving registrant cannot stop the others from loading.
"""

import logging
import re
import threading
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError

from .attributes import resolve_attributes
from .models import BlockDefinition, BlockSettings, ContentNode


SLUG_PATTERN = re.compile(r'^[a-z0-9-]+/[a-z0-9-]+$')


class RegistryErrorReason(str, Enum):
    """Why a registry operation was refused."""

    INVALID_KEY_FORMAT = "invalid_key_format"
    DUPLICATE_KEY = "duplicate_key"
    UNKNOWN_KEY = "unknown_key"
    INVALID_SETTINGS = "invalid_settings"


@dataclass(frozen=True)
class RegistryResult:
    """
    Outcome of a register or unregister call.

    Truthy on success. On failure ``block`` is None and ``reason`` says why.
    """
    block: Optional[BlockDefinition] = None
    reason: Optional[RegistryErrorReason] = None
    message: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.reason is None

    def __bool__(self) -> bool:
        return self.ok


class BlockRegistry:
    """
    Registry of all registered blocks, in registration order.
    """

    def __init__(self):
        """Initialize an empty block registry."""
        self._blocks: Dict[str, BlockDefinition] = {}
        self._lock = threading.RLock()

    def register(
        self,
        slug: Any,
        settings: Union[BlockSettings, Mapping, None] = None,
    ) -> RegistryResult:
        """
        Register a new block under a unique namespaced slug.

        Args:
            slug: Block slug of the form 'namespace/name'
            settings: Block settings, as a BlockSettings or a mapping of its fields

        Returns:
            A successful result carrying the stored definition, or a failed
            result naming the reason the block was refused
        """
        if not isinstance(slug, str):
            return self._refuse(RegistryErrorReason.INVALID_KEY_FORMAT, "Block slugs must be strings.")

        if not SLUG_PATTERN.match(slug):
            return self._refuse(
                RegistryErrorReason.INVALID_KEY_FORMAT,
                "Block slugs must contain a namespace prefix. Example: my-plugin/my-custom-block"
            )

        with self._lock:
            if slug in self._blocks:
                return self._refuse(RegistryErrorReason.DUPLICATE_KEY, f'Block "{slug}" is already registered.')

            try:
                if not isinstance(settings, BlockSettings):
                    settings = BlockSettings.model_validate(settings or {})
                block = BlockDefinition(
                    slug=slug,
                    attributes=settings.attributes,
                    is_visible=settings.is_visible,
                    extensions=dict(settings.extensions),
                )
            except ValidationError as e:
                return self._refuse(
                    RegistryErrorReason.INVALID_SETTINGS,
                    f'Block "{slug}" has invalid settings: {e}'
                )

            self._blocks[slug] = block

        logging.debug(f"Registered block: {slug}")
        return RegistryResult(block=block)

    def unregister(self, slug: Any) -> RegistryResult:
        """
        Unregister a block.

        Args:
            slug: Block slug

        Returns:
            A successful result carrying the removed definition, or a failed
            result if the block was not registered
        """
        with self._lock:
            block = self._blocks.pop(slug, None) if isinstance(slug, str) else None

        if block is None:
            return self._refuse(RegistryErrorReason.UNKNOWN_KEY, f'Block "{slug}" is not registered.')

        logging.debug(f"Unregistered block: {slug}")
        return RegistryResult(block=block)

    def get(self, slug: Any) -> Optional[BlockDefinition]:
        """
        Get a block definition by slug.

        Args:
            slug: Block slug

        Returns:
            The block definition, or None if not registered
        """
        if not isinstance(slug, str):
            return None
        return self._blocks.get(slug)

    def list_all(self) -> List[BlockDefinition]:
        """
        Get all registered blocks.

        Returns:
            Block definitions in registration order
        """
        with self._lock:
            return list(self._blocks.values())

    def list_visible(self) -> List[BlockDefinition]:
        """
        Get the blocks that should be offered to users.

        Returns:
            Block definitions not explicitly marked invisible
        """
        return [block for block in self.list_all() if block.is_visible is not False]

    def clear(self) -> None:
        """Remove every registered block."""
        with self._lock:
            self._blocks.clear()

    def __contains__(self, slug: Any) -> bool:
        return self.get(slug) is not None

    def __len__(self) -> int:
        return len(self._blocks)

    def _refuse(self, reason: RegistryErrorReason, message: str) -> RegistryResult:
        logging.error(message)
        return RegistryResult(reason=reason, message=message)


# Global block registry instance
block_registry = BlockRegistry()


def register_block(slug: Any, settings: Union[BlockSettings, Mapping, None] = None) -> RegistryResult:
    """Register a block with the global registry."""
    return block_registry.register(slug, settings)


def unregister_block(slug: Any) -> RegistryResult:
    """Unregister a block from the global registry."""
    return block_registry.unregister(slug)


def get_block_settings(slug: Any) -> Optional[BlockDefinition]:
    """Get a block definition from the global registry."""
    return block_registry.get(slug)


def get_blocks() -> List[BlockDefinition]:
    """Get every block in the global registry."""
    return block_registry.list_all()


def get_visible_blocks() -> List[BlockDefinition]:
    """Get the visible blocks in the global registry."""
    return block_registry.list_visible()


def get_block_attributes(node: ContentNode, definition: BlockSettings) -> Optional[Dict[str, Any]]:
    """Resolve a node's attributes with the default extraction engine."""
    return resolve_attributes(node, definition)
