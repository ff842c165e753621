#!/usr/bin/env python3
"""
blockreg - Block Registry

Command line entry point. Registers the blocks declared in the configuration
file, then lists them or resolves the attributes of a block instance.
"""

import logging
import sys
import argparse
import json

from blockreg import __version__
from blockreg.attributes import resolve_attributes
from blockreg.config import ConfigManager
from blockreg.loader import BlockLoader
from blockreg.models import BlockDefinition, ContentNode
from blockreg.registry import BlockRegistry


def setup_logging(config_manager: ConfigManager):
    """Configure logging for the application."""
    level = getattr(logging, str(config_manager.log_level).upper(), logging.INFO)
    handlers = [logging.StreamHandler(sys.stderr)]
    if config_manager.log_filename:
        handlers.append(logging.FileHandler(config_manager.log_filename))

    logging.basicConfig(
        level=level,
        format=config_manager.log_format,
        handlers=handlers,
        force=True
    )


def describe_block(block: BlockDefinition) -> dict:
    """
    Summarize a block definition as JSON-serializable data.

    Args:
        block: The block to describe

    Returns:
        Dictionary with the block's slug, visibility and attribute source
    """
    source = block.attributes.kind if block.attributes is not None else None
    summary = {
        "slug": block.slug,
        "is_visible": block.is_visible,
        "attributes": source,
    }
    if block.extensions:
        summary["extensions"] = block.extensions
    return summary


def parse_arguments(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="blockreg - Block Registry",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py --list                                   # List every configured block
  python main.py --list --visible                         # List visible blocks only
  python main.py --resolve core/quote --content '<blockquote>Hi</blockquote>'
  python main.py --resolve core/image --content '<img src="a.png">' --attrs '{"align": "left"}'
        """
    )

    parser.add_argument(
        "--config",
        type=str,
        default="config.yaml",
        help="Path to the configuration file (default: config.yaml)"
    )

    parser.add_argument(
        "--list",
        action="store_true",
        help="List registered blocks"
    )

    parser.add_argument(
        "--visible",
        action="store_true",
        help="With --list, only list visible blocks"
    )

    parser.add_argument(
        "--resolve",
        metavar="SLUG",
        type=str,
        help="Resolve the attributes of a block instance"
    )

    parser.add_argument(
        "--content",
        type=str,
        default="",
        help="Raw content of the block instance (used with --resolve)"
    )

    parser.add_argument(
        "--attrs",
        type=str,
        default="{}",
        help="JSON object of parsed shorthand attributes (used with --resolve)"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"blockreg {__version__}"
    )

    return parser.parse_args(argv)


def run(args) -> int:
    """
    Run the command described by parsed arguments.

    Returns:
        Process exit status
    """
    config_manager = ConfigManager(args.config)
    setup_logging(config_manager)

    registry = BlockRegistry()
    BlockLoader(registry, config_manager).load_definitions()

    if args.resolve:
        block = registry.get(args.resolve)
        if block is None:
            print(f"Unknown block: {args.resolve}", file=sys.stderr)
            return 1

        try:
            attrs = json.loads(args.attrs)
        except json.JSONDecodeError as e:
            print(f"Invalid --attrs JSON: {e}", file=sys.stderr)
            return 2
        if not isinstance(attrs, dict):
            print("--attrs must be a JSON object", file=sys.stderr)
            return 2

        node = ContentNode(slug=args.resolve, raw_content=args.content, attrs=attrs)
        print(json.dumps(resolve_attributes(node, block)))
        return 0

    blocks = registry.list_visible() if args.visible else registry.list_all()
    for block in blocks:
        print(json.dumps(describe_block(block)))
    return 0


def main():
    """Main entry point."""
    args = parse_arguments()
    sys.exit(run(args))


if __name__ == "__main__":
    main()
