"""Command-line tools for working with field mapping rulesets."""

import argparse
import json
import logging
import sys
from typing import List, Optional

from .config import Settings
from .models.schema import FieldMapping, default_product_mappings
from .services.lookup import InMemoryEntityLookup
from .services.pipeline import MappingPipeline
from .services.transformer import TransformEngine
from .storage import validate_field_mapping
from .errors import ShopbridgeError

logger = logging.getLogger(__name__)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="Shopbridge - Shopware to Shopify field mapping tools"
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Preview transformation
    preview_parser = subparsers.add_parser("preview", help="Preview a transformation")
    preview_parser.add_argument("--mapping", help="Path to mapping rules JSON file")
    preview_parser.add_argument("--input", required=True, help="Path to source document JSON file")
    preview_parser.add_argument("--defaults", action="store_true",
                                help="Use the built-in product rules")
    preview_parser.add_argument("--lookup", help="Path to entity lookup tables JSON file")

    # Validate mapping
    validate_parser = subparsers.add_parser("validate", help="Check every rule's config")
    validate_parser.add_argument("--mapping", required=True, help="Path to mapping rules JSON file")

    # Default rules
    subparsers.add_parser("defaults", help="Print the built-in product rules")

    args = parser.parse_args(argv)

    # Set up logging
    settings = Settings.from_env()
    log_level = logging.DEBUG if args.verbose else getattr(logging, settings.log_level, logging.INFO)
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    if args.command == "preview":
        return run_preview(args, settings)
    elif args.command == "validate":
        return run_validation(args)
    elif args.command == "defaults":
        return run_defaults(args)

    parser.print_help()
    return 1


def _load_mappings(path: Optional[str], use_defaults: bool) -> List[FieldMapping]:
    mappings = default_product_mappings() if use_defaults else []
    if path:
        mappings.extend(FieldMapping.list_from_json_file(path))
    return mappings


def run_preview(args, settings: Settings) -> int:
    """Run a ruleset against a source document and print the result."""
    if not args.mapping and not args.defaults:
        print("Either --mapping or --defaults is required", file=sys.stderr)
        return 2

    mappings = _load_mappings(args.mapping, args.defaults)

    lookup = None
    if args.lookup:
        with open(args.lookup) as f:
            lookup = InMemoryEntityLookup(json.load(f))

    engine = TransformEngine(entity_lookup=lookup, gid_namespace=settings.gid_namespace)
    pipeline = MappingPipeline(engine)

    with open(args.input, "rb") as f:
        raw = f.read()

    try:
        result = pipeline.transform_json(raw, mappings)
    except ShopbridgeError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(json.dumps(result.to_dict(), indent=2, default=str))
    return 0 if result.success else 1


def run_validation(args) -> int:
    """Parse every rule and its config eagerly and report the problems."""
    mappings = FieldMapping.list_from_json_file(args.mapping)
    engine = TransformEngine()

    print("\n=== Validating Mapping ===")

    problems = []
    for position, mapping in enumerate(mappings, 1):
        label = f"{position}. {mapping.source_field or '?'} -> {mapping.dest_field or '?'}"
        for check in (validate_field_mapping, engine.check_config):
            try:
                check(mapping)
            except ShopbridgeError as e:
                problems.append(f"{label}: {e}")

    for problem in problems:
        print(f"  - {problem}")

    if not problems:
        print(f"\nAll {len(mappings)} rules are valid!")
        return 0

    print(f"\nFound {len(problems)} problems")
    return 1


def run_defaults(args) -> int:
    """Print the built-in product rules as JSON."""
    rules = [m.to_dict() for m in default_product_mappings()]
    print(json.dumps(rules, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
