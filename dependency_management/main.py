#!/usr/bin/env python3
"""
Command line entry point: add dependency management to a POM.

Usage:
    python -m dependency_management.main [options]

Options:
    --pom FILE                  POM to configure (default: an empty <project/>)
    --output FILE               Write the configured POM here instead of stdout
    --import G:A:V              Import a BOM (repeatable, in order)
    --managed G:A:V             Manage a single artifact's version (repeatable)
    --exclude G:A:EG:EA         Add exclusion EG:EA to managed artifact G:A (repeatable)
    --property NAME=VALUE       Property override used while resolving BOMs (repeatable)
    --repository URL            Remote Maven repository (repeatable, replaces the configured ones)
    --local-repository DIR      Directory laid out as a Maven repository
    --imported-bom-action       import (default) or copy
    --disable-customization     Leave the POM untouched

Examples:
    python -m dependency_management.main --import org.springframework.boot:spring-boot-dependencies:1.5.9.RELEASE
    python -m dependency_management.main --pom pom.xml --import test:bom:1.0 --property spring.version=4.3.5.RELEASE
"""

import argparse
import sys
import xml.etree.ElementTree as ET
from collections import defaultdict
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from .config.settings import ImportedBomAction, PomCustomizationSettings, get_settings
from .core.exceptions import ConfigurationError, ConstructionError, DependencyManagementException
from .core.logging_config import get_logger, log_error_with_context, setup_logging
from .processing.maven_model import Coordinates, Exclusion
from .processing.pom_resolver import PomResolver
from .processing.pom_tree import parse_pom_text, serialize_pom
from .services.dependency_management_container import DependencyManagementContainer
from .services.pom_configurer import PomDependencyManagementConfigurer
from .services.repository_client import create_repository_client

logger = get_logger("main")

EMPTY_POM = "<project></project>"


def parse_properties(values: Sequence[str]) -> Dict[str, str]:
    properties = {}
    for value in values:
        name, separator, text = value.partition('=')
        if not separator or not name:
            raise ConstructionError(f"Invalid property '{value}', expected NAME=VALUE", field_name="property")
        properties[name] = text
    return properties


def parse_exclusions(values: Sequence[str]) -> Dict[str, List[Exclusion]]:
    exclusions: Dict[str, List[Exclusion]] = defaultdict(list)
    for value in values:
        parts = value.split(':')
        if len(parts) != 4:
            raise ConstructionError(f"Invalid exclusion '{value}', expected G:A:EG:EA", field_name="exclude")
        exclusions[f"{parts[0]}:{parts[1]}"].append(Exclusion(parts[2], parts[3]))
    return exclusions


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Add BOM imports and managed versions to a POM",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--pom", help="POM to configure")
    parser.add_argument("--output", help="Where to write the configured POM")
    parser.add_argument("--import", dest="imports", action="append", default=[], metavar="G:A:V",
                        help="Import a BOM")
    parser.add_argument("--managed", action="append", default=[], metavar="G:A:V",
                        help="Manage the version of an artifact")
    parser.add_argument("--exclude", action="append", default=[], metavar="G:A:EG:EA",
                        help="Exclusion for a managed artifact")
    parser.add_argument("--property", action="append", default=[], metavar="NAME=VALUE",
                        help="Property override used while resolving BOMs")
    parser.add_argument("--repository", action="append", default=[], metavar="URL",
                        help="Remote Maven repository")
    parser.add_argument("--local-repository", metavar="DIR", help="Local Maven repository directory")
    parser.add_argument("--imported-bom-action", choices=[action.value for action in ImportedBomAction],
                        help="How imported BOMs appear in the POM")
    parser.add_argument("--disable-customization", action="store_true", help="Leave the POM untouched")
    return parser


def run(args: argparse.Namespace) -> str:
    """Configure the POM described by ``args`` and return it as text."""
    settings = get_settings().model_copy()
    if args.repository:
        settings.repository_urls = list(args.repository)
    if args.local_repository:
        settings.local_repository = args.local_repository

    resolver = PomResolver(
        create_repository_client(settings),
        cache_size=settings.resolution_cache_size,
        max_depth=settings.max_import_depth,
    )
    container = DependencyManagementContainer(resolver)

    for notation in args.imports:
        container.import_bom(None, Coordinates.parse(notation))

    exclusions = parse_exclusions(args.exclude)
    for notation in args.managed:
        coordinates = Coordinates.parse(notation)
        container.add_managed_version(
            None, coordinates.group_id, coordinates.artifact_id, coordinates.version,
            exclusions.get(coordinates.ga_coordinates, [])
        )

    overrides = {}
    if args.disable_customization:
        overrides["enabled"] = False
    if args.imported_bom_action:
        overrides["imported_bom_action"] = ImportedBomAction(args.imported_bom_action)
    customization = PomCustomizationSettings(**overrides)

    pom_text = EMPTY_POM
    if args.pom:
        try:
            pom_text = Path(args.pom).read_bytes()
        except OSError as e:
            raise ConfigurationError(f"Cannot read POM {args.pom}: {e}", config_key="pom", cause=e)
    try:
        root = parse_pom_text(pom_text)
    except ET.ParseError as e:
        raise ConfigurationError(f"Invalid POM {args.pom or ''}: {e}", config_key="pom", cause=e)

    configurer = PomDependencyManagementConfigurer(
        container, customization, current_properties=parse_properties(args.property)
    )
    configurer.configure_pom(root)
    return serialize_pom(root)


def main(argv: Optional[Sequence[str]] = None) -> int:
    settings = get_settings()
    setup_logging(settings.log_level.value, json_output=settings.log_json)
    for warning in settings.validate_settings():
        logger.warning(warning)

    args = build_parser().parse_args(argv)
    try:
        output = run(args)
    except DependencyManagementException as e:
        log_error_with_context("main", e)
        return 1

    if args.output:
        Path(args.output).write_text(output, encoding='utf-8')
        logger.info(f"Wrote {args.output}")
    else:
        sys.stdout.write(output + "\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
