#!/usr/bin/env python3
"""
Fusion Pipeline Configuration Parser

Parses YAML configuration files for the breakpoint support stage.

Usage:
    # Get single value
    python config_parser.py config.yaml --get reference.cdna_regions

    # Validate configuration
    python config_parser.py config.yaml --validate

    # As Python module
    from utils.config_parser import load_config, get_nested
    config = load_config("config.yaml")
    splice_bias = get_nested(config, "parameters.splice_bias")
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Tuple

import yaml

PLACEHOLDER_PREFIX = "/path/to"

# (key path, description) of region tables every run needs
REQUIRED_PATHS = [
    ("reference.cdna_gene_regions", "Gene cDNA regions"),
    ("reference.cdna_regions", "Transcript cDNA regions"),
    ("reference.gene_tran_list", "Gene/transcript list"),
]


def load_config(config_path: str) -> Dict[str, Any]:
    """
    Load configuration from YAML file.

    Args:
        config_path: Path to YAML configuration file

    Returns:
        Dictionary containing configuration values

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If YAML parsing fails
    """
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(path, 'r') as f:
        config = yaml.safe_load(f)

    if config is None:
        return {}

    return config


def get_nested(config: Dict[str, Any], key_path: str, default: Any = None) -> Any:
    """
    Get a nested value from config using dot notation.

    Args:
        config: Configuration dictionary
        key_path: Dot-separated path (e.g., "parameters.splice_bias")
        default: Default value if key not found

    Returns:
        Value at the specified path, or default if not found

    Examples:
        >>> config = {"parameters": {"splice_bias": 10}}
        >>> get_nested(config, "parameters.splice_bias")
        10
        >>> get_nested(config, "parameters.missing", "default")
        'default'
    """
    value = config

    for key in key_path.split('.'):
        if isinstance(value, dict) and key in value:
            value = value[key]
        else:
            return default

    return value


def validate_config(config: Dict[str, Any]) -> Tuple[bool, List[str]]:
    """
    Validate configuration for required fields.

    Args:
        config: Configuration dictionary

    Returns:
        Tuple of (is_valid, list of error messages)
    """
    errors = []

    for key_path, description in REQUIRED_PATHS:
        value = get_nested(config, key_path)
        if not value or str(value).startswith(PLACEHOLDER_PREFIX):
            errors.append(f"Missing or placeholder: {description} ({key_path})")
        elif not Path(value).exists():
            errors.append(f"{description} not found: {value} ({key_path})")

    splice_bias = get_nested(config, "parameters.splice_bias")
    if splice_bias is None:
        errors.append("Missing: parameters.splice_bias")
    elif isinstance(splice_bias, bool) or not isinstance(splice_bias, int):
        errors.append(f"parameters.splice_bias must be an integer, got {splice_bias!r}")
    elif splice_bias < 0:
        errors.append(f"parameters.splice_bias must be >= 0, got {splice_bias}")

    return len(errors) == 0, errors


def print_config_summary(config: Dict[str, Any]) -> None:
    """Print a human-readable config summary."""
    print("=" * 60)
    print("Fusion Pipeline Configuration Summary")
    print("=" * 60)

    sections = [
        ("Reference", [
            ("reference.cdna_gene_regions", "Gene cDNA Regions"),
            ("reference.cdna_regions", "Transcript cDNA Regions"),
            ("reference.gene_tran_list", "Gene/Transcript List"),
        ]),
        ("Parameters", [
            ("parameters.splice_bias", "Splice Bias"),
        ]),
        ("Tools", [
            ("tools.samtools_bin", "samtools"),
        ]),
    ]

    for section_name, fields in sections:
        print(f"\n{section_name}:")
        for key_path, label in fields:
            value = get_nested(config, key_path, "not set")
            print(f"  {label}: {value}")

    print("\n" + "=" * 60)


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Fusion Pipeline Configuration Parser",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )

    parser.add_argument(
        "config",
        help="Path to YAML configuration file"
    )

    parser.add_argument(
        "--get",
        metavar="KEY",
        help="Get single value using dot notation (e.g., reference.cdna_regions)"
    )

    parser.add_argument(
        "--validate",
        action="store_true",
        help="Validate configuration and report errors"
    )

    parser.add_argument(
        "--summary",
        action="store_true",
        help="Print configuration summary"
    )

    parser.add_argument(
        "--json",
        action="store_true",
        help="Output as JSON (for --get with complex values)"
    )

    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except yaml.YAMLError as e:
        print(f"Error parsing YAML: {e}", file=sys.stderr)
        sys.exit(1)

    if args.get:
        value = get_nested(config, args.get)
        if value is None:
            print(f"Key not found: {args.get}", file=sys.stderr)
            sys.exit(1)
        if args.json:
            print(json.dumps(value))
        else:
            print(value)

    elif args.validate:
        is_valid, errors = validate_config(config)
        if is_valid:
            print("Configuration is valid!")
            sys.exit(0)
        else:
            print("Configuration errors:", file=sys.stderr)
            for error in errors:
                print(f"  - {error}", file=sys.stderr)
            sys.exit(1)

    else:
        # Default: print summary
        print_config_summary(config)


if __name__ == "__main__":
    main()
