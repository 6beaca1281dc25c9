# src/main.py — v2
"""CLI entry point: encrypt, save-config, set-secret, validate, categorize.

Usage:
    stowvision encrypt < key.txt
    stowvision save-config --household h1 --actor uid --config llm.json
    stowvision set-secret --household h1 --actor uid < key.txt
    stowvision validate --household h1 --actor uid
    stowvision categorize --household h1 --actor uid --image-url https://...

Gateway commands run against the document store selected in settings
(DOCUMENT_STORE=json with DOCUMENT_STORE_PATH for a persistent file).
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from stowvision.config.settings import ConfigurationError, Settings, load_settings
from stowvision.core.errors import GatewayError
from stowvision.version import __version__

logger = logging.getLogger(__name__)

EXIT_GATEWAY_ERROR = 2


def main(argv: list[str] | None = None) -> int:
    """Run one stowvision CLI command and return its exit code."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        args.settings = load_settings()
    except (ConfigurationError, ValidationError) as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 1
    _setup_logging(args.settings, args.verbose)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    try:
        return asyncio.run(args.func(args))
    except GatewayError as exc:
        print(json.dumps(exc.to_dict(), indent=2))
        return EXIT_GATEWAY_ERROR
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return 1


def _build_parser() -> argparse.ArgumentParser:
    """Argument parser with one subcommand per gateway operation."""
    parser = argparse.ArgumentParser(
        prog="stowvision",
        description=f"stowvision v{__version__} - household vision categorization gateway",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- encrypt ---
    p_encrypt = subparsers.add_parser(
        "encrypt", help="Encrypt a secret read from stdin into an envelope",
    )
    p_encrypt.set_defaults(func=_cmd_encrypt)

    # --- save-config ---
    p_save = subparsers.add_parser("save-config", help="Save a household LLM config")
    _add_target_args(p_save)
    p_save.add_argument(
        "--config", dest="config_file", type=Path, required=True,
        help="Path to a JSON config document",
    )
    p_save.set_defaults(func=_cmd_save_config)

    # --- set-secret ---
    p_secret = subparsers.add_parser(
        "set-secret", help="Store a provider API key read from stdin",
    )
    _add_target_args(p_secret)
    p_secret.set_defaults(func=_cmd_set_secret)

    # --- validate ---
    p_validate = subparsers.add_parser(
        "validate", help="Check the stored key against its provider",
    )
    _add_target_args(p_validate)
    p_validate.set_defaults(func=_cmd_validate)

    # --- categorize ---
    p_cat = subparsers.add_parser("categorize", help="Categorize one image")
    _add_target_args(p_cat)
    source = p_cat.add_mutually_exclusive_group(required=True)
    source.add_argument("--image-url", default=None, help="Direct image URL")
    source.add_argument("--storage-path", default=None, help="Object storage path")
    p_cat.add_argument("--area-name", default=None, help="Area hint for the prompt")
    p_cat.set_defaults(func=_cmd_categorize)

    return parser


def _add_target_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--household", required=True, help="Household id")
    parser.add_argument("--actor", required=True, help="Acting user id")


async def _cmd_encrypt(args: argparse.Namespace) -> int:
    """Print an envelope for the secret on stdin."""
    from stowvision.crypto.encryption_context import EncryptionContext
    from stowvision.crypto.secret_codec import SecretCodec

    codec = SecretCodec(EncryptionContext.from_settings(args.settings))
    print(await codec.encrypt(_read_stdin_secret()))
    return 0


async def _cmd_save_config(args: argparse.Namespace) -> int:
    config_file: Path = args.config_file
    if not config_file.exists():
        logger.error("File not found: %s", config_file)
        return 1
    config = json.loads(config_file.read_text(encoding="utf-8"))
    return await _run(
        "save_config", {"householdId": args.household, "config": config},
        args.actor, args.settings,
    )


async def _cmd_set_secret(args: argparse.Namespace) -> int:
    payload = {"householdId": args.household, "apiKey": _read_stdin_secret()}
    return await _run("set_secret", payload, args.actor, args.settings)


async def _cmd_validate(args: argparse.Namespace) -> int:
    return await _run(
        "validate_config", {"householdId": args.household}, args.actor, args.settings,
    )


async def _cmd_categorize(args: argparse.Namespace) -> int:
    if args.image_url:
        image_ref: dict[str, Any] = {"imageUrl": args.image_url}
    else:
        image_ref = {"storagePath": args.storage_path}
    payload: dict[str, Any] = {"householdId": args.household, "imageRef": image_ref}
    if args.area_name:
        payload["context"] = {"areaName": args.area_name}
    return await _run("categorize", payload, args.actor, args.settings)


async def _run(
    operation: str, payload: dict[str, Any], actor: str, settings: Settings,
) -> int:
    """Run one gateway operation and print its JSON result."""
    from stowvision.api.facade import VisionGateway

    async with VisionGateway.from_settings(settings) as gateway:
        result = await getattr(gateway, operation)(payload, actor)
    print(json.dumps(result, indent=2))
    return 0


def _read_stdin_secret() -> str:
    return sys.stdin.read().strip()


def _setup_logging(settings: Settings, verbose: bool) -> None:
    """Configure logging for CLI usage from LOG_* settings."""
    from stowvision.logging.logger import setup_logging

    setup_logging(
        level="DEBUG" if verbose else settings.log_level,
        log_format=settings.log_format,
        log_file=str(settings.log_file) if settings.log_file else None,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
    )


if __name__ == "__main__":
    sys.exit(main())
