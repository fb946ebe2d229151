"""CLI entry point for ExtraDrop."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import NoReturn

from pydantic import ValidationError

from extradrop.backend import DropboxBackend, DropboxBuilder
from extradrop.config import Settings, get_settings
from extradrop.credentials import CredentialConfig, RefreshableCredential, resolve_credential
from extradrop.exceptions import ExtraDropError
from extradrop.logging import configure_logging
from extradrop.root import normalize_root


def main(argv: list[str] | None = None) -> NoReturn:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        prog="extradrop",
        description="Resolve and refresh Dropbox backend credentials from DROPBOX_* settings",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # check command
    subparsers.add_parser(
        "check",
        help="Validate the credential configuration without network access",
    )

    # token command
    token_parser = subparsers.add_parser(
        "token",
        help="Print a valid access token, refreshing it if needed",
    )
    token_parser.add_argument(
        "--json",
        action="store_true",
        help="Print the token and its expiry as JSON",
    )

    args = parser.parse_args(argv)

    try:
        settings = get_settings()
        configure_logging(is_production=settings.is_production, log_level=settings.log_level)

        if args.command == "check":
            cmd_check(settings)
        elif args.command == "token":
            asyncio.run(cmd_token(settings, as_json=args.json))
    except (ExtraDropError, ValidationError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        print("\nAborted", file=sys.stderr)
        sys.exit(130)

    sys.exit(0)


def cmd_check(settings: Settings) -> None:
    """Execute the check command."""
    options = settings.to_options()
    credential = resolve_credential(CredentialConfig.from_map(options))
    root = normalize_root(settings.root or "")

    mode = "refreshable" if isinstance(credential, RefreshableCredential) else "fixed"
    print(f"Credential: {mode}")
    print(f"Root: {root}")


async def cmd_token(settings: Settings, as_json: bool = False) -> None:
    """Execute the token command."""
    backend: DropboxBackend = DropboxBuilder.from_settings(settings).build()

    async with backend:
        signer = backend.core.signer
        token = await signer.get_valid_token()

        if not as_json:
            print(token)
            return

        credential = signer.credential
        expires_at = None
        if isinstance(credential, RefreshableCredential) and credential.expires_at:
            expires_at = credential.expires_at.isoformat()
        print(json.dumps({"access_token": token, "expires_at": expires_at}, indent=2))


if __name__ == "__main__":
    main()
