"""Command-line entrypoint for the querygenie-mcp FastMCP server.

Adds a small ``encrypt`` subcommand so operators can produce vault ciphertext
for connection records with the same secret the server uses. Any other
invocation starts the server.
"""

from __future__ import annotations

import getpass
import sys
import traceback

import dotenv
from fastmcp.utilities.logging import get_logger

from querygenie_mcp.errors import ConfigurationError
from querygenie_mcp.security.vault import CredentialVault

# Configure a module-level logger for local server logs.
_logger = get_logger(__name__)


def encrypt_secret() -> int:
    """Read a secret from stdin (or a hidden prompt) and print its ciphertext."""
    dotenv.load_dotenv()
    try:
        vault = CredentialVault.from_env()
    except ConfigurationError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2
    plaintext = sys.stdin.read().rstrip("\n") if not sys.stdin.isatty() else getpass.getpass()
    if not plaintext:
        print("error: nothing to encrypt", file=sys.stderr)
        return 2
    print(vault.encrypt(plaintext))
    return 0


def main() -> None:
    """Start the querygenie-mcp FastMCP server via CLI."""
    if sys.argv[1:2] == ["encrypt"]:
        sys.exit(encrypt_secret())

    from querygenie_mcp.server import mcp  # noqa: PLC0415

    try:
        mcp.run()
    except KeyboardInterrupt:
        _logger.info("Interrupted by user. Exiting cleanly.")
    except Exception:  # noqa: BLE001
        traceback.print_exc(limit=1)


if __name__ == "__main__":
    # Delegate to main() so behavior is consistent across execution paths.
    main()
