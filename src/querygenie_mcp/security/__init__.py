"""Credential handling for external connections."""

from __future__ import annotations

from .vault import CredentialVault, derive_key, mask_secret

__all__ = [
    "CredentialVault",
    "derive_key",
    "mask_secret",
]
