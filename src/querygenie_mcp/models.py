"""Pydantic models shared across the core and the MCP tools.

Connection records arrive already resolved by the surrounding layer with
their secrets still encrypted. Decrypted material only ever lives in a
transient `Credentials` object for the duration of one call.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from pydantic import BaseModel, Field, model_validator

# Stored connection kinds. Not every kind has an adapter; selection of a kind
# without one fails with UnsupportedEngine before any connection attempt.
EngineKind = Literal["postgres", "mysql", "mssql", "sqlite"]

AccessMode = Literal["read-only", "read-write"]


class SslConfig(BaseModel):
    """TLS settings for network engines."""

    enabled: bool = Field(default=False, description="Enable TLS for the connection")
    reject_unauthorized: bool = Field(
        default=True, description="Verify the server certificate chain and host name"
    )
    ca: str | None = Field(default=None, description="Path to a CA bundle file")
    cert: str | None = Field(default=None, description="Path to a client certificate file")
    key: str | None = Field(default=None, description="Path to a client private key file")


class ConnectionConfig(BaseModel):
    """A resolved external database connection with encrypted secrets."""

    engine: EngineKind = Field(description="Engine kind of the external database")
    mode: AccessMode = Field(
        default="read-only", description="Access mode constraining statement shapes"
    )
    host: str | None = Field(default=None, description="Server host name")
    port: int | None = Field(default=None, ge=1, le=65535, description="Server port")
    database: str | None = Field(
        default=None, description="Database name, or the file path for embedded engines"
    )
    username: str | None = Field(default=None, description="Login user name")
    encrypted_password: str | None = Field(
        default=None, description="Vault ciphertext of the password"
    )
    encrypted_connection_string: str | None = Field(
        default=None, description="Vault ciphertext of a full connection URL"
    )
    ssl: SslConfig | None = Field(default=None, description="Optional TLS configuration")

    @model_validator(mode="after")
    def _single_secret(self) -> ConnectionConfig:
        if self.encrypted_password and self.encrypted_connection_string:
            msg = "encrypted_password and encrypted_connection_string are mutually exclusive"
            raise ValueError(msg)
        return self

    @property
    def is_read_only(self) -> bool:
        return self.mode == "read-only"

    def describe(self) -> str:
        """Log-safe one-line description (never includes secrets)."""
        if self.engine == "sqlite":
            return f"sqlite:{self.database or ':memory:'}"
        if self.encrypted_connection_string:
            return f"{self.engine}:<connection-string>"
        return f"{self.engine}://{self.host or 'localhost'}:{self.port or '-'}/{self.database or ''}"


@dataclass(slots=True)
class Credentials:
    """Decrypted secret material for exactly one call.

    Only one of ``password`` or ``connection_string`` is populated.
    """

    password: str | None = field(default=None, repr=False)
    connection_string: str | None = field(default=None, repr=False)

    def __repr__(self) -> str:
        kind = "connection_string" if self.connection_string else "password"
        return f"Credentials({kind}=***)"
