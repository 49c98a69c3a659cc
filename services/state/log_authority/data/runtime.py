"""Log Authority Postgres runtime wiring."""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.orm import Session, sessionmaker

from packages.ark_shared.config import ArkSettings
from resources.substrates.postgres import (
    SharedPostgresSubstrate,
    create_session_factory,
    resolve_postgres_settings,
)


@dataclass(frozen=True)
class LogPostgresRuntime:
    """Concrete handle for the primary store's Postgres access."""

    substrate: SharedPostgresSubstrate
    session_factory: sessionmaker[Session]

    @classmethod
    def from_settings(cls, settings: ArkSettings) -> "LogPostgresRuntime":
        """Build the primary store runtime from typed application settings."""
        substrate = SharedPostgresSubstrate(settings=resolve_postgres_settings(settings))
        return cls(
            substrate=substrate,
            session_factory=create_session_factory(substrate.engine),
        )

    def is_healthy(self) -> bool:
        """Return ``True`` when backing Postgres connection is reachable."""
        return self.substrate.health().ready
