"""CLI context for per-invocation state.

The CLIContext is set once by the root command and made available to every
subcommand via contextvars. It owns the ServiceContext built from the loaded
configuration.
"""

import contextvars
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Self

from oasvault.config import load_config
from oasvault.context import ServiceContext, create_context


class OutputFormat(StrEnum):
    """Supported output formats for commands."""

    JSON = "json"
    YAML = "yaml"
    TABLE = "table"


_current_cli_context: contextvars.ContextVar["CLIContext | None"] = (
    contextvars.ContextVar("cli_context", default=None)
)


@dataclass(frozen=True, slots=True)
class CLIContext:
    """Per-invocation CLI state.

    Attributes:
        services: The wired oasvault services.
        actor: Identity recorded on audit records for mutating commands.
    """

    services: ServiceContext = field(repr=False)
    actor: str | None = None

    @classmethod
    def get_current(cls) -> Self:
        """Get the active CLIContext, building a default one if none is set.

        The default loads configuration from ``oasvault.toml`` and the
        environment, with a null logger.
        """
        ctx = _current_cli_context.get()
        if ctx is not None:
            return ctx
        return cls(services=create_context(load_config()))

    @classmethod
    def set_current(cls, ctx: Self) -> None:
        """Set the active CLIContext."""
        _ = _current_cli_context.set(ctx)

    @classmethod
    def reset(cls) -> None:
        """Clear the active context."""
        _ = _current_cli_context.set(None)
