"""The command-line interface for oasvault."""
# ruff: noqa: TC003  # Path needed at runtime for cyclopts parameter parsing

from pathlib import Path
from typing import Annotated

from cyclopts import App, Parameter
from rich.console import Console

from oasvault.config import Config, load_config
from oasvault.context import create_context
from oasvault.exceptions import OasVaultError
from oasvault.utils import create_logger

from ._commands import (
    ExitCode,
    exit_code_for_exception,
    exit_with_error,
    register_commands,
)
from ._context import CLIContext

_HELP = "Version, diff and reference-integrity tooling for OpenAPI documents."

LOG_DIR_NAME = ".logs"
LOG_FILE_NAME = "oasvault.log"


def _cli_logging(config: Config) -> Config:
    """Default the log file to ``<root>/.logs/oasvault.log`` when unset."""
    if config.logging.file:
        return config
    log_file = config.storage.root / LOG_DIR_NAME / LOG_FILE_NAME
    return config.model_copy(
        update={"logging": config.logging.model_copy(update={"file": str(log_file)})}
    )


def create_app(
    console: Console | None = None,
    error_console: Console | None = None,
    *,
    exit_on_error: bool = True,
) -> App:
    """Build the oasvault CLI app.

    Run it through ``app.meta(tokens)`` so that the global options are parsed
    and the CLI context is set before a command runs.

    Args:
        console: Console for cyclopts output. Defaults to stdout.
        error_console: Console for errors. Defaults to stderr.
        exit_on_error: Whether cyclopts exits on parse errors.
    """
    if console is None:
        console = Console()
    if error_console is None:
        error_console = Console(stderr=True)
    app = App(
        name="oasvault",
        help=_HELP,
        help_on_error=True,
        console=console,
        error_console=error_console,
        exit_on_error=exit_on_error,
    )

    @app.meta.default
    def _default(  # pyright: ignore[reportUnusedFunction]
        *tokens: Annotated[str, Parameter(show=False, allow_leading_hyphen=True)],
        config: Annotated[
            Path | None, Parameter(name="--config", help="Path to config file")
        ] = None,
        root: Annotated[
            Path | None, Parameter(name="--root", help="Storage root directory")
        ] = None,
        actor: Annotated[
            str | None,
            Parameter(name="--actor", help="Identity recorded in the audit trail"),
        ] = None,
    ) -> None:
        """Launch the oasvault CLI with global options.

        Args:
            tokens: Command tokens to pass to subcommands.
            config: Explicit path to config file.
            root: Storage root directory (overrides the config file).
            actor: Identity recorded in the audit trail.
        """
        overrides = {"storage": {"root": str(root)}} if root is not None else None
        try:
            loaded_config = _cli_logging(load_config(config, overrides=overrides))
        except (OasVaultError, OSError) as e:
            exit_with_error(str(e), exit_code_for_exception(e), console=error_console)

        services = create_context(
            loaded_config, logger=create_logger(loaded_config.logging, component="cli")
        )
        CLIContext.set_current(CLIContext(services=services, actor=actor))

        try:
            app(tokens)
        except OasVaultError as e:
            services.logger.warning("command_failed", **e.to_dict())
            exit_with_error(str(e), exit_code_for_exception(e), console=error_console)
        except KeyboardInterrupt:
            exit_with_error("Cancelled", ExitCode.CANCELLED, console=error_console)
        except Exception as e:
            services.logger.exception("command_crashed", error=str(e))
            exit_with_error(
                f"Internal error: {e}", ExitCode.INTERNAL_ERROR, console=error_console
            )
        finally:
            CLIContext.reset()

    register_commands(app)
    return app


def main() -> None:
    """Default entrypoint for the `oasvault` CLI."""
    app = create_app()
    app.meta()
