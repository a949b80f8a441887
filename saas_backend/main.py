"""Main module entrypoint for local runtime execution.

This module validates startup configuration, bootstraps the database and
serves the FastAPI application until a shutdown signal arrives. Any startup
failure ends the process with exit code 1.
"""

import argparse
import asyncio

import structlog

from saas_backend.bootstrap import (
    bootstrap_connect_database,
    bootstrap_create_application,
    bootstrap_create_lifecycle,
)
from saas_backend.config import AppSettings, SettingsLoadError, config_load_settings, logging_configure
from saas_backend.errors import AppError, error_from_exception, error_log
from saas_backend.lifecycle import LifecycleError

logger = structlog.stdlib.get_logger(__name__)


def main(argv: list[str] | None = None) -> None:
    """Run selected runtime command with validated startup configuration.

    Args:
        argv: Optional argument list; defaults to `sys.argv[1:]`.

    Raises:
        SystemExit: Raised with code 1 when any startup step fails.
    """

    argument_parser = argparse.ArgumentParser(description="SaaS backend runtime entrypoint")
    argument_parser.add_argument(
        "command",
        nargs="?",
        default="serve",
        choices=("serve", "migrate"),
        help="Runtime command: `serve` bootstraps and starts the server, "
        "`migrate` applies pending schema migrations and exits",
        type=str,
    )
    parsed_arguments = argument_parser.parse_args(argv)

    try:
        settings = config_load_settings()
    except SettingsLoadError as error:
        # Invalid settings cannot pick the renderer; log with the field defaults.
        logging_configure(AppSettings.model_construct())
        main_abort_startup(error_from_exception(error))

    logging_configure(settings)
    logger.info("Starting", command=parsed_arguments.command, environment=settings.environment)

    if parsed_arguments.command == "migrate":
        try:
            engine = bootstrap_connect_database(settings)
        except AppError as error:
            main_abort_startup(error)
        engine.dispose()
        return

    try:
        application = bootstrap_create_application(settings)
    except AppError as error:
        main_abort_startup(error)

    lifecycle = bootstrap_create_lifecycle(settings, application)
    try:
        asyncio.run(lifecycle.lifecycle_serve())
    except LifecycleError as error:
        logger.error("Server failed", address=settings.server_address, error=str(error))
        raise SystemExit(1) from error
    finally:
        engine = application.state.app_state.engine
        if engine is not None:
            engine.dispose()


def main_abort_startup(error: AppError) -> None:
    """Log a fatal startup error and exit with code 1.

    Args:
        error: Classified startup failure.

    Raises:
        SystemExit: Always raised with code 1.
    """

    error_log(error)
    logger.error("Startup aborted", error_code=error.code)
    raise SystemExit(1) from error


if __name__ == "__main__":
    main()
