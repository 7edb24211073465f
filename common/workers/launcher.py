"""
Operator launcher: runs the HTTP API and the task controller in one process.
"""

import asyncio
import sys
from typing import Optional

import uvicorn

from api.main import create_app
from common.core.config import Settings, load_settings
from common.core.context import OperatorContext, build_context
from common.core.exceptions import ConfigError
from common.core.telemetry import get_logger, initialize_telemetry
from packages.tasks.controllers.reconciler import TaskController


class OperatorLauncher:
    """Handles startup, lifecycle and exit codes for the operator process.

    The HTTP server and the controller run side by side; when either one
    stops, the other is cancelled and the process exits.
    """

    def __init__(self):
        self.logger = get_logger(__name__)
        self.server: Optional[uvicorn.Server] = None
        self.controller: Optional[TaskController] = None

    def _create_server(self, context: OperatorContext) -> uvicorn.Server:
        settings = context.settings
        config = uvicorn.Config(
            create_app(context),
            host=settings.http_host,
            port=settings.http_port,
            log_level=settings.log_level.lower(),
            # Logging is configured by initialize_telemetry
            log_config=None,
        )
        return uvicorn.Server(config)

    async def _run_async(self, context: OperatorContext) -> bool:
        """Run until one side stops. Returns False if it stopped on an error."""
        self.server = self._create_server(context)
        self.controller = TaskController(context.repository)

        self.logger.info(
            f"Starting HTTP server on {context.settings.http_host}:{context.settings.http_port}"
        )
        server_task = asyncio.create_task(self.server.serve(), name="http-server")
        controller_task = asyncio.create_task(self.controller.run(), name="controller")

        done, pending = await asyncio.wait(
            {server_task, controller_task}, return_when=asyncio.FIRST_COMPLETED
        )

        ok = True
        for finished in done:
            name = finished.get_name()
            if finished.exception() is not None:
                ok = False
                self.logger.error(
                    f"{name} failed: {finished.exception()}",
                    exc_info=finished.exception(),
                )
            else:
                self.logger.warning(f"{name} stopped")

        self.controller.stop()
        self.server.should_exit = True
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        return ok

    def run(self, settings: Optional[Settings] = None) -> None:
        """Main entry point. Configuration and cluster errors are fatal."""
        try:
            settings = settings or load_settings()
        except ConfigError as e:
            print(f"ERROR: {e}", file=sys.stderr)
            sys.exit(2)

        initialize_telemetry(settings)
        self.logger.info("Starting Lambda-like Kubernetes Operator (HTTP Version)")
        self.logger.info(f"Configuration loaded: port={settings.http_port}")

        try:
            context = build_context(settings)
        except ConfigError as e:
            self.logger.error(f"Failed to initialize Kubernetes client: {e}")
            sys.exit(1)
        self.logger.info("Kubernetes client initialized")

        try:
            ok = asyncio.run(self._run_async(context))
        except KeyboardInterrupt:
            self.logger.info("Received keyboard interrupt, exiting...")
            ok = True

        sys.exit(0 if ok else 1)


def main() -> None:
    OperatorLauncher().run()
