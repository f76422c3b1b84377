# ============================================================================
# PROBE RUNTIME - MAIN APPLICATION
# ============================================================================
# EPOCH: 1 - CUSTOM UPTIME PROBES
# STATUS: Core - FastAPI application entry point
# PURPOSE: Read configuration, wire components, serve until terminated
# CREATED: 19 OCT 2026
# ============================================================================
"""
Probe Runtime Main Application

Turns one user-supplied probe into an HTTP service for an external
uptime checker:
1. Reads process configuration (port, shared secret, deadline)
2. Resolves and registers the probe
3. Wires validator + supervisor + endpoint into a FastAPI app
4. Serves until SIGTERM, then drains in-flight requests

Usage:
    PROBE_TARGET=probes.examples:http_ok \\
    PROBE_SHARED_SECRET=... PORT=8080 python main.py

    python main.py probes.examples:always_healthy

Startup errors (bad configuration, unloadable probe, port in use) exit
with status 1; the deployment platform is expected to notice and act.
SIGTERM drains, then terminates with the signal (status 143); SIGINT
drains, then exits with status 130.
"""

import argparse
import os
import sys
from contextlib import asynccontextmanager
from typing import List, Optional

import uvicorn
from fastapi import FastAPI

from __version__ import __version__, BUILD_DATE, CODENAME
from api import build_probe_router
from core.config import ConfigurationError, ServiceConfig, load_env_file
from core.config.defaults import ENV_ENV_FILE
from core.contracts import ServiceState
from core.lifecycle import ServiceLifecycle
from core.logging import ComponentType, configure_logging, get_logger
from infrastructure.auth import SharedSecretValidator
from probes import Probe, ProbeRegistryError, load_probe
from supervisor import ProbeSupervisor

logger = get_logger(__name__, ComponentType.BOOTSTRAP)


# ============================================================================
# APPLICATION FACTORY
# ============================================================================

def create_app(
    config: ServiceConfig,
    probe: Probe,
    lifecycle: Optional[ServiceLifecycle] = None,
    supervisor: Optional[ProbeSupervisor] = None,
) -> FastAPI:
    """
    Wire the runtime's components into a FastAPI application.

    The shared secret and the probe are captured here, once, and are
    read-only afterwards.
    """
    lifecycle = lifecycle or ServiceLifecycle()
    validator = SharedSecretValidator(config.shared_secret)
    supervisor = supervisor or ProbeSupervisor(
        timeout_seconds=config.timeout_seconds,
        env=config.probe_environment(),
    )

    if not validator.configured:
        logger.warning(
            "No shared secret configured; every request will be rejected with 401"
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            f"Probe runtime v{__version__} ready: probe={probe.name!r}, "
            f"timeout={config.timeout_seconds:g}s"
        )
        yield
        supervisor.shutdown()
        logger.info("Probe runtime stopped accepting work")

    app = FastAPI(
        title=CODENAME,
        description="Custom uptime probe runtime",
        version=__version__,
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.lifecycle = lifecycle
    app.state.supervisor = supervisor

    app.include_router(
        build_probe_router(
            probe=probe,
            validator=validator,
            supervisor=supervisor,
            timeout_seconds=config.timeout_seconds,
            lifecycle=lifecycle,
        )
    )
    return app


# ============================================================================
# SERVER
# ============================================================================

class ProbeServer(uvicorn.Server):
    """
    uvicorn server that drives the service lifecycle.

    SERVING once sockets are bound, DRAINING when a termination signal
    arrives. uvicorn then stops accepting connections and waits up to
    timeout_graceful_shutdown for in-flight requests; STOPPED once that
    shutdown completes.

    After a signal-driven shutdown uvicorn re-raises the signal with the
    original handler restored, so SIGTERM ends the process with the
    conventional 128+15 status once the lifecycle has reached STOPPED.
    """

    def __init__(self, config: uvicorn.Config, lifecycle: ServiceLifecycle):
        super().__init__(config)
        self.lifecycle = lifecycle

    async def startup(self, sockets=None) -> None:
        await super().startup(sockets=sockets)
        if self.started and self.lifecycle.can_transition(ServiceState.SERVING):
            self.lifecycle.transition(ServiceState.SERVING)

    def handle_exit(self, sig, frame) -> None:
        if self.lifecycle.state is ServiceState.SERVING:
            logger.info(
                f"Received signal {sig}; draining "
                f"{self.lifecycle.in_flight} in-flight request(s)"
            )
            self.lifecycle.transition(ServiceState.DRAINING)
        super().handle_exit(sig, frame)

    async def shutdown(self, sockets=None) -> None:
        await super().shutdown(sockets=sockets)
        if self.lifecycle.can_transition(ServiceState.STOPPED):
            self.lifecycle.transition(ServiceState.STOPPED)
        logger.info("Probe runtime stopped")


def build_server(config: ServiceConfig, probe: Probe) -> ProbeServer:
    """Create the app and the server that will run it."""
    lifecycle = ServiceLifecycle()
    app = create_app(config, probe, lifecycle=lifecycle)
    uv_config = uvicorn.Config(
        app,
        host=config.host,
        port=config.port,
        timeout_graceful_shutdown=int(round(config.shutdown_grace_seconds)) or 1,
        access_log=False,
        log_config=None,
    )
    return ProbeServer(uv_config, lifecycle)


# ============================================================================
# MAIN ENTRY POINT
# ============================================================================

def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Serve a custom uptime probe over HTTP",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s probes.examples:http_ok
  PROBE_TARGET=my_checks.orders %(prog)s
        """,
    )
    parser.add_argument(
        "probe",
        nargs="?",
        help="Probe target 'module:attr' or 'module' (default: $PROBE_TARGET)",
    )
    parser.add_argument(
        "--env-file",
        default=os.environ.get(ENV_ENV_FILE),
        help="dotenv file loaded into the environment before startup",
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Run the service; returns the process exit status."""
    args = parse_args(argv)

    try:
        load_env_file(args.env_file)
        config = ServiceConfig.from_env()
    except ConfigurationError as e:
        configure_logging()
        logger.error(f"Configuration error: {e}")
        return 1

    configure_logging(level=config.log_level, json_output=config.json_logs)
    logger.info("=" * 60)
    logger.info(f"Probe runtime starting v{__version__} (build {BUILD_DATE})")
    logger.info("=" * 60)

    target = args.probe or config.probe_target
    if not target:
        logger.error("No probe configured. Pass a target or set PROBE_TARGET")
        return 1

    try:
        probe = load_probe(target)
    except ProbeRegistryError as e:
        logger.error(f"Probe error: {e}")
        return 1

    logger.info(f"Listening on {config.host}:{config.port}")
    server = build_server(config, probe)
    try:
        server.run()
    except SystemExit:
        # uvicorn exits from startup when the socket cannot be bound
        logger.error(f"Failed to bind {config.host}:{config.port}")
        return 1
    except KeyboardInterrupt:
        # uvicorn re-raises SIGINT after draining
        logger.info("Interrupted")
        return 130
    finally:
        if server.lifecycle.can_transition(ServiceState.STOPPED):
            server.lifecycle.transition(ServiceState.STOPPED)

    if not server.started:
        logger.error(f"Server stopped before it started serving on {config.host}:{config.port}")
        return 1

    return 0


def run() -> None:
    """Synchronous entry point."""
    sys.exit(main())


if __name__ == "__main__":
    run()
