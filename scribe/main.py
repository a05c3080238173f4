"""Main entry point for the Scribe recording agent."""

import argparse

import structlog
import uvicorn

from .api.agent import set_coordinator
from .config import CoordinatorMode, get_settings
from .recording import create_coordinator
from .utils.logging import configure_logging

logger = structlog.get_logger()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Scribe agent - record Playwright tests from the test-management UI"
    )
    parser.add_argument("--host", help="Host to bind (default from AGENT_HOST)")
    parser.add_argument("--port", type=int, help="Port to listen on (default from AGENT_PORT)")
    parser.add_argument(
        "--mode",
        choices=[mode.value for mode in CoordinatorMode],
        help="Recording coordinator to use",
    )
    parser.add_argument(
        "--no-capture",
        action="store_true",
        help="Let codegen write to this terminal instead of capturing its output",
    )
    parser.add_argument("--log-level", help="Log level (DEBUG, INFO, WARNING, ERROR)")
    parser.add_argument("--json-logs", action="store_true", help="Emit JSON logs")
    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)

    overrides = {}
    if args.host:
        overrides["agent_host"] = args.host
    if args.port:
        overrides["agent_port"] = args.port
    if args.mode:
        overrides["coordinator_mode"] = CoordinatorMode(args.mode)
    if args.no_capture:
        overrides["capture_output"] = False
    if args.log_level:
        overrides["log_level"] = args.log_level
    if args.json_logs:
        overrides["log_json"] = True

    settings = get_settings().model_copy(update=overrides)
    configure_logging(level=settings.log_level, json_format=settings.log_json)
    set_coordinator(create_coordinator(settings))

    from .api.server import app

    logger.info(
        "Scribe agent listening",
        url=f"http://{settings.agent_host}:{settings.agent_port}",
        mode=settings.coordinator_mode.value,
    )
    uvicorn.run(app, host=settings.agent_host, port=settings.agent_port, log_config=None)


if __name__ == "__main__":
    main()
