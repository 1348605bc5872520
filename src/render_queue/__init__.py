"""Render Queue: background rendering of submitted video requests."""

from render_queue.jobs import Job, JobQueue, JobStatus, JobStore, RetentionSweeper


def main() -> None:
    """
    Main entry point for the render-queue CLI.

    Parses command-line arguments, configures logging and starts the web server.
    """
    import argparse  # noqa: PLC0415
    import logging  # noqa: PLC0415

    parser = argparse.ArgumentParser(
        "render-queue",
        description="Render Queue: submit render jobs and poll their status",
    )

    parser.add_argument(
        "--host",
        type=str,
        default="127.0.0.1",
        help="Host to run the web server on (default: 127.0.0.1)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port to run the web server on (default: 2025 or PORT env var)",
    )

    parser.add_argument(
        "--reload",
        action="store_true",
        help="Enable auto-reload for the web server",
    )
    parser.add_argument(
        "--log-level",
        default="info",
        choices=["debug", "info", "warning", "error"],
        help="Logging verbosity (default: info)",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    from render_queue.web import run as start_api  # noqa: PLC0415

    return start_api(
        port=args.port,
        host=args.host,
        reload=args.reload,
        log_level=args.log_level,
    )


__all__ = ["Job", "JobQueue", "JobStatus", "JobStore", "RetentionSweeper", "main"]
