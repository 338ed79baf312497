"""Centralized logging configuration using Loguru."""

import sys
from typing import Any

from loguru import logger

from sweepclean.core.config import settings


def setup_logging() -> None:
    """Configure Loguru logging for the application."""
    # Remove default handler
    logger.remove()

    # Console format
    console_format = (
        "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
        "<level>{level: <8}</level> | "
        "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
        "<level>{message}</level>"
    )

    # File format (more detailed)
    file_format = (
        "{time:YYYY-MM-DD HH:mm:ss.SSS} | "
        "{level: <8} | "
        "{name}:{function}:{line} | "
        "{message} | "
        "{extra}"
    )

    logger.add(
        sys.stderr,
        format=console_format,
        level=settings.log_level,
        colorize=True,
        backtrace=True,
        diagnose=settings.debug,
    )

    if settings.log_to_file:
        logger.add(
            settings.logs_dir / "sweepclean_{time:YYYY-MM-DD}.log",
            format=file_format,
            level="DEBUG",
            rotation="00:00",  # Rotate at midnight
            retention="30 days",
            compression="gz",
            backtrace=True,
            diagnose=True,
        )

    logger.info(
        f"Logging initialized | level={settings.log_level} | env={settings.app_env.value}"
    )


def get_logger(name: str) -> Any:
    """Get a logger instance with the given name.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Configured logger instance
    """
    return logger.bind(name=name)


def log_pipeline_event(
    pipeline: str, input_count: int, output_count: int, duration: float, **extra: Any
) -> None:
    """Log completion of a pipeline run.

    Args:
        pipeline: Pipeline name
        input_count: Number of rows received
        output_count: Number of rows kept
        duration: Run duration in seconds
        **extra: Additional context (counts per stage)
    """
    details = "".join(f" | {k}={v}" for k, v in extra.items())
    logger.bind(pipeline=pipeline, **extra).info(
        f"Pipeline '{pipeline}' completed | input={input_count} | "
        f"output={output_count} | removed={input_count - output_count} | "
        f"duration={duration:.3f}s{details}"
    )


def log_url_check(
    url: str,
    reachable: bool,
    status_code: int | None = None,
    response_time: float | None = None,
    **extra: Any,
) -> None:
    """Log a live URL reachability check.

    Args:
        url: Checked URL
        reachable: Whether the URL answered with a 2xx/3xx status
        status_code: HTTP status, None on transport failure
        response_time: Response time in seconds
        **extra: Additional context
    """
    status = "REACHABLE" if reachable else "UNREACHABLE"
    bound = logger.bind(
        url=url,
        reachable=reachable,
        status_code=status_code,
        response_time=response_time,
        **extra,
    )
    log_func = bound.debug if reachable else bound.warning

    # URLs may contain braces, so extras go through bind() rather than format kwargs
    msg = f"URL check | url={url} | status={status} | code={status_code}"
    if response_time is not None:
        msg += f" | response_time={response_time:.3f}s"

    log_func(msg)
