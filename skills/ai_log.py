"""
AI interaction log.

One record per request, success or error of every generation call, so a
bad scene can be traced back to the exact prompt and raw response.
Request payloads are large (full concept JSON, inline images) and go to
DEBUG; outcomes go to INFO / ERROR.
"""

import logging

logger = logging.getLogger("ai_log")


def log_ai_interaction(
    service: str,
    model: str = None,
    prompt=None,
    config=None,
    response=None,
    error=None,
    response_body=None,
) -> None:
    """Log a single generation request or its outcome."""
    if response is not None:
        logger.info(f"[{service}] SUCCESS: {_clip(response)}")
    elif error is not None:
        logger.error(f"[{service}] ERROR: {error}")
        if response_body is not None:
            logger.error(f"[{service}] Raw response body: {_clip(response_body, 2000)}")
    else:
        logger.info(f"[{service}] REQUEST model={model}")
        logger.debug(f"[{service}] Prompt/Contents: {_clip(prompt, 4000)}")
        if config is not None:
            logger.debug(f"[{service}] Config: {config}")


def _clip(value, limit: int = 300) -> str:
    text = str(value)
    return text if len(text) <= limit else text[:limit] + "..."
