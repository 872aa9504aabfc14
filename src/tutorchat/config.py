"""Environment-driven settings for the chat API and the real-time server."""

import os

DEFAULT_API_URL = "http://localhost:5000/api"
DEFAULT_REQUEST_TIMEOUT = 30.0
# Tutor replies can take a while to generate
DEFAULT_MESSAGE_TIMEOUT = 120.0


def _env_float(name: str, fallback: float) -> float:
    try:
        return float(os.environ.get(name, fallback))
    except (TypeError, ValueError):
        return fallback


def get_api_url() -> str:
    """Return the base URL of the chat REST API."""
    return os.environ.get("TUTORCHAT_API_URL") or DEFAULT_API_URL


def get_socket_url() -> str:
    """Return the Socket.IO server URL.

    Defaults to the API URL with its trailing ``/api`` segment removed,
    since both are served by the same host.
    """
    env = os.environ.get("TUTORCHAT_SOCKET_URL")
    if env:
        return env

    api_url = get_api_url().rstrip("/")
    if api_url.endswith("/api"):
        return api_url[: -len("/api")]
    return api_url


def get_token() -> str | None:
    """Return the bearer token used for both channels, if configured."""
    return os.environ.get("TUTORCHAT_TOKEN") or None


def get_request_timeout() -> float:
    return _env_float("TUTORCHAT_REQUEST_TIMEOUT", DEFAULT_REQUEST_TIMEOUT)


def get_message_timeout() -> float:
    return _env_float("TUTORCHAT_MESSAGE_TIMEOUT", DEFAULT_MESSAGE_TIMEOUT)
