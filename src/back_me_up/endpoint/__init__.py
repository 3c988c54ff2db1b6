# pyright: standard

"""back-me-up: back_me_up/endpoint/__init__.py."""

from ..__logger__ import logger

from .common import Endpoint, GenerationOrder
from .local import LocalEndpoint
from .ssh import SSHEndpoint

__all__ = [
    "Endpoint",
    "GenerationOrder",
    "LocalEndpoint",
    "SSHEndpoint",
    "choose_endpoint",
]


def choose_endpoint(session_config, **kwargs):
    """
    Chooses the endpoint matching the session's destination.

    Args:
        session_config (SessionConfig): The session configuration.
        kwargs: Extra settings passed to the endpoint's config dictionary.

    Returns:
        Endpoint: A LocalEndpoint, or an SSHEndpoint when ssh_host is set.
    """
    config = {"path": session_config.destination, **kwargs}

    if session_config.remote:
        hostname, port = session_config.ssh_target()
        config["port"] = port
        config["username"] = session_config.ssh_user
        config["ssh_key"] = session_config.ssh_key
        endpoint = SSHEndpoint(hostname=hostname, config=config)
    else:
        endpoint = LocalEndpoint(config=config)

    logger.debug("Endpoint created: %s", endpoint.get_id())
    return endpoint
