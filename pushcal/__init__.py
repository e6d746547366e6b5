"""pushcal - web-push relay, Pusher channel auth and iCalendar feeds.

Imports are kept light so the package can be inspected without pulling in
the server's runtime dependencies.
"""

__version__ = "1.0.0"

from typing import Optional


def run_server(port: Optional[int] = None, debug: bool = False) -> None:
    """Load configuration from the environment and run the server.

    Args:
        port: Optional port overriding ``PORT``
        debug: Force debug logging for pushcal modules
    """
    from pushcal.api.server import start_server
    from pushcal.core.config import ConfigManager

    config = ConfigManager().load()
    if port is not None:
        config.server_port = port
    if debug:
        config.debug_logging = True
    start_server(config)
