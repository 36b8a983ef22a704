import asyncio
import logging
import os
import sys
from typing import Dict, Optional

import uvicorn

from .config import Settings

logger = logging.getLogger(__name__)


def _ssl_options() -> Dict[str, Optional[str]]:
    certfile = os.getenv("SSL_CERTFILE")
    keyfile = os.getenv("SSL_KEYFILE")

    options: Dict[str, Optional[str]] = {}
    if certfile:
        options["ssl_certfile"] = certfile
    if keyfile:
        options["ssl_keyfile"] = keyfile
    return options


def _install_fatal_handler(server: uvicorn.Server, state: Dict[str, bool]) -> None:
    """
    An exception that escapes every task (nothing awaited it) leaves the
    process in an unknown state: stop accepting, let the lifespan shutdown
    dispose the engine, and exit non-zero.
    """
    loop = asyncio.get_running_loop()

    def handler(loop: asyncio.AbstractEventLoop, context: dict) -> None:
        logger.critical(
            "Unhandled error in event loop: %s",
            context.get("message"),
            exc_info=context.get("exception"),
        )
        state["fatal"] = True
        server.should_exit = True

    loop.set_exception_handler(handler)


async def _serve(server: uvicorn.Server, state: Dict[str, bool]) -> None:
    _install_fatal_handler(server, state)
    await server.serve()


def main() -> None:
    settings = Settings.from_env()
    reload_enabled = os.getenv("RELOAD", "false").lower() in {"1", "true", "yes", "on"}
    forwarded_allow_ips = os.getenv("FORWARDED_ALLOW_IPS", "*")

    if reload_enabled:
        uvicorn.run(
            "equipdb.main:app",
            host=settings.host,
            port=settings.port,
            reload=True,
            log_level=settings.log_level,
        )
        return

    config = uvicorn.Config(
        "equipdb.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level,
        proxy_headers=True,
        forwarded_allow_ips=forwarded_allow_ips,
        **_ssl_options(),
    )
    server = uvicorn.Server(config)
    state = {"fatal": False}
    asyncio.run(_serve(server, state))

    if state["fatal"]:
        sys.exit(1)


if __name__ == "__main__":
    main()
