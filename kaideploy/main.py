from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from kaideploy.config import CLIENT_CONFIG
from kaideploy.core import DebuggerClient, InstallResult, InstallSession
from kaideploy.features import pack_directory
from kaideploy.ui.reporter import ConsoleReporter

logger = logging.getLogger(__name__)


async def deploy(config: Optional[Dict[str, Any]] = None, reporter: Optional[ConsoleReporter] = None) -> InstallResult:
    """Package ``app_path`` and install it on the configured device."""
    config = config or CLIENT_CONFIG
    reporter = reporter or ConsoleReporter(config["verbosity"])

    reporter.packing(config["app_path"])
    payload = pack_directory(config["app_path"], on_entry=reporter.entry)
    reporter.packed(len(payload))

    client = DebuggerClient(config)
    reporter.connecting(client.address)
    session = InstallSession(
        client,
        payload,
        launch=config["launch"],
        chunk_size=config["chunk_size"],
        observer=reporter,
    )
    result = await session.run()
    logger.info("Deploy of %s finished as %s", config["app_path"], result.app_id)
    reporter.finished(result)
    return result


__all__ = ["deploy"]
