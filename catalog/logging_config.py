from __future__ import annotations

import logging


def configure_app_logging(level: str = "INFO") -> None:
    """
    Set the level for everything under the `catalog` logger.

    Notes:
    - Uvicorn installs the handlers; this only adjusts our package's level.
    - `CATALOG_LOG_LEVEL=DEBUG` also shows every allow decision of the gate.
    """

    normalized = level.upper()
    logging.getLogger("catalog").setLevel(normalized)
    logging.getLogger("catalog").propagate = True
