"""
Command-line entry point for Ledger Demo

Runs the whole walkthrough once against the configured FaunaDB endpoint.
From the repository root, or anywhere once the package is installed:

    python -m app.main

Configuration comes from FAUNA_* and LEDGER_* environment variables
(or a .env file). The database named by LEDGER_DATABASE_NAME is
dropped and recreated.

Exit status is 0 when every request succeeded, 1 on the first failed
request. A refused withdrawal is a successful run.
"""

import sys

import structlog

from ledger_demo.audit import configure_logging
from ledger_demo.config import get_settings
from ledger_demo.orchestrator import create_app_components
from ledger_demo.services.storage import StorageError


def main() -> int:
    settings = get_settings()
    configure_logging(settings.app.log_level, settings.app.log_format)
    logger = structlog.get_logger("ledger_demo")

    flow = create_app_components()
    logger.info(
        "ledger_demo_started",
        endpoint=settings.fauna.endpoint,
        database=settings.ledger.database_name,
        correlation_id=str(flow.correlation_id),
    )

    try:
        result = flow.run()
    except StorageError:
        logger.exception(
            "ledger_demo_failed",
            correlation_id=str(flow.correlation_id),
        )
        return 1

    logger.info(
        "ledger_demo_finished",
        correlation_id=str(flow.correlation_id),
        withdrawal_applied=result.withdrawal.applied,
        withdrawal_result=result.withdrawal.message or "ok",
        final_balance=result.final_balance,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
