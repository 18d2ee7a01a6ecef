"""Run the payroll API server: ``python -m hr_payroll``."""

import logging

import uvicorn

from hr_payroll.config import get_settings

logger = logging.getLogger("hr_payroll")


def main() -> None:
    """Serve the API with the configured host, port and log level."""
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info(
        "Starting HR payroll API on %s:%d (unpaid leave scope: %s)",
        settings.HOST,
        settings.PORT,
        settings.unpaid_leave_scope,
    )
    uvicorn.run(
        "hr_payroll.api.app:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
