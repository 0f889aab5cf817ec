"""
Run the API with uvicorn using the configured port and proxy settings:
  python -m orientation.serve
"""
import logging

import uvicorn

from orientation.core.config import get_settings

logger = logging.getLogger(__name__)


def main() -> None:
    settings = get_settings()
    logging.basicConfig(
        level=logging.DEBUG if settings.DEBUG else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info("Starting Orientation Admin API on port %s (env=%s)", settings.PORT, settings.APP_ENV)
    uvicorn.run(
        "orientation.main:app",
        host="0.0.0.0",
        port=settings.PORT,
        proxy_headers=settings.TRUST_PROXY,
        forwarded_allow_ips="*" if settings.TRUST_PROXY else None,
        reload=settings.APP_ENV == "dev" and settings.DEBUG,
    )


if __name__ == "__main__":
    main()
