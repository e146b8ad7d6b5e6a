import asyncio
import logging
import sys

from careerwatch.app import serve
from careerwatch.config.settings import settings

logger = logging.getLogger(__name__)


def main() -> int:
    """
    Main entry point.
    """
    try:
        asyncio.run(serve(settings))
    except ValueError as e:
        logging.basicConfig(level=logging.ERROR)
        logger.error(f"Failed to start: {e}")
        return 1
    except KeyboardInterrupt:
        pass
    return 0


if __name__ == "__main__":
    sys.exit(main())
