"""Watch the ready board and alert on new pickups and ready residents.

Re-fetches the board whenever the change feed fires and every
BOARD_POLL_INTERVAL_SECONDS otherwise. Rings the terminal bell and, with
ALERT_DESKTOP_ENABLED=true, shows a desktop notification.

Usage:
    python -m scripts.run_board_monitor
"""

import asyncio
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv
load_dotenv()

from readyboard.core.config import settings
from readyboard.core.logging import setup_logging
from readyboard.core.redis import redis_client
from readyboard.modules.monitor import AlertService, BoardClient, BoardWatcher
from readyboard.modules.transport.feed import ChangeFeed


async def main():
    """Run the board watcher until interrupted."""
    setup_logging(level="DEBUG" if settings.DEBUG else "INFO", json_format=False)

    print("=" * 60)
    print(f"Watching {settings.BOARD_API_URL}/events")
    print("=" * 60)

    watcher = BoardWatcher(
        client=BoardClient(),
        alerts=AlertService(),
        feed=ChangeFeed(redis_client),
    )
    try:
        await watcher.run()
    finally:
        watcher.stop()
        await redis_client.aclose()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\nStopped.")
