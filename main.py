# ##############################################################################
# MODULE: MAIN
# DESCRIPTION: Điểm khởi chạy của bot locator.
#              Load config, setup logging, rồi chạy LocatorBot tới khi tắt.
# ##############################################################################

from __future__ import annotations

import asyncio
import logging

from locator.bot import LocatorBot
from locator.config import load_config
from locator.utils.logging import setup_logging

logger = logging.getLogger("locator.main")


async def main() -> None:
    # Config sai (thiếu token, DEFAULT_RANGE ngoài giới hạn...) -> dừng ngay
    try:
        config = load_config()
    except ValueError as e:
        raise SystemExit(f"Cấu hình không hợp lệ: {e}") from e

    log_path = setup_logging(config)
    logger.info("Logging to %s (level=%s)", log_path, config.log_level)

    bot = LocatorBot(config)
    # async with đảm bảo bot.close() chạy: flush preference + đóng DB
    async with bot:
        await bot.start(config.discord_token)


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass
