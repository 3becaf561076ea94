import asyncio
import logging

from macross.lib.common.api_handler import ServiceSettings
from macross.services.strategy_engine import StrategyEngine

settings = ServiceSettings.from_env(port=8082)
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s [%(levelname)s] %(message)s",
)


async def main() -> None:
    engine = StrategyEngine(settings)
    await engine.start()

    try:
        await asyncio.Event().wait()
    finally:
        await engine.stop()


if __name__ == "__main__":
    asyncio.run(main())
