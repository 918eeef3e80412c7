import asyncio
import sys

from loguru import logger

from ecura.agent.llm import ChatCompletionClient
from ecura.agent.session import ChatSession
from ecura.booking.factory import build_clinic_service
from ecura.booking.lifecycle import local_now
from ecura.booking.seed import demo_store
from ecura.config import AppConfig

_EXIT_WORDS = {"quit", "exit", "bye"}


async def run_bot(clinic_id: str) -> None:
    config = AppConfig()
    logger.remove()
    logger.add(sys.stderr, level=config.log_level)
    logger.info("Starting Ecura booking assistant for clinic {}", clinic_id)

    service = build_clinic_service(config, demo_store(local_now()))
    client = ChatCompletionClient(
        config.llm.api_key,
        base_url=config.llm.base_url,
        model=config.llm.model,
        timeout=config.llm.timeout_seconds,
    )
    session = ChatSession(service, client, clinic_id)
    print(session.history[0].text)

    try:
        while True:
            try:
                text = await asyncio.to_thread(input, "> ")
            except EOFError:
                break
            if text.strip().lower() in _EXIT_WORDS:
                break
            if not text.strip():
                continue

            outcome = await session.send(text)
            print(outcome.reply)
    finally:
        session.abandon()
        await client.close()
        await service.close()


if __name__ == "__main__":
    asyncio.run(run_bot(sys.argv[1] if len(sys.argv) > 1 else "c1"))
