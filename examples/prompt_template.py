"""Fill a prompt template and run a two-stage chain under a deadline."""

import asyncio
import logging

from agency import Context, ContextCancelledError, TextMessage
from agency.providers import OpenAIFactory, OpenAIParams

logger = logging.getLogger(__name__)

TEMPLATE = TextMessage.user("Write a %d-line poem about %s.")


async def main() -> None:
    async with OpenAIFactory(OpenAIParams.from_env()) as factory:
        pipeline = factory.text_to_text().set_prompt("You are a poet").then(
            factory.text_to_text().set_prompt("Translate the text to Spanish, keep the line breaks")
        )

        ctx = Context.background().with_timeout(60)
        try:
            result = await pipeline.execute(ctx, TEMPLATE.bind(4, "the sea"))
        except ContextCancelledError:
            logger.error("Pipeline did not finish within 60 seconds")
            raise

    print(result.content)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(main())
