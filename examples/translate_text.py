"""Translate a sentence with a configured text-to-text pipe."""

import asyncio
import logging

from agency import Context, TextMessage
from agency.providers import OpenAIFactory, OpenAIParams, TextToTextParams


async def main() -> None:
    async with OpenAIFactory(OpenAIParams.from_env()) as factory:
        result = await (
            factory.text_to_text(TextToTextParams(model="gpt-3.5-turbo"))
            .set_prompt("You are a helpful assistant that translates English to French")
            .execute(Context.background(), TextMessage.user("I love programming."))
        )

    print(result.to_bytes().decode("utf-8"))


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(main())
