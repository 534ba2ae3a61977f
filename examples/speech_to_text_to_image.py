"""Turn a voice note into a picture.

Usage: python examples/speech_to_text_to_image.py speech.ogg picture.png
"""

import asyncio
import logging
import sys
from pathlib import Path

from agency import Context, SpeechMessage
from agency.providers import (
    OpenAIFactory,
    OpenAIParams,
    TextToImageParams,
    TextToTextParams,
)


async def main(speech_path: Path, image_path: Path) -> None:
    async with OpenAIFactory(OpenAIParams.from_env()) as factory:
        pipeline = (
            factory.speech_to_text()
            .then(
                factory.text_to_text(TextToTextParams(temperature=0.9))
                .set_prompt("Rewrite the user's words as a short, vivid image description")
            )
            .then(factory.text_to_image(TextToImageParams(size="512x512")))
        )

        ctx = Context.background().with_timeout(120)
        image = await pipeline.execute(ctx, SpeechMessage(data=speech_path.read_bytes()))

    image_path.write_bytes(image.to_bytes())
    print(f"Wrote {image_path}")


if __name__ == "__main__":
    if len(sys.argv) != 3:
        print(__doc__)
        sys.exit(1)

    logging.basicConfig(level=logging.INFO)
    asyncio.run(main(Path(sys.argv[1]), Path(sys.argv[2])))
