#!/usr/bin/env python3
"""
Verification script to ensure the agency project is properly set up.
"""

import sys

import agency
from agency import Context, Message, Pipe, PipeConfig, TextMessage


async def shout(ctx: Context, message: Message, config: PipeConfig) -> Message:
    return TextMessage.assistant(message.to_bytes().decode("utf-8").upper())


async def exclaim(ctx: Context, message: Message, config: PipeConfig) -> Message:
    return TextMessage.assistant(message.to_bytes().decode("utf-8") + "!")


def main():
    print("🔧 Agency Setup Verification")
    print("=" * 40)

    print(f"✅ Python version: {sys.version}")
    print(f"✅ Agency version: {agency.__version__}")

    try:
        result = Pipe(shout).then(Pipe(exclaim)).execute_sync(TextMessage.user("hi"))
        assert result.content == "HI!", result.content
        print("✅ Pipeline execution: Success")
    except Exception as e:
        print(f"❌ Pipeline execution failed: {e}")
        return False

    try:
        from agency.providers import OpenAIFactory  # noqa: F401
        print("✅ OpenAI adapter: available")
    except ImportError:
        print("⚠️  OpenAI adapter: not installed (pip install -e \".[openai]\")")

    print("\n🎉 Setup verification complete! Your agency environment is ready.")
    return True


if __name__ == "__main__":
    sys.exit(0 if main() else 1)
