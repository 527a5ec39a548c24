#!/usr/bin/env python3
"""
Test Groq chat completion and OpenAI embedding connectivity.
"""
import asyncio
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'backend'))

from copymode.core.config import settings
from copymode.core.exceptions import CopyModeError
from copymode.services.embedding_service import embedding_service
from copymode.services.llm_service import llm_service


async def test_groq() -> bool:
    print(f"🧪 Testing Groq chat model: {settings.GROQ_MODEL}")
    try:
        api_key = llm_service.resolve_api_key(None)
        output = await llm_service.complete(
            [{"role": "user", "content": "Say 'Hello from Groq!' in exactly 3 words."}],
            api_key=api_key,
            temperature=0.7
        )
        print(f"✅ Chat model response: {output}")
        return True
    except CopyModeError as e:
        print(f"❌ Chat model error: {e.message}")
        return False


async def test_openai() -> bool:
    print(f"\n🧪 Testing embedding model: {settings.OPENAI_EMBEDDING_MODEL}")
    try:
        embedding = await embedding_service.embed_text("This is a test embedding")
        print(f"✅ Embedding generated: {len(embedding)} dimensions")
        print(f"   First 5 values: {embedding[:5]}")
        return True
    except Exception as e:
        print(f"❌ Embedding model error: {e}")
        return False


async def main():
    print("🔍 Testing LLM vendor connections...\n")
    results = [await test_groq(), await test_openai()]

    if not all(results):
        print("\n❌ Some checks failed")
        sys.exit(1)
    print("\n🎉 LLM connection test complete!")


if __name__ == "__main__":
    asyncio.run(main())
