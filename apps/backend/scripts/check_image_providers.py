#!/usr/bin/env python3
"""
Issue one live generation per fal.ai provider and print the outcome.

Needs FAL_KEY (or FAL_PROXY_URL) in the environment or a local .env.
"""
import argparse
import asyncio
import sys
import time
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from agents.domain.models import GenerationRequest, Provider
from agents.generation.config import get_provider_config
from config.logging_config import apply_logging_config
from services.fal_image_service import GenerationClient


async def check(prompt: str, size: str, providers) -> int:
    config = get_provider_config()
    if not config.is_configured:
        print("❌ FAL_KEY / FAL_PROXY_URL not set")
        return 1

    client = GenerationClient(config)
    failures = 0
    for provider in providers:
        request = GenerationRequest(slide_id=f"check-{provider.value}", prompt=prompt, provider=provider, size=size)
        start = time.time()
        result = await client.generate(request)
        elapsed = time.time() - start
        if result.ok:
            print(f"✅ {provider.value}: {result.url} ({elapsed:.1f}s)")
        else:
            failures += 1
            print(f"❌ {provider.value}: {result.reason.value} - {result.message} ({elapsed:.1f}s)")
    return 1 if failures else 0


def main():
    parser = argparse.ArgumentParser(description="Smoke test the fal.ai image providers")
    parser.add_argument("--prompt", default="Modern office workspace with natural light, professional presentation visual")
    parser.add_argument("--size", default="landscape", help="square, landscape, portrait or WxH")
    parser.add_argument("--provider", choices=[p.value for p in Provider], action="append",
                        help="Limit to one provider (repeatable)")
    args = parser.parse_args()
    apply_logging_config()

    providers = [Provider(p) for p in args.provider] if args.provider else list(Provider)
    sys.exit(asyncio.run(check(args.prompt, args.size, providers)))


if __name__ == "__main__":
    main()
