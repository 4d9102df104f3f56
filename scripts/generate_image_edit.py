#!/usr/bin/env python3
"""Edit reference images with Nano Banana (KIE.ai) and download the result.

Reference images must be public URLs (see storage_buckets.py).

Usage:
    python scripts/generate_image_edit.py "Ana in a red jacket, studio light" URL [URL ...]
    python scripts/generate_image_edit.py "..." URL --size 16:9 --seed 12500 --output out.png
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add repository root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from fantasy_ops.clients.kie import NANO_BANANA_EDIT_MODEL, KieClient
from fantasy_ops.config import get_kie_api_key, get_output_dir, load_env_files
from fantasy_ops.exceptions import ExternalServiceError, GenerationFailedError, GenerationTimeoutError


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Nano Banana image edit via KIE.ai")
    parser.add_argument("prompt", help="Edit prompt")
    parser.add_argument("image_urls", nargs="+", help="Public reference image URLs")
    parser.add_argument("--size", default="9:16", help="Image size / aspect (default: 9:16)")
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--negative", default=None, help="Negative prompt")
    parser.add_argument("--format", dest="output_format", default="png", choices=["png", "jpeg"])
    parser.add_argument("--output", type=Path, default=None, help="Output image path")
    return parser.parse_args(argv)


async def main() -> None:
    args = parse_args()
    bad_urls = [url for url in args.image_urls if not url.startswith(("http://", "https://"))]
    if bad_urls:
        print(f"❌ Error: not a URL: {', '.join(bad_urls)}", file=sys.stderr)
        sys.exit(1)

    load_env_files()
    try:
        client = KieClient(get_kie_api_key())
    except ValueError as e:
        print(f"❌ Error: {e}", file=sys.stderr)
        sys.exit(1)

    print(f"🖼️  Editing {len(args.image_urls)} reference image(s) with {NANO_BANANA_EDIT_MODEL}...")
    try:
        task_id = await client.create_image_task(
            args.prompt,
            args.image_urls,
            image_size=args.size,
            seed=args.seed,
            negative_prompt=args.negative,
            output_format=args.output_format,
        )
        print(f"✅ Task submitted: {task_id}")
        image_url = await client.wait_for_image(task_id)
        print(f"✅ Image ready: {image_url}")

        output_path = args.output or get_output_dir() / "images" / f"nano_banana_{task_id}.{args.output_format}"
        await client.download(image_url, output_path)
        print(f"💾 Saved to {output_path}")
    except (ExternalServiceError, GenerationFailedError, GenerationTimeoutError) as e:
        print(f"❌ Image edit failed: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        await client.close()


if __name__ == "__main__":
    asyncio.run(main())
