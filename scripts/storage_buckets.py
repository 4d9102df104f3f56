#!/usr/bin/env python3
"""Manage the Supabase Storage buckets that hold presenter reference images.

Reference images must be public: Nano Banana and VEO3 fetch them by URL.

Usage:
    python scripts/storage_buckets.py list
    python scripts/storage_buckets.py list ana-references
    python scripts/storage_buckets.py create ana-references
    python scripts/storage_buckets.py upload ana-references docs/ana/*.png --prefix v2
    python scripts/storage_buckets.py clean veo3-frames --match ana --match face --dry-run
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Any

# Add repository root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from fantasy_ops.clients.storage import StorageClient
from fantasy_ops.config import get_supabase_service_key, get_supabase_url, load_env_files

IMAGE_SIZE_LIMIT = 10 * 1024 * 1024  # 10MB per image
IMAGE_MIME_TYPES = ["image/png", "image/jpeg", "image/jpg"]


def select_files(files: list[dict[str, Any]], patterns: list[str]) -> list[str]:
    """Names of files whose lowercase name contains any pattern.

    Folder placeholders (entries without an id) are skipped.
    """
    lowered = [p.lower() for p in patterns]
    return [
        f["name"]
        for f in files
        if f.get("id") is not None and any(p in f["name"].lower() for p in lowered)
    ]


async def cmd_list(client: StorageClient, args: argparse.Namespace) -> None:
    if not args.bucket:
        buckets = await client.list_buckets()
        print(f"🗂️  {len(buckets)} buckets:")
        for bucket in buckets:
            print(f"   - {bucket['name']} ({'public' if bucket.get('public') else 'private'})")
        return

    files = await client.list_all_files(args.bucket, prefix=args.prefix or "")
    print(f"📁 {len(files)} files in \"{args.bucket}\":")
    for f in files:
        size = (f.get("metadata") or {}).get("size")
        print(f"   - {f['name']}" + (f" ({size / 1024:.1f} KB)" if size else ""))


async def cmd_create(client: StorageClient, args: argparse.Namespace) -> None:
    print(f"\n🗂️  Creating bucket \"{args.bucket}\"...")
    created = await client.create_bucket(
        args.bucket,
        public=not args.private,
        file_size_limit=IMAGE_SIZE_LIMIT,
        allowed_mime_types=IMAGE_MIME_TYPES,
    )
    print("✅ Bucket created" if created else "✅ Bucket already exists")


async def cmd_upload(client: StorageClient, args: argparse.Namespace) -> None:
    for local_path in args.files:
        remote_path = f"{args.prefix.strip('/')}/{local_path.name}" if args.prefix else local_path.name
        print(f"\n📤 Uploading {local_path} ({local_path.stat().st_size / 1024 / 1024:.2f} MB)")
        url = await client.upload_file(args.bucket, remote_path, local_path)
        print(f"✅ Public URL: {url}")


async def cmd_clean(client: StorageClient, args: argparse.Namespace) -> None:
    print(f"\n🔍 Checking bucket \"{args.bucket}\"...")
    buckets = await client.list_buckets()
    if not any(b["name"] == args.bucket for b in buckets):
        print("   ⚠️  Bucket does not exist, skipping")
        return

    files = await client.list_all_files(args.bucket)
    matches = select_files(files, args.match)
    if not matches:
        print(f"   ✅ Nothing to clean ({len(files)} files checked)")
        return

    print(f"   🗑️  {len(matches)} files match:")
    for name in matches:
        print(f"      - {name}")
    if args.dry_run:
        print("   (dry run, nothing deleted)")
        return

    await client.delete_files(args.bucket, matches)
    print(f"   ✅ Deleted {len(matches)} files")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Manage Supabase Storage buckets")
    subparsers = parser.add_subparsers(dest="command", required=True)

    list_parser = subparsers.add_parser("list", help="List buckets, or files of one bucket")
    list_parser.add_argument("bucket", nargs="?", help="Bucket to list files of")
    list_parser.add_argument("--prefix", default="", help="Folder prefix")
    list_parser.set_defaults(handler=cmd_list)

    create_parser = subparsers.add_parser("create", help="Create an image bucket")
    create_parser.add_argument("bucket")
    create_parser.add_argument("--private", action="store_true", help="Create a private bucket")
    create_parser.set_defaults(handler=cmd_create)

    upload_parser = subparsers.add_parser("upload", help="Upload files (upsert)")
    upload_parser.add_argument("bucket")
    upload_parser.add_argument("files", nargs="+", type=Path)
    upload_parser.add_argument("--prefix", default="", help="Folder inside the bucket")
    upload_parser.set_defaults(handler=cmd_upload)

    clean_parser = subparsers.add_parser("clean", help="Delete files whose name matches")
    clean_parser.add_argument("bucket")
    clean_parser.add_argument("--match", action="append", required=True, help="Substring to match (repeatable)")
    clean_parser.add_argument("--dry-run", action="store_true")
    clean_parser.set_defaults(handler=cmd_clean)

    return parser.parse_args(argv)


async def main() -> None:
    args = parse_args()
    if args.command == "upload":
        missing = [str(p) for p in args.files if not p.exists()]
        if missing:
            print(f"❌ Error: files not found: {', '.join(missing)}", file=sys.stderr)
            sys.exit(1)

    load_env_files()
    try:
        client = StorageClient(get_supabase_url(), get_supabase_service_key())
    except ValueError as e:
        print(f"❌ Error: {e}", file=sys.stderr)
        print("💡 Check that .env.supabase is configured", file=sys.stderr)
        sys.exit(1)

    try:
        await args.handler(client, args)
    except Exception as e:
        print(f"❌ Error: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        await client.close()


if __name__ == "__main__":
    asyncio.run(main())
