# scripts/enhance_resume.py
"""Upload a resume, request enhancement, and poll until it finishes."""
import argparse
import asyncio
import logging
import sys
from pathlib import Path

from app.client.poller import ApiError, PollingError, ResumeEnhancerClient, enhance_and_wait
from app.core.config import get_settings
from app.models.enhancement import JobState
from app.services.auth import access_token_for

logger = logging.getLogger("enhance_resume")


async def run(args) -> int:
    async with ResumeEnhancerClient(args.base_url, args.token) as client:
        upload = await client.upload_resume(Path(args.resume))
        logger.info("Uploaded %s -> %s", upload.file_name, upload.file_url)
        status = await enhance_and_wait(
            client,
            upload.file_url,
            upload.file_name,
            interval=args.interval,
            on_status=lambda s: logger.info("status: %s", s.status.value),
        )
    if status.status == JobState.ERROR:
        print(f"Enhancement failed: {status.error or 'Unknown error'}", file=sys.stderr)
        return 1
    print(status.enhanced_resume)
    return 0


def main(argv=None) -> int:
    settings = get_settings()
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("resume", help="path to a PDF resume")
    parser.add_argument("--base-url", default="http://127.0.0.1:8000")
    auth = parser.add_mutually_exclusive_group(required=True)
    auth.add_argument("--token", help="bearer token for the API")
    auth.add_argument("--user", help="issue a token for this user id with the local SECRET_KEY")
    parser.add_argument("--interval", type=float, default=settings.POLL_INTERVAL_SEC)
    args = parser.parse_args(argv)
    if args.user:
        args.token = access_token_for(args.user, settings)

    logging.basicConfig(level=settings.LOG_LEVEL)
    try:
        return asyncio.run(run(args))
    except (ApiError, PollingError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
