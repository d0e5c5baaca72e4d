import argparse
import os
import sys
from typing import List, Optional

import uvicorn
from pydantic import ValidationError

from dummy_load import __version__
from dummy_load.config import HOST, LOG_LEVEL, PORT, Settings


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dummy-load",
        description="Serve a synthetic load endpoint on :8080.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--threads", "-threads", type=int, default=1,
        help="Number of worker processes (default: %(default)s)",
    )
    parser.add_argument(
        "--cpu", "-cpu", type=float, default=0.0,
        help="Target CPU utilization per request (0-100) of one core",
    )
    parser.add_argument(
        "--mem", "-mem", type=int, default=0,
        help="Memory to allocate per request in MB (0-1024)",
    )
    parser.add_argument(
        "--time", "-time", type=int, default=0,
        help="Total time per request in ms (0-1000)",
    )
    parser.add_argument(
        "--jitter", "-jitter", type=float, default=0.0,
        help="Jitter factor (0-1.0), applied +/- per request",
    )
    return parser


def parse_settings(argv: Optional[List[str]] = None) -> Settings:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        return Settings(threads=args.threads, cpu=args.cpu, mem=args.mem, time=args.time, jitter=args.jitter)
    except ValidationError as exc:
        parser.error(str(exc))


def main(argv: Optional[List[str]] = None) -> None:
    settings = parse_settings(argv)
    # workers are separate processes; they rebuild Settings from the environment
    os.environ.update(settings.to_env())

    print(f"Listening on :{PORT} | {settings.describe()}", flush=True)
    uvicorn.run(
        "dummy_load.app:create_app",
        factory=True,
        host=HOST,
        port=PORT,
        workers=settings.threads,
        log_level=LOG_LEVEL,
    )


if __name__ == "__main__":
    sys.exit(main())
