"""Send one request from the command line and print the outcome.

Transport configuration comes from the environment, e.g.::

    SIMPLE_REQUEST_APPEND_HEADERS='x-token: 123\\nx-api-demo: true' \\
    python examples/demo.py https://httpbin.org/headers -H 'accept: application/json'
"""

from __future__ import annotations

import argparse
import asyncio
import itertools
import os

from simple_request import Progress, RequestOptions, RequestTransport, SimpleRequestError, TransportOptions

DEFAULT_URL = os.getenv("SIMPLE_REQUEST_DEMO_URL", "https://httpbin.org/get")

_ids = itertools.count()


def log_section(title: str) -> None:
    print("\n" + "=" * 80)
    print(title)
    print("=" * 80)


def print_progress(progress: Progress) -> None:
    if progress.length_computable:
        print(f"  received {progress.loaded}/{progress.total} bytes")
    else:
        print(f"  received {progress.loaded} bytes")


def build_options(args: argparse.Namespace) -> RequestOptions:
    return RequestOptions(
        url=args.url,
        method=args.method,
        headers="\n".join(args.header) or None,
        payload=args.body,
        timeout=args.timeout,
        id=f"request{next(_ids)}",
    )


async def run(args: argparse.Namespace) -> int:
    transport = RequestTransport(options=TransportOptions.from_env(), on_progress=print_progress)
    options = build_options(args)
    log_section(f"{options.method} {options.url}")
    transport.send(options)
    try:
        result = await transport.completes
    except SimpleRequestError as exc:
        log_section(f"Request failed: {exc}")
        if exc.headers:
            print(exc.headers)
        return 1

    log_section(f"{transport.status} {transport.status_text}")
    print(result.headers or "")
    print(result.response)
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("url", nargs="?", default=DEFAULT_URL)
    parser.add_argument("-X", "--method", default="GET")
    parser.add_argument("-H", "--header", action="append", default=[], help="'name: value', repeatable")
    parser.add_argument("-d", "--body", default=None)
    parser.add_argument("--timeout", type=int, default=None, help="milliseconds")
    return asyncio.run(run(parser.parse_args()))


if __name__ == "__main__":
    raise SystemExit(main())
