"""
Map Draft CLI - Command-line interface for the service.

Usage:
    mapdraft serve [--host H] [--port P]    Run the API and event socket
    mapdraft pool [--size N] [--seed S]     Print a random map draw
"""

import argparse
import logging
import os
import random
import sys


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Map Draft - two-party map ban/pick service",
        prog="mapdraft",
    )
    parser.add_argument(
        "--log-level",
        default=os.getenv("MAPDRAFT_LOG_LEVEL", "INFO"),
        help="Logging level (default: INFO)",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Run the draft server")
    serve_parser.add_argument("--host", default=os.getenv("HOST", "0.0.0.0"))
    serve_parser.add_argument("--port", type=int, default=int(os.getenv("PORT", "5000")))

    # Pool command
    pool_parser = subparsers.add_parser("pool", help="Print a random map pool")
    pool_parser.add_argument("--size", type=int, default=7, help="Number of maps to draw")
    pool_parser.add_argument("--seed", type=int, default=None, help="Seed for a repeatable draw")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "serve":
        cmd_serve(args)
    elif args.command == "pool":
        cmd_pool(args)
    else:
        parser.print_help()
        sys.exit(1)


def cmd_serve(args):
    """Run the FastAPI app under uvicorn."""
    import uvicorn

    print(f"Server is running on http://localhost:{args.port}")
    uvicorn.run(
        "mapdraft.api.app:app",
        host=args.host,
        port=args.port,
        log_level=args.log_level.lower(),
    )


def cmd_pool(args):
    """Print a random draw from the catalog."""
    from .maps import generate_pool

    try:
        pool = generate_pool(draw_size=args.size, rng=random.Random(args.seed))
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(1)

    for position, candidate in enumerate(pool, start=1):
        print(f"{position}. {candidate.name} (id={candidate.id}, image={candidate.image_ref})")


if __name__ == "__main__":
    main()
