"""``safestory serve``: run the story API with uvicorn."""
from __future__ import annotations


def register(subparsers) -> None:
    p = subparsers.add_parser("serve", help="Start the FastAPI story API")
    p.add_argument("--host", default="127.0.0.1", help="Bind address (default: 127.0.0.1)")
    p.add_argument("--port", type=int, default=8000, help="Port (default: 8000)")
    p.add_argument("--reload", action="store_true", help="Restart on code changes (development)")
    p.set_defaults(func=run)


def run(args) -> int:
    import uvicorn

    print(f"\n  Starting SafeStory API on http://{args.host}:{args.port} ...")
    uvicorn.run("backend.main:app", host=args.host, port=args.port, reload=args.reload)
    return 0
