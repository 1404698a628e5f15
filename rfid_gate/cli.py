# =======================================================================================
# rfid_gate/cli.py - Operational Commands
# =======================================================================================
import argparse
import sys
from typing import List, Optional
import httpx
import uvicorn
from .config import config


def _base_url(args: argparse.Namespace) -> str:
    host = "127.0.0.1" if args.host in ("0.0.0.0", "") else args.host
    return f"http://{host}:{args.port}"


def cmd_start(args: argparse.Namespace) -> int:
    uvicorn.run("rfid_gate.main:app", host=args.host, port=args.port, log_level="info")
    return 0


def cmd_status(args: argparse.Namespace) -> int:
    try:
        health = httpx.get(f"{_base_url(args)}/api/health", timeout=args.timeout).json()
        channels = httpx.get(f"{_base_url(args)}/api/channels", timeout=args.timeout).json()["channels"]
    except httpx.HTTPError as e:
        print(f"Bridge not reachable: {e}", file=sys.stderr)
        return 1

    print(f"store: {health['status']}" + (f" ({health['message']})" if health.get("message") else ""))
    for ch in channels:
        state = "connected" if ch["connected"] else "DISCONNECTED"
        print(f"  {ch['name']:<16} {ch['kind']:<7} {ch['port']:<14} {state:<13} "
              f"queue={ch['queue_depth']} cooldown={ch['cooldown_entries']}")
    return 0 if health["status"] == "ok" else 2


def cmd_ping(args: argparse.Namespace) -> int:
    try:
        resp = httpx.post(f"{_base_url(args)}/api/channels/ping", timeout=args.timeout)
        resp.raise_for_status()
    except httpx.HTTPError as e:
        print(f"Bridge not reachable: {e}", file=sys.stderr)
        return 1

    results = resp.json()["results"]
    for r in results:
        print(f"  {r['name']:<16} {'sent' if r['sent'] else 'FAILED: ' + (r.get('error') or '')}")
    return 0 if all(r["sent"] for r in results) else 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="rfid-gate", description="RFID gate access bridge")
    parser.add_argument("--host", default=config.API_HOST)
    parser.add_argument("--port", type=int, default=config.API_PORT)
    parser.add_argument("--timeout", type=float, default=5.0, help="HTTP timeout for status/ping")
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("start", help="Start the API and the reader workers").set_defaults(func=cmd_start)
    sub.add_parser("status", help="Show store health and reader channels").set_defaults(func=cmd_status)
    sub.add_parser("ping", help="Send a keep-alive ping to every reader").set_defaults(func=cmd_ping)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
