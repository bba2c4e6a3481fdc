"""langfilter-ctl – command-line control for the filter core.

Usage:
    langfilter-ctl serve
    langfilter-ctl ping
    langfilter-ctl rescan
    langfilter-ctl settings --allow en ko --mode collapse --hide-unknown
    langfilter-ctl classify "hello world, nice video!"

``settings`` always saves the snapshot file first and then notifies the
core, so the change survives a core that is down right now.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from langfilter.client import CoreClient
from langfilter.config import LANGUAGES, settings
from langfilter.core import load_settings_file, save_settings_file
from langfilter.models import FilterMode, FilterSettings

DEFAULT_SETTINGS_FILE = "langfilter-settings.json"


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="langfilter-ctl",
        description="Comment Language Filter - control the filter core",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="Languages: " + ", ".join(f"{c} ({n})" for c, n in LANGUAGES.items()),
    )
    parser.add_argument("--url", default=None, help=f"Core URL (default: {settings.core_url})")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the filter core")
    serve.add_argument("--host", default=settings.host)
    serve.add_argument("--port", type=int, default=settings.port)

    sub.add_parser("ping", help="Check that the core is alive")

    rescan = sub.add_parser("rescan", help="Reprocess every known comment")
    rescan.add_argument("--wait", action="store_true", help="Wait until processing settles")

    cfg = sub.add_parser("settings", help="Update and push filter settings")
    cfg.add_argument("--file", "-f", default=None, help="Settings snapshot file")
    cfg.add_argument("--allow", nargs="+", metavar="LANG", help="Allowed language codes")
    cfg.add_argument("--mode", choices=[m.value for m in FilterMode])
    unknown = cfg.add_mutually_exclusive_group()
    unknown.add_argument("--hide-unknown", dest="hide_unknown", action="store_true", default=None)
    unknown.add_argument("--show-unknown", dest="hide_unknown", action="store_false")
    toggle = cfg.add_mutually_exclusive_group()
    toggle.add_argument("--enable", dest="enabled", action="store_true", default=None)
    toggle.add_argument("--disable", dest="enabled", action="store_false")

    classify = sub.add_parser("classify", help="Classify a text with the running core")
    classify.add_argument("text")

    return parser.parse_args(argv)


def _settings_path(args: argparse.Namespace) -> str:
    return args.file or settings.settings_file or DEFAULT_SETTINGS_FILE


def build_snapshot(args: argparse.Namespace) -> FilterSettings:
    """Overlay the command-line flags on the saved snapshot."""
    path = _settings_path(args)
    current = load_settings_file(path) if Path(path).exists() else FilterSettings()

    updates: dict = {}
    if args.allow is not None:
        updates["allowed_langs"] = args.allow
    if args.mode is not None:
        updates["mode"] = args.mode
    if args.hide_unknown is not None:
        updates["hide_unknown"] = args.hide_unknown
    if args.enabled is not None:
        updates["enabled"] = args.enabled

    data = current.model_dump()
    data.update(updates)
    return FilterSettings.model_validate(data)


def cmd_settings(args: argparse.Namespace, client: CoreClient) -> int:
    snapshot = build_snapshot(args)
    path = _settings_path(args)
    try:
        save_settings_file(path, snapshot)
    except OSError as exc:
        print(f"[-] Failed to save settings: {exc}")
        return 1

    result = client.update_settings(snapshot.model_dump(mode="json", by_alias=True))
    if result.success:
        print("[+] Settings applied")
    else:
        print("[+] Settings saved (restart core to apply)")
    return 0


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    if args.command == "serve":
        import uvicorn  # deferred – only needed to run the server

        uvicorn.run("langfilter.main:app", host=args.host, port=args.port)
        return 0

    client = CoreClient(args.url)

    if args.command == "ping":
        if client.ping():
            print(f"[+] Core at {client.base_url} is alive")
            return 0
        print(f"[-] Core at {client.base_url} did not answer")
        return 1

    if args.command == "rescan":
        result = client.rescan(wait=args.wait)
        if result.success:
            print(f"[+] Rescan started (epoch {result.response['epoch']})")
            return 0
        print(f"[-] {result.error}")
        return 1

    if args.command == "settings":
        return cmd_settings(args, client)

    if args.command == "classify":
        result = client.classify(args.text)
        if result.success:
            print(json.dumps(result.response, ensure_ascii=False, indent=2))
            return 0
        print(f"[-] {result.error}")
        return 1

    return 1


if __name__ == "__main__":
    sys.exit(main())
