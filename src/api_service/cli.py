"""Command-line entry point for API Service."""

from __future__ import annotations

import argparse
import json
import logging
import sys

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="api-service",
        description="Call JSON-over-HTTP APIs with retry and readable error messages.",
    )
    sub = parser.add_subparsers(dest="command")

    # ── weather ────────────────────────────────────────────────────────────
    weather_cmd = sub.add_parser("weather", help="Fetch daily weather observations.")
    weather_cmd.add_argument("--config", default="config.yaml", help="Path to config.yaml (default: config.yaml)")
    weather_cmd.add_argument(
        "--param",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Query parameter (repeatable); overrides params from config.",
    )
    weather_cmd.add_argument("--retries", type=int, default=None, help="Override retry count.")
    weather_cmd.add_argument(
        "--retry-delay",
        type=int,
        default=None,
        metavar="MS",
        help="Override delay between attempts, in milliseconds.",
    )
    weather_cmd.add_argument(
        "--json",
        dest="output_json",
        action="store_true",
        help="Output only machine-readable JSON.",
    )

    return parser


def _parse_params(pairs: list[str]) -> dict[str, str]:
    params: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            raise ValueError(f"Invalid --param {pair!r}; expected KEY=VALUE")
        params[key.strip()] = value
    return params


def _cmd_weather(args: argparse.Namespace) -> None:
    """Fetch weather items and print them."""
    from .config import ConfigError, load_config
    from .http import HttpClient
    from .service import ApiError, ApiService

    try:
        cfg = load_config(args.config)
    except ConfigError as exc:
        print(f"[ERROR] Configuration error: {exc}", file=sys.stderr)
        sys.exit(2)

    try:
        params = {**cfg.params, **_parse_params(args.param)}
    except ValueError as exc:
        print(f"[ERROR] {exc}", file=sys.stderr)
        sys.exit(2)

    overrides = {}
    if args.retries is not None:
        overrides["retries"] = args.retries
    if args.retry_delay is not None:
        overrides["retry_delay"] = args.retry_delay
    # A configured message replaces the weather default; unset keeps it.
    if cfg.retry.error_message is not None:
        overrides["error_message"] = cfg.retry.error_message

    client = HttpClient(cfg.service.base_url, cfg.service.headers, timeout=cfg.service.timeout)
    service = ApiService(client=client)

    try:
        items = service.get_weather_data(params, options=cfg.retry_options(), **overrides)
    except ValueError as exc:
        print(f"[ERROR] {exc}", file=sys.stderr)
        sys.exit(2)
    except ApiError as exc:
        logger.debug("Underlying failure: %r", exc.original_error)
        print(f"[ERROR] {exc.message}", file=sys.stderr)
        sys.exit(3)

    if args.output_json:
        print(json.dumps(items, indent=2, ensure_ascii=False))
        return

    SEP = "-" * 80
    print(SEP)
    print(f"  Weather  •  {len(items)} item(s)")
    print(SEP)
    for item in items:
        if isinstance(item, dict):
            for key, value in item.items():
                print(f"  {key:<14}: {value}")
        else:
            print(f"  {item}")
        print(SEP)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def main(argv: list[str] | None = None) -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
    )

    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command == "weather":
        _cmd_weather(args)
    else:
        parser.print_help()
        sys.exit(0)

    sys.exit(0)


if __name__ == "__main__":
    main()
