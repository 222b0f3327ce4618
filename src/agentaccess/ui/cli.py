# ruff: noqa: T201

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv
from pydantic import ValidationError

from agentaccess.app import render_manifests, run_operator
from agentaccess.common import configure_logging
from agentaccess.config import ConfigurationError, get_operator_config

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

log = logging.getLogger(__name__)


def _add_gateway_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--gateway-name",
        type=str,
        help="Gateway every HTTPRoute attaches to (env: AGENT_ACCESS_GATEWAY_NAME)",
    )
    parser.add_argument(
        "--gateway-namespace",
        type=str,
        help="Namespace of the Gateway (env: AGENT_ACCESS_GATEWAY_NAMESPACE)",
    )
    parser.add_argument(
        "--issuer-url",
        type=str,
        help="JWT issuer trusted by generated AuthPolicies (env: AGENT_ACCESS_ISSUER_URL)",
    )


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Agent access control operator")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    run = subparsers.add_parser("run", help="Watch AgentCards and AgentPolicies")
    _add_gateway_arguments(run)
    run.add_argument(
        "--namespace",
        type=str,
        help="Only watch this namespace (env: AGENT_ACCESS_WATCH_NAMESPACE; default: all)",
    )

    render = subparsers.add_parser("render", help="Print the manifests generated for local records")
    _add_gateway_arguments(render)
    render.add_argument("--card", type=Path, required=True, help="AgentCard YAML file")
    render.add_argument("--policy", type=Path, help="AgentPolicy YAML file")

    return parser.parse_args(list(argv))


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)
    configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)

    try:
        config = get_operator_config(
            gateway_name=parsed_args.gateway_name,
            gateway_namespace=parsed_args.gateway_namespace,
            issuer_url=parsed_args.issuer_url,
            watch_namespace=getattr(parsed_args, "namespace", None),
        )
        output: str | None = None
        if parsed_args.command == "render":
            output = render_manifests(
                config, card_path=parsed_args.card, policy_path=parsed_args.policy
            )
    except (ConfigurationError, ValidationError, ValueError, OSError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(2)

    if output is not None:
        print(output, end="")
        return

    try:
        run_operator(config)
    except Exception:
        log.exception("Fatal error while running the operator")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def entrypoint() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    entrypoint()
