"""
Command-line runner: verify a JSON request file and print the response.

Usage:
    docverify request.json [--policy policy.yaml] [--pretty]

The request file has the same shape as the body of ``POST /api/verify``.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

from docverify.config import settings
from docverify.engine import base_policy, evaluate_sync
from docverify.exceptions import InvalidInputError, VerificationError
from docverify.logging_config import setup_logging
from docverify.models.policy import load_policy

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="docverify",
        description="Verify travel document OCR text against an applicant profile.",
    )
    parser.add_argument("request", type=Path, help="JSON file with documents, applicant and optional policy")
    parser.add_argument("--policy", type=Path, help="YAML policy file applied over the defaults")
    parser.add_argument("--pretty", action="store_true", help="Indent the JSON output")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (default: WARNING)")
    return parser


def load_request(path: Path) -> dict:
    try:
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError as e:
        msg = f"Request file not found: {path}"
        raise InvalidInputError(msg) from e
    except json.JSONDecodeError as e:
        msg = f"Request file is not valid JSON: {path}: {e}"
        raise InvalidInputError(msg) from e

    if not isinstance(data, dict):
        msg = f"Request file must contain a JSON object: {path}"
        raise InvalidInputError(msg)
    if not data.get("documents"):
        msg = "No documents provided"
        raise InvalidInputError(msg)
    return data


def run(argv: list[str] | None = None) -> str:
    """Verify the request named on the command line and return the JSON response."""
    args = build_parser().parse_args(argv)
    setup_logging(settings.SERVICE_NAME, args.log_level, settings.LOG_FORMAT, stream=sys.stderr)

    request = load_request(args.request)
    base = load_policy(args.policy) if args.policy else base_policy(settings)
    try:
        policy = base.merged(request.get("policy"))
        response = evaluate_sync(request["documents"], request.get("applicant"), policy, settings=settings)
    except ValidationError as e:
        msg = f"Invalid request: {e}"
        raise InvalidInputError(msg) from e

    return response.model_dump_json(by_alias=True, indent=2 if args.pretty else None)


def main(argv: list[str] | None = None) -> int:
    try:
        output = run(argv)
    except VerificationError as e:
        logger.debug("Verification failed", exc_info=True)
        print(f"error: {e.message}", file=sys.stderr)
        return 2 if isinstance(e, InvalidInputError) else 1
    print(output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
