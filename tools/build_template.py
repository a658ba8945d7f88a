#!/usr/bin/env python3
"""Print the CloudFormation Resources for one magic custom resource.

Reads a JSON object of build parameters and writes ``{"Resources": {...}}``
to stdout:

    {
      "CustomResourceName": "SnsSubscription",
      "LogicalName": "AlarmEmail",
      "S3Bucket": "my-code-bucket",
      "S3Key": "magic-resources/package.zip",
      "Handler": "lambda_function.lambda_handler",
      "Properties": {"SnsTopicArn": "...", "Protocol": "email", "Endpoint": "..."}
    }

Usage:
    python3 tools/build_template.py --params-file params.json
    cat params.json | python3 tools/build_template.py
"""

from __future__ import annotations

import argparse
import json
import pathlib
import sys
from typing import Any, Dict, List, Optional

from cfn_magic.build import AVAILABLE, build
from cfn_magic.errors import ValidationError


class TemplateBuildError(Exception):
    pass


def _read_params(args: argparse.Namespace) -> Dict[str, Any]:
    if args.params_json:
        text = args.params_json
        source = "--params-json"
    elif args.params_file:
        try:
            text = pathlib.Path(args.params_file).read_text(encoding="utf-8")
        except OSError as exc:
            raise TemplateBuildError(f"failed to read --params-file: {exc}") from exc
        source = "--params-file"
    else:
        text = sys.stdin.read()
        source = "stdin"

    try:
        loaded = json.loads(text)
    except json.JSONDecodeError as exc:
        raise TemplateBuildError(f"{source} must contain valid JSON: {exc}") from exc
    if not isinstance(loaded, dict):
        raise TemplateBuildError(f"{source} must decode to a JSON object")
    return loaded


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Build CloudFormation Resources for a magic custom resource"
    )
    parser.add_argument("--params-file", help="Path to a JSON file of build parameters")
    parser.add_argument("--params-json", help="Inline JSON build parameters")
    parser.add_argument("--indent", type=int, default=2, help="JSON indent (default: 2)")
    parser.add_argument(
        "--list",
        action="store_true",
        help="List the available custom resource names and exit",
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = _parse_args(argv)

    if args.list:
        for name in sorted(AVAILABLE):
            print(name)
        return 0

    try:
        params = _read_params(args)
        template = build(params)
    except (TemplateBuildError, ValidationError) as exc:
        print(f"[ERROR] {exc}", file=sys.stderr)
        return 2

    print(json.dumps(template, indent=args.indent, sort_keys=True))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
