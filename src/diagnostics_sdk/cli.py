from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from pathlib import Path
from typing import Any

from . import __version__
from .clients import DiagnosticsClient
from .config import DiagnosticsClientOptions, EgressSettings
from .egress import ArtifactEgress, parse_metadata
from .errors import DiagnosticsError, InvalidArgumentError, LeaseUnavailableError
from .models.artifacts import ArtifactKind

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_INVALID = 2
EXIT_LEASE_UNAVAILABLE = 3


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="diagnostics-egress",
        description="Uploads diagnostic artifacts to the diagnostics ingestion service.",
    )
    parser.add_argument("--version", action="version", version=f"diagnostics-egress {__version__}")
    parser.add_argument("--endpoint", type=str, help="Service endpoint (default: $DIAGNOSTICS_ENDPOINT)")
    parser.add_argument("--timeout", type=float, help="Request timeout in seconds")
    parser.add_argument("--log-level", default="WARNING", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    sub = parser.add_subparsers(dest="command", required=True)

    profile = sub.add_parser("profile", help="Show the application profile for an instrumentation key")
    profile.add_argument("--ikey", required=True)

    upload = sub.add_parser("upload", help="Upload an artifact file under a lease")
    upload.add_argument("--ikey", required=True)
    upload.add_argument("--kind", required=True, help="Artifact kind, e.g. Dump, Trace, Logs")
    upload.add_argument("--file", required=True, type=Path)
    upload.add_argument("--metadata", action="append", default=[], help="Repeatable KEY=VALUE lease metadata")
    upload.add_argument("--namespace", type=str, help="Lease namespace (default: $DIAGNOSTICS_LEASE_NAMESPACE)")
    return parser


def _load_options(args: argparse.Namespace) -> DiagnosticsClientOptions:
    env = dict(os.environ)
    if args.endpoint:
        env["DIAGNOSTICS_ENDPOINT"] = args.endpoint
    if args.timeout is not None:
        env["DIAGNOSTICS_TIMEOUT_SECONDS"] = str(args.timeout)
    return DiagnosticsClientOptions.from_env(env)


def _load_settings(args: argparse.Namespace) -> EgressSettings:
    env = dict(os.environ)
    if getattr(args, "namespace", None):
        env["DIAGNOSTICS_LEASE_NAMESPACE"] = args.namespace
    return EgressSettings.from_env(env)


async def _run_profile(options: DiagnosticsClientOptions, i_key: str) -> dict[str, Any]:
    async with DiagnosticsClient(options) as client:
        profile = await client.get_app_profile(i_key)
    return profile.to_dict()


async def _run_upload(
    options: DiagnosticsClientOptions,
    settings: EgressSettings,
    *,
    i_key: str,
    kind: str,
    data: bytes,
    metadata: dict[str, str],
) -> dict[str, Any]:
    async with DiagnosticsClient(options) as client:
        egress = ArtifactEgress(client, settings)
        result = await egress.upload(i_key, ArtifactKind.parse(kind), data, metadata or None)
    return {
        "artifactId": str(result.artifact_id),
        "etag": str(result.etag),
        "accepted": result.accepted.to_dict(),
    }


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
    )

    try:
        options = _load_options(args)
        if args.command == "profile":
            payload = asyncio.run(_run_profile(options, args.ikey))
        else:
            settings = _load_settings(args)
            data = args.file.read_bytes()
            payload = asyncio.run(
                _run_upload(
                    options,
                    settings,
                    i_key=args.ikey,
                    kind=args.kind,
                    data=data,
                    metadata=parse_metadata(args.metadata),
                )
            )
    except (InvalidArgumentError, ValueError, OSError) as exc:
        sys.stderr.write(f"error: {exc}\n")
        return EXIT_INVALID
    except LeaseUnavailableError as exc:
        sys.stderr.write(f"lease unavailable: {exc}\n")
        return EXIT_LEASE_UNAVAILABLE
    except DiagnosticsError as exc:
        sys.stderr.write(f"{exc}\n")
        return EXIT_FAILED

    sys.stdout.write(json.dumps(payload, indent=2) + "\n")
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
