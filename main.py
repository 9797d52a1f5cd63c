"""Entrypoint: generate tests, validate the provider or print health."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from dotenv import load_dotenv

sys.path.insert(0, str(Path(__file__).resolve().parent / "src"))

from testgen_agent.bootstrap import build_services, configure_logging
from testgen_agent.config import SettingsStore
from testgen_agent.errors import TestGenError
from testgen_agent.llm.types import GenerationRequest


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Multi-provider unit test generator")
    parser.add_argument("--settings", default="config/settings.yaml", help="Path to settings.yaml")

    subparsers = parser.add_subparsers(dest="command")
    generate = subparsers.add_parser("generate", help="Generate tests for a source file")
    generate.add_argument("source", help="Source file to cover")
    generate.add_argument("--prompt", default="Generate unit tests.", help="Extra instruction")
    generate.add_argument("--existing-tests", help="File with existing tests to follow")
    generate.add_argument("--max-tokens", type=int)
    generate.add_argument("--temperature", type=float)
    subparsers.add_parser("validate", help="Validate the configured provider")
    subparsers.add_parser("health", help="Run health checks once")
    return parser


def main() -> int:
    load_dotenv()
    parser = _build_parser()
    args = parser.parse_args()
    command = args.command or "validate"

    settings = SettingsStore.from_file(args.settings)
    configure_logging(settings.snapshot())
    services = build_services(settings)

    try:
        if command == "generate":
            existing = Path(args.existing_tests).read_text(encoding="utf-8") if args.existing_tests else None
            request = GenerationRequest(
                prompt=args.prompt,
                source_code=Path(args.source).read_text(encoding="utf-8"),
                existing_tests=existing,
                max_tokens=args.max_tokens,
                temperature=args.temperature,
            )
            result = services.orchestrator.generate_tests(request)
            for line in result.suggested_imports:
                print(line)
            print(result.test_code)
            if result.coverage is not None:
                print(f"# estimated coverage: {result.coverage.estimated_coverage}%", file=sys.stderr)
            return 0

        if command == "validate":
            ok = services.orchestrator.validate_current_provider()
            print(f"Provider {services.orchestrator.current_provider_kind()}: {'ok' if ok else 'invalid'}")
            return 0 if ok else 1

        for record in services.monitor.check_all():
            details = f" ({record.details})" if record.details else ""
            print(f"- {record.service}: {record.status.value}{details}")
        return 0
    except TestGenError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    finally:
        services.close()


if __name__ == "__main__":
    sys.exit(main())
