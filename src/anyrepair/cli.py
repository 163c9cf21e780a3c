"""command line entry point"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from . import api
from .config import config
from .custom_rules import CustomRuleEngine, RuleTemplates
from .errors import ConfigurationError
from .models import Format
from .rules_schema import RepairConfig, load_repair_config
from .streaming import StreamingRepair

logger = logging.getLogger("anyrepair.cli")

EXIT_OK = 0
EXIT_INVALID = 1
EXIT_ERROR = 2

FORMAT_CHOICES = ["auto", *[fmt.value for fmt in Format], "yml", "md", "cfg", "conf"]


def read_input(path: Optional[str]) -> str:
    if path is None or path == "-":
        return sys.stdin.read()
    return Path(path).read_text(encoding="utf-8")


def write_output(text: str, path: Optional[str]) -> None:
    if path is None or path == "-":
        sys.stdout.write(text)
        if text and not text.endswith("\n"):
            sys.stdout.write("\n")
        return
    Path(path).write_text(text, encoding="utf-8")


def cmd_repair(args: argparse.Namespace) -> int:
    text = read_input(args.file)
    outcome = api.repair_with_report(
        text,
        api.format_of(args.format),
        rules=args.rules,
        advanced=args.advanced,
    )
    if args.report:
        print(json.dumps(outcome.to_dict(), indent=2, ensure_ascii=False))
        if args.output:
            write_output(outcome.repaired, args.output)
    else:
        write_output(outcome.repaired, args.output)
    if not outcome.valid:
        logger.warning(f"{outcome.format.value} output still fails validation")
        return EXIT_INVALID
    return EXIT_OK


def cmd_validate(args: argparse.Namespace) -> int:
    text = read_input(args.file)
    fmt = api.format_of(args.format) or api.detect_format(text)
    errors = api.validate(text, fmt)
    if not errors:
        print(f"valid {fmt.value}")
        return EXIT_OK
    print(f"invalid {fmt.value}:")
    for error in errors:
        print(f"  - {error}")
    return EXIT_INVALID


def cmd_confidence(args: argparse.Namespace) -> int:
    text = read_input(args.file)
    fmt = api.format_of(args.format) or api.detect_format(text)
    print(f"{api.confidence(text, fmt):.4f}")
    return EXIT_OK


def cmd_stream(args: argparse.Namespace) -> int:
    processor = StreamingRepair(buffer_size=args.buffer_size, rules=args.rules)
    reader = sys.stdin if args.file in (None, "-") else open(args.file, encoding="utf-8")
    try:
        writer = sys.stdout if args.output in (None, "-") else open(args.output, "w", encoding="utf-8")
        try:
            written = processor.process(reader, writer, args.format)
        finally:
            if writer is not sys.stdout:
                writer.close()
    finally:
        if reader is not sys.stdin:
            reader.close()
    logger.info(f"streamed {written} characters in {processor.chunks_processed} chunks")
    return EXIT_OK


def cmd_rules(args: argparse.Namespace) -> int:
    if args.action == "templates":
        rules = [rule.model_dump(mode="json") for rule in RuleTemplates.get_all_templates()]
        print(json.dumps({"custom_rules": rules}, indent=2))
        return EXIT_OK

    path = args.path or config.RULES_FILE
    if path is None:
        print("error: no rule file given and ANYREPAIR_RULES_FILE is not set", file=sys.stderr)
        return EXIT_ERROR
    repair_config: RepairConfig = load_repair_config(path)
    engine = CustomRuleEngine(repair_config)

    if args.action == "check":
        stats = engine.get_statistics()
        print(f"ok: {stats.enabled_rules} enabled rules across {stats.format_count} formats "
              f"({stats.total_rules} total)")
        return EXIT_OK

    for fmt in Format:
        for rule in engine.get_rules_for_format(fmt):
            print(f"{fmt.value:<9} {rule.priority:>2}  {rule.id:<24} {rule.name}")
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="anyrepair",
        description="Repair malformed JSON, YAML, XML, TOML, CSV, INI and Markdown.",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    repair_parser = subparsers.add_parser("repair", help="repair a file or stdin")
    repair_parser.add_argument("file", nargs="?", help="input path, '-' or omitted for stdin")
    repair_parser.add_argument("--format", "-f", choices=FORMAT_CHOICES, default="auto", help="input format")
    repair_parser.add_argument("--advanced", action="store_true", help="best-of repair across strategies")
    repair_parser.add_argument("--rules", help="custom rule file (yaml, json or toml)")
    repair_parser.add_argument("--output", "-o", help="write repaired text here instead of stdout")
    repair_parser.add_argument("--report", action="store_true", help="print a JSON report")
    repair_parser.set_defaults(func=cmd_repair)

    validate_parser = subparsers.add_parser("validate", help="strict validation")
    validate_parser.add_argument("file", nargs="?", help="input path, '-' or omitted for stdin")
    validate_parser.add_argument("--format", "-f", choices=FORMAT_CHOICES, default="auto", help="input format")
    validate_parser.set_defaults(func=cmd_validate)

    confidence_parser = subparsers.add_parser("confidence", help="print the confidence score")
    confidence_parser.add_argument("file", nargs="?", help="input path, '-' or omitted for stdin")
    confidence_parser.add_argument("--format", "-f", choices=FORMAT_CHOICES, default="auto", help="input format")
    confidence_parser.set_defaults(func=cmd_confidence)

    stream_parser = subparsers.add_parser("stream", help="repair a large input chunk by chunk")
    stream_parser.add_argument("file", nargs="?", help="input path, '-' or omitted for stdin")
    stream_parser.add_argument("--format", "-f", choices=FORMAT_CHOICES, default="auto", help="input format")
    stream_parser.add_argument("--buffer-size", "-b", type=int, help="characters per chunk")
    stream_parser.add_argument("--rules", help="custom rule file (yaml, json or toml)")
    stream_parser.add_argument("--output", "-o", help="write repaired text here instead of stdout")
    stream_parser.set_defaults(func=cmd_stream)

    rules_parser = subparsers.add_parser("rules", help="inspect custom rules")
    rules_parser.add_argument("action", choices=["list", "templates", "check"], help="what to do")
    rules_parser.add_argument("path", nargs="?", help="rule file")
    rules_parser.set_defaults(func=cmd_rules)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else getattr(logging, config.LOG_LEVEL, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    try:
        return args.func(args)
    except ConfigurationError as e:
        print(f"error: {e}", file=sys.stderr)
        return EXIT_ERROR
    except OSError as e:
        print(f"error: {e}", file=sys.stderr)
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
