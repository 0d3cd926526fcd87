#!/usr/bin/env python3
"""log-analyzer: concurrent access-log analysis with stored results."""

import sys
import json
import logging
import argparse
from dataclasses import replace

from log_analyzer.config import load_yaml_config, load_config
from log_analyzer.generator import generate_lines
from log_analyzer.pipeline import LogPipeline
from log_analyzer.reader import SourceReadError
from log_analyzer.repository import AnalysisRepository, RecordNotFoundError, StoreLoadError
from log_analyzer.service import LogAnalysisService

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="log-analyzer",
        description="Analyze access-log files and manage stored analyses.",
    )
    parser.add_argument("--config", default=None, help="Path to YAML config file")
    parser.add_argument("--store", default=None, help="Override the analysis store path")
    sub = parser.add_subparsers(dest="command", required=True)

    analyze = sub.add_parser("analyze", help="Analyze a log file")
    analyze.add_argument("file", help="Log file to analyze")
    analyze.add_argument("--owner-id", type=int, default=0)
    analyze.add_argument("--source-name", default=None,
                         help="Name to record (default: file basename)")
    analyze.add_argument("--workers", type=int, default=None, help="Worker pool size")
    analyze.add_argument("--no-save", action="store_true", help="Do not store the result")
    analyze.add_argument("--output", choices=["text", "json"], default="text")

    listing = sub.add_parser("list", help="List stored analyses")
    listing.add_argument("--owner-id", type=int, default=None)

    show = sub.add_parser("show", help="Show one stored analysis")
    show.add_argument("id", type=int)

    delete = sub.add_parser("delete", help="Delete a stored analysis")
    delete.add_argument("id", type=int)

    generate = sub.add_parser("generate", help="Write a sample access log to stdout")
    generate.add_argument("--count", type=int, default=1000)
    generate.add_argument("--seed", type=int, default=None)
    generate.add_argument("--malformed-rate", type=float, default=0.0)

    sub.add_parser("serve", help="Run the HTTP API")
    return parser


def format_record_text(record) -> str:
    lines = []
    if record.id is not None:
        lines.append(f"Analysis #{record.id}")
    lines.append(f"Source:          {record.source_name}")
    lines.append(f"Owner:           {record.owner_id}")
    lines.append(f"Total requests:  {record.total_requests}")
    lines.append(f"Errors:          {record.error_count}")
    lines.append(f"Unique clients:  {record.unique_client_count}")
    lines.append(f"Avg response:    {record.average_response_time:.2f}ms")
    if record.created_at:
        lines.append(f"Created:         {record.created_at}")
    return "\n".join(lines)


def run(args) -> int:
    try:
        config = load_config(load_yaml_config(args.config))
        if args.store:
            config = replace(config, store_path=args.store)
        if getattr(args, "workers", None) is not None:
            config = replace(config, pool_size=args.workers)
    except ValueError as e:
        print(f"Error: invalid configuration: {e}", file=sys.stderr)
        return 1

    logging.getLogger().setLevel(config.log_level)

    if args.command == "generate":
        for line in generate_lines(args.count, seed=args.seed,
                                   malformed_rate=args.malformed_rate):
            print(line)
        return 0

    if args.command == "serve":
        from log_analyzer.web import create_app
        app = create_app(config)
        logger.info("Listening on %s:%d", config.host, config.port)
        app.run(host=config.host, port=config.port)
        return 0

    try:
        repository = AnalysisRepository(config.store_path)
    except StoreLoadError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    service = LogAnalysisService(LogPipeline(config), repository)

    if args.command == "analyze":
        try:
            record = service.analyze_file(args.file, owner_id=args.owner_id,
                                          source_name=args.source_name,
                                          save=not args.no_save)
        except SourceReadError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
        if args.output == "json":
            print(json.dumps(record.to_dict(), indent=2))
        else:
            print(format_record_text(record))
        return 0

    if args.command == "list":
        for record in service.list_analyses(owner_id=args.owner_id):
            print(f"#{record.id}\t{record.source_name}\towner={record.owner_id}\t"
                  f"requests={record.total_requests}\terrors={record.error_count}")
        return 0

    try:
        if args.command == "show":
            print(format_record_text(service.get_analysis(args.id)))
        elif args.command == "delete":
            service.delete_analysis(args.id)
            print(f"Deleted analysis #{args.id}")
    except RecordNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


def main(argv=None) -> int:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s — %(message)s",
        stream=sys.stderr,
    )
    args = build_parser().parse_args(argv)
    return run(args)


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        sys.exit(0)
