from __future__ import annotations

import argparse
import logging
from pathlib import Path

from orgcontrib.config import LOG_LEVELS, AppConfig, default_app_config, load_app_config
from orgcontrib.github import GitHubClient
from orgcontrib.orchestrator import load_contributors
from orgcontrib.report import render_ranking, write_report


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Rank contributors across every repository of a GitHub organization"
    )
    parser.add_argument("--org", default=None, help="Organization name (overrides config)")
    parser.add_argument("--config", default=None, help="Optional config YAML")
    parser.add_argument("--token", default=None, help="GitHub token override (default: GITHUB_TOKEN)")
    parser.add_argument("--username", default=None, help="GitHub username for basic auth")
    parser.add_argument("--password", default=None, help="GitHub password or token for basic auth")
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "--concurrency",
        type=int,
        default=None,
        help="Number of concurrent fetches (0 = one per repository)",
    )
    mode.add_argument(
        "--sequential",
        action="store_true",
        help="Fetch repositories one at a time in listing order",
    )
    parser.add_argument("--top", type=int, default=None, help="Rows to print (0 = all)")
    parser.add_argument("--output", default=None, help="Write the ranking to a .md or .csv file")
    parser.add_argument("--log-level", default=None, help="Logging level (default from config)")
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        app_config = load_app_config(args.config) if args.config else default_app_config()
        org = args.org or app_config.org
        if not org:
            raise ValueError("An organization is required (--org or 'org' in config)")
        concurrency = _resolve_concurrency(args, app_config)
        log_level = (args.log_level or app_config.log_level).upper()
        if log_level not in LOG_LEVELS:
            raise ValueError(f"Unknown log level: {log_level}")
    except (FileNotFoundError, ValueError) as exc:
        print(f"Configuration error: {exc}")
        return 1

    logging.basicConfig(level=log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    client = GitHubClient(
        token=args.token,
        username=args.username,
        password=args.password,
        base_url=app_config.api.base_url,
        timeout=app_config.api.timeout,
    )
    limit = args.top if args.top is not None else app_config.run.top

    result = load_contributors(
        org,
        client.list_repositories,
        client.fetch_contributors,
        concurrency=concurrency,
        report_progress=print,
        publish_result=lambda ranked: print(render_ranking(ranked, limit)),
    )

    if result.status == "failed":
        print(f"error: {result.listing_error}")
        return 2

    if args.output:
        written = write_report(Path(args.output), result)
        print(f"Wrote ranking to {written}")

    print(f"Processed repos: {result.repo_count}")
    print(f"Failed repos: {len(result.failed_repos)}")
    print(f"Contributors: {len(result.ranked)}")
    return 0


def _resolve_concurrency(args: argparse.Namespace, app_config: AppConfig) -> int | None:
    if args.sequential:
        return 1
    if args.concurrency is None:
        return app_config.run.concurrency
    if args.concurrency < 0:
        raise ValueError("--concurrency must be >= 0")
    return args.concurrency or None


if __name__ == "__main__":
    raise SystemExit(main())
