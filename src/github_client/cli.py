"""list-repos: print the public repositories of a GitHub user or organization."""
from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any, TextIO

from .client import GitHubClient
from .credentials import CredentialsNotFoundError, get_token
from .errors import GitHubError

logger = logging.getLogger(__name__)


def format_repository(repo: dict[str, Any]) -> str:
    def _or_dash(value: Any) -> str:
        return str(value) if value not in (None, "") else "-"

    topics = repo.get("topics") or []
    lines = [
        f"Repository: {repo.get('full_name')}",
        f"URL: {repo.get('html_url')}",
        f"Description: {_or_dash(repo.get('description'))}",
        f"Language: {_or_dash(repo.get('language'))}",
        f"Homepage: {_or_dash(repo.get('homepage'))}",
        f"Topics: {', '.join(topics) if topics else '-'}",
        f"Stars: {repo.get('stargazers_count', 0)}",
        f"Forks: {repo.get('forks_count', 0)}",
    ]
    return "\n".join(lines)


def list_repos(client: GitHubClient, owner: str, *, as_json: bool, out: TextIO) -> None:
    first = True
    for repo in client.paginate(f"/users/{owner}/repos"):
        if as_json:
            print(json.dumps(repo, ensure_ascii=False), file=out)
            continue
        if not first:
            print(file=out)
        first = False
        print(format_repository(repo), file=out)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="list-repos",
        description="List public repositories for a GitHub user or organization",
    )
    parser.add_argument("-J", "--json", action="store_true", help="Output one JSON object per line")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log HTTP activity to stderr")
    parser.add_argument("owner", help="User or organization login")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        token = get_token()
    except CredentialsNotFoundError as e:
        print(f"Failed to fetch GitHub token: {e}", file=sys.stderr)
        return 1

    client = GitHubClient(token)
    try:
        list_repos(client, args.owner, as_json=args.json, out=sys.stdout)
    except GitHubError as e:
        print(e.display(verbose=True), file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
