"""CLI entrypoint for chatterm."""

from __future__ import annotations

import argparse
from importlib import metadata
from typing import Sequence

from .app import ChatTermApp
from .config import ConversationsConfig, ProviderConfig, ensure_config_dir, load_config
from .message import ModelRef


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="chatterm", description="Terminal chat client")
    parser.add_argument("--version", action="store_true", help="Print version and exit")
    parser.add_argument("--model", help="Model to chat with, as owner/name or a bare name")
    parser.add_argument("--conversations", help="Directory holding saved conversations")
    return parser


def main(argv: Sequence[str] | None = None) -> None:
    """Handle CLI flags, apply overrides to the loaded config and run the TUI."""
    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    if args.version:
        try:
            version = metadata.version("chatterm-tui")
        except metadata.PackageNotFoundError:
            version = "0.0.0"
        print(f"chatterm {version}")
        return

    ensure_config_dir()
    config = load_config()
    if args.model:
        try:
            model = str(ModelRef.parse(args.model))
        except ValueError as exc:
            parser.error(str(exc))
        config.provider = ProviderConfig.model_validate({**config.provider.model_dump(), "model": model})
    if args.conversations:
        config.conversations = ConversationsConfig.model_validate(
            {**config.conversations.model_dump(), "directory": args.conversations}
        )
    ChatTermApp(config=config).run()


if __name__ == "__main__":
    main()
