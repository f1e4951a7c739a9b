#!/usr/bin/env python3
"""CLI interface for slack-paste-md."""

import json
import logging
import sys
from pathlib import Path
from typing import Optional

import click

from .attachments import AttachmentNormalizer
from .detector import EmbeddedContentDetector
from .pipeline import ContentPipeline
from .settings import load_maps, load_messages, load_settings
from .strategies import create_default_factory


def _configure_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )


def _fail(message: str, error: Exception, debug: bool) -> None:
    click.echo(f"{message}: {error}", err=True)
    if debug:
        import traceback

        traceback.print_exc()
    sys.exit(1)


def _read_text(path: Path) -> str:
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


@click.group()
def main() -> None:
    """Convert pasted chat-export text into clean Markdown."""


@main.command()
@click.argument("messages_path", type=click.Path(path_type=Path, exists=True))
@click.option(
    "-o",
    "--output",
    type=click.Path(path_type=Path),
    help="Write Markdown to this file instead of stdout",
)
@click.option(
    "--strategy",
    "strategy_type",
    type=click.Choice(["standard", "bracket"]),
    default="standard",
    help="Callout layout (default: standard)",
)
@click.option(
    "--settings",
    "settings_path",
    type=click.Path(path_type=Path),
    help="JSON file with formatting settings",
)
@click.option(
    "--user-map",
    "user_map_path",
    type=click.Path(path_type=Path),
    help="JSON object mapping user IDs to display names",
)
@click.option(
    "--emoji-map",
    "emoji_map_path",
    type=click.Path(path_type=Path),
    help="JSON object mapping emoji codes to glyphs",
)
@click.option(
    "--debug",
    is_flag=True,
    default=False,
    help="Log pipeline steps and show full traceback on errors.",
)
def render(
    messages_path: Path,
    output: Optional[Path],
    strategy_type: str,
    settings_path: Optional[Path],
    user_map_path: Optional[Path],
    emoji_map_path: Optional[Path],
    debug: bool,
) -> None:
    """Render a JSON list of message records as Markdown callouts.

    MESSAGES_PATH: JSON file containing a list of message objects.
    """
    _configure_logging(debug)

    try:
        settings = load_settings(settings_path)
        if debug and not settings.debug:
            settings = settings.model_copy(update={"debug": True})
        maps = load_maps(user_map_path, emoji_map_path)
        messages = load_messages(messages_path)

        pipeline = ContentPipeline(settings)
        processed = [
            message.model_copy(
                update={"text": pipeline.process(message.text, maps, debug=debug)}
            )
            for message in messages
        ]

        factory = create_default_factory(settings, maps)
        strategy = factory.get_strategy_by_type(strategy_type)
        if strategy is None:
            raise click.ClickException(f"Strategy unavailable: {strategy_type}")
        markdown = strategy.format_to_markdown(processed)

        if output:
            output.parent.mkdir(parents=True, exist_ok=True)
            output.write_text(markdown + "\n", encoding="utf-8")
            click.echo(f"Wrote {len(processed)} messages to {output}")
        else:
            click.echo(markdown)
    except click.ClickException:
        raise
    except Exception as e:
        _fail("Error rendering messages", e, debug)


@main.command()
@click.argument("text_path", type=click.Path(path_type=Path, exists=True))
@click.option(
    "--json", "as_json", is_flag=True, help="Print the full detection result as JSON"
)
@click.option("--debug", is_flag=True, default=False, help="Log detected blocks.")
def detect(text_path: Path, as_json: bool, debug: bool) -> None:
    """Separate embedded previews, files, quotes and reactions from prose.

    TEXT_PATH: Text file holding one pasted message body.
    """
    _configure_logging(debug)

    try:
        result = EmbeddedContentDetector(debug=debug).analyze_message(
            _read_text(text_path)
        )
    except Exception as e:
        _fail("Error analysing message", e, debug)
        return

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
    else:
        click.echo(result.cleaned_text)


@main.command()
@click.argument("text_path", type=click.Path(path_type=Path, exists=True))
def normalize(text_path: Path) -> None:
    """Rewrite attachment and link-preview fragments in a text file.

    TEXT_PATH: Text file holding one pasted message body.
    """
    _configure_logging(False)

    try:
        result = AttachmentNormalizer().process(_read_text(text_path))
    except Exception as e:
        _fail("Error reading file", e, False)
        return
    click.echo(result.content)


if __name__ == "__main__":
    main()
