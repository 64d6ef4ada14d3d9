"""Command line client: translate an HTML file through a running server."""

import argparse
import asyncio
import pathlib
import sys

from glossa.config import Settings, get_settings

from .pipeline import TranslationPipeline
from .soup import SoupDocument


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="glossa",
        description="Translate the visible text of an HTML file via a Glossa server.",
    )
    parser.add_argument("input_file", help="Path to the .html file to translate.")
    parser.add_argument(
        "-o",
        "--output",
        help="Output file path. Defaults to appending the target language code.",
    )
    parser.add_argument(
        "-t",
        "--target-language",
        help="Target language tag (default: GLOSSA_TARGET_LANGUAGE or 'es').",
    )
    parser.add_argument(
        "-u",
        "--url",
        help="Server WebSocket URL (default: GLOSSA_SERVER_URL).",
    )
    parser.add_argument(
        "--settle",
        type=float,
        default=30.0,
        help="Seconds to wait for pending translations before writing output.",
    )
    return parser


async def translate_file(
    input_path: pathlib.Path,
    output_path: pathlib.Path,
    settings: Settings,
    settle: float,
) -> dict:
    document = SoupDocument(input_path.read_text(encoding="utf-8"))
    pipeline = TranslationPipeline.from_settings(document, settings)

    await pipeline.start()
    loop = asyncio.get_running_loop()
    deadline = loop.time() + settle
    while not pipeline.is_idle and loop.time() < deadline:
        await asyncio.sleep(0.1)

    if not pipeline.is_idle:
        print(f"⚠️ {len(pipeline.pending)} texts still pending after {settle:.0f}s")

    await pipeline.stop()
    output_path.write_text(document.html(), encoding="utf-8")
    return pipeline.stats()


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = get_settings()
    except ValueError as e:
        print(f"❌ Configuration error: {e}", file=sys.stderr)
        return 2

    if args.target_language:
        settings.target_language = args.target_language
    if args.url:
        settings.server_url = args.url

    input_path = pathlib.Path(args.input_file)
    if not input_path.is_file():
        print(f"❌ Input file not found: {input_path}", file=sys.stderr)
        return 1

    output_path = (
        pathlib.Path(args.output)
        if args.output
        else input_path.with_name(f"{input_path.stem}.{settings.target_language}{input_path.suffix}")
    )

    stats = asyncio.run(translate_file(input_path, output_path, settings, args.settle))
    print(f"📈 {stats}")
    print(f"✅ Wrote {output_path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
