import sys
import asyncio
import argparse
import logging

from page_translator.core.constants import (
    KEY_API_KEY,
    KEY_TARGET_LANGUAGE,
    KEY_DISPLAY_MODE,
    KEY_AUTO_TRANSLATE,
    KEY_EXTENSION_ENABLED,
    DEFAULT_MAX_CONCURRENCY,
    BACKGROUND_MAX_CONCURRENCY,
)
from page_translator.core.messages import MessageRouter
from page_translator.core.translation_pipeline import TranslationPipeline
from page_translator.core.validation import Validator
from page_translator.utils.logger import setup_logger
from page_translator.utils.settings_store import SettingsStore


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Page translator workbench")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    parser.add_argument("--settings", help="Path to the settings JSON file")
    sub = parser.add_subparsers(dest="command", required=True)

    tr = sub.add_parser("translate", help="Translate text (argument, --file or stdin)")
    tr.add_argument("text", nargs="?", help="Text to translate")
    tr.add_argument("-f", "--file", help="Read text from a file")
    tr.add_argument("-t", "--target", help="Target language code (default: stored preference)")
    tr.add_argument("-c", "--concurrency", type=int, help=f"Chunks in flight at once (default {DEFAULT_MAX_CONCURRENCY})")
    tr.add_argument("--background", action="store_true",
                    help=f"Low-priority run, limits concurrency to {BACKGROUND_MAX_CONCURRENCY}")

    cfg = sub.add_parser("config", help="Show or update stored preferences")
    cfg.add_argument("--api-key")
    cfg.add_argument("--target")
    cfg.add_argument("--display-mode")
    cfg.add_argument("--auto-translate", choices=["on", "off"])
    cfg.add_argument("--enabled", choices=["on", "off"])
    return parser


def _read_text(args) -> str:
    if args.file:
        with open(args.file, "r", encoding="utf-8") as f:
            return f.read()
    if args.text:
        return args.text
    return sys.stdin.read()


def _concurrency(args) -> int:
    if args.concurrency is not None:
        return args.concurrency
    return BACKGROUND_MAX_CONCURRENCY if args.background else DEFAULT_MAX_CONCURRENCY


async def run_translate(args, store: SettingsStore) -> int:
    text = _read_text(args)
    logger = logging.getLogger("Workbench")

    def on_progress(done, total):
        if total > 1:
            logger.info(f"Translated {done}/{total} chunks")

    async with TranslationPipeline({"max_concurrency": _concurrency(args)}, settings_store=store) as pipeline:
        router = MessageRouter(pipeline, progress_callback=on_progress)
        response = await router.handle({
            "type": "TRANSLATE_TEXT",
            "payload": {"text": text, "targetLanguage": args.target},
        })

    if not response["success"]:
        print(f"Error: {response['error']}", file=sys.stderr)
        return 1
    print(response["translation"])
    return 0


def run_config(args, store: SettingsStore) -> int:
    updates = {}
    if args.api_key is not None:
        updates[KEY_API_KEY] = args.api_key
    if args.target is not None:
        updates[KEY_TARGET_LANGUAGE] = args.target
    if args.display_mode is not None:
        updates[KEY_DISPLAY_MODE] = args.display_mode
    if args.auto_translate is not None:
        updates[KEY_AUTO_TRANSLATE] = args.auto_translate == "on"
    if args.enabled is not None:
        updates[KEY_EXTENSION_ENABLED] = args.enabled == "on"

    if updates:
        candidate = Validator.sanitize_settings({**store.load(), **updates})
        validation = Validator.validate_settings(candidate)
        if not validation.is_valid:
            for error in validation.errors:
                print(f"Error: {error}", file=sys.stderr)
            return 1
        store.save(candidate)

    print(Validator.generate_report(Validator.sanitize_settings(store.load())))
    return 0


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logger(verbose=args.verbose)
    store = SettingsStore(path=args.settings)

    if args.command == "config":
        return run_config(args, store)
    return asyncio.run(run_translate(args, store))


if __name__ == "__main__":
    sys.exit(main())
