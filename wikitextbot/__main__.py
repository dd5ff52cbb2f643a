# Command-line interface: dump parsed entities, run maintenance tasks
#
# Copyright (c) 2020-2022 Tatu Ylonen.  See file LICENSE and https://ylonen.org

import argparse
import json
import os
import sys
from typing import Any

from .api import DEFAULT_USER_AGENT, ApiError, MediaWikiApi
from .logging_utils import logger, setup_console_logging
from .pp import PpRemover
from .wikitext import Wikitext


def _print_json_lines(items: list[Any]) -> None:
    for item in items:
        print(json.dumps(item.to_dict(), ensure_ascii=False))


def _read_wikitext(args: argparse.Namespace) -> Wikitext:
    if args.file == "-":
        text = sys.stdin.read()
    else:
        with open(args.file, "r", encoding="utf-8") as f:
            text = f.read()
    return Wikitext(text, lang_code=args.lang_code)


def cmd_tags(args: argparse.Namespace) -> int:
    _print_json_lines(_read_wikitext(args).parse_tags())
    return 0


def cmd_parameters(args: argparse.Namespace) -> int:
    _print_json_lines(_read_wikitext(args).parse_parameters())
    return 0


def cmd_sections(args: argparse.Namespace) -> int:
    _print_json_lines(_read_wikitext(args).parse_sections())
    return 0


def cmd_templates(args: argparse.Namespace) -> int:
    wikitext = _read_wikitext(args)
    if args.name:
        names = set(args.name)
        templates = wikitext.parse_templates(
            name_predicate=lambda name: name in names
        )
    else:
        templates = wikitext.parse_templates()
    _print_json_lines(templates)
    for warning in wikitext.warnings:
        logger.warning("%s [%s]", warning["msg"], warning["called_from"])
    return 0


def cmd_remove_pp(args: argparse.Namespace) -> int:
    api = MediaWikiApi(args.api, user_agent=args.user_agent)
    username = args.username or os.environ.get("WIKITEXTBOT_USERNAME")
    password = args.password or os.environ.get("WIKITEXTBOT_PASSWORD")
    if not username or not password:
        logger.error(
            "Credentials missing: use --username and --password or set "
            "WIKITEXTBOT_USERNAME and WIKITEXTBOT_PASSWORD"
        )
        return 2
    try:
        api.login(username, password)
    except ApiError as e:
        logger.error("Login failed: %s", e)
        return 1
    remover = PpRemover(api, lang_code=args.lang_code)
    count = remover.run(quit_before=args.quit_before)
    logger.info("%d page%s edited", count, "" if count == 1 else "s")
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(
        prog="wikitextbot",
        description="Parse wikitext and run maintenance tasks on a wiki",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Print debug messages"
    )
    parser.add_argument(
        "--lang-code",
        default=None,
        help="Language code of the namespace data (default: en, "
        "ja for remove-pp)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    for name, func, what in (
        ("tags", cmd_tags, "tags and comments"),
        ("parameters", cmd_parameters, "{{{parameters}}}"),
        ("templates", cmd_templates, "templates"),
        ("sections", cmd_sections, "sections"),
    ):
        sub = subparsers.add_parser(
            name, help="Print the {} of a file as JSON lines".format(what)
        )
        sub.add_argument("file", help="Wikitext file, or - for stdin")
        sub.set_defaults(func=func, default_lang_code="en")
        if name == "templates":
            sub.add_argument(
                "--name",
                action="append",
                help="Only print templates with this clean name "
                "(may be given several times)",
            )

    sub = subparsers.add_parser(
        "remove-pp",
        help="Remove {{pp}} templates from pages that are not protected",
    )
    sub.add_argument(
        "--api",
        required=True,
        help="API endpoint, for example https://ja.wikipedia.org/w/api.php",
    )
    sub.add_argument("--username", help="Bot password user name")
    sub.add_argument("--password", help="Bot password")
    sub.add_argument("--user-agent", default=DEFAULT_USER_AGENT)
    sub.add_argument(
        "--quit-before",
        type=float,
        default=None,
        help="UNIX time of the next scheduled run",
    )
    sub.set_defaults(func=cmd_remove_pp, default_lang_code="ja")

    args = parser.parse_args()
    if args.lang_code is None:
        args.lang_code = args.default_lang_code
    setup_console_logging(args.verbose)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
