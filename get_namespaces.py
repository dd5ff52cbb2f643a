import argparse
import json
import sys
from pathlib import Path

from wikitextbot.api import MediaWikiApi

SAVED_KEYS = {"id", "name", "content", "canonical"}


def get_siteinfo(api, siprop):
    # https://www.mediawiki.org/wiki/API:Siteinfo
    # https://www.mediawiki.org/wiki/Help:Namespaces
    return api.request({"meta": "siteinfo", "siprop": siprop})["query"]


def main():
    """
    Writes wikitextbot/data/<lang_code>/namespaces.json from the siteinfo of
    a live wiki.  Check the result by hand: local and canonical names are
    sometimes the same, and then the English name is missing from the
    aliases.
    """
    parser = argparse.ArgumentParser()
    parser.add_argument(
        "domain", help="MediaWiki domain, for example: ja.wikipedia.org"
    )
    parser.add_argument("lang_code", help="MediaWiki language code")
    args = parser.parse_args()

    api = MediaWikiApi(f"https://{args.domain}/w/api.php")
    namespaces = get_siteinfo(api, "namespaces")["namespaces"]
    json_dict = {}
    for data in namespaces.values():
        data = {k: v for k, v in data.items() if k in SAVED_KEYS}
        data["aliases"] = []
        data["issubject"] = data["id"] < 0 or data["id"] % 2 == 0
        data["istalk"] = not data["issubject"]
        data["content"] = bool(data.get("content"))
        if data["name"] == "":
            data["name"] = "Main"
        canonical_name = data.pop("canonical", "Main")
        json_dict[canonical_name] = data

    aliases = get_siteinfo(api, "namespacealiases")["namespacealiases"]
    for alias in aliases:
        for ns_data in json_dict.values():
            if (
                ns_data["id"] == alias["id"]
                and alias["alias"] != ns_data["name"]
            ):
                ns_data["aliases"].append(alias["alias"])

    data_folder = Path(f"wikitextbot/data/{args.lang_code}")
    data_folder.mkdir(parents=True, exist_ok=True)
    with data_folder.joinpath("namespaces.json").open(
        "w", encoding="utf-8"
    ) as f:
        json.dump(json_dict, f, ensure_ascii=False, indent=2)


if __name__ == "__main__":
    sys.exit(main())
