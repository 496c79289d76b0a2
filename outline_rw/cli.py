import argparse
import logging
import os
import sys
from datetime import datetime

from .errors import ParseError
from .formats import Format
from .keywords import GenericKeywords
from .outline_rw import NonReproducibleDocument, dumps, dumps_node, load, loads
from .workflow import mark_nodes_done, refile_to_file

OUTLINE_EXTENSIONS = (".org", ".md", ".markdown")
FORMAT_CHOICES = ("org", "md", "markdown")


def check(args):
    count = 0
    for path in iter_outline_files(args.paths):
        count += 1
        try:
            with open(path) as f:
                load(f, keywords=GenericKeywords(), extra_cautious=True)
        except (ParseError, NonReproducibleDocument) as err:
            print("== On {}: {}".format(path, err), file=sys.stderr)
            sys.exit(1)

    print("[OK] Check passed on {} files".format(count))


def iter_outline_files(paths):
    for top in paths:
        if not os.path.isdir(top):
            yield top
            continue
        for root, dirs, files in os.walk(top):
            for name in sorted(files):
                if os.path.splitext(name)[1].lower() in OUTLINE_EXTENSIONS:
                    yield os.path.join(root, name)


def read_stdin() -> str:
    text = sys.stdin.read()
    # `print` adds the final line jump back
    if text.endswith("\n"):
        text = text[:-1]
    return text


def mark_done(args):
    format = Format.from_str(args.format)
    keywords = GenericKeywords()
    doc = loads(read_stdin(), format, keywords)
    if doc.root.body is not None:
        print("Invalid selection, expected no root contents", file=sys.stderr)
        sys.exit(1)

    if args.no_last_repeat:
        completion_time = None
    elif args.last_repeat:
        completion_time = datetime.fromisoformat(args.last_repeat)
    else:
        completion_time = datetime.now()

    results = mark_nodes_done(
        doc.root.take_children(),
        keywords.other(args.repeating_keyword),
        keywords.other(args.keyword),
        completion_time,
    )

    to_refile = []
    for result in results:
        if result.repeating is not None:
            # The repeating copy always goes back to the caller
            print(dumps_node(result.repeating, format, keywords))
            if args.target:
                to_refile.append(result.completed)
        elif args.target:
            to_refile.append(result.completed)
        else:
            print(dumps_node(result.completed, format, keywords))

    if args.target:
        refile_to_file(to_refile, args.target, format, keywords)


def convert(args):
    doc = loads(read_stdin(), Format.from_str(args.source), GenericKeywords())
    print(dumps(doc, Format.from_str(args.destination), GenericKeywords()))


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog="outline-rw",
        description="Read, check and rewrite Org and Markdown outlines.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debugging information")
    subparsers = parser.add_subparsers(dest="command", required=True)

    check_p = subparsers.add_parser("check", help="Check that files are written back unchanged")
    check_p.add_argument("paths", nargs="+", help="Files or directories to check")
    check_p.set_defaults(func=check)

    done_p = subparsers.add_parser(
        "mark-done", help="Mark the nodes read from stdin as done, moving repeating timestamps forward"
    )
    done_p.add_argument("-f", "--format", default="org", choices=FORMAT_CHOICES, help="Format of stdin")
    done_p.add_argument("-t", "--target", help="Refile completed nodes to `path[::Heading::Sub]`")
    done_p.add_argument("-k", "--keyword", default="DONE", help="Keyword for completed nodes")
    done_p.add_argument("--repeating-keyword", default="TODO", help="Keyword for repeating nodes")
    done_p.add_argument("--no-last-repeat", action="store_true", help="Do not set LAST_REPEAT")
    done_p.add_argument("--last-repeat", help="Completion time for LAST_REPEAT (ISO format)")
    done_p.set_defaults(func=mark_done)

    convert_p = subparsers.add_parser("convert", help="Convert a document read from stdin")
    convert_p.add_argument("--from", dest="source", default="org", choices=FORMAT_CHOICES, help="Format of stdin")
    convert_p.add_argument("--to", dest="destination", default="markdown", choices=FORMAT_CHOICES, help="Format to write")
    convert_p.set_defaults(func=convert)

    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    try:
        args.func(args)
    except (ParseError, LookupError) as err:
        print("Error: {}".format(err), file=sys.stderr)
        sys.exit(1)
