import collections
import copy
import os
from datetime import datetime
from typing import List, Optional

from .formats import Format
from .keywords import DEFAULT_IDS, DEFAULT_KEYWORDS
from .nodes import Node
from .outline_rw import BASE_ENVIRONMENT, Document, dump, load
from .timestamps import Timestamp

LAST_REPEAT_PROPERTY = "LAST_REPEAT"
PATH_SEPARATOR = "::"

CompletedNode = collections.namedtuple("CompletedNode", ("completed", "repeating"))


def _advance(timestamp: Optional[Timestamp]) -> Optional[Timestamp]:
    if timestamp is None:
        return None
    result = timestamp.next_repeat()
    return result.timestamp if result.repeated else None


def mark_nodes_done(
    nodes: List[Node],
    repeating_keyword,
    done_keyword,
    completion_time: Optional[datetime] = None,
) -> List[CompletedNode]:
    """
    Marks each of `nodes` as done.

    A node with at least one repeating timestamp also produces a `repeating`
    copy: its repeating timestamps are moved to their next repeat, the others
    are dropped, and it gets `repeating_keyword`. When `completion_time` is
    given, that copy records it as an inactive LAST_REPEAT timestamp.
    Children go with both the completed node and its repeating copy.
    """
    results = []
    for node in nodes:
        repeating = copy.deepcopy(node)
        completed = node
        completed.keyword = done_keyword

        repeating.timestamps = [
            ts for ts in map(_advance, repeating.timestamps) if ts is not None
        ]
        planning = repeating.planning
        planning.deadline = _advance(planning.deadline)
        planning.scheduled = _advance(planning.scheduled)
        planning.closed = _advance(planning.closed)

        if len(repeating.timestamps) == 0 and planning.is_empty():
            results.append(CompletedNode(completed, None))
            continue

        repeating.keyword = repeating_keyword
        if completion_time is not None:
            repeating.properties[LAST_REPEAT_PROPERTY] = Timestamp.from_datetime(
                completion_time, active=False
            ).to_raw()
        results.append(CompletedNode(completed, repeating))

    return results


def find_node(root: Node, heading_path: List[str]) -> Optional[Node]:
    node = root
    for title in heading_path:
        for child in node.children:
            if child.title == title:
                node = child
                break
        else:
            return None
    return node


def refile(nodes: List[Node], target: Optional[str], doc: Document) -> bool:
    """
    Moves `nodes` under the heading at `target`, a `Heading::Sub heading`
    path of titles, or at the end of the document when `target` is None.

    Levels are rewritten so each node becomes a direct child of the target.
    Returns False if the target heading does not exist.
    """
    if target is None:
        parent = doc.root
    else:
        parent = find_node(doc.root, target.split(PATH_SEPARATOR))
        if parent is None:
            return False

    for node in nodes:
        node.set_level_unchecked(parent.level + 1)
        parent.add_child(node)
    return True


def refile_to_file(
    nodes: List[Node],
    target: str,
    format: Format = None,
    keywords=DEFAULT_KEYWORDS,
    ids=DEFAULT_IDS,
    environment=BASE_ENVIRONMENT,
):
    """
    Refiles into a file, given `target` as `path` or `path::Heading::Sub`.
    """
    if PATH_SEPARATOR in target:
        path, heading = target.split(PATH_SEPARATOR, 1)
    else:
        path, heading = target, None

    with open(path) as f:
        doc = load(f, format, keywords, ids, environment)

    if not refile(nodes, heading, doc):
        raise LookupError("Refile target not found: {}".format(target))

    with open(os.path.abspath(path), "w") as f:
        dump(doc, f, None, keywords, ids, environment)
