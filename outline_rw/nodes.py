from __future__ import annotations

from typing import Generator, List, Optional

from .errors import IdParseFailed, InvalidChildLevel, InvalidProperty, PlanningRepeat
from .timestamps import Timestamp
from .types import IdCapability

PLANNING_KEYWORDS = ("DEADLINE", "SCHEDULED", "CLOSED")
ID_PROPERTY = "ID"


class Planning:
    """
    The DEADLINE, SCHEDULED and CLOSED timestamps directly under a heading.
    """

    def __init__(
        self,
        deadline: Optional[Timestamp] = None,
        scheduled: Optional[Timestamp] = None,
        closed: Optional[Timestamp] = None,
    ):
        self.deadline = deadline
        self.scheduled = scheduled
        self.closed = closed

    def __repr__(self):
        return "<Planning: deadline={} scheduled={} closed={}>".format(
            self.deadline, self.scheduled, self.closed
        )

    def __eq__(self, other):
        if not isinstance(other, Planning):
            return False
        return (
            (self.deadline == other.deadline)
            and (self.scheduled == other.scheduled)
            and (self.closed == other.closed)
        )

    def is_empty(self) -> bool:
        return self.deadline is None and self.scheduled is None and self.closed is None

    def items(self):
        for keyword in PLANNING_KEYWORDS:
            timestamp = getattr(self, keyword.lower())
            if timestamp is not None:
                yield keyword, timestamp

    def add_line(self, line: str) -> bool:
        """
        Reads a `KEYWORD: <timestamp>` line. Returns False when the line is not
        a planning line at all.
        """
        if ":" not in line:
            return False

        keyword, value = line.split(":", 1)
        keyword = keyword.strip()
        if keyword not in PLANNING_KEYWORDS:
            return False

        attr = keyword.lower()
        if getattr(self, attr) is not None:
            raise PlanningRepeat(keyword)
        setattr(self, attr, Timestamp.parse(value))
        return True

    def dump(self) -> str:
        return "\n".join("{}: {}".format(keyword, ts.to_raw()) for keyword, ts in self.items())


class Properties(dict):
    """
    A property drawer: the node's ID, kept apart, plus every other `key: value`
    pair in the order it was read. Drawers are written with the keys sorted.
    """

    def __init__(self, id=None, values=None):
        super().__init__(values or {})
        self.id = id

    def __repr__(self):
        return "<Properties: id={} {}>".format(self.id, dict.__repr__(self))

    def __eq__(self, other):
        if isinstance(other, Properties) and self.id != other.id:
            return False
        return dict.__eq__(self, other)

    __hash__ = None

    def copy(self) -> Properties:
        return Properties(self.id, dict(self))

    def add_line(self, line: str, ids: IdCapability):
        stripped = line.strip()
        if stripped.startswith(":"):
            stripped = stripped[1:]
        if ":" not in stripped:
            raise InvalidProperty(line)

        key, value = stripped.split(":", 1)
        key = key.strip()
        value = value.strip()

        if key == ID_PROPERTY:
            parsed = ids.parse(value)
            if parsed is None:
                raise IdParseFailed(value)
            self.id = parsed
        else:
            self[key] = value


class Node:
    def __init__(
        self,
        level: int = 0,
        title: str = "",
        body: Optional[str] = None,
        keyword=None,
        priority: Optional[str] = None,
        tags: List[str] = None,
        timestamps: List[Timestamp] = None,
        planning: Planning = None,
        properties: Properties = None,
    ):
        self._level = level
        self.title = title
        self.body = body
        self.keyword = keyword
        self.priority = priority
        self.tags = tags if tags is not None else []
        self.timestamps = timestamps if timestamps is not None else []
        self.planning = planning if planning is not None else Planning()
        self.properties = properties if properties is not None else Properties()
        self._children: List[Node] = []

    def __repr__(self):
        return "<Node level={} keyword={} title={!r}>".format(self._level, self.keyword, self.title)

    @property
    def level(self) -> int:
        return self._level

    @property
    def children(self):
        return tuple(self._children)

    @property
    def unchecked_children(self) -> List[Node]:
        """
        The mutable children list. Nothing checks the levels of nodes added here.
        """
        return self._children

    def add_child(self, child: Node):
        if child.level <= self._level:
            raise InvalidChildLevel(self._level, child.level)
        self._children.append(child)

    def set_children_unchecked(self, children: List[Node]):
        self._children = list(children)

    def take_children(self) -> List[Node]:
        children = self._children
        self._children = []
        return children

    def set_level_unchecked(self, level: int):
        """
        Moves this node to `level`, shifting every descendant by the same
        amount so the subtree keeps its shape.
        """
        diff = level - self._level
        for node in self.get_all_nodes(include_self=True):
            node._level += diff

    def get_all_nodes(self, include_self=False) -> Generator[Node]:
        todo = [self] if include_self else self._children[::-1]
        while len(todo) != 0:
            node = todo.pop()
            todo.extend(node._children[::-1])

            yield node
