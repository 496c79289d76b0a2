from .attributes import Attributes, AttributesKind
from .errors import *
from .formats import Format
from .headings import dump_heading, parse_heading
from .keywords import (DEFAULT_DONE_KEYWORDS, DEFAULT_IDS, DEFAULT_KEYWORDS,
                       DEFAULT_TODO_KEYWORDS, ForceUuidIds, GenericKeywords,
                       Keyword, KeywordKind, NoIds, StringIds, TodoKeywords,
                       UuidIds)
from .nodes import Node, Planning, Properties
from .outline_rw import (BASE_ENVIRONMENT, Document, NonReproducibleDocument,
                         OutlineDocReader, dump, dump_node, dumps, dumps_node,
                         load, loads)
from .timestamps import (AppliesKind, DateTime, Repeater, RepeaterUnit,
                         RepeatResult, Timestamp, TimestampApplies,
                         TimestampWhen)
from .utils import dump_tags, parse_tags, random_id
from .workflow import CompletedNode, mark_nodes_done, refile, refile_to_file
