from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, List, Optional, Tuple, Union
from typing_extensions import TypeAlias, TypeGuard

# ---------- Node Model ----------

class NodeType(Enum):
    TEXT = "text"
    TABSTOP = "tabstop"
    PLACEHOLDER = "placeholder"
    CHOICE = "choice"
    VARIABLE = "variable"
    SNIPPET = "snippet"

@dataclass(frozen=True)
class FormatText:
    esc: str

@dataclass(frozen=True)
class FormatCapture:
    capture_index: int
    modifier: Optional[str] = None
    if_text: Optional[str] = None
    else_text: Optional[str] = None

FormatFragment: TypeAlias = Union[FormatText, FormatCapture]

@dataclass(frozen=True)
class TransformSpec:
    pattern: str
    option: str
    format: Tuple[FormatFragment, ...]

# Nodes compare by identity: two `$1` are two distinct positions in the tree.
@dataclass(eq=False)
class SnippetNode:
    type: ClassVar[NodeType]
    tabstop: Optional[int] = None
    children: Optional[List[SnippetNode]] = None
    transform: Optional[TransformSpec] = None
    dependents: Optional[List[SnippetNode]] = field(default=None, repr=False)
    previous_text: Optional[List[str]] = field(default=None, repr=False)

@dataclass(eq=False)
class Text(SnippetNode):
    type: ClassVar[NodeType] = NodeType.TEXT
    esc: str = ""

@dataclass(eq=False)
class Tabstop(SnippetNode):
    type: ClassVar[NodeType] = NodeType.TABSTOP

@dataclass(eq=False)
class Placeholder(SnippetNode):
    type: ClassVar[NodeType] = NodeType.PLACEHOLDER

    def __post_init__(self) -> None:
        if self.children is None:
            self.children = []

@dataclass(eq=False)
class Choice(SnippetNode):
    type: ClassVar[NodeType] = NodeType.CHOICE
    items: List[str] = field(default_factory=list)

@dataclass(eq=False)
class Variable(SnippetNode):
    type: ClassVar[NodeType] = NodeType.VARIABLE
    name: str = ""
    # ${NAME:default}; kept apart from `children` so no pass descends into it.
    default: Optional[List[SnippetNode]] = None

@dataclass(eq=False)
class Snippet(SnippetNode):
    type: ClassVar[NodeType] = NodeType.SNIPPET

    def __post_init__(self) -> None:
        if self.children is None:
            self.children = []

CONTAINER_TYPES = frozenset({NodeType.PLACEHOLDER, NodeType.SNIPPET})

def is_container(node: SnippetNode) -> bool:
    """Placeholders and the snippet root are the only nodes a walk descends into."""
    return node.type in CONTAINER_TYPES

def is_text(node: SnippetNode) -> TypeGuard[Text]:
    return node.type is NodeType.TEXT

def is_variable(node: SnippetNode) -> TypeGuard[Variable]:
    return node.type is NodeType.VARIABLE

# ---------- Errors ----------

class SnippetError(Exception):
    """Base class for everything that fails a single snippet definition."""

class MalformedSnippetError(SnippetError):
    def __init__(self, message: str, source: Optional[str] = None):
        self.message = message
        self.source = source
        super().__init__(f"{message} (snippet {source})" if source else message)

class TransformError(SnippetError):
    def __init__(self, message: str, pattern: Optional[str] = None):
        self.pattern = pattern
        super().__init__(message)
