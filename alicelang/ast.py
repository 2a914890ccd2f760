# Program tree for Alice sources
from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Optional

from .types import AliceType, Value


@dataclass(frozen=True)
class Loc:
    """Location of a symbol in source code."""
    file: str = "<unknown>"
    line: int = 0
    column: int = 0

    def __str__(self) -> str:
        return f"{self.file}:{self.line}:{self.column}"


@dataclass(kw_only=True)
class Node:
    loc: Loc = field(default_factory=Loc, compare=False, repr=False)


@dataclass
class Push(Node):
    value: Value

@dataclass
class Word(Node):
    name: str  # one of keywords.WORDS

@dataclass
class Op(Node):
    symbol: str

@dataclass
class LoadVar(Node):
    name: str

@dataclass
class Call(Node):
    name: str

@dataclass
class Let(Node):
    name: str
    type: AliceType
    init: Optional[Value] = None

@dataclass
class Param:
    type: AliceType
    name: Optional[str] = None

@dataclass
class FunDecl(Node):
    name: str
    params: List[Param]
    return_type: Optional[AliceType]
    body: List[Node]

    @property
    def named_params(self) -> bool:
        return bool(self.params) and self.params[0].name is not None

@dataclass
class If(Node):
    then_body: List[Node]
    else_body: Optional[List[Node]] = None

@dataclass
class Block(Node):
    body: List[Node]

@dataclass
class Program:
    statements: List[Node]
    source_name: str = "<input>"
