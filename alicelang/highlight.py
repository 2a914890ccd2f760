"""Token classes for editor syntax highlighting.

Maps each lexical token to the highlight group the editor syntax file
assigns it. Display only: nothing here affects parsing.
"""

from __future__ import annotations
from typing import List, Optional, Tuple

from lark import Token
from lark.exceptions import UnexpectedInput

from .keywords import KEYWORDS, KW_FALSE, KW_TRUE, TYPE_NAMES, WORDS
from .parser import _load_parser, _translate

STATEMENT = "Statement"
TYPE = "Type"
BOOLEAN = "Boolean"
NUMBER = "Number"
FLOAT = "Float"
STRING = "String"
COMMENT = "Comment"
IDENTIFIER = "Identifier"
OPERATOR = "Operator"
DELIMITER = "Delimiter"


def group_for(tok: Token) -> Optional[str]:
    value = str(tok)
    match tok.type:
        case "WS":
            return None
        case "COMMENT":
            return COMMENT
        case "STRING":
            return STRING
        case "NUMBER":
            if not value.startswith(("0x", "0b")) and any(c in value for c in ".eE"):
                return FLOAT
            return NUMBER
        case "OP":
            return OPERATOR
    if value in (KW_TRUE, KW_FALSE):
        return BOOLEAN
    if value in KEYWORDS or value in WORDS:
        return STATEMENT
    if value in TYPE_NAMES:
        return TYPE
    if tok.type == "NAME":
        return IDENTIFIER
    return DELIMITER


def classify(source: str, filename: str = "<input>") -> List[Tuple[str, Optional[str]]]:
    """Split `source` into (text, group) pairs; whitespace gets group None."""
    try:
        tokens = list(_load_parser().lex(source, dont_ignore=True))
    except UnexpectedInput as e:
        raise _translate(e, filename) from e
    return [(str(tok), group_for(tok)) for tok in tokens]
