"""Reserved words of the Alice language."""

KW_LET = "let"
KW_FUN = "fun"
KW_IF = "if"
KW_ELSE = "else"
KW_TRUE = "true"
KW_FALSE = "false"

KEYWORDS = frozenset({KW_LET, KW_FUN, KW_IF, KW_ELSE, KW_TRUE, KW_FALSE})

TYPE_STRING = "string"
TYPE_BOOL = "bool"
TYPE_INT = "int"
TYPE_FLOAT = "float"
TYPE_ANY = "any"

TYPE_NAMES = frozenset({TYPE_STRING, TYPE_BOOL, TYPE_INT, TYPE_FLOAT, TYPE_ANY})

# builtin words
ST_PRINTLN = "println"
ST_PRINT = "print"
ST_PRINT_STACK = "pstack"
ST_EXIT = "exit"
ST_OK_EXIT = "okexit"
ST_DROP = "drop"
ST_SWAP = "swap"
ST_DUP = "dup"
ST_OVER = "over"
ST_ROT = "rot"
ST_CLEAR = "clear"
ST_INPUT = "input"
ST_NOT = "not"

WORDS = frozenset({
    ST_PRINTLN, ST_PRINT, ST_PRINT_STACK, ST_EXIT, ST_OK_EXIT,
    ST_DROP, ST_SWAP, ST_DUP, ST_OVER, ST_ROT, ST_CLEAR, ST_INPUT, ST_NOT,
})

RESERVED = KEYWORDS | TYPE_NAMES | WORDS


def is_reserved(name: str) -> bool:
    return name in RESERVED
