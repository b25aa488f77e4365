"""Lexer shared by the fragment and schema parsers."""

import re

import ply.lex as lex


class GraphQLLexer:
    """Lexer for tokenizing GraphQL fragment and schema documents."""

    # Reserved keywords
    reserved = {
        "fragment": "FRAGMENT",
        "on": "ON",
        "type": "TYPE",
        "interface": "INTERFACE",
        "union": "UNION",
        "enum": "ENUM",
        "input": "INPUT",
        "scalar": "SCALAR",
        "schema": "SCHEMA",
        "implements": "IMPLEMENTS",
        "directive": "DIRECTIVE",
    }

    # Token list
    tokens = [
        "IDENTIFIER",
        "VARIABLE",
        "INTEGER",
        "FLOAT",
        "STRING",
        "BLOCK_STRING",
        "ELLIPSIS",
        "LBRACE",
        "RBRACE",
        "LBRACKET",
        "RBRACKET",
        "LPAREN",
        "RPAREN",
        "COLON",
        "BANG",
        "EQUALS",
        "AT",
        "PIPE",
        "AMP",
    ] + list(reserved.values())

    # Simple tokens
    t_ELLIPSIS = r"\.\.\."
    t_LBRACE = r"\{"
    t_RBRACE = r"\}"
    t_LBRACKET = r"\["
    t_RBRACKET = r"\]"
    t_LPAREN = r"\("
    t_RPAREN = r"\)"
    t_COLON = r":"
    t_BANG = r"!"
    t_EQUALS = r"="
    t_AT = r"@"
    t_PIPE = r"\|"
    t_AMP = r"&"

    # Commas are insignificant in GraphQL
    t_ignore = " \t\r,"

    # Comments
    t_ignore_COMMENT = r"\#[^\n]*"

    def __init__(self) -> None:
        self.lexer: lex.Lexer = None  # type: ignore

    def t_BLOCK_STRING(self, t: lex.LexToken) -> lex.LexToken:
        r'"""(?:\\"""|[^"]|"(?!""))*"""'
        t.lexer.lineno += t.value.count("\n")
        t.value = _dedent_block_string(t.value[3:-3].replace('\\"""', '"""'))
        return t

    def t_STRING(self, t: lex.LexToken) -> lex.LexToken:
        r'"(?:\\.|[^"\\\n])*"'
        t.value = _unescape(t.value[1:-1], t.lineno)
        return t

    def t_FLOAT(self, t: lex.LexToken) -> lex.LexToken:
        r"-?\d+(?:\.\d+(?:[eE][+-]?\d+)?|[eE][+-]?\d+)"
        t.value = float(t.value)
        return t

    def t_INTEGER(self, t: lex.LexToken) -> lex.LexToken:
        r"-?\d+"
        t.value = int(t.value)
        return t

    def t_VARIABLE(self, t: lex.LexToken) -> lex.LexToken:
        r"\$[_A-Za-z][_0-9A-Za-z]*"
        t.value = t.value[1:]
        return t

    def t_IDENTIFIER(self, t: lex.LexToken) -> lex.LexToken:
        r"[_A-Za-z][_0-9A-Za-z]*"
        # Check if it's a reserved word
        t.type = self.reserved.get(t.value, "IDENTIFIER")
        return t

    def t_NEWLINE(self, t: lex.LexToken) -> None:
        r"\n+"
        t.lexer.lineno += len(t.value)
        # Newlines are whitespace; only the line count matters

    def t_error(self, t: lex.LexToken) -> None:
        raise SyntaxError(f"Illegal character '{t.value[0]}' at line {t.lineno}")

    def build(self, **kwargs) -> None:  # type: ignore
        """Build the lexer."""
        self.lexer = lex.lex(module=self, **kwargs)

    def input(self, data: str) -> None:
        """Set the input string to tokenize."""
        self.lexer.lineno = 1
        self.lexer.input(data)

    def token(self) -> lex.LexToken | None:
        """Return the next token."""
        return self.lexer.token()

    def tokenize(self, data: str) -> list[lex.LexToken]:
        """Tokenize the input and return all tokens."""
        self.input(data)
        tokens = []
        while True:
            tok = self.token()
            if tok is None:
                break
            tokens.append(tok)
        return tokens


_HEX4 = re.compile(r"[0-9A-Fa-f]{4}")

_ESCAPES = {
    '"': '"',
    "\\": "\\",
    "/": "/",
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
}


def _unescape(raw: str, lineno: int) -> str:
    """Resolve GraphQL string escapes, including \\uXXXX.

    Raises:
        SyntaxError: On a \\u escape that is not four hex digits.
    """
    out: list[str] = []
    i = 0
    while i < len(raw):
        ch = raw[i]
        if ch != "\\" or i + 1 >= len(raw):
            out.append(ch)
            i += 1
            continue
        nxt = raw[i + 1]
        if nxt == "u":
            digits = raw[i + 2:i + 6]
            if not _HEX4.fullmatch(digits):
                raise SyntaxError(f"Invalid unicode escape '\\u{digits}' at line {lineno}")
            out.append(chr(int(digits, 16)))
            i += 6
            continue
        out.append(_ESCAPES.get(nxt, nxt))
        i += 2
    return "".join(out)


def _dedent_block_string(raw: str) -> str:
    """Strip common indentation and blank leading/trailing lines of a block string."""
    lines = raw.splitlines()
    indents = [
        len(line) - len(line.lstrip(" \t"))
        for line in lines[1:]
        if line.strip()
    ]
    common = min(indents) if indents else 0
    if common:
        lines = lines[:1] + [line[common:] for line in lines[1:]]
    while lines and not lines[0].strip():
        lines.pop(0)
    while lines and not lines[-1].strip():
        lines.pop()
    return "\n".join(lines)
