"""Parser for AIR documents.

Combinators run over the token list produced by :func:`tokenize`, so every
parser here consumes ``Token`` items rather than characters.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Generator
from dataclasses import replace
from typing import cast

from parsy import ParseError, Parser, forward_declaration, generate, peek, seq, test_item

from airc.language.ast import AirApp, Binary, BinaryOp, Element, Scoped, Text, UINode, Unary, UnaryOp, Value
from airc.language.blocks import (
    AirType,
    ApiBlock,
    ArrayType,
    AuthBlock,
    Block,
    CronBlock,
    CronJob,
    DbBlock,
    DbField,
    DbIndex,
    DbModel,
    DbRelation,
    DeployBlock,
    EmailBlock,
    EmailTemplate,
    EnumType,
    EnvBlock,
    EnvVar,
    Field,
    HandlerBlock,
    HandlerContract,
    Hook,
    HookBlock,
    LiteralValue,
    NavBlock,
    NavRoute,
    ObjectType,
    OptionalType,
    PersistBlock,
    QueueBlock,
    QueueJob,
    RefType,
    Route,
    ScalarType,
    StateBlock,
    StyleBlock,
    UIBlock,
    WebhookBlock,
    WebhookRoute,
)
from airc.language.errors import AirParseError
from airc.language.lexer import Token, TokenKind, tokenize
from airc.logging_config import get_logger


logger = get_logger("parser")

K = TokenKind

PERSIST_METHODS = frozenset({"localStorage", "cookie", "session"})
PERSIST_FLAGS = frozenset({"httpOnly", "secure", "sameSite", "strict", "lax", "none"})
DURATION_PATTERN = re.compile(r"^\d+[dhms]$")
ROUTE_METHODS = frozenset({"GET", "POST", "PUT", "PATCH", "DELETE", "CRUD"})
DB_MODIFIERS = ("primary", "required", "auto")
REFERENTIAL_ACTIONS = {"cascade": "cascade", "set-null": "setNull", "restrict": "restrict"}

_KIND_CHARS: dict[TokenKind, str] = {
    K.COLON: ":",
    K.COMMA: ",",
    K.OPEN_PAREN: "(",
    K.CLOSE_PAREN: ")",
    K.OPEN_BRACE: "{",
    K.CLOSE_BRACE: "}",
    K.OPEN_BRACKET: "[",
    K.CLOSE_BRACKET: "]",
    K.HASH: "#",
}


def _describe(kind: TokenKind, value: str | None) -> str:
    if value is not None:
        return f"'{value}'"
    if kind in _KIND_CHARS:
        return f"'{_KIND_CHARS[kind]}'"
    return kind.value


def _token(kind: TokenKind, value: str | None = None) -> Parser:
    """Match one token of ``kind`` (and ``value`` when given)."""
    return test_item(
        lambda tok: tok.kind == kind and (value is None or tok.value == value),
        _describe(kind, value),
    )


def _op(char: str) -> Parser:
    return _token(K.OPERATOR, char)


def _word(value: str) -> Parser:
    """Match an identifier or type keyword with a fixed spelling."""
    return test_item(
        lambda tok: tok.kind in (K.IDENTIFIER, K.TYPE_KEYWORD) and tok.value == value,
        f"'{value}'",
    )


ANY = test_item(lambda tok: tok.kind != K.EOF, "token")
NAME = test_item(lambda tok: tok.kind in (K.IDENTIFIER, K.TYPE_KEYWORD), "name")
NAME_TEXT = NAME.map(lambda tok: tok.value)
NEWLINES = _token(K.NEWLINE).many()
SEPARATORS = (_token(K.NEWLINE) | _token(K.COMMA)).many()
COLON = _token(K.COLON)
OPEN_PAREN = _token(K.OPEN_PAREN)
CLOSE_PAREN = _token(K.CLOSE_PAREN)


def _listing(item: Parser) -> Parser:
    """Zero or more items separated by any mix of commas and newlines."""
    return SEPARATORS >> (item << SEPARATORS).many()


def _parens(inner: Parser) -> Parser:
    return OPEN_PAREN >> inner << CLOSE_PAREN


def _number(text: str) -> int | float:
    return float(text) if "." in text else int(text)


def _raw(tok: Token) -> str:
    """Source-like text of a token for raw captures."""
    if tok.kind == K.STRING:
        return f'"{tok.value}"'
    return tok.value


LITERAL: Parser = (
    _token(K.NUMBER).map(lambda tok: _number(tok.value))
    | _token(K.STRING).map(lambda tok: tok.value)
    | _token(K.BOOLEAN).map(lambda tok: tok.value == "true")
    | _token(K.IDENTIFIER).map(lambda tok: tok.value)
)

DOTTED_NAME: Parser = seq(NAME_TEXT, (_op(".") >> (NAME_TEXT | _token(K.NUMBER).map(_raw))).many()).combine(
    lambda head, rest: ".".join([head, *rest])
)

PATH: Parser = (
    (
        NAME_TEXT
        | seq(COLON, NAME_TEXT).combine(lambda _colon, name: f":{name}")
        | _op("/").map(_raw)
        | _op(".").map(_raw)
        | _op("-").map(_raw)
    )
    .at_least(1)
    .map("".join)
    .desc("path")
)

ACTION: Parser = seq(
    (_op("~") | _op("!") | _token(K.HASH)).map(_raw).optional(),
    DOTTED_NAME,
).combine(lambda prefix, name: (prefix or "") + name)


@generate
def _rest_of_line() -> Generator[Parser, object, str]:
    """Raw text up to the end of the line or the enclosing ``)``."""
    parts: list[str] = []
    depth = 0
    while True:
        tok = cast(Token, (yield peek(test_item(lambda _tok: True, "token"))))
        if tok.kind == K.EOF:
            break
        if depth == 0 and tok.kind in (K.NEWLINE, K.CLOSE_PAREN):
            break
        yield ANY
        if tok.kind == K.OPEN_PAREN:
            depth += 1
        elif tok.kind == K.CLOSE_PAREN:
            depth -= 1
        parts.append(_raw(tok))
    return "".join(parts).strip()


def _balanced(open_kind: TokenKind, close_kind: TokenKind) -> Parser:
    """Capture a balanced bracket group as raw text."""

    @generate
    def group() -> Generator[Parser, object, str]:
        yield _token(open_kind)
        parts = [_KIND_CHARS[open_kind]]
        depth = 1
        while depth > 0:
            tok = cast(Token, (yield ANY))
            if tok.kind == open_kind:
                depth += 1
            elif tok.kind == close_kind:
                depth -= 1
            parts.append(_raw(tok))
        return "".join(parts)

    return group


def _chain_left(
    term: Parser,
    op: Parser,
    builder: Callable[[Token, UINode, UINode], UINode],
) -> Parser:
    """Build a left-associative parser from term and operator parsers."""

    @generate
    def parser() -> Generator[Parser, object, UINode]:
        left_result = yield term
        if not isinstance(left_result, UINode):
            raise TypeError("Invalid left expression")

        rest_result = yield seq(op, term).many()
        current: UINode = left_result
        for operator, right in cast(list[tuple[Token, UINode]], rest_result):
            current = builder(operator, current, right)
        return current

    return parser


def _binary_builder(operator: Token, left: UINode, right: UINode) -> UINode:
    return Binary(BinaryOp(operator.value), left, right)


def _attach_children(node: UINode, children: tuple[UINode, ...]) -> UINode:
    """Attach trailing ``(children)`` to the leftmost element of a bind chain."""
    if isinstance(node, Element):
        return replace(node, children=node.children + children)
    if isinstance(node, Binary) and node.op == BinaryOp.BIND:
        return replace(node, left=_attach_children(node.left, children))
    return Element("group", (node, *children))


# ---- Types ----


def _build_type_parsers() -> tuple[Parser, Parser]:
    """Build the type parser and the ``name:type`` field list parser."""
    air_type = forward_declaration()
    field = seq(NAME_TEXT << COLON, air_type).combine(Field)
    field_list = _listing(field).map(tuple)

    optional = (_op("?") >> air_type).map(OptionalType)
    array = (_token(K.OPEN_BRACKET) >> air_type << _token(K.CLOSE_BRACKET)).map(ArrayType)
    obj = (_token(K.OPEN_BRACE) >> field_list << _token(K.CLOSE_BRACE)).map(ObjectType)
    ref = (_token(K.HASH) >> NAME_TEXT).map(RefType)

    enum_value = NAME_TEXT | _token(K.NUMBER).map(_raw) | _token(K.STRING).map(lambda tok: tok.value)
    enum_type = (
        _word("enum") >> _parens(enum_value.sep_by(_token(K.COMMA))).optional()
    ).map(lambda values: EnumType(tuple(values or ())))
    list_type = (_word("list") >> _parens(air_type).optional()).map(
        lambda inner: ArrayType(inner if inner is not None else ScalarType("str"))
    )
    map_type = _word("map").result(ObjectType())
    any_type = _word("any").result(ScalarType("str"))
    scalar = seq(
        test_item(lambda tok: tok.kind == K.TYPE_KEYWORD and tok.value != "enum", "type").map(
            lambda tok: tok.value
        ),
        _parens(LITERAL).optional(),
    ).combine(ScalarType)
    inline_enum = seq(_token(K.IDENTIFIER).map(_raw), (_op("|") >> NAME_TEXT).at_least(1)).combine(
        lambda first, rest: EnumType((first, *rest))
    )

    air_type.become(
        (optional | array | obj | ref | enum_type | list_type | map_type | any_type | scalar | inline_enum).desc(
            "type"
        )
    )
    return air_type, field_list


AIR_TYPE, FIELD_LIST = _build_type_parsers()
PARAM_LIST = _parens(FIELD_LIST).optional().map(lambda fields: fields or ())


# ---- @ui ----


def _build_ui_parser() -> Parser:
    """Build the operator-precedence parser for UI expression lists."""
    expression = forward_declaration()
    expression_list = _listing(expression).map(tuple)
    children = _parens(expression_list)

    scoped = seq(
        (_token(K.AT_KEYWORD, "@page") | _token(K.AT_KEYWORD, "@section")).map(lambda tok: tok.value[1:]),
        COLON >> NAME_TEXT,
        children,
    ).combine(Scoped)
    at_element = _token(K.AT_KEYWORD).map(lambda tok: Element(tok.value))
    element = seq(NAME_TEXT, children.optional()).combine(
        lambda name, kids: Element(name, kids or ())
    )
    path = seq(
        _op("/").map(_raw),
        (_op("/") | NAME | _op(".") | _op("-")).map(_raw).many(),
    ).combine(lambda head, rest: Text(head + "".join(rest)))

    atom = (
        _token(K.STRING).map(lambda tok: Text(tok.value))
        | _token(K.NUMBER).map(lambda tok: Value(_number(tok.value)))
        | _token(K.BOOLEAN).map(lambda tok: Value(tok.value == "true"))
        | _balanced(K.OPEN_BRACE, K.CLOSE_BRACE).map(Text)
        | _balanced(K.OPEN_BRACKET, K.CLOSE_BRACKET).map(Text)
        | scoped
        | at_element
        | element
        | path
    ).desc("UI expression")

    prefix = forward_declaration()
    atom_prefix = seq(
        (_op("*") | _op("!") | _op("~") | _op("^") | _op("?") | _token(K.HASH)).map(
            lambda tok: UnaryOp(tok.value)
        ),
        atom,
    ).combine(Unary)
    currency = seq(_op("$").result(UnaryOp.CURRENCY), prefix).combine(Unary)
    bare_operator = _token(K.OPERATOR).map(lambda tok: Value(tok.value))
    prefix.become(atom_prefix | currency | atom | bare_operator)

    dot = _chain_left(prefix, _op("."), _binary_builder)
    bind_chain = _chain_left(dot, COLON, _binary_builder)

    @generate
    def bind() -> Generator[Parser, object, UINode]:
        node = cast(UINode, (yield bind_chain))
        trailing = yield children.optional()
        if trailing:
            node = _attach_children(node, cast(tuple[UINode, ...], trailing))
        return node

    pipe = _chain_left(bind, _op("|"), _binary_builder)
    flow = _chain_left(pipe, _op(">"), _binary_builder)
    compose = _chain_left(flow, _op("+"), _binary_builder)
    expression.become(compose)
    return expression_list


UI_EXPRESSIONS = _build_ui_parser()


# ---- Blocks ----


def _style_value() -> Parser:
    compound = seq(NAME_TEXT, (_op("+") >> NAME_TEXT).many()).combine(
        lambda head, rest: "+".join([head, *rest])
    )
    return (
        _token(K.NUMBER).map(lambda tok: _number(tok.value))
        | _token(K.STRING).map(lambda tok: tok.value)
        | _token(K.BOOLEAN).map(lambda tok: tok.value == "true")
        | compound
    ).desc("style value")


STATE_BLOCK = (_token(K.OPEN_BRACE) >> FIELD_LIST << _token(K.CLOSE_BRACE)).map(StateBlock)

STYLE_BLOCK = _parens(_listing(seq(NAME_TEXT << COLON, _style_value())).map(dict)).map(StyleBlock)

UI_BLOCK = _parens(UI_EXPRESSIONS).map(UIBlock)


@generate
def _api_route() -> Generator[Parser, object, Route]:
    method_tok = cast(Token, (yield _token(K.IDENTIFIER)))
    if method_tok.value not in ROUTE_METHODS:
        raise AirParseError(
            f"Unknown route method '{method_tok.value}'",
            method_tok.line,
            method_tok.col,
            method_tok.value,
        )
    yield COLON
    path = cast(str, (yield PATH))
    params = yield _parens(_api_param.sep_by(_token(K.COMMA) << NEWLINES)).optional()
    yield _op(">")
    handler = cast(str, (yield _rest_of_line))
    return Route(method_tok.value, path, handler, tuple(cast(list[Field], params or [])))


_api_param: Parser = seq(
    _op("?").result(True).optional(),
    NAME_TEXT,
    (COLON >> AIR_TYPE).optional(),
).combine(
    lambda optional, name, air_type: Field(
        name,
        OptionalType(air_type or ScalarType("str")) if optional else (air_type or ScalarType("str")),
    )
)

API_BLOCK = _parens(_listing(_api_route).map(tuple)).map(ApiBlock)


@generate
def _auth_block() -> Generator[Parser, object, AuthBlock]:
    yield OPEN_PAREN
    required = False
    role: str | tuple[str, ...] | None = None
    redirect: str | None = None
    role_value = (
        _word("enum") >> _parens(NAME_TEXT.sep_by(_token(K.COMMA))).map(tuple)
    ) | ANY.map(lambda tok: tok.value)
    while True:
        yield SEPARATORS
        closing = yield CLOSE_PAREN.optional()
        if closing is not None:
            break
        tok = cast(Token, (yield ANY))
        if tok.value == "required":
            required = True
        elif tok.value == "role":
            role = cast(str | tuple[str, ...], (yield COLON >> role_value))
        elif tok.value == "redirect":
            redirect = cast(str, (yield COLON >> PATH))
    return AuthBlock(required, role, redirect)


_nav_path: Parser = seq(
    _op("/").map(_raw),
    (NAME | _token(K.HASH) | _op("/") | _op("-")).map(_raw).many(),
).combine(lambda head, rest: head + "".join(rest))

_nav_target: Parser = (
    seq(
        _token(K.AT_KEYWORD).map(_raw),
        (COLON >> PATH).optional(),
    ).combine(lambda kw, suffix: f"{kw}:{suffix}" if suffix else kw)
    | NAME_TEXT
    | PATH
)


@generate
def _nav_route() -> Generator[Parser, object, NavRoute]:
    path = cast(str, (yield _nav_path))
    arrow = yield _op(">").optional()
    if arrow is None:
        return NavRoute(path, path)
    condition = cast(str | None, (yield (_op("?") >> NAME_TEXT << _op(">")).optional()))
    target = cast(str, (yield _nav_target))
    fallback = cast(str | None, (yield (COLON >> (NAME_TEXT | PATH)).optional()))
    return NavRoute(path, target, condition, fallback)


NAV_BLOCK = _parens(_listing(_nav_route).map(tuple)).map(NavBlock)


def _split_persist_args(method: str, args: list[str]) -> PersistBlock:
    keys: list[str] = []
    options: dict[str, LiteralValue] = {}
    for arg in args:
        if arg in PERSIST_FLAGS or DURATION_PATTERN.match(arg):
            options[arg] = True
        else:
            keys.append(arg)
    return PersistBlock(method, tuple(keys), options)


@generate
def _persist_block() -> Generator[Parser, object, PersistBlock]:
    yield COLON
    method_tok = cast(Token, (yield NAME))
    if method_tok.value not in PERSIST_METHODS:
        raise AirParseError(
            f"Unknown persist method '{method_tok.value}'",
            method_tok.line,
            method_tok.col,
            method_tok.value,
        )
    args = yield _parens(_listing(DOTTED_NAME | _token(K.NUMBER).map(_raw)))
    return _split_persist_args(method_tok.value, cast(list[str], args))


_hook: Parser = seq(
    seq(NAME_TEXT, (COLON >> NAME_TEXT).optional()).combine(
        lambda trigger, field: f"{trigger}:{field}" if field else trigger
    ),
    _op(">") >> ACTION.sep_by(_op("+"), min=1).map(tuple),
).combine(Hook)

HOOK_BLOCK = _parens(_listing(_hook).map(tuple)).map(HookBlock)


_db_modifier: Parser = (
    _word("primary").result(("primary", True))
    | _word("required").result(("required", True))
    | _word("auto").result(("auto", True))
    | (_word("default") >> _parens(LITERAL)).map(lambda value: ("default", value))
)


@generate
def _db_field() -> Generator[Parser, object, DbField]:
    name = cast(str, (yield NAME_TEXT << COLON))
    air_type = cast(AirType, (yield AIR_TYPE))
    modifiers = cast(list[tuple[str, LiteralValue]], (yield (COLON >> _db_modifier).many()))
    return DbField(name, air_type, **dict(modifiers))  # type: ignore[arg-type]


_db_model: Parser = seq(
    _token(K.IDENTIFIER).map(_raw),
    _token(K.OPEN_BRACE) >> _listing(_db_field).map(tuple) << _token(K.CLOSE_BRACE),
).combine(DbModel)

_db_relation: Parser = seq(
    DOTTED_NAME << _op("<") << _op(">"),
    DOTTED_NAME,
    (COLON >> (_word("cascade") | _word("set-null") | _word("restrict"))).map(
        lambda tok: REFERENTIAL_ACTIONS[tok.value]
    ).optional(),
).combine(DbRelation)


@generate
def _db_index() -> Generator[Parser, object, DbIndex]:
    fields = [cast(str, (yield DOTTED_NAME))]
    unique = (yield (COLON >> _word("unique")).optional()) is not None
    rest = cast(list[str], (yield (_op("+") >> DOTTED_NAME).many()))
    fields.extend(rest)
    if (yield (COLON >> _word("unique")).optional()) is not None:
        unique = True
    return DbIndex(tuple(fields), unique)


@generate
def _db_block() -> Generator[Parser, object, DbBlock]:
    yield _token(K.OPEN_BRACE)
    models: list[DbModel] = []
    relations: list[DbRelation] = []
    indexes: list[DbIndex] = []
    entry = (
        (_token(K.AT_KEYWORD, "@relation") >> _parens(_listing(_db_relation))).map(lambda rels: ("relation", rels))
        | (_token(K.AT_KEYWORD, "@index") >> _parens(_listing(_db_index))).map(lambda idx: ("index", idx))
        | _db_model.map(lambda model: ("model", [model]))
    )
    entries = cast(list[tuple[str, list[object]]], (yield _listing(entry)))
    yield _token(K.CLOSE_BRACE)
    for kind, items in entries:
        if kind == "relation":
            relations.extend(cast(list[DbRelation], items))
        elif kind == "index":
            indexes.extend(cast(list[DbIndex], items))
        else:
            models.extend(cast(list[DbModel], items))
    return DbBlock(tuple(models), tuple(relations), tuple(indexes))


CRON_BLOCK = _parens(
    _listing(
        seq(
            NAME_TEXT << _op(">"),
            _token(K.STRING).map(lambda tok: tok.value) << _op(">"),
            ACTION,
        ).combine(CronJob)
    ).map(tuple)
).map(CronBlock)

WEBHOOK_BLOCK = _parens(
    _listing(
        seq(_token(K.IDENTIFIER).map(_raw) << COLON, PATH << _op(">"), ACTION).combine(WebhookRoute)
    ).map(tuple)
).map(WebhookBlock)

QUEUE_BLOCK = _parens(
    _listing(
        seq(NAME_TEXT, PARAM_LIST << _op(">"), ACTION).combine(
            lambda name, params, handler: QueueJob(name, handler, params)
        )
    ).map(tuple)
).map(QueueBlock)

EMAIL_BLOCK = _parens(
    _listing(
        seq(NAME_TEXT, PARAM_LIST << _op(">"), _token(K.STRING).map(lambda tok: tok.value)).combine(
            lambda name, params, subject: EmailTemplate(name, subject, params)
        )
    ).map(tuple)
).map(EmailBlock)

_env_setting: Parser = _word("required").result(("required", True)) | LITERAL.map(
    lambda value: ("default", value)
)

ENV_BLOCK = _parens(
    _listing(
        seq(
            NAME_TEXT << COLON,
            NAME_TEXT << COLON,
            _env_setting,
        ).combine(lambda name, env_type, setting: EnvVar(name, env_type, **{setting[0]: setting[1]}))
    ).map(tuple)
).map(EnvBlock)


@generate
def _handler_block() -> Generator[Parser, object, HandlerBlock]:
    yield OPEN_PAREN
    contracts: list[HandlerContract] = []
    seen: set[str] = set()
    contract_head = seq(NAME, PARAM_LIST, (_op(">") >> ACTION).optional())
    while True:
        yield SEPARATORS
        head = yield contract_head.optional()
        if head is None:
            break
        name_tok, params, target = cast(tuple[Token, tuple[Field, ...], str | None], head)
        if name_tok.value in seen:
            raise AirParseError(
                f"Duplicate handler contract: '{name_tok.value}'",
                name_tok.line,
                name_tok.col,
                name_tok.value,
            )
        seen.add(name_tok.value)
        contracts.append(HandlerContract(name_tok.value, params, target))
    yield CLOSE_PAREN
    return HandlerBlock(tuple(contracts))


_deploy_value: Parser = (
    _token(K.NUMBER).map(lambda tok: _number(tok.value))
    | _token(K.BOOLEAN).map(lambda tok: tok.value == "true")
    | _token(K.STRING).map(lambda tok: tok.value)
    | PATH
    | NAME_TEXT
)

DEPLOY_BLOCK = _parens(_listing(seq(NAME_TEXT << COLON, _deploy_value)).map(dict)).map(DeployBlock)


BLOCK_PARSERS: dict[str, Parser] = {
    "@state": STATE_BLOCK,
    "@style": STYLE_BLOCK,
    "@ui": UI_BLOCK,
    "@api": API_BLOCK,
    "@auth": _auth_block,
    "@nav": NAV_BLOCK,
    "@persist": _persist_block,
    "@hook": HOOK_BLOCK,
    "@db": _db_block,
    "@cron": CRON_BLOCK,
    "@webhook": WEBHOOK_BLOCK,
    "@queue": QUEUE_BLOCK,
    "@email": EMAIL_BLOCK,
    "@env": ENV_BLOCK,
    "@handler": _handler_block,
    "@deploy": DEPLOY_BLOCK,
}


@generate
def _block() -> Generator[Parser, object, Block]:
    keyword = cast(Token, (yield _token(K.AT_KEYWORD)))
    block_parser = BLOCK_PARSERS.get(keyword.value)
    if block_parser is None:
        raise AirParseError(f"Unknown block '{keyword.value}'", keyword.line, keyword.col, keyword.value)
    return cast(Block, (yield block_parser))


@generate
def _document() -> Generator[Parser, object, AirApp]:
    yield NEWLINES
    yield _token(K.AT_KEYWORD, "@app")
    name = cast(str, (yield COLON >> NAME_TEXT))
    blocks = cast(list[Block], (yield (NEWLINES >> _block).many()))
    yield NEWLINES
    yield _token(K.EOF)
    return AirApp(name, tuple(blocks))


DOCUMENT_PARSER: Parser = _document


def _source_line(source: str, line: int) -> str | None:
    lines = source.splitlines()
    if 1 <= line <= len(lines):
        return lines[line - 1]
    return None


def _format_parse_error(source: str, tokens: list[Token], exc: ParseError) -> AirParseError:
    """Build a positioned parse error from a combinator failure."""
    tok = tokens[min(exc.index, len(tokens) - 1)]
    if tok.kind == K.SYMBOL and tok.value.startswith('"'):
        message = "Unterminated string literal"
    elif tok.kind == K.SYMBOL:
        message = f"Unexpected character '{tok.value}'"
    else:
        expected = " or ".join(sorted(exc.expected))
        message = f"Expected {expected}, got {tok.kind}"
    token_text = None if tok.kind in (K.NEWLINE, K.EOF) else tok.value
    return AirParseError(message, tok.line, tok.col, token_text, _source_line(source, tok.line))


def parse_tokens(tokens: list[Token], source: str = "") -> AirApp:
    """Parse a token list into an :class:`AirApp`."""
    try:
        result = DOCUMENT_PARSER.parse(tokens)
    except ParseError as exc:
        raise _format_parse_error(source, tokens, exc) from exc
    except AirParseError as exc:
        if exc.source_line is not None:
            raise
        raise AirParseError(exc.reason, exc.line, exc.col, exc.token, _source_line(source, exc.line)) from exc
    if isinstance(result, AirApp):
        return result
    raise AirParseError("Parser did not produce a document", 1, 1)


def parse(source: str) -> AirApp:
    """Parse AIR source text into an :class:`AirApp`."""
    app = parse_tokens(tokenize(source), source)
    logger.info("Parsed app '%s' with %d blocks", app.name, len(app.blocks))
    return app
