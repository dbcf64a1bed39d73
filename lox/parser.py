"""Parser for Lox.

Source text is handed to a Lark LALR parser configured with the Lox
grammar below. The resulting parse tree is transformed into the AST of
`lox.ast` by `ASTTransformer`, which also converts Lark tokens into
`lox.tokens.Token` values so that later passes can report lines.

Two pieces of desugaring and checking happen in the transformer rather
than in the grammar:

* `for` loops become a `While` wrapped in blocks, so neither the
  resolver nor the interpreter knows about them;
* assignment is parsed as `logic_or "=" assignment` and the transformer
  rejects targets that are not a variable or a property.

The `parse_program` function is the public entry point and returns the
list of top-level statements.
"""

from __future__ import annotations

from typing import Any, List, Optional

from lark import Lark, Transformer
from lark import Token as LarkToken
from lark.exceptions import UnexpectedCharacters, UnexpectedInput, UnexpectedToken, VisitError

from .ast import (
    Expr, Stmt, Literal, Variable, Assign, Unary, Binary, Logical,
    Grouping, Call, Get, Set, This, Super,
    Expression, Print, Var, Block, If, While, Function, Return, Class,
)
from .errors import Diagnostic, LoxSyntaxError, SYNTAX_ERROR, INVALID_ASSIGNMENT_TARGET
from .tokens import Token


MAX_ARGUMENTS = 255


LOX_GRAMMAR = r"""
    start: declaration*

    ?declaration: class_decl
                | fun_decl
                | var_decl
                | statement

    class_decl: "class" IDENTIFIER superclass? "{" function* "}"
    superclass: "<" IDENTIFIER
    fun_decl: "fun" function
    function: IDENTIFIER "(" [parameters] ")" block
    parameters: IDENTIFIER ("," IDENTIFIER)*
    var_decl: "var" IDENTIFIER ["=" expression] ";"

    ?statement: expr_stmt
              | for_stmt
              | if_stmt
              | print_stmt
              | return_stmt
              | while_stmt
              | block

    expr_stmt: expression ";"
    for_stmt: "for" "(" for_init for_cond ";" for_incr ")" statement
    for_init: var_decl | expr_stmt | ";"
    for_cond: expression?
    for_incr: expression?
    if_stmt: "if" "(" expression ")" statement ["else" statement]
    print_stmt: "print" expression ";"
    return_stmt: RETURN [expression] ";"
    while_stmt: "while" "(" expression ")" statement
    block: "{" declaration* "}"

    // Expressions with precedence
    ?expression: assignment
    ?assignment: logic_or EQUAL assignment -> assign
               | logic_or
    ?logic_or: logic_and (OR logic_and)*
    ?logic_and: equality (AND equality)*
    ?equality: comparison ((BANG_EQUAL | EQUAL_EQUAL) comparison)*
    ?comparison: term ((GREATER | GREATER_EQUAL | LESS | LESS_EQUAL) term)*
    ?term: factor ((MINUS | PLUS) factor)*
    ?factor: unary ((SLASH | STAR) unary)*
    ?unary: (BANG | MINUS) unary
          | call
    ?call: primary
         | call "(" [arguments] RIGHT_PAREN -> call_expr
         | call "." IDENTIFIER -> get_expr
    arguments: expression ("," expression)*
    ?primary: "true" -> true_lit
            | "false" -> false_lit
            | "nil" -> nil_lit
            | THIS -> this_expr
            | NUMBER -> number
            | STRING -> string
            | IDENTIFIER -> variable
            | "(" expression ")" -> grouping
            | SUPER "." IDENTIFIER -> super_expr

    // Keywords kept in the tree for error reporting
    RETURN: "return"
    THIS: "this"
    SUPER: "super"
    AND: "and"
    OR: "or"

    // Operators
    BANG: "!"
    BANG_EQUAL: "!="
    EQUAL: "="
    EQUAL_EQUAL: "=="
    GREATER: ">"
    GREATER_EQUAL: ">="
    LESS: "<"
    LESS_EQUAL: "<="
    MINUS: "-"
    PLUS: "+"
    SLASH: "/"
    STAR: "*"
    RIGHT_PAREN: ")"

    // Literals
    NUMBER: /\d+(\.\d+)?/
    STRING: /"[^"]*"/
    IDENTIFIER: /[A-Za-z_][A-Za-z0-9_]*/

    COMMENT: /\/\/[^\n]*/
    %import common.WS
    %ignore WS
    %ignore COMMENT
"""


LOX_PARSER = Lark(
    LOX_GRAMMAR,
    parser='lalr',
    lexer='basic',
    propagate_positions=True,
    maybe_placeholders=False,
)


def to_token(tok: LarkToken) -> Token:
    """Convert a Lark token into a Lox token, computing its literal."""
    literal: Any = None
    if tok.type == 'NUMBER':
        literal = float(tok.value)
    elif tok.type == 'STRING':
        literal = tok.value[1:-1]
    return Token(tok.type, str(tok.value), literal, tok.line)


def syntax_error(token: Token, message: str, kind: str = SYNTAX_ERROR) -> LoxSyntaxError:
    return LoxSyntaxError(Diagnostic(kind, message, token))


class ASTTransformer(Transformer):
    """Transforms the raw parse tree into an AST."""

    def start(self, items) -> List[Stmt]:
        return list(items)

    # Declarations

    def class_decl(self, items):
        name = to_token(items[0])
        superclass: Optional[Variable] = None
        methods: List[Function] = []
        for item in items[1:]:
            if isinstance(item, Variable):
                superclass = item
            else:
                methods.append(item)
        return Class(name, superclass, methods)

    def superclass(self, items):
        return Variable(to_token(items[0]))

    def fun_decl(self, items):
        return items[0]

    def function(self, items):
        name = to_token(items[0])
        params: List[Token] = items[1] if len(items) == 3 else []
        body: Block = items[-1]
        return Function(name, params, body.statements)

    def parameters(self, items):
        params = [to_token(item) for item in items]
        if len(params) > MAX_ARGUMENTS:
            raise syntax_error(params[MAX_ARGUMENTS], "Can't have more than 255 parameters.")
        return params

    def var_decl(self, items):
        name = to_token(items[0])
        initializer = items[1] if len(items) > 1 else None
        return Var(name, initializer)

    # Statements

    def expr_stmt(self, items):
        return Expression(items[0])

    def for_stmt(self, items):
        initializer, condition, increment, body = items
        if increment is not None:
            body = Block([body, Expression(increment)])
        if condition is None:
            condition = Literal(True)
        body = While(condition, body)
        if initializer is not None:
            body = Block([initializer, body])
        return body

    def for_init(self, items):
        return items[0] if items else None

    def for_cond(self, items):
        return items[0] if items else None

    def for_incr(self, items):
        return items[0] if items else None

    def if_stmt(self, items):
        condition = items[0]
        then_branch = items[1]
        else_branch = items[2] if len(items) > 2 else None
        return If(condition, then_branch, else_branch)

    def print_stmt(self, items):
        return Print(items[0])

    def return_stmt(self, items):
        keyword = to_token(items[0])
        value = items[1] if len(items) > 1 else None
        return Return(keyword, value)

    def while_stmt(self, items):
        return While(items[0], items[1])

    def block(self, items):
        return Block(list(items))

    # Expressions

    def assign(self, items):
        target, equals, value = items
        if isinstance(target, Variable):
            return Assign(target.name, value)
        if isinstance(target, Get):
            return Set(target.object, target.name, value)
        raise syntax_error(to_token(equals), 'Invalid assignment target.', INVALID_ASSIGNMENT_TARGET)

    def _fold(self, items, node_type):
        # items pattern: expr (op expr)*, folded left-associatively
        left = items[0]
        i = 1
        while i < len(items):
            operator = to_token(items[i])
            right = items[i + 1]
            left = node_type(left, operator, right)
            i += 2
        return left

    def logic_or(self, items):
        return self._fold(items, Logical)

    def logic_and(self, items):
        return self._fold(items, Logical)

    def equality(self, items):
        return self._fold(items, Binary)

    def comparison(self, items):
        return self._fold(items, Binary)

    def term(self, items):
        return self._fold(items, Binary)

    def factor(self, items):
        return self._fold(items, Binary)

    def unary(self, items):
        return Unary(to_token(items[0]), items[1])

    def call_expr(self, items):
        callee = items[0]
        paren = to_token(items[-1])
        arguments: List[Expr] = items[1] if len(items) == 3 else []
        if len(arguments) > MAX_ARGUMENTS:
            raise syntax_error(paren, "Can't have more than 255 arguments.")
        return Call(callee, paren, arguments)

    def arguments(self, items):
        return list(items)

    def get_expr(self, items):
        return Get(items[0], to_token(items[1]))

    def true_lit(self, items):
        return Literal(True)

    def false_lit(self, items):
        return Literal(False)

    def nil_lit(self, items):
        return Literal(None)

    def this_expr(self, items):
        return This(to_token(items[0]))

    def number(self, items):
        return Literal(float(items[0].value))

    def string(self, items):
        return Literal(items[0].value[1:-1])

    def variable(self, items):
        return Variable(to_token(items[0]))

    def grouping(self, items):
        return Grouping(items[0])

    def super_expr(self, items):
        return Super(to_token(items[0]), to_token(items[1]))


def _error_line(e: UnexpectedInput, source: str) -> int:
    line = getattr(e, 'line', None)
    if isinstance(line, int) and line > 0:
        return line
    return source.count('\n') + 1


def parse_program(source: str) -> List[Stmt]:
    """Parse Lox source code into a list of statements.

    Syntax errors are raised as `LoxSyntaxError` carrying the line and the
    offending token.
    """
    try:
        tree = LOX_PARSER.parse(source)
    except UnexpectedToken as e:
        line = _error_line(e, source)
        if e.token.type == '$END':
            token = Token.synthetic('$END', '', line)
            raise syntax_error(token, 'Unexpected end of input.') from None
        token = Token(e.token.type, str(e.token.value), None, line)
        raise syntax_error(token, 'Unexpected token.') from None
    except UnexpectedCharacters as e:
        if e.char == '"':
            # a string only fails to lex when its closing quote is missing
            token = Token.synthetic('ERROR', e.char, source.count('\n') + 1)
            raise syntax_error(token, 'Unterminated string.') from None
        token = Token.synthetic('ERROR', e.char, _error_line(e, source))
        raise syntax_error(token, 'Unexpected character.') from None
    try:
        return ASTTransformer().transform(tree)
    except VisitError as e:
        if isinstance(e.orig_exc, LoxSyntaxError):
            raise e.orig_exc from None
        raise
