"""Render Lox AST nodes as parenthesized prefix expressions.

Used by `python -m lox --print-ast` to inspect what the parser built,
and by tests. For example `-123 * (45.67)` renders as
`(* (- 123) (group 45.67))`.
"""

from __future__ import annotations

from typing import Any, List, Union

from .ast import (
    Expr, Stmt, Literal, Variable, Assign, Unary, Binary, Logical,
    Grouping, Call, Get, Set, This, Super,
    Expression, Print, Var, Block, If, While, Function, Return, Class,
)
from .tokens import Token
from .types import format_number


class AstPrinter:

    def print(self, node: Union[Expr, Stmt]) -> str:
        if isinstance(node, Stmt):
            return self.print_stmt(node)
        return self.print_expr(node)

    def print_expr(self, expr: Expr) -> str:
        if isinstance(expr, Literal):
            return self.literal(expr.value)
        if isinstance(expr, Variable):
            return expr.name.lexeme
        if isinstance(expr, Assign):
            return self.parenthesize('=', expr.name.lexeme, expr.value)
        if isinstance(expr, (Binary, Logical)):
            return self.parenthesize(expr.operator.lexeme, expr.left, expr.right)
        if isinstance(expr, Unary):
            return self.parenthesize(expr.operator.lexeme, expr.right)
        if isinstance(expr, Grouping):
            return self.parenthesize('group', expr.expression)
        if isinstance(expr, Call):
            return self.parenthesize('call', expr.callee, expr.arguments)
        if isinstance(expr, Get):
            return self.parenthesize('.', expr.object, expr.name.lexeme)
        if isinstance(expr, Set):
            return self.parenthesize('=', expr.object, expr.name.lexeme, expr.value)
        if isinstance(expr, This):
            return 'this'
        if isinstance(expr, Super):
            return self.parenthesize('super', expr.method)
        raise NotImplementedError(f"print: unexpected node type {type(expr)}")

    def print_stmt(self, stmt: Stmt) -> str:
        if isinstance(stmt, Expression):
            return self.parenthesize(';', stmt.expression)
        if isinstance(stmt, Print):
            return self.parenthesize('print', stmt.expression)
        if isinstance(stmt, Var):
            if stmt.initializer is None:
                return self.parenthesize('var', stmt.name)
            return self.parenthesize('var', stmt.name, '=', stmt.initializer)
        if isinstance(stmt, Block):
            # statements are concatenated without separators
            return '(block ' + ''.join(self.print_stmt(s) for s in stmt.statements) + ')'
        if isinstance(stmt, If):
            if stmt.else_branch is None:
                return self.parenthesize('if', stmt.condition, stmt.then_branch)
            return self.parenthesize('if-else', stmt.condition, stmt.then_branch, stmt.else_branch)
        if isinstance(stmt, While):
            return self.parenthesize('while', stmt.condition, stmt.body)
        if isinstance(stmt, Function):
            params = ' '.join(p.lexeme for p in stmt.params)
            body = ''.join(self.print_stmt(s) for s in stmt.body)
            return f"(fun {stmt.name.lexeme}({params}) {body})"
        if isinstance(stmt, Return):
            if stmt.value is None:
                return '(return)'
            return self.parenthesize('return', stmt.value)
        if isinstance(stmt, Class):
            text = f"(class {stmt.name.lexeme}"
            if stmt.superclass is not None:
                text += ' < ' + self.print_expr(stmt.superclass)
            for method in stmt.methods:
                text += ' ' + self.print_stmt(method)
            return text + ')'
        raise NotImplementedError(f"print: unexpected node type {type(stmt)}")

    def literal(self, value: Any) -> str:
        if value is None:
            return 'nil'
        if isinstance(value, bool):
            return 'true' if value else 'false'
        if isinstance(value, float):
            return format_number(value)
        return str(value)

    def parenthesize(self, name: str, *parts: Any) -> str:
        return '(' + name + ''.join(self._parts(parts)) + ')'

    def _parts(self, parts) -> List[str]:
        out: List[str] = []
        for part in parts:
            if isinstance(part, list):
                out.extend(self._parts(part))
            elif isinstance(part, Expr):
                out.append(' ' + self.print_expr(part))
            elif isinstance(part, Stmt):
                out.append(' ' + self.print_stmt(part))
            elif isinstance(part, Token):
                out.append(' ' + part.lexeme)
            else:
                out.append(' ' + str(part))
        return out
