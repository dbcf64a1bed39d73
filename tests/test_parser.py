import pytest

from lox.ast import (
    Assign, Binary, Block, Call, Class, Expression, Function, Get, If, Literal,
    Logical, Print, Return, Set, Super, This, Unary, Var, Variable, While,
)
from lox.errors import LoxSyntaxError
from lox.parser import parse_program


def test_var_declaration_and_literals():
    stmts = parse_program('var a = 1.5; var b; var s = "hi"; var t = true; var n = nil;')
    assert [type(s) for s in stmts] == [Var] * 5
    assert stmts[0].name.lexeme == 'a'
    assert stmts[0].initializer.value == 1.5
    assert stmts[1].initializer is None
    assert stmts[2].initializer.value == 'hi'
    assert stmts[3].initializer.value is True
    assert stmts[4].initializer.value is None


def test_number_literals_are_floats():
    stmt = parse_program('print 3;')[0]
    assert isinstance(stmt, Print)
    assert isinstance(stmt.expression.value, float)


def test_token_carries_line_and_literal():
    stmts = parse_program('\n\nvar answer = 42;')
    token = stmts[0].name
    assert token.kind == 'IDENTIFIER'
    assert token.line == 3
    assert token.literal is None


def test_multiline_string_counts_lines():
    stmts = parse_program('var s = "a\nb";\nprint s;')
    assert stmts[0].initializer.value == 'a\nb'
    assert stmts[1].expression.name.line == 3


def test_comments_are_ignored():
    stmts = parse_program('// nothing here\nprint 1; // trailing\n')
    assert len(stmts) == 1


def test_precedence():
    expr = parse_program('print 1 + 2 * 3 - -4;')[0].expression
    # ((1 + (2 * 3)) - (-4))
    assert isinstance(expr, Binary) and expr.operator.lexeme == '-'
    assert isinstance(expr.right, Unary)
    left = expr.left
    assert left.operator.lexeme == '+'
    assert left.right.operator.lexeme == '*'


def test_comparison_and_equality_tokens():
    expr = parse_program('print 1 <= 2 == true;')[0].expression
    assert expr.operator.kind == 'EQUAL_EQUAL'
    assert expr.left.operator.kind == 'LESS_EQUAL'


def test_logical_operators():
    expr = parse_program('print a or b and c;')[0].expression
    assert isinstance(expr, Logical)
    assert expr.operator.kind == 'OR'
    assert isinstance(expr.right, Logical)
    assert expr.right.operator.kind == 'AND'


def test_assignment_is_right_associative():
    expr = parse_program('a = b = 1;')[0].expression
    assert isinstance(expr, Assign)
    assert isinstance(expr.value, Assign)
    assert expr.value.name.lexeme == 'b'


def test_property_assignment_becomes_set():
    expr = parse_program('a.b.c = 1;')[0].expression
    assert isinstance(expr, Set)
    assert expr.name.lexeme == 'c'
    assert isinstance(expr.object, Get)


@pytest.mark.parametrize('source', ['1 + 2 = 3;', 'a or b = 3;', '-a = 1;', '!a = 1;', 'a == b = 1;'])
def test_invalid_assignment_target(source):
    with pytest.raises(LoxSyntaxError) as info:
        parse_program(source)
    assert info.value.err.kind == 'InvalidAssignmentTarget'
    assert info.value.err.message == 'Invalid assignment target.'
    assert info.value.err.token.lexeme == '='
    assert info.value.err.report() == "[line 1] Error at '=': Invalid assignment target."


@pytest.mark.parametrize('source', ['(a) = 3;', 'f() = 1;', 'this = 1;'])
def test_non_variable_targets_are_not_assignable(source):
    with pytest.raises(LoxSyntaxError) as info:
        parse_program(source)
    assert info.value.err.kind == 'InvalidAssignmentTarget'


def test_assignment_value_may_be_logical():
    expr = parse_program('a = b or c;')[0].expression
    assert isinstance(expr, Assign)
    assert isinstance(expr.value, Logical)


def test_call_records_closing_paren():
    expr = parse_program('f(1,\n2\n);')[0].expression
    assert isinstance(expr, Call)
    assert len(expr.arguments) == 2
    assert expr.paren.lexeme == ')'
    assert expr.paren.line == 3


def test_chained_calls_and_gets():
    expr = parse_program('a.b(1)(2).c;')[0].expression
    assert isinstance(expr, Get)
    assert isinstance(expr.object, Call)
    assert isinstance(expr.object.callee, Call)


def test_for_desugars_to_while():
    stmt = parse_program('for (var i = 0; i < 3; i = i + 1) print i;')[0]
    assert isinstance(stmt, Block)
    init, loop = stmt.statements
    assert isinstance(init, Var)
    assert isinstance(loop, While)
    assert isinstance(loop.body, Block)
    body, increment = loop.body.statements
    assert isinstance(body, Print)
    assert isinstance(increment, Expression)


def test_empty_for_clauses():
    stmt = parse_program('for (;;) print 1;')[0]
    assert isinstance(stmt, While)
    assert isinstance(stmt.condition, Literal)
    assert stmt.condition.value is True
    assert isinstance(stmt.body, Print)


def test_dangling_else_binds_to_nearest_if():
    stmt = parse_program('if (a) if (b) print 1; else print 2;')[0]
    assert isinstance(stmt, If)
    assert stmt.else_branch is None
    assert isinstance(stmt.then_branch, If)
    assert stmt.then_branch.else_branch is not None


def test_function_declaration():
    stmt = parse_program('fun add(a, b) { return a + b; }')[0]
    assert isinstance(stmt, Function)
    assert [p.lexeme for p in stmt.params] == ['a', 'b']
    assert isinstance(stmt.body[0], Return)
    assert stmt.body[0].keyword.kind == 'RETURN'


def test_class_declaration_with_superclass():
    stmt = parse_program('class B < A { init() { this.x = 1; } m() { return super.m(); } }')[0]
    assert isinstance(stmt, Class)
    assert stmt.name.lexeme == 'B'
    assert isinstance(stmt.superclass, Variable)
    assert stmt.superclass.name.lexeme == 'A'
    assert [m.name.lexeme for m in stmt.methods] == ['init', 'm']
    assert isinstance(stmt.methods[0].body[0].expression.object, This)
    call = stmt.methods[1].body[0].value
    assert isinstance(call.callee, Super)
    assert call.callee.method.lexeme == 'm'


def test_class_without_superclass():
    stmt = parse_program('class A {}')[0]
    assert stmt.superclass is None
    assert stmt.methods == []


def test_keywords_are_not_identifiers():
    with pytest.raises(LoxSyntaxError):
        parse_program('var class = 1;')


def test_identifiers_may_start_with_keywords():
    stmt = parse_program('var classy = 1; var orchid = 2;')
    assert [s.name.lexeme for s in stmt] == ['classy', 'orchid']


def test_missing_semicolon():
    with pytest.raises(LoxSyntaxError) as info:
        parse_program('print 1')
    assert info.value.err.kind == 'SyntaxError'
    assert 'Error at end' in info.value.err.report()


def test_unexpected_character():
    with pytest.raises(LoxSyntaxError) as info:
        parse_program('var a = 1;\nvar b = @;')
    assert info.value.err.line == 2
    assert info.value.err.report() == '[line 2] Error: Unexpected character.'


def test_unterminated_string():
    with pytest.raises(LoxSyntaxError) as info:
        parse_program('print 1;\nprint "abc\nmore;')
    assert info.value.err.kind == 'SyntaxError'
    assert info.value.err.message == 'Unterminated string.'
    assert info.value.err.report() == '[line 3] Error: Unterminated string.'


def test_too_many_arguments():
    args = ', '.join('1' for _ in range(256))
    with pytest.raises(LoxSyntaxError) as info:
        parse_program(f'f({args});')
    assert info.value.err.message == "Can't have more than 255 arguments."


def test_nodes_hash_by_identity():
    stmts = parse_program('print a; print a;')
    first, second = stmts[0].expression, stmts[1].expression
    assert first is not second
    assert first != second
    assert len({first, second}) == 2
