from lox.interpreter import Interpreter, RunStatus, run_program, run_source


def output(capsys):
    return capsys.readouterr().out.strip().split('\n')


def run_error(source, capsys):
    interp = run_program(source)
    captured = capsys.readouterr()
    assert len(interp.runtime_errors) == 1
    return interp.runtime_errors[0], captured


def test_arithmetic(capsys):
    run_program('print 1 + 2; print 7 - 10; print 2 * 3.5; print 10 / 4; print -(3);')
    assert output(capsys) == ['3', '-3', '7', '2.5', '-3']


def test_number_formatting(capsys):
    run_program('print 3; print 2.5; print 1 / 3; print 100;')
    assert output(capsys) == ['3', '2.5', '0.3333333333333333', '100']


def test_division_by_zero(capsys):
    run_program('print 1 / 0; print -1 / 0; print 0 / 0;')
    assert output(capsys) == ['Infinity', '-Infinity', 'NaN']


def test_string_concatenation(capsys):
    run_program('print "foo" + "bar";')
    assert output(capsys) == ['foobar']


def test_comparisons(capsys):
    run_program('print 1 < 2; print 2 <= 2; print 3 > 4; print 3 >= 4;')
    assert output(capsys) == ['true', 'true', 'false', 'false']


def test_equality(capsys):
    source = '''
    print nil == nil;
    print nil == false;
    print 1 == true;
    print 0 == false;
    print "a" == "a";
    print "1" == 1;
    print 1 != 2;
    '''
    run_program(source)
    assert output(capsys) == ['true', 'false', 'false', 'false', 'true', 'false', 'true']


def test_truthiness(capsys):
    source = '''
    if (nil) print "nil"; else print "nil is false";
    if (0) print "0 is true";
    if ("") print "empty string is true";
    print !nil;
    print !!1;
    '''
    run_program(source)
    assert output(capsys) == ['nil is false', '0 is true', 'empty string is true', 'true', 'true']


def test_logical_operators_return_operand(capsys):
    run_program('print nil or "x"; print "a" or "b"; print false and 1; print 1 and 2;')
    assert output(capsys) == ['x', 'a', 'false', '2']


def test_logical_short_circuit(capsys):
    run_program('var a = "unset"; false and (a = "set"); true or (a = "set"); print a;')
    assert output(capsys) == ['unset']


def test_while_loop(capsys):
    run_program('var i = 0; while (i < 3) { print i; i = i + 1; }')
    assert output(capsys) == ['0', '1', '2']


def test_undefined_variable(capsys):
    err, captured = run_error('print missing;', capsys)
    assert err.kind == 'UndefinedVariable'
    assert captured.err.strip() == "Undefined variable 'missing'.\n[line 1]"


def test_assign_to_undefined_global(capsys):
    err, _ = run_error('missing = 1;', capsys)
    assert err.kind == 'UndefinedVariable'


def test_not_callable(capsys):
    err, _ = run_error('"text"();', capsys)
    assert err.kind == 'NotCallable'
    assert err.message == 'Can only call functions and classes.'


def test_class_arity_mismatch(capsys):
    err, _ = run_error('class A { init(a) {} } A();', capsys)
    assert err.kind == 'Arity'
    assert err.message == 'Expected 1 arguments but got 0.'


def test_superclass_must_be_class(capsys):
    err, _ = run_error('var NotAClass = "nope";\nclass B < NotAClass {}', capsys)
    assert err.kind == 'InheritanceTypeError'
    assert err.message == 'Superclass must be a class.'
    assert err.line == 2


def test_undefined_property(capsys):
    err, _ = run_error('class A {} A().foo;', capsys)
    assert err.kind == 'UndefinedProperty'
    assert err.message == "Undefined property 'foo'."


def test_undefined_super_method(capsys):
    err, _ = run_error('class A {} class B < A { m() { super.nope(); } } B().m();', capsys)
    assert err.kind == 'UndefinedProperty'
    assert err.message == "Undefined property 'nope'."


def test_property_on_non_instance(capsys):
    err, _ = run_error('var x = 1; print x.y;', capsys)
    assert err.kind == 'TypeMismatch'
    assert err.message == 'Only instances have properties.'


def test_field_on_non_instance(capsys):
    err, _ = run_error('var x = "s"; x.y = 2;', capsys)
    assert err.kind == 'TypeMismatch'
    assert err.message == 'Only instances have fields.'


def test_operand_type_errors(capsys):
    err, _ = run_error('print -"a";', capsys)
    assert err.message == 'Operand must be a number.'
    err, _ = run_error('print 1 < "a";', capsys)
    assert err.message == 'Operands must be numbers.'
    err, _ = run_error('print 1 + "a";', capsys)
    assert err.message == 'Operands must be two numbers or two strings.'
    assert err.kind == 'TypeMismatch'


def test_runtime_error_stops_program(capsys):
    interp = run_program('print 1;\nprint missing;\nprint 2;')
    captured = capsys.readouterr()
    assert captured.out.strip() == '1'
    assert interp.runtime_errors[0].line == 2


def test_runtime_error_inside_function_restores_environment(capsys):
    interp = Interpreter()
    status = run_source('fun f() { { var local = 1; return nope; } } f();', interp)
    capsys.readouterr()
    assert status is RunStatus.RUNTIME_ERROR
    assert interp.environment is interp.globals


def test_interpreter_keeps_state_between_runs(capsys):
    interp = Interpreter()
    assert run_source('var a = 1; fun inc() { a = a + 1; }', interp) is RunStatus.OK
    assert run_source('inc(); print a;', interp) is RunStatus.OK
    assert run_source('print nope;', interp) is RunStatus.RUNTIME_ERROR
    assert run_source('print a;', interp) is RunStatus.OK
    assert capsys.readouterr().out.strip().split('\n') == ['2', '2']


def test_static_errors_reset_between_runs(capsys):
    interp = Interpreter()
    assert run_source('return 1;', interp) is RunStatus.STATIC_ERROR
    assert run_source('print "ok";', interp) is RunStatus.OK
    assert capsys.readouterr().out.strip() == 'ok'


def test_syntax_error_status(capsys):
    interp = Interpreter()
    assert run_source('print (1;', interp) is RunStatus.STATIC_ERROR
    assert 'Error' in capsys.readouterr().err
