import math

import pytest
from lark import Token

from aurora.ast import Expr, Value, SINGLE_VALUE
from aurora.config import Config, LogLevel
from aurora.errors import AuroraRuntimeError, ParseError
from aurora.interpreter import Interpreter, run_program, run_source
from aurora.types import NIL, FunctionRef, TableRef


def run(source, **config):
    return run_source(source, Interpreter(Config(**config)))


@pytest.mark.parametrize('token, expected', [
    (Token('NUMBER', 42.0), 42.0),
    (Token('STRING', 'hi'), 'hi'),
    (Token('TRUE', 'true'), True),
    (Token('FALSE', 'false'), False),
])
def test_literal_values(token, expected):
    interp = Interpreter()
    assert interp.evaluate_expr(Expr(SINGLE_VALUE, [Value([token])])) == expected


def test_arithmetic_is_right_heavy():
    interp = run('x = 10-2-3\ny = 2 * 3 + 1\nz = (2 * 3) + 1')
    assert interp.get_variable('x') == 11.0
    assert interp.get_variable('y') == 8.0
    assert interp.get_variable('z') == 7.0


def test_string_concatenation_renders_values():
    interp = run('s = "n=" .. (1 + 2) .. " " .. true .. " " .. missing')
    assert interp.get_variable('s') == 'n=3 true nil'


def test_equality_compares_renderings():
    interp = run('a = 0 == "0"\nb = 1 == 2\nc = "true" == true')
    assert interp.get_variable('a') is True
    assert interp.get_variable('b') is False
    assert interp.get_variable('c') is True


def test_division_by_zero():
    interp = run('a = 1 / 0\nb = -1 / 0\nc = 0 / 0')
    assert interp.get_variable('a') == math.inf
    assert interp.get_variable('b') == -math.inf
    assert math.isnan(interp.get_variable('c'))


def test_undefined_variable_is_nil():
    interp = run('x = nothing')
    assert interp.get_variable('x') == NIL


def test_string_in_arithmetic_is_an_error():
    with pytest.raises(AuroraRuntimeError) as excinfo:
        run('x = "a" + 1')
    assert 'convert string' in excinfo.value.message


def test_print_separates_arguments_with_tabs(capsys):
    run('print("a", 1, true, nil_value)\nprint()')
    assert capsys.readouterr().out == 'a\t1\ttrue\tnil\n\n'


def test_function_locals_do_not_leak():
    interp = run('''
function f()
    local x = 1
    y = 2
end
f()
''')
    assert interp.get_variable('x') == NIL
    assert 'x' not in interp.env.globals
    assert interp.get_variable('y') == 2.0


def test_parameters_shadow_globals():
    interp = run('''
function f(a)
    a = 5
    return a
end
a = 1
r = f(2)
''')
    assert interp.get_variable('r') == 5.0
    assert interp.get_variable('a') == 1.0


def test_function_does_not_see_caller_locals():
    interp = run('''
function inner()
    return hidden
end
function outer()
    local hidden = "caller"
    return inner()
end
r = outer()
''')
    assert interp.get_variable('r') == NIL


def test_return_from_nested_loop():
    interp = run('''
function first_over(limit)
    i = 0
    while true do
        i = i + 1
        if i > limit then
            return i
        end
    end
end
r = first_over(3)
after = "ran"
''')
    assert interp.get_variable('r') == 4.0
    assert interp.get_variable('after') == 'ran'
    assert interp.return_value is None


def test_function_without_return_yields_nil():
    interp = run('function f() x = 1 end\nr = f()')
    assert interp.get_variable('r') == NIL


def test_top_level_return_value():
    assert run_program('x = 2\nreturn x * 21\nx = 0') == 42.0
    assert run_program('x = 1') is None


def test_arity_is_checked():
    with pytest.raises(AuroraRuntimeError) as excinfo:
        run('function add(a, b) return a + b end\nadd(1)')
    assert excinfo.value.message == 'Incorrect number of arguments to add! Expected 2 but found 1'

    with pytest.raises(AuroraRuntimeError) as excinfo:
        run('function add(a, b) return a + b end\nadd(1, 2, 3)')
    assert excinfo.value.message == 'Incorrect number of arguments to add! Expected 2 but found 3'


def test_native_arity_is_checked():
    with pytest.raises(AuroraRuntimeError):
        run('fail("a", "b")')


def test_unresolved_call_is_an_error():
    with pytest.raises(AuroraRuntimeError) as excinfo:
        run('nope(1)')
    assert excinfo.value.message == 'Unable to find function with name: nope'


def test_fail_raises_runtime_error():
    with pytest.raises(AuroraRuntimeError) as excinfo:
        run('x = 1\nfail("boom")\nx = 2')
    assert str(excinfo.value) == '[Runtime Exception] boom'


def test_fail_requires_a_string():
    with pytest.raises(AuroraRuntimeError) as excinfo:
        run('fail(1)')
    assert 'expects a string' in excinfo.value.message


def test_unbounded_recursion_is_stopped():
    interp = Interpreter(Config(max_call_depth=20))
    with pytest.raises(AuroraRuntimeError) as excinfo:
        run_source('function f(n) return f(n + 1) end\nf(0)', interp)
    assert 'Maximum call depth of 20' in excinfo.value.message
    assert interp.call_depth == 0
    assert interp.env.depth == 1


def test_recursion_within_limit():
    interp = run('function count(n) if n <= 0 then return 0 end return 1 + count(n - 1) end\nr = count(40)')
    assert interp.get_variable('r') == 40.0


def nested_ifs_source(levels, n):
    return ('function f(n)\n'
            + '    if n > 0 then\n' * levels
            + '        return 1 + f(n - 1)\n'
            + '    end\n' * levels
            + '    return 0\n'
            + f'end\nr = f({n})')


def test_recursion_through_nested_blocks():
    interp = run(nested_ifs_source(8, 45))
    assert interp.get_variable('r') == 45.0
    assert interp.nesting == 0


def test_nesting_limit_is_reported():
    interp = Interpreter(Config(max_nesting_depth=100))
    with pytest.raises(AuroraRuntimeError) as excinfo:
        run_source(nested_ifs_source(8, 45), interp)
    assert excinfo.value.message == 'Maximum nesting depth of 100 exceeded'
    assert interp.nesting == 0
    assert interp.call_depth == 0
    assert interp.env.depth == 1


def test_long_operator_chain_is_a_parse_error():
    with pytest.raises(ParseError) as excinfo:
        run('x = ' + ' + '.join(['1'] * 1200))
    assert excinfo.value.line == 1
    assert 'nested deeper than' in excinfo.value.message


def test_operator_chain_within_limit():
    interp = run('x = ' + ' + '.join(['1'] * 90))
    assert interp.get_variable('x') == 90.0


def test_native_stack_overflow_becomes_runtime_error():
    def deep(args, interp):
        return deep(args, interp)

    interp = Interpreter()
    interp.register_native('deep', deep)
    with pytest.raises(AuroraRuntimeError) as excinfo:
        run_source('deep()', interp)
    assert excinfo.value.message == 'Maximum recursion depth exceeded'
    assert interp.env.depth == 1
    assert interp.nesting == 0


def test_table_fields():
    interp = run('t = {}\nt.x = 5\nt.inner = { v = "deep" }\na = t.x\nb = t.inner.v\nc = t.missing')
    assert isinstance(interp.get_variable('t'), TableRef)
    assert interp.get_variable('a') == 5.0
    assert interp.get_variable('b') == 'deep'
    assert interp.get_variable('c') == NIL


def test_tables_are_shared_by_reference():
    interp = run('a = {}\nb = a\nb.x = 1\nr = a.x')
    assert interp.get_variable('r') == 1.0
    assert interp.get_variable('a') == interp.get_variable('b')


def test_indexing_nil_is_an_error():
    with pytest.raises(AuroraRuntimeError) as excinfo:
        run('t = {}\nt.y.z = 1')
    assert excinfo.value.message == "Attempt to index a nil value 't.y'"

    with pytest.raises(AuroraRuntimeError) as excinfo:
        run('n = 1\nx = n.field')
    assert excinfo.value.message == "Attempt to index a number value 'n'"


def test_functions_stored_in_tables_and_variables():
    interp = run('''
function add(a, b) return a + b end
t = {}
t.f = add
g = add
r1 = t.f(1, 2)
r2 = g(3, 4)
''')
    assert isinstance(interp.get_variable('g'), FunctionRef)
    assert interp.get_variable('r1') == 3.0
    assert interp.get_variable('r2') == 7.0


def test_dotted_function_definition():
    interp = run('m = {}\nfunction m.twice(x) return x * 2 end\nr = m.twice(4)')
    assert interp.get_variable('r') == 8.0


def test_dotted_function_needs_a_table():
    with pytest.raises(AuroraRuntimeError):
        run('function m.twice(x) return x * 2 end')


def test_truthiness():
    interp = run('''
if nil_value then a = "yes" else a = "no" end
if "false" then b = "yes" else b = "no" end
if 0 then c = "yes" else c = "no" end
if {} then d = "yes" else d = "no" end
''')
    assert [interp.get_variable(n) for n in 'abcd'] == ['no', 'no', 'yes', 'yes']


def test_register_native():
    interp = Interpreter()
    interp.register_native('double', lambda args, i: args[0] * 2, arity=1)
    interp.register_native('count', lambda args, i: float(len(args)))
    run_source('x = double(21)\ny = count(1, 2, 3)', interp)
    assert interp.get_variable('x') == 42.0
    assert interp.get_variable('y') == 3.0


def test_call_value():
    interp = run('function add(a, b) return a + b end')
    ref = interp.get_variable('add')
    assert interp.call_value(ref.id, [1.0, 2.0]) == 3.0


def test_state_persists_between_runs():
    interp = run('function inc(n) return n + 1 end\nx = 1')
    run_source('x = inc(x)', interp)
    assert interp.get_variable('x') == 2.0


def test_verbose_logging(capsys):
    run('x = 1\nprint(x)', log_level=LogLevel.VERBOSE)
    captured = capsys.readouterr()
    assert captured.out == '1\n'
    assert 'Token Count: 9' in captured.err
    assert 'Stmt Count: 3' in captured.err
    assert 'call print(1)' in captured.err


def test_normal_level_is_silent(capsys):
    run('x = 1')
    assert capsys.readouterr().err == ''


def test_debug_file(tmp_path):
    log = tmp_path / 'debug.log'
    interp = Interpreter(Config(log_level=LogLevel.VERBOSE, debug_file=str(log)))
    run_source('function f() end\nf()', interp)
    interp.close()
    text = log.read_text(encoding='utf-8')
    assert 'define function f' in text
    assert 'call f()' in text
