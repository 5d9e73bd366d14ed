import pytest

from vsyc.interpreter import Interpreter, run_program


def run(source, capsys, **kwargs):
    interp = run_program(source, **kwargs)
    captured = capsys.readouterr()
    return interp, captured.out.strip().split('\n') if captured.out.strip() else []


@pytest.mark.parametrize('value', ['v', '42', 'two words', '[]', '3.5'])
def test_declare_then_print(value, capsys):
    _, out = run(f'@declare "x = {value}"\n@print "[#x]"', capsys)
    assert out == [value]


def test_undeclared_placeholder_is_left_alone(capsys):
    _, out = run('@print "[#nope]"', capsys)
    assert out == ['[#nope]']


def test_mismatched_call_does_not_run_body(capsys):
    source = '''
@func {f} (a) { @print "ran" @return "r" }
@declare "out = before"
@call "*f" (1, 2) {out}
@print "[#out]"
'''
    interp, out = run(source, capsys)
    assert out == ['before']
    assert interp.symbols.find_variable('out', 'root', -1).payload.text == 'before'


def test_unknown_function(capsys):
    interp, out = run('@call "*missing" ()\n@print "after"', capsys)
    assert out == ['after']
    assert interp.diagnostics[0].name == 'NameError'


def test_function_without_return_leaves_output_alone(capsys):
    interp, out = run('@func {f} () { @c "nothing" }\n@call "*f" () {out}', capsys)
    assert interp.symbols.find_variable('out', 'root', -1) is None


def test_return_evaluates_keyword_operand(capsys):
    source = '''
@func {differ} () { @return @op {a} {b} }
@call "*differ" () {r}
@print "[#r]"
'''
    _, out = run(source, capsys)
    assert out == ['true']


def test_function_calling_function(capsys):
    source = '''
@func {inner} (v) { @return "<[#inner.args.v]>" }
@func {outer} (v) {
    @call "*inner" ([#outer.args.v]) {wrapped}
    @return "[#wrapped]"
}
@call "*outer" (x) {result}
@print "[#result]"
'''
    _, out = run(source, capsys)
    assert out == ['<x>']


@pytest.mark.parametrize('cond, expected', [
    ('@lt {9} {10}', ['yes']),
    ('@gt {9} {10}', []),
    ('@eq {10} {10.0}', ['yes']),
    ('@lt {b} {a}', []),
    ('@gt {b} {a}', ['yes']),
    ('@eq {abc} {abd}', []),
])
def test_if_uses_comparison(cond, expected, capsys):
    _, out = run(f'@if {{c}} do: {{ @print "yes" }}\n{cond}', capsys)
    assert out == expected


def test_if_uses_first_comparison_in_module(capsys):
    source = '''
@if {first} do: { @print "first" }
@if {second} do: { @print "second" }
@eq {1} {1}
@eq {1} {2}
'''
    _, out = run(source, capsys)
    assert out == ['first', 'second']


def test_if_without_condition_is_reported(capsys):
    interp, out = run('@if {c} do: { @print "yes" }\n@print "after"', capsys)
    assert out == ['after']
    assert interp.diagnostics[0].name == 'SyntaxError'


def test_if_without_marker_is_reported(capsys):
    interp, out = run('@if {c} { @print "yes" }\n@eq {1} {1}', capsys)
    assert out == []
    assert interp.diagnostics[0].name == 'SyntaxError'


def test_insert_then_remove_restores_array(capsys):
    interp, _ = run('@declare "arr = []"\n@insert "v" {arr}\n@remove "v" {arr}', capsys)
    assert interp.symbols.find_variable('arr', 'root', -1).payload.text == '[]'


def test_insert_keeps_order(capsys):
    interp, _ = run('@declare "arr = []"\n@insert "x" {arr}\n@insert "y" {arr}', capsys)
    assert interp.symbols.find_variable('arr', 'root', -1).payload.text == '["x","y"]'


def test_array_change_reaches_printed_nodes(capsys):
    _, out = run('@declare "arr = []"\n@insert "x" {arr}\n@print "[#arr]"\n@insert "y" {arr}\n@print "[#arr]"', capsys)
    assert out == ['["x"]', '["x","y"]']


def test_bad_array_payload_fails_only_that_statement(capsys):
    interp, out = run('@declare "s = hello"\n@insert "x" {s}\n@print "[#s]"', capsys)
    assert out == ['hello']
    assert [d.name for d in interp.diagnostics] == ['ArrayError']


def test_remove_missing_value(capsys):
    interp, _ = run('@declare "arr = []"\n@remove "x" {arr}', capsys)
    assert interp.diagnostics[0].name == 'ArrayError'


def test_read_modes(capsys):
    source = '''
@declare "list = []"
@insert "a" {list}
@insert "b" {list}
@declare "n = 2.50"
@read "array" {list} {0,first}
@read "number" {n} {num}
@read "string" {list} {copy}
@print "[#first] [#num] [#copy]"
'''
    _, out = run(source, capsys)
    assert out == ['a 2.5 ["a","b"]']


def test_read_overwrites_bound_nodes(capsys):
    source = '''
@declare "out = old"
@declare "src = new"
@func {show} () { @c "unused" }
@read "string" {src} {out}
@print "[#out]"
'''
    interp, out = run(source, capsys)
    assert out == ['new']
    assert interp.symbols.find_variable('out', 'root', -1).payload.text == 'new'


@pytest.mark.parametrize('statement, name', [
    ('@read "number" {word} {n}', 'ValueError'),
    ('@read "array" {word} {0,n}', 'ArrayError'),
    ('@read "array" {list} {n}', 'ArrayError'),
    ('@read "array" {list} {5,n}', 'ArrayError'),
    ('@read "bytes" {word} {n}', 'SyntaxError'),
    ('@read "string" {ghost} {n}', 'NameError'),
])
def test_read_errors(statement, name, capsys):
    interp, _ = run(f'@declare "word = hi"\n@declare "list = []"\n{statement}', capsys)
    assert [d.name for d in interp.diagnostics] == [name]


def test_reassignment_updates_bound_nodes(capsys):
    _, out = run('@declare "x = 1"\n@print "[#x]"\n@declare "x = 2"\n@print "[#x]"', capsys)
    assert out == ['1', '2']


def test_reassignment_rewrites_every_occurrence_of_old_text(capsys):
    # the rewrite is a plain substring replacement of the old value
    _, out = run('@declare "x = 1"\n@declare "x = 2"\n@print "[#x] of 10"', capsys)
    assert out == ['2 of 20']


def test_malformed_statements_are_skipped(capsys):
    source = '''
@declare "novalue"
@print
@func {broken}
@print "still running"
'''
    interp, out = run(source, capsys)
    assert out == ['still running']
    assert [d.name for d in interp.diagnostics] == ['SyntaxError'] * 3


def test_unknown_keyword_is_reported(capsys):
    interp = run_program('@frobnicate "x"\n@else\n@print "ok"')
    captured = capsys.readouterr()
    assert captured.out.strip() == 'ok'
    assert len(interp.diagnostics) == 1
    assert '[KeywordError]: unknown keyword: frobnicate' in captured.err


def test_allowed_keywords_are_configurable(capsys):
    interp, _ = run('@frobnicate "x"', capsys, allowed_keywords=('frobnicate',))
    assert interp.diagnostics == []


def test_return_outside_function(capsys):
    interp, out = run('@return "x"\n@print "after"', capsys)
    assert out == ['after']
    assert interp.diagnostics[0].message == 'return outside of a function body'


def test_debug_file(tmp_path, capsys):
    debug_file = tmp_path / 'debug.txt'
    interp = Interpreter(debug_level=2, debug_file=str(debug_file))
    interp.run('@func {f} () { @return "1" }\n@declare "a = 1"')
    interp.close()
    text = debug_file.read_text(encoding='utf-8')
    assert 'define function f()' in text
    assert "declare a = '1'" in text
    assert capsys.readouterr().out == ''


def test_interpreters_are_independent(capsys):
    first = run_program('@declare "x = 1"')
    second = run_program('@print "[#x]"')
    assert len(first.symbols) == 1
    assert len(second.symbols) == 0
    assert capsys.readouterr().out.strip() == '[#x]'


def test_declare_name_with_dash(capsys):
    interp, out = run('@declare "my-var = 1"\n@print "[#my-var]"', capsys)
    assert out == ['1']
    assert interp.diagnostics == []


def test_run_program_closes_debug_file(tmp_path, capsys):
    debug_file = tmp_path / 'debug.txt'
    interp = run_program('@declare "a = 1"', debug_level=2, debug_file=str(debug_file))
    assert interp.debug_fp is None
    assert "declare a = '1'" in debug_file.read_text(encoding='utf-8')


def test_interpreter_as_context_manager(tmp_path):
    debug_file = tmp_path / 'debug.txt'
    with Interpreter(debug_level=1, debug_file=str(debug_file)) as interp:
        interp.run('@print "x"')
        assert interp.debug_fp is not None
    assert interp.debug_fp is None
