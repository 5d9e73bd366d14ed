from pathlib import Path

from vsyc.interpreter import Interpreter

EXAMPLES = Path(__file__).parent.parent / 'examples'


def test_program_5_strict_arity(capsys):
    with open(EXAMPLES / 'program_5.vscc', 'r', encoding='utf-8') as f:
        source = f.read()
    interp = Interpreter()
    interp.run(source)
    captured = capsys.readouterr()
    out_lines = captured.out.strip().split('\n')
    # the first call is rejected and leaves `result` alone
    assert out_lines == ['unchanged', '1-2']
    assert [d.name for d in interp.diagnostics] == ['ArityError']
    assert '[ArityError]: pair expects 2 arguments, got 1' in captured.err
