from pathlib import Path

from vsyc.interpreter import Interpreter

EXAMPLES = Path(__file__).parent.parent / 'examples'


def test_program_6_body_scope(capsys):
    with open(EXAMPLES / 'program_6.vscc', 'r', encoding='utf-8') as f:
        source = f.read()
    interp = Interpreter()
    interp.run(source)
    out_lines = capsys.readouterr().out.strip().split('\n')
    assert out_lines == ['inside: 42', 'outside: [#secret]']
