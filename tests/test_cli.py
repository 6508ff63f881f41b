import builtins
import json

import pytest

from aurora.__main__ import main


@pytest.fixture
def program(tmp_path):
    path = tmp_path / 'prog.lua'
    path.write_text('function add(a,b) return a+b end; print(add(2,3))\n', encoding='utf-8')
    return path


def feed(monkeypatch, lines):
    it = iter(lines)

    def fake_input(prompt=''):
        try:
            return next(it)
        except StopIteration:
            raise EOFError

    monkeypatch.setattr(builtins, 'input', fake_input)


def test_run_file(program, capsys):
    main([str(program)])
    out = capsys.readouterr().out
    assert out == f'Running Lua Src file: {program}\n\n5\n'


def test_run_file_quiet(program, capsys):
    main(['-q', str(program)])
    assert capsys.readouterr().out == '5\n'


def test_run_example_with_assets(capsys):
    main(['-q', '--assets', 'examples/assets', 'examples/program_8.lua'])
    assert capsys.readouterr().out.splitlines() == ['Hello, Bob!', 'nil']


def test_missing_file(tmp_path, capsys):
    with pytest.raises(SystemExit) as excinfo:
        main([str(tmp_path / 'absent.lua')])
    assert excinfo.value.code == 1
    assert 'not found' in capsys.readouterr().err


def test_runtime_error_exit_code(tmp_path, capsys):
    path = tmp_path / 'bad.lua'
    path.write_text('print("before")\nfail("boom")\n', encoding='utf-8')
    with pytest.raises(SystemExit) as excinfo:
        main(['-q', str(path)])
    assert excinfo.value.code == 1
    captured = capsys.readouterr()
    assert captured.out == 'before\n'
    assert captured.err.strip() == '[Runtime Exception] boom'


def test_lexical_errors_are_all_reported(tmp_path, capsys):
    path = tmp_path / 'bad.lua'
    path.write_text('x = 1 @ 2\ny = 3 $ 4\n', encoding='utf-8')
    with pytest.raises(SystemExit):
        main(['-q', str(path)])
    assert capsys.readouterr().err.splitlines() == [
        '[Lexical Exception at [Line 1]] Unknown Character: @',
        '[Lexical Exception at [Line 2]] Unknown Character: $',
    ]


def test_verbose_writes_diagnostics(program, capsys):
    main(['-v', str(program)])
    captured = capsys.readouterr()
    assert captured.out.endswith('5\n')
    assert 'Token Count:' in captured.err


def test_emit_ast_then_run(program, capsys):
    main(['--emit-ast', str(program)])
    out_path = capsys.readouterr().out.strip()
    assert out_path == str(program) + '.ast.json'
    with open(out_path, 'r', encoding='utf-8') as f:
        data = json.load(f)
    assert data['type'] == 'Program'

    main(['--ast', out_path])
    assert capsys.readouterr().out.strip() == '5'


def test_console_keeps_state(monkeypatch, capsys):
    feed(monkeypatch, ['x = 40', 'print(x + 2)'])
    main([])
    assert capsys.readouterr().out == '42\n\n'


def test_console_reports_errors_and_continues(monkeypatch, capsys):
    feed(monkeypatch, ['nope()', 'y =', 'print("still here")'])
    main([])
    captured = capsys.readouterr()
    assert 'still here' in captured.out
    assert captured.err.splitlines() == [
        '[Runtime Exception] Unable to find function with name: nope',
        '[Parse Exception at [Line 1]] Expected expression',
    ]


def test_console_quit(monkeypatch, capsys):
    feed(monkeypatch, ['print("hi")', 'quit()', 'print("never")'])
    with pytest.raises(SystemExit) as excinfo:
        main([])
    assert excinfo.value.code == 0
    assert capsys.readouterr().out == 'hi\n'


def test_deep_expression_is_reported_not_raised(tmp_path, capsys):
    path = tmp_path / 'deep.lua'
    path.write_text('x = ' + ' + '.join(['1'] * 1200) + '\n', encoding='utf-8')
    with pytest.raises(SystemExit) as excinfo:
        main(['-q', str(path)])
    assert excinfo.value.code == 1
    err = capsys.readouterr().err
    assert err.startswith('[Parse Exception at [Line 1]] Expression nested deeper than')
