from unittest.mock import patch

from cli.main import main


def test_execute_commands(tmp_path, capsys):
    code = main(['-c', str(tmp_path / 'missing.yaml'), '-D', str(tmp_path),
                 '-e', 'pretty 1024', '-e', 'database_size postgres'])
    assert code == 0
    out = capsys.readouterr().out
    assert '1024 bytes' in out


def test_config_file(tmp_path, capsys):
    config = tmp_path / 'dbsize.yaml'
    config.write_text(f'data_dir: {tmp_path}\nlog_level: ERROR\n', encoding='utf-8')
    assert main(['-c', str(config), '-e', 'filepath 1']) == 0
    assert 'NULL' in capsys.readouterr().out


def test_missing_data_dir_fails(tmp_path, capsys):
    code = main(['-c', str(tmp_path / 'missing.yaml'), '-D', str(tmp_path / 'nope'), '-e', 'pretty 1'])
    assert code == 1
    assert '致命错误' in capsys.readouterr().err


def test_interrupt_outside_a_command_exits_cleanly(tmp_path, capsys):
    with patch('cli.main.CLIInterface.process_command', side_effect=KeyboardInterrupt):
        code = main(['-c', str(tmp_path / 'missing.yaml'), '-D', str(tmp_path), '-e', 'pretty 1'])
    assert code == 130
    assert '已取消' in capsys.readouterr().err
