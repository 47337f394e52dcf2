import json

import pytest

from conftest import FakeGateway
import droidmedia.__main__ as cli


@pytest.fixture
def device(monkeypatch, tmp_path):
    monkeypatch.setenv('DROIDMEDIA_HOME', str(tmp_path / 'home'))
    gateway = FakeGateway(
        files={'/sdcard/DCIM/a.jpg': b'aaa'},
        shell_outputs=[
            ('ls -la', (
                'drwxrwx--x 2 root root 4096 2024-01-30 10:30 DCIM\n'
                '-rw-rw---- 1 u0 u0 3 2024-01-30 10:30 a.jpg\n'
            )),
        ],
    )
    monkeypatch.setattr(cli, 'AdbGateway', lambda *args, **kwargs: gateway)
    return gateway


def test_folders(device, capsys):
    assert cli.main(['-s', 'SERIAL', 'folders']) == 0
    assert capsys.readouterr().out.splitlines() == ['* /sdcard/DCIM']
    assert device.shell_commands() == ["ls -la '/sdcard'"]


def test_media(device, capsys):
    assert cli.main(['-s', 'SERIAL', 'media', '/sdcard/DCIM', '--filter', 'images']) == 0
    out = capsys.readouterr().out
    assert '/sdcard/DCIM/a.jpg' in out
    assert out.startswith('image')


def test_pull_remembers_destination(device, tmp_path, capsys):
    dest = tmp_path / 'out'
    assert cli.main(['-s', 'SERIAL', 'pull', '/sdcard/DCIM/a.jpg', '--dest', str(dest)]) == 0
    assert (dest / 'a.jpg').read_bytes() == b'aaa'
    config = json.loads((tmp_path / 'home' / 'config.json').read_text(encoding='utf-8'))
    assert config['last_destination'] == str(dest)


def test_pull_failure_exit_code(device, tmp_path, capsys):
    code = cli.main(['-s', 'SERIAL', 'pull', '/sdcard/DCIM/gone.jpg', '--dest', str(tmp_path)])
    assert code == 1
    assert capsys.readouterr().out.startswith('ERR /sdcard/DCIM/gone.jpg')


def test_thumbnail_unavailable_prints_guidance(device, capsys):
    assert cli.main(['-s', 'SERIAL', 'thumbnail', '/sdcard/DCIM/readme.txt']) == 1
    err = capsys.readouterr().err
    assert 'Thumbnail not available' in err
    assert 'Thumbnail preview not available' in err
