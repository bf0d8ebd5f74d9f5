"""
Tests for configuration loading and the replay/demo entry points.
"""

import json


class TestLoadConfig:
    """TOML configuration with per-section defaults."""

    def test_defaults_without_file(self):
        from episodes.main import DEFAULT_CONFIG, load_config

        config = load_config(None)
        assert config == DEFAULT_CONFIG
        config['listener']['http_port'] = 1
        assert DEFAULT_CONFIG['listener']['http_port'] == 8080

    def test_missing_file_uses_defaults(self, tmp_path, caplog):
        from episodes.main import load_config

        config = load_config(str(tmp_path / 'absent.toml'))
        assert config['timeline']['width'] == 800
        assert 'not found' in caplog.text

    def test_sections_merge_over_defaults(self, tmp_path):
        from episodes.main import load_config

        path = tmp_path / 'config.toml'
        path.write_text(
            'prefix = "APP"\n'
            '\n'
            '[registry]\n'
            'auto_finalize = true\n'
            '\n'
            '[listener]\n'
            'http_port = 0\n'
            '\n'
            '[beacon]\n'
            'base_url = "http://collector.local/beacon.gif"\n'
            'formatter = "boomerang"\n'
        )
        config = load_config(str(path))

        assert config['prefix'] == 'APP'
        assert config['registry']['auto_finalize'] is True
        assert config['registry']['emit_messages'] is True
        assert config['listener']['http_port'] == 0
        assert config['listener']['endpoint'] == 'tcp://127.0.0.1:5599'
        assert config['beacon']['formatter'] == 'boomerang'


class TestReplay:
    """Rebuilding tables from a recorded stream."""

    def test_replay_file(self, tmp_path, capsys):
        from episodes.main import DEFAULT_CONFIG, run_replay

        path = tmp_path / 'messages.log'
        path.write_text(
            'EPISODES:mark:starttime:1000\n'
            'some unrelated log line\n'
            'EPISODES:mark:firstbyte:1400\n'
            'EPISODES:measure:backend:1000:1400\n'
            'EPISODES:bogus\n'
        )
        data = run_replay(str(path), DEFAULT_CONFIG, width=None, margin=40)

        assert data.marks == {'starttime': 1000, 'firstbyte': 1400}
        assert data.get_episode('backend') == (1000, 400)

        printed = json.loads(capsys.readouterr().out)
        assert printed['measures'] == {'backend': 400}

    def test_replay_with_timeline(self, tmp_path, capsys):
        from episodes.main import DEFAULT_CONFIG, run_replay

        path = tmp_path / 'messages.log'
        path.write_text('EPISODES:measure:A:0:100\nEPISODES:measure:B:50:60\n')
        run_replay(str(path), DEFAULT_CONFIG, width=200, margin=40)

        out = capsys.readouterr().out
        bars = json.loads(out[out.index('['):])
        assert [(b['name'], b['left_px'], b['width_px']) for b in bars] == [
            ('A', 40, 200),
            ('B', 140, 20),
        ]


class TestDemo:
    """In-process demo run."""

    def test_demo_mirrors_measures(self, monkeypatch):
        from episodes import main

        monkeypatch.setattr(main.time, 'sleep', lambda seconds: None)
        data = main.run_demo(main.DEFAULT_CONFIG, width=600, margin=40)

        for name in ('m1', 'm2', 'm3', 'm4', 'starttime', 'firstbyte'):
            assert name in data.marks
        for name in ('backend', 'm1..end', 'm2..m3', 'm3..m4'):
            assert name in data.measures
        assert data.measures['m2..m3'] >= 0
