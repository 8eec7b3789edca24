from phantom_driver.runtime import cli as runtime_cli
from phantom_driver.service.errors import StartupTimeoutError


class _FakeDriver:
    instances = []

    def __init__(self, path, config):
        self.path = path
        self.config = config
        self.url = "http://127.0.0.1:9515"
        self.stopped = False
        _FakeDriver.instances.append(self)

    def start(self):
        pass

    def stop(self):
        self.stopped = True


def test_parse_args_defaults_left_unset():
    args = runtime_cli.parse_args(["/usr/bin/phantomjs"])
    assert args.path == "/usr/bin/phantomjs"
    assert args.port is None
    assert args.log_file is None
    assert not args.verbose


def test_build_config_cli_overrides_env(monkeypatch):
    monkeypatch.setenv("PHANTOM_DRIVER_PORT", "7000")
    monkeypatch.setenv("PHANTOM_DRIVER_HOST", "localhost")
    args = runtime_cli.parse_args(["phantomjs", "--port", "9515", "--log-level", "INFO", "--log-file", "-"])
    cfg = runtime_cli.build_config(args)
    assert cfg.port == 9515
    assert cfg.host == "localhost"
    assert cfg.log_level == "INFO"
    assert cfg.log_file is None


def test_main_returns_1_on_start_failure(monkeypatch, capsys):
    class _Failing(_FakeDriver):
        def start(self):
            raise StartupTimeoutError("driver start failed: too slow")

    monkeypatch.setattr(runtime_cli, "PhantomJsDriver", _Failing)
    assert runtime_cli.main(["phantomjs"]) == 1
    assert "too slow" in capsys.readouterr().out


def test_main_stops_driver_on_interrupt(monkeypatch, capsys):
    def _interrupt(_seconds):
        raise KeyboardInterrupt

    _FakeDriver.instances.clear()
    monkeypatch.setattr(runtime_cli, "PhantomJsDriver", _FakeDriver)
    monkeypatch.setattr(runtime_cli.time, "sleep", _interrupt)

    assert runtime_cli.main(["phantomjs", "--start-timeout", "5"]) == 0
    driver = _FakeDriver.instances[-1]
    assert driver.stopped
    assert driver.config.start_timeout == 5.0
    assert "http://127.0.0.1:9515" in capsys.readouterr().out


def test_launch_script_forwards_argv(monkeypatch):
    from importlib.util import module_from_spec, spec_from_file_location
    from pathlib import Path

    script_path = Path(__file__).resolve().parents[1] / "scripts/launch_driver.py"
    spec = spec_from_file_location("launch_driver_module", script_path)
    module = module_from_spec(spec)
    spec.loader.exec_module(module)

    calls = {}

    def _fake_main(argv):
        calls["argv"] = argv
        return 0

    monkeypatch.setattr(module, "main", _fake_main)
    assert module.launch(["phantomjs", "--verbose"]) == 0
    assert calls["argv"] == ["phantomjs", "--verbose"]


def test_main_returns_1_when_driver_died_before_stop(monkeypatch, capsys):
    from phantom_driver.service.errors import ProcessStateError

    class _Died(_FakeDriver):
        def stop(self):
            raise ProcessStateError("stop failed: process 12 already exited with code 1")

    def _interrupt(_seconds):
        raise KeyboardInterrupt

    monkeypatch.setattr(runtime_cli, "PhantomJsDriver", _Died)
    monkeypatch.setattr(runtime_cli.time, "sleep", _interrupt)
    assert runtime_cli.main(["phantomjs"]) == 1
    assert "already exited" in capsys.readouterr().out
