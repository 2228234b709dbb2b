import threading

import pytest
from PIL import Image

from glyphloop.cli import main as cli_main
from glyphloop.config import AppConfig, RenderConfig, pick_worker_count, resolve_height
from glyphloop.output.logger import SimpleLogger


@pytest.fixture
def app() -> AppConfig:
    return AppConfig()


def config_for(argv, app):
    return cli_main.build_config(cli_main.parse_args(argv, app), app)


def test_defaults(app):
    cfg = config_for(["x.gif", "--workers", "3"], app)
    assert cfg.width == 40
    assert cfg.height == 20
    assert cfg.fps == 17
    assert cfg.multiplier == pytest.approx(1.2)
    assert cfg.color is True
    assert cfg.workers == 3
    assert cfg.pool_size == 6
    assert cfg.delay_seconds == pytest.approx(0.058)


@pytest.mark.parametrize(
    "width,height,expected",
    [(40, None, 20), (40, -1, 20), (40, 10, 5), (1, None, 1), (1, 1, 1), (7, None, 3)],
)
def test_resolve_height(width, height, expected):
    assert resolve_height(width, height) == expected


def test_height_flag_is_halved(app):
    assert config_for(["x.gif", "--height", "10"], app).height == 5


def test_no_color_flag(app):
    assert config_for(["x.gif", "--no-color"], app).color is False


def test_worker_count_is_capped():
    assert pick_worker_count(100, 32) == 32
    assert pick_worker_count(0, 32) == 1
    assert 1 <= pick_worker_count(None, 4) <= 4


def test_env_overrides_defaults(monkeypatch):
    monkeypatch.setenv("GLYPHLOOP_RENDER__FPS", "24")
    monkeypatch.setenv("GLYPHLOOP_WORKER__POOL_FACTOR", "3")
    app = AppConfig()
    cfg = config_for(["x.gif", "-w", "2"], app)
    assert cfg.fps == 24
    assert cfg.pool_size == 6


def test_render_config_is_frozen(app):
    cfg = config_for(["x.gif"], app)
    with pytest.raises(Exception):
        cfg.width = 10


def test_invalid_pool_size_is_a_usage_error():
    assert cli_main.main(["x.gif", "--pool-size", "0", "--info", "none"]) == 2


def test_invalid_fps_is_a_usage_error():
    with pytest.raises(Exception):
        RenderConfig(width=10, height=5, fps=0, multiplier=1.0, workers=1, pool_size=1)
    assert cli_main.main(["x.gif", "--fps", "0", "--info", "none"]) == 2


def test_missing_gif_argument_is_a_usage_error():
    assert cli_main.main(["--info", "none"]) == 2


def test_missing_file_exits_with_error(tmp_path):
    assert cli_main.main([str(tmp_path / "missing.gif"), "--info", "none"]) == 1


def test_non_gif_file_exits_with_error(tmp_path):
    path = tmp_path / "not.gif"
    path.write_bytes(b"hello")
    assert cli_main.main([str(path), "--info", "none"]) == 1


def test_check_tools_flag(monkeypatch):
    monkeypatch.setattr(cli_main, "check_tools", lambda cmd: (True, []))
    assert cli_main.main(["--check-tools"]) == 0
    monkeypatch.setattr(cli_main, "check_tools", lambda cmd: (False, ["fastfetch not found"]))
    assert cli_main.main(["--check-tools"]) == 1


def test_end_to_end_run_leaves_first_frame_on_screen(tmp_path, monkeypatch, capsys):
    path = tmp_path / "anim.gif"
    frames = [Image.new("RGB", (4, 4), color) for color in [(0, 0, 0), (255, 255, 255)]]
    frames[0].save(path, save_all=True, append_images=frames[1:], duration=50, loop=0)

    # Stop playback as soon as prerendering is done
    started = threading.Event()
    real_prerender = cli_main.prerender_with_config

    def prerender_then_stop(animation, config, overlay, stop_event=None):
        rendered = real_prerender(animation, config, overlay, stop_event)
        started.set()
        stop_event.set()
        return rendered

    monkeypatch.setattr(cli_main, "install_signal_handlers", lambda ev: None)
    monkeypatch.setattr(cli_main, "prerender_with_config", prerender_then_stop)

    log = tmp_path / "run.log"
    code = cli_main.main(
        [str(path), "--width", "4", "--info", "none", "--no-color", "-w", "2", "--log-file", str(log)]
    )
    assert code == 0
    assert started.is_set()
    assert "[SUCCESS] Prerendered 2 frames" in log.read_text(encoding="utf-8")

    out = capsys.readouterr().out
    assert out.startswith("\x1b[?1049h\x1b[?25l")
    tail = out.split("\x1b[?1049l", 1)[1]
    assert tail == "⬤⬤⬤⬤\n⬤⬤⬤⬤\n\x1b[?25h\x1b[0m"


def test_cancel_during_prerender_exits_130(tmp_path, monkeypatch, capsys):
    path = tmp_path / "anim.gif"
    Image.new("RGB", (4, 4)).save(path)

    def cancelled(*args, **kwargs):
        raise cli_main.PipelineCancelled("stop")

    monkeypatch.setattr(cli_main, "install_signal_handlers", lambda ev: None)
    monkeypatch.setattr(cli_main, "prerender_with_config", cancelled)
    assert cli_main.main([str(path), "--info", "none"]) == 130
    assert capsys.readouterr().out.endswith("\x1b[?1049l\x1b[?25h\x1b[0m")


def test_logger_writes_to_file(tmp_path):
    log = tmp_path / "logs" / "run.log"
    logger = SimpleLogger(log, verbose=False)
    logger.info("hello")
    logger.table(["Setting", "Value"], [["Width:", "40"]])
    text = log.read_text(encoding="utf-8")
    assert "[INFO] hello" in text
    assert "| Width: " in text
