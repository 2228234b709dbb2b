import numpy as np

from glyphloop.render.frame import FrameRenderer


def quadrant_canvas() -> np.ndarray:
    """4x4 canvas: red, green / blue, transparent quadrants."""
    c = np.zeros((4, 4, 4), dtype=np.uint8)
    c[:2, :2] = (255, 0, 0, 255)
    c[:2, 2:] = (0, 255, 0, 255)
    c[2:, :2] = (0, 0, 255, 255)
    return c


def test_nearest_neighbor_sampling():
    r = FrameRenderer(width=2, height=2)
    sampled = r.sample(quadrant_canvas())
    assert sampled.shape == (2, 2, 4)
    assert tuple(sampled[0, 0]) == (255, 0, 0, 255)
    assert tuple(sampled[0, 1]) == (0, 255, 0, 255)
    assert tuple(sampled[1, 0]) == (0, 0, 255, 255)
    assert tuple(sampled[1, 1]) == (0, 0, 0, 0)


def test_upscaling_truncates_source_coordinates():
    r = FrameRenderer(width=8, height=4)
    sampled = r.sample(quadrant_canvas())
    # x in 0..7 maps to int(x * 0.5)
    assert [tuple(p[:3]) for p in sampled[0, :4]] == [(255, 0, 0)] * 4
    assert [tuple(p[:3]) for p in sampled[0, 4:]] == [(0, 255, 0)] * 4


def test_monochrome_lines_without_overlay():
    r = FrameRenderer(width=2, height=2, multiplier=2.0, color=False)
    lines = r.render(quadrant_canvas())
    # green luminance 182 -> above 60 x 2.0, below 120 x 2.0
    assert lines == ["⬤⦾", "⬤\x1b[0m "]


def test_overlay_is_appended_after_separator():
    r = FrameRenderer(width=2, height=2, overlay=("OS: Linux", "CPU: 8"), multiplier=2.0, color=False)
    lines = r.render(quadrant_canvas())
    assert lines[0] == "⬤⦾   OS: Linux"
    assert lines[1] == "⬤\x1b[0m    CPU: 8"


def test_long_overlay_extends_with_blank_padded_rows():
    overlay = tuple(f"line {i}" for i in range(5))
    r = FrameRenderer(width=2, height=2, overlay=overlay, offset=1, color=False, separator=" | ")
    lines = r.render(quadrant_canvas())
    assert len(lines) == 6
    assert " | " not in lines[0]
    assert lines[1].endswith(" | line 0")
    assert lines[2] == "   | line 1"
    assert lines[5] == "   | line 4"


def test_short_overlay_keeps_image_height():
    r = FrameRenderer(width=4, height=3, overlay=("only",), color=False)
    lines = r.render(np.zeros((6, 6, 4), dtype=np.uint8))
    assert len(lines) == 3
    assert lines[0].endswith("   only")
    assert lines[1] == "\x1b[0m " * 4


def test_color_and_monochrome_differ_only_by_escape_wrapper():
    canvas = quadrant_canvas()
    mono = FrameRenderer(width=2, height=2, color=False).render(canvas)
    color = FrameRenderer(width=2, height=2, color=True).render(canvas)
    assert color[0] == "\x1b[38;2;255;0;0m" + mono[0][0] + "\x1b[0m" + "\x1b[38;2;0;255;0m" + mono[0][1] + "\x1b[0m"
    assert color[1].endswith("\x1b[0m ")


def test_renderer_is_callable():
    r = FrameRenderer(width=2, height=2, color=False)
    assert r(quadrant_canvas()) == r.render(quadrant_canvas())
