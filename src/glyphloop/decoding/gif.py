"""
GIF container decoding for glyphloop.

Pillow identifies the file, reads the loop count and decodes each image's
LZW pixel data. Pillow's own frame iteration composites every frame onto the
previous one, so the per-frame records the compositor needs come from a light
block walk over the same bytes:
- Graphic control extensions (disposal code, transparency index, delay)
- Image descriptors (placement, local color table, interlace flag)

Frames are returned exactly as stored (sub-rectangles, not composited);
building the visible picture is the compositor's job.
"""

from __future__ import annotations

import io
from dataclasses import dataclass
from pathlib import Path

import numpy as np
from PIL import Image, UnidentifiedImageError

from ..core.types import Animation, DisposalMethod, RawFrame, Rect

TRAILER = 0x3B
EXTENSION_INTRODUCER = 0x21
IMAGE_SEPARATOR = 0x2C

LABEL_GRAPHIC_CONTROL = 0xF9


class GifDecodeError(Exception):
    """The input is not a decodable animated GIF."""


class _TruncatedError(GifDecodeError):
    pass


@dataclass(frozen=True)
class GraphicControl:
    """Parsed graphic control extension; applies to the next image only."""

    disposal_code: int
    delay_cs: int
    transparent_index: int | None


class _Reader:
    """Little-endian cursor over the file bytes."""

    def __init__(self, data: bytes) -> None:
        self._data = data
        self._buf = io.BytesIO(data)

    def u8(self) -> int:
        b = self._buf.read(1)
        if not b:
            raise _TruncatedError("unexpected end of file")
        return b[0]

    def u16(self) -> int:
        b = self.read(2)
        return b[0] | (b[1] << 8)

    def read(self, n: int) -> bytes:
        b = self._buf.read(n)
        if len(b) < n:
            raise _TruncatedError(f"unexpected end of file reading {n} bytes")
        return b

    def skip_sub_blocks(self) -> None:
        """Advance past data sub-blocks and their zero-length terminator."""
        while True:
            n = self.u8()
            if n == 0:
                return
            self.read(n)

    def raw_sub_blocks(self) -> bytes:
        """Return the sub-blocks still framed by their length bytes, terminator included."""
        start = self._buf.tell()
        self.skip_sub_blocks()
        return self._data[start : self._buf.tell()]


def _read_palette(reader: _Reader, size_exp: int) -> np.ndarray:
    """Read a color table into a 256x4 RGBA lookup, padded with opaque black."""
    size = 2 ** (size_exp + 1)
    rgb = np.frombuffer(reader.read(3 * size), dtype=np.uint8).reshape(size, 3)
    palette = np.zeros((256, 4), dtype=np.uint8)
    palette[:, 3] = 255
    palette[:size, :3] = rgb
    return palette


def _grey_palette() -> np.ndarray:
    # No color table at all: a grey ramp is the conventional fallback
    palette = np.zeros((256, 4), dtype=np.uint8)
    palette[:, :3] = np.arange(256, dtype=np.uint8)[:, None]
    palette[:, 3] = 255
    return palette


def _with_transparency(palette: np.ndarray, transparent_index: int | None) -> np.ndarray:
    if transparent_index is None:
        return palette
    out = palette.copy()
    out[transparent_index, 3] = 0
    return out


def _parse_graphic_control(reader: _Reader) -> GraphicControl:
    block_size = reader.u8()
    if block_size < 4:
        raise GifDecodeError(f"bad graphic control block size: {block_size}")
    block = reader.read(block_size)
    packed = block[0]
    delay_cs = block[1] | (block[2] << 8)
    transparent = block[3] if packed & 0x01 else None
    reader.skip_sub_blocks()  # terminator (and anything a sloppy encoder appended)
    return GraphicControl((packed >> 2) & 0x07, delay_cs, transparent)


def _decode_indices(data: bytes, width: int, height: int, min_code_size: int, interlaced: bool) -> np.ndarray:
    """Run Pillow's GIF codec over one image's sub-blocks; returns (h, w) indices."""
    if width == 0 or height == 0:
        return np.zeros((height, width), dtype=np.uint8)
    try:
        im = Image.frombytes("P", (width, height), data, "gif", min_code_size, int(interlaced))
    except (ValueError, OSError) as ex:
        raise GifDecodeError(f"bad image data: {ex}") from ex
    return np.asarray(im, dtype=np.uint8)


def _parse_image(
    reader: _Reader,
    global_palette: np.ndarray | None,
    gce: GraphicControl | None,
) -> RawFrame:
    left = reader.u16()
    top = reader.u16()
    width = reader.u16()
    height = reader.u16()
    packed = reader.u8()

    if packed & 0x80:
        palette = _read_palette(reader, packed & 0x07)
    elif global_palette is not None:
        palette = global_palette
    else:
        palette = _grey_palette()
    palette = _with_transparency(palette, gce.transparent_index if gce else None)

    min_code_size = reader.u8()
    data = reader.raw_sub_blocks()

    indices = _decode_indices(data, width, height, min_code_size, bool(packed & 0x40))
    # No graphic control extension reads as disposal code 0
    disposal = DisposalMethod.from_code(gce.disposal_code if gce else 0)
    return RawFrame(
        bounds=Rect(left, top, left + width, top + height),
        pixels=palette[indices],
        disposal=disposal,
        delay_ms=(gce.delay_cs * 10) if gce else 0,
    )


def read_loop_count(data: bytes) -> int | None:
    """Let Pillow identify the bytes as a GIF and report its loop count.

    Raises:
        GifDecodeError: If Pillow cannot open the data as a GIF.
    """
    try:
        with Image.open(io.BytesIO(data), formats=["GIF"]) as im:
            return im.info.get("loop")
    except (UnidentifiedImageError, EOFError, OSError) as ex:
        raise GifDecodeError(f"not a GIF image: {ex}") from ex


def decode_gif_bytes(data: bytes) -> Animation:
    """Decode GIF file contents into an `Animation`.

    Raises:
        GifDecodeError: Not a GIF, unknown block, bad image data, or no complete frame.
    """
    loop_count = read_loop_count(data)

    reader = _Reader(data)
    try:
        reader.read(6)  # signature, checked by Pillow
        screen_w = reader.u16()
        screen_h = reader.u16()
        packed = reader.u8()
        reader.u8()  # background color index; disposal clears to transparent instead
        reader.u8()  # pixel aspect ratio
        global_palette = _read_palette(reader, packed & 0x07) if packed & 0x80 else None
    except _TruncatedError as ex:
        raise GifDecodeError(f"truncated header: {ex}") from ex

    frames: list[RawFrame] = []
    gce: GraphicControl | None = None

    try:
        while True:
            introducer = reader.u8()
            if introducer == TRAILER:
                break
            if introducer == EXTENSION_INTRODUCER:
                if reader.u8() == LABEL_GRAPHIC_CONTROL:
                    gce = _parse_graphic_control(reader)
                else:
                    # application, comment, plain text: skip its sub-blocks
                    reader.skip_sub_blocks()
            elif introducer == IMAGE_SEPARATOR:
                frames.append(_parse_image(reader, global_palette, gce))
                gce = None
            else:
                raise GifDecodeError(f"unknown block introducer: 0x{introducer:02X}")
    except _TruncatedError:
        # Many encoders drop the trailer; keep what decoded cleanly.
        if not frames:
            raise GifDecodeError("file ends before the first image") from None

    if not frames:
        raise GifDecodeError("GIF contains no frames")

    if screen_w == 0 or screen_h == 0:
        # Broken screen descriptor; size the canvas to cover every frame
        screen_w = max(f.bounds.x1 for f in frames)
        screen_h = max(f.bounds.y1 for f in frames)

    return Animation(width=screen_w, height=screen_h, frames=frames, loop_count=loop_count)


def decode_gif(path: Path) -> Animation:
    """Read and decode a GIF file.

    Raises:
        FileNotFoundError: If the file does not exist.
        GifDecodeError: If the contents are not a decodable GIF.
    """
    return decode_gif_bytes(Path(path).read_bytes())
