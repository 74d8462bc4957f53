"""
LC-3 Virtual Emulator — Program Image Loader

Object image format (as written by the LC-3 assembler):

  offset 0   origin      big-endian word, load address of the first word
  offset 2   word 0      big-endian
  offset 4   word 1
  ...

Words are placed at consecutive addresses from the origin, wrapping past
xFFFF. A trailing odd byte is not a complete word and is ignored.
"""

import logging
import struct
from pathlib import Path
from typing import List, Tuple, Union

log = logging.getLogger('lc3.loader')


class ImageLoadError(Exception):
    """The program image could not be read or is malformed."""
    pass


def parse_image(data: bytes) -> Tuple[int, List[int]]:
    """Split raw image bytes into (origin, words)."""
    if len(data) < 2:
        raise ImageLoadError(
            f"image is {len(data)} byte(s); at least a 2-byte origin is required")

    (origin,) = struct.unpack_from('>H', data, 0)
    count = (len(data) - 2) // 2
    words = list(struct.unpack_from(f'>{count}H', data, 2))

    if (len(data) - 2) % 2:
        log.warning("Image has an odd trailing byte; ignored")
    return origin, words


def read_image_file(path: Union[str, Path]) -> Tuple[int, List[int]]:
    """Read and parse an image file. Raises ImageLoadError on any failure."""
    path = Path(path)
    try:
        data = path.read_bytes()
    except OSError as e:
        raise ImageLoadError(f"cannot read image {path}: {e}") from e

    origin, words = parse_image(data)
    log.info("Program has been read into memory, contains %d bytes, %d words",
             len(data) - 2, len(words))
    return origin, words


def load_image(memory, path_or_data) -> int:
    """Load a file path or raw image bytes into memory. Returns the origin."""
    if isinstance(path_or_data, (str, Path)):
        origin, words = read_image_file(path_or_data)
    else:
        origin, words = parse_image(bytes(path_or_data))
    memory.load_words(words, origin)
    log.debug("Loaded %d words at x%04X", len(words), origin)
    return origin
