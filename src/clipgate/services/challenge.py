"""Human-verification challenges.

A challenge is a short random text rendered into a noisy PNG. The client gets
the image and a digest of the answer salted with a server secret; verification
recomputes that digest, so no server-side session is needed. The flip side is
that a digest stays valid for as long as the client keeps it; pair this service
with :class:`clipgate.services.replay.ChallengeReplayGuard` for single-use
semantics.
"""

from __future__ import annotations

import base64
import hmac
import io
import logging
import math
import secrets
from dataclasses import dataclass
from typing import Final, Literal

from PIL import Image, ImageDraw, ImageFilter, ImageFont

from clipgate.core.errors import ChallengeUnconfiguredError
from clipgate.utils.hash import keyed_hexdigest

logger = logging.getLogger(__name__)

Theme = Literal["light", "dark"]

# No 0/O, 1/I/L, 2/Z, 5/S, 8/B: glyph pairs that are easy to confuse.
ALPHABET: Final[str] = "ACDEFGHJKMNPQRTUVWXY34679"
IMAGE_WIDTH: Final[int] = 300
IMAGE_HEIGHT: Final[int] = 100
FONT_SIZE: Final[int] = 44
DECOY_COUNT: Final[int] = 14


@dataclass(frozen=True)
class _Palette:
    background: tuple[int, int, int]
    glyph: tuple[int, int, int]
    decoy: tuple[int, int, int]
    trace: tuple[int, int, int]


_PALETTES: Final[dict[str, _Palette]] = {
    "light": _Palette((246, 246, 243), (34, 40, 49), (170, 170, 170), (60, 80, 160)),
    "dark": _Palette((28, 30, 36), (232, 232, 232), (96, 96, 104), (240, 170, 60)),
}


@dataclass(frozen=True)
class Challenge:
    """A freshly issued challenge.

    Attributes:
        solution_digest: ``KeyedHash(solution || secret)`` handed to the client as its token.
        image: PNG bytes showing the solution text.
    """

    solution_digest: str
    image: bytes

    @property
    def image_base64(self) -> str:
        """Return the PNG encoded as base64 without a data-URI prefix."""
        return base64.b64encode(self.image).decode("ascii")


class ChallengeService:
    """Issue and verify stateless text challenges."""

    def __init__(self, secret: str | None, *, length: int = 6) -> None:
        if not secret:
            logger.warning("Challenge secret is not set; challenge verification will always fail")
        self._secret = secret or None
        self._length = length

    @property
    def configured(self) -> bool:
        return self._secret is not None

    def issue(self, theme: Theme = "light") -> Challenge:
        """Generate a new challenge.

        Args:
            theme: Cosmetic palette; it never influences the solution text.

        Raises:
            ChallengeUnconfiguredError: If no server secret is configured.
        """
        if self._secret is None:
            raise ChallengeUnconfiguredError("Captcha is not configured.")
        solution = self._random_solution()
        image = render_challenge_image(solution, _PALETTES.get(theme, _PALETTES["light"]))
        return Challenge(solution_digest=keyed_hexdigest(solution, self._secret), image=image)

    def verify(self, claimed_text: str | None, solution_digest: str | None) -> bool:
        """Return True if ``claimed_text`` is the answer sealed in ``solution_digest``.

        Never raises: an unconfigured secret, an empty answer or a missing digest
        all yield False.
        """
        if self._secret is None or not claimed_text or not solution_digest:
            return False
        expected = keyed_hexdigest(claimed_text, self._secret)
        return hmac.compare_digest(expected.encode("utf-8"), solution_digest.encode("utf-8"))

    def _random_solution(self) -> str:
        return "".join(secrets.choice(ALPHABET) for _ in range(self._length))


def _load_font() -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
    try:
        return ImageFont.truetype("DejaVuSans-Bold.ttf", FONT_SIZE)
    except OSError:
        return ImageFont.load_default(size=FONT_SIZE)


def render_challenge_image(text: str, palette: _Palette) -> bytes:
    """Render ``text`` with decoys and a trace line into PNG bytes."""
    rng = secrets.SystemRandom()
    font = _load_font()
    image = Image.new("RGB", (IMAGE_WIDTH, IMAGE_HEIGHT), palette.background)
    draw = ImageDraw.Draw(image)

    # Decoy glyphs sit behind the answer.
    for _ in range(DECOY_COUNT):
        draw.text(
            (rng.randint(0, IMAGE_WIDTH - 20), rng.randint(0, IMAGE_HEIGHT - 20)),
            rng.choice(ALPHABET),
            fill=palette.decoy,
            font=font,
        )

    slot = IMAGE_WIDTH / (len(text) + 1)
    centres: list[tuple[float, float]] = []
    for index, char in enumerate(text):
        x = slot * (index + 0.5) + rng.uniform(-4, 4)
        y = IMAGE_HEIGHT / 2 - FONT_SIZE / 2 + rng.uniform(-10, 10)
        glyph = Image.new("RGBA", (FONT_SIZE + 16, FONT_SIZE + 16), (0, 0, 0, 0))
        ImageDraw.Draw(glyph).text((8, 4), char, fill=palette.glyph, font=font)
        glyph = glyph.rotate(rng.uniform(-25, 25), resample=Image.Resampling.BICUBIC)
        image.paste(glyph, (int(x), int(y)), glyph)
        centres.append((x + FONT_SIZE / 2, y + FONT_SIZE / 2))

    # Trace: a wavy line through the glyph centres.
    amplitude = rng.uniform(4, 10)
    phase = rng.uniform(0, math.pi)
    trace = [
        (cx, cy + amplitude * math.sin(phase + i))
        for i, (cx, cy) in enumerate(centres)
    ]
    if len(trace) > 1:
        draw.line(trace, fill=palette.trace, width=3)

    image = image.filter(ImageFilter.SMOOTH)
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()
