"""
Tests for overlap arithmetic and landing resolution.
"""

import pytest

from precise_stacker.stacker_core.config_loader import load_config
from precise_stacker.stacker_core.blocks import (
    Block,
    horizontal_overlap,
    hue_to_rgb,
    make_base_block,
    next_hue,
    trim_to_overlap,
)
from precise_stacker.stacker_core.rules import GameRules, LandingResult


GRAY = (136, 136, 136)
RED = (200, 40, 40)


def block(x, width, y=0.0, color=RED):
    return Block(x=x, y=y, width=width, height=20, color=color)


@pytest.fixture
def config():
    return load_config()


@pytest.fixture
def rules(config):
    return GameRules(config)


class TestOverlap:
    """Test horizontal overlap arithmetic."""

    def test_full_overlap(self):
        """Identical spans overlap completely."""
        overlap = horizontal_overlap(block(40, 320), block(40, 320))
        assert overlap.start == 40
        assert overlap.end == 360
        assert overlap.width == 320
        assert not overlap.is_miss

    def test_partial_overlap_right(self):
        """Dropped 300..620 on 40..360 overlaps on [300, 360)."""
        overlap = horizontal_overlap(block(300, 320), block(40, 320))
        assert overlap.start == 300
        assert overlap.end == 360
        assert overlap.width == 60

    def test_partial_overlap_left(self):
        """Overlap is symmetric in which side hangs over."""
        overlap = horizontal_overlap(block(0, 100), block(40, 100))
        assert overlap.start == 40
        assert overlap.width == 60

    def test_disjoint_is_negative(self):
        """Dropped -50..-10 against 0..100 gives a negative width."""
        overlap = horizontal_overlap(block(-50, 40), block(0, 100))
        assert overlap.width == -10
        assert overlap.is_miss

    def test_touching_edges_is_miss(self):
        """Exactly zero overlap counts as a miss."""
        overlap = horizontal_overlap(block(100, 50), block(0, 100))
        assert overlap.width == 0
        assert overlap.is_miss

    @pytest.mark.parametrize("x,width,below_x,below_width", [
        (0, 320, 40, 320),
        (12.5, 80, 20, 60),
        (250, 30, 0, 400),
        (-5, 10, 0, 3),
    ])
    def test_width_formula(self, x, width, below_x, below_width):
        """Overlap width is min(end1, end2) - max(start1, start2)."""
        overlap = horizontal_overlap(block(x, width), block(below_x, below_width))
        expected = min(x + width, below_x + below_width) - max(x, below_x)
        assert overlap.width == pytest.approx(expected)


class TestTrim:
    """Test trimming a dropped block to the block beneath."""

    def test_trimmed_block_rests_on_top(self):
        """Placed block sits exactly one block height above the block below."""
        below = block(40, 320, y=580, color=GRAY)
        placed = trim_to_overlap(block(300, 320, y=560), below)

        assert placed is not None
        assert placed.x == 300
        assert placed.width == 60
        assert placed.y == 560
        assert placed.height == 20

    def test_trimmed_block_keeps_dropped_color(self):
        placed = trim_to_overlap(block(50, 100, color=RED), block(0, 100, color=GRAY))
        assert placed.color == RED

    def test_trim_never_grows(self):
        """The placed width never exceeds either input width."""
        for x in range(-100, 400, 17):
            dropped = block(x, 120)
            below = block(60, 200)
            placed = trim_to_overlap(dropped, below)
            if placed is not None:
                assert placed.width <= dropped.width
                assert placed.width <= below.width

    def test_miss_returns_none(self):
        assert trim_to_overlap(block(-50, 40), block(0, 100)) is None

    def test_landing_result(self, rules):
        """Landing results report the overlap and whether it missed."""
        hit = rules.land(block(20, 100), block(0, 100))
        assert isinstance(hit, LandingResult)
        assert not hit.missed
        assert hit.overlap.width == 80

        miss = rules.land(block(200, 100), block(0, 100))
        assert miss.missed
        assert miss.placed is None


class TestPalette:
    """Test the block color cycle."""

    def test_hue_wraps(self, config):
        palette = config.palette
        assert next_hue(350, palette) == (350 + palette.hue_increment) % 360

    def test_rgb_in_range(self, config):
        for hue in range(0, 360, 15):
            rgb = hue_to_rgb(hue, config.palette)
            assert len(rgb) == 3
            assert all(0 <= c <= 255 for c in rgb)

    def test_distinct_hues_give_distinct_colors(self, config):
        assert hue_to_rgb(195, config.palette) != hue_to_rgb(210, config.palette)

    def test_base_block_centered(self, config):
        """Base block is 80% of the canvas, centered, at the bottom."""
        base = make_base_block(config)
        assert base.width == pytest.approx(320)
        assert base.x == pytest.approx(40)
        assert base.y == config.canvas.height - config.blocks.height
        assert base.color == config.blocks.base_color
