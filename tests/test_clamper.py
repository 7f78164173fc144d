import pytest

from app.schemas.desktop import DesktopLayout, Position, Rect
from app.services.clamper import PositionClamper
from app.services.geometry import icon_box, intersects


@pytest.fixture
def clamper():
    return PositionClamper(icon_size=80, drop_padding=0, max_attempts=10)


@pytest.fixture
def layout():
    """400x800 container with an 80px tab bar; trash and portal along the bottom"""
    return DesktopLayout(
        container_width=400,
        container_height=800,
        reserved_bottom=80,
        trash=Rect(x=300, y=620, width=80, height=80),
        portal=Rect(x=20, y=620, width=80, height=80),
    )


def sample_positions():
    return [
        Position(x=x, y=y)
        for x in range(-100, 501, 70)
        for y in range(-100, 901, 90)
    ]


class TestBounds:
    """Tests for clamping into the usable desktop rectangle"""

    def test_negative_position_clamped_to_origin(self, clamper, layout):
        assert clamper.clamp(Position(x=-50, y=-50), layout) == Position(x=0, y=0)

    def test_far_position_clamped_to_max(self, clamper):
        """Max is (width - icon, usable height - icon)"""
        open_layout = DesktopLayout(container_width=400, container_height=800, reserved_bottom=80)
        assert clamper.clamp(Position(x=1000, y=1000), open_layout) == Position(x=320, y=640)

    def test_reserved_bottom_reduces_usable_height(self, clamper):
        layout = DesktopLayout(container_width=400, container_height=800, reserved_bottom=200)
        assert clamper.clamp(Position(x=0, y=700), layout).y == 520

    def test_inside_position_untouched(self, clamper, layout):
        assert clamper.clamp(Position(x=150, y=200), layout) == Position(x=150, y=200)

    def test_unmeasured_layout_leaves_position(self, clamper):
        """Before layout there are no bounds to clamp against"""
        position = Position(x=-10, y=5000)
        assert clamper.clamp(position, DesktopLayout()) == position

    def test_container_smaller_than_icon(self, clamper):
        tiny = DesktopLayout(container_width=50, container_height=60)
        assert clamper.clamp(Position(x=30, y=30), tiny) == Position(x=0, y=0)


class TestForbiddenZones:
    """Tests for pushing icons out of trash and portal"""

    def test_pushed_below_zone(self, clamper):
        layout = DesktopLayout(
            container_width=400, container_height=800, reserved_bottom=80,
            trash=Rect(x=100, y=200, width=80, height=80),
        )
        assert clamper.clamp(Position(x=120, y=210), layout) == Position(x=120, y=281)

    def test_pushed_above_when_no_room_below(self, clamper):
        layout = DesktopLayout(
            container_width=400, container_height=800, reserved_bottom=80,
            trash=Rect(x=100, y=600, width=80, height=80),
        )
        assert clamper.clamp(Position(x=120, y=610), layout) == Position(x=120, y=519)

    def test_push_into_second_zone_is_rechecked(self, clamper):
        """Pushed out of trash straight into the portal, then out of the portal"""
        layout = DesktopLayout(
            container_width=400, container_height=800, reserved_bottom=80,
            trash=Rect(x=300, y=20, width=80, height=80),
            portal=Rect(x=300, y=110, width=80, height=80),
        )
        assert clamper.clamp(Position(x=300, y=30), layout) == Position(x=300, y=191)

    def test_attempt_budget_bounds_the_loop(self):
        """With a single attempt the second zone is not resolved"""
        clamper = PositionClamper(icon_size=80, max_attempts=1)
        layout = DesktopLayout(
            container_width=400, container_height=800, reserved_bottom=80,
            trash=Rect(x=300, y=20, width=80, height=80),
            portal=Rect(x=300, y=110, width=80, height=80),
        )
        assert clamper.clamp(Position(x=300, y=30), layout) == Position(x=300, y=101)

    def test_padding_grows_forbidden_zone(self):
        clamper = PositionClamper(icon_size=80, drop_padding=10)
        layout = DesktopLayout(
            container_width=400, container_height=800, reserved_bottom=80,
            trash=Rect(x=100, y=200, width=80, height=80),
        )
        assert clamper.clamp(Position(x=120, y=210), layout) == Position(x=120, y=291)

    def test_zero_rect_zone_ignored(self, clamper):
        """A zone not laid out yet does not push anything"""
        layout = DesktopLayout(
            container_width=400, container_height=800,
            trash=Rect(x=0, y=0, width=0, height=0),
        )
        assert clamper.clamp(Position(x=0, y=0), layout) == Position(x=0, y=0)

    def test_forbidden_zones_skip_back_zone(self, clamper):
        """Only trash and portal are forbidden"""
        layout = DesktopLayout(
            container_width=400, container_height=800,
            back=Rect(x=0, y=0, width=80, height=80),
        )
        assert clamper.forbidden_zones(layout) == []


class TestClampProperties:
    """Properties that hold for every position"""

    def test_idempotent(self, clamper, layout):
        for position in sample_positions():
            once = clamper.clamp(position, layout)
            assert clamper.clamp(once, layout) == once

    def test_bounds_invariant(self, clamper, layout):
        for position in sample_positions():
            result = clamper.clamp(position, layout)
            assert 0 <= result.x <= layout.container_width - 80
            assert 0 <= result.y <= layout.usable_height - 80

    def test_never_rests_in_forbidden_zone(self, clamper, layout):
        zones = clamper.forbidden_zones(layout)
        for position in sample_positions():
            box = icon_box(clamper.clamp(position, layout), 80)
            assert not any(intersects(box, zone) for zone in zones)
