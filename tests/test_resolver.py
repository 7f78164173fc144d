import pytest

from app.schemas.desktop import DesktopLayout, FileItem, FolderItem, Position, Rect
from app.schemas.outcomes import Reparent, Reposition, RequestDelete, RequestRename
from app.services.clamper import PositionClamper
from app.services.geometry import icon_box, intersects
from app.services.resolver import DropResolver


@pytest.fixture
def resolver():
    return DropResolver(PositionClamper(icon_size=80, drop_padding=0), snap_margin=20)


@pytest.fixture
def layout():
    """Portal, back arrow and trash along the bottom of a 400x800 desktop"""
    return DesktopLayout(
        container_width=400,
        container_height=800,
        reserved_bottom=80,
        portal=Rect(x=20, y=620, width=80, height=80),
        back=Rect(x=160, y=620, width=80, height=80),
        trash=Rect(x=300, y=620, width=80, height=80),
    )


@pytest.fixture
def clip():
    return FileItem(id="clip1", caption="clip1", position=Position(x=200, y=300))


@pytest.fixture
def music():
    return FolderItem(id="music", name="Music", position=Position(x=20, y=20))


class TestZonePriority:
    """Tests for trash > portal > back > folder > reposition"""

    def test_trash_wins_over_folder(self, resolver, clip):
        """Box (100,100,80,80) over trash (90,90,100,100) and a folder at (95,95)"""
        layout = DesktopLayout(
            container_width=400, container_height=800,
            trash=Rect(x=90, y=90, width=100, height=100),
        )
        folder = FolderItem(id="f", name="F", position=Position(x=95, y=95))

        outcome = resolver.resolve(clip, Position(x=100, y=100), layout, [folder])

        assert isinstance(outcome, RequestDelete)
        assert outcome.item_id == "clip1"

    def test_trash_wins_over_portal(self, resolver, clip):
        """A box touching both zones is a delete request"""
        layout = DesktopLayout(
            container_width=400, container_height=800,
            portal=Rect(x=100, y=300, width=80, height=80),
            trash=Rect(x=200, y=300, width=80, height=80),
        )
        outcome = resolver.resolve(clip, Position(x=150, y=300), layout, [])
        assert isinstance(outcome, RequestDelete)

    def test_portal_hit_requests_rename(self, resolver, layout, clip):
        """Item left of the portal is snapped above it"""
        outcome = resolver.resolve(clip, Position(x=0, y=610), layout, [])

        assert isinstance(outcome, RequestRename)
        assert outcome.snap_position == Position(x=0, y=520)

    def test_portal_snap_lands_outside_portal(self, resolver, layout, clip):
        """Item right of the portal is snapped left of it, then clamped out"""
        outcome = resolver.resolve(clip, Position(x=60, y=630), layout, [])

        assert isinstance(outcome, RequestRename)
        box = icon_box(outcome.snap_position, 80)
        assert not intersects(box, layout.portal)
        assert outcome.snap_position.x >= 0

    def test_back_zone_reparents_to_parent(self, resolver, layout, clip):
        outcome = resolver.resolve(
            clip, Position(x=170, y=620), layout, [],
            parent_folder_id="outer", at_root=False,
        )

        assert isinstance(outcome, Reparent)
        assert outcome.target_folder_id == "outer"
        assert outcome.via_back

    def test_back_zone_ignored_at_root(self, resolver, layout, clip):
        """No back arrow on the desktop root"""
        outcome = resolver.resolve(clip, Position(x=170, y=620), layout, [], at_root=True)
        assert isinstance(outcome, Reposition)

    def test_back_zone_beats_folder(self, resolver, layout, clip):
        folder = FolderItem(id="f", name="F", position=Position(x=170, y=620))
        outcome = resolver.resolve(
            clip, Position(x=170, y=620), layout, [folder],
            parent_folder_id=None, at_root=False,
        )
        assert isinstance(outcome, Reparent)
        assert outcome.target_folder_id is None
        assert outcome.via_back

    def test_unmeasured_zone_skipped(self, resolver, clip):
        """A zero rect zone is treated as absent"""
        layout = DesktopLayout(
            container_width=400, container_height=800,
            trash=Rect(x=0, y=0, width=0, height=0),
        )
        outcome = resolver.resolve(clip, Position(x=0, y=0), layout, [])
        assert isinstance(outcome, Reposition)

    def test_drop_padding_widens_drag_box(self, layout, clip):
        plain = DropResolver(PositionClamper(icon_size=80, drop_padding=0))
        padded = DropResolver(PositionClamper(icon_size=80, drop_padding=10))
        drop = Position(x=215, y=500)
        layout = layout.model_copy(update={"trash": Rect(x=300, y=500, width=80, height=80)})

        assert not isinstance(plain.resolve(clip, drop, layout, []), RequestDelete)
        assert isinstance(padded.resolve(clip, drop, layout, []), RequestDelete)


class TestFolderDrop:
    """Tests for overlap based folder drops"""

    def test_music_scenario(self, resolver, layout, clip, music):
        """Overlap 60x60 over a 80x80 box is 0.5625, above the file threshold"""
        assert resolver.overlap_ratio(Position(x=40, y=40), music) == pytest.approx(0.5625)

        outcome = resolver.resolve(clip, Position(x=40, y=40), layout, [music])

        assert isinstance(outcome, Reparent)
        assert outcome.target_folder_id == "music"
        assert not outcome.via_back

    def test_file_moves_at_35_percent(self, resolver, layout, clip, music):
        drop = Position(x=72, y=20)
        assert resolver.overlap_ratio(drop, music) == pytest.approx(0.35)

        outcome = resolver.resolve(clip, drop, layout, [music])
        assert isinstance(outcome, Reparent)

    def test_folder_stays_at_35_percent(self, resolver, layout, music):
        """Folders need 0.7 overlap before nesting"""
        dragged = FolderItem(id="demos", name="Demos", position=Position(x=200, y=300))

        outcome = resolver.resolve(dragged, Position(x=72, y=20), layout, [music])

        assert isinstance(outcome, Reposition)
        assert outcome.position == Position(x=72, y=20)

    def test_folder_nests_with_high_overlap(self, resolver, layout, music):
        dragged = FolderItem(id="demos", name="Demos", position=Position(x=200, y=300))
        outcome = resolver.resolve(dragged, Position(x=25, y=25), layout, [music])
        assert isinstance(outcome, Reparent)
        assert outcome.target_folder_id == "music"

    def test_threshold_is_exclusive(self, layout, clip, music):
        """Exactly hitting the threshold does not move the item"""
        resolver = DropResolver(PositionClamper(icon_size=80), file_threshold=0.5)
        # 40x80 overlap over 80x80 is exactly 0.5
        outcome = resolver.resolve(clip, Position(x=60, y=20), layout, [music])
        assert isinstance(outcome, Reposition)

    def test_folder_never_absorbs_itself(self, resolver, layout, music):
        outcome = resolver.resolve(music, Position(x=20, y=20), layout, [music])
        assert isinstance(outcome, Reposition)

    def test_descendant_folder_skipped(self, resolver, layout, music):
        """A folder cannot be dropped into a folder inside it"""
        inner = FolderItem(id="inner", name="Inner", parent_folder_id="music", position=Position(x=20, y=20))

        outcome = resolver.resolve(
            music, Position(x=20, y=20), layout, [inner],
            is_descendant=lambda candidate, ancestor: (candidate, ancestor) == ("inner", "music"),
        )

        assert isinstance(outcome, Reposition)

    def test_first_folder_in_order_wins(self, resolver, layout, clip):
        first = FolderItem(id="first", name="First", position=Position(x=20, y=20))
        second = FolderItem(id="second", name="Second", position=Position(x=40, y=20))

        outcome = resolver.resolve(clip, Position(x=30, y=20), layout, [first, second])

        assert outcome.target_folder_id == "first"

    def test_no_overlap_repositions(self, resolver, layout, clip, music):
        outcome = resolver.resolve(clip, Position(x=250, y=250), layout, [music])
        assert isinstance(outcome, Reposition)
        assert outcome.position == Position(x=250, y=250)


class TestReposition:
    """Tests for the default branch"""

    def test_position_is_clamped(self, resolver, layout, clip):
        outcome = resolver.resolve(clip, Position(x=150, y=-30), layout, [])
        assert outcome.position == Position(x=150, y=0)

    def test_resolver_does_not_mutate_item(self, resolver, layout, clip):
        resolver.resolve(clip, Position(x=10, y=10), layout, [])
        assert clip.position == Position(x=200, y=300)
