import pytest

from src.db.database import Base, create_db_engine, create_session_factory
from src.db.repositories import DataManager
from src.models import Channel, Member
from src.rotation.engine import RotationEngine
from src.rotation.errors import MemberNotFoundError, NoActiveMembersError


@pytest.fixture
def data_manager(tmp_path):
    engine = create_db_engine(f"sqlite:///{tmp_path / 'test.db'}")
    Base.metadata.create_all(engine)
    yield DataManager(create_session_factory(engine))
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def channel(data_manager):
    with data_manager.session() as stores:
        return stores.channels.create(Channel(external_id="C1", name="standup"))


def add_members(data_manager, channel, *user_ids):
    members = []
    with data_manager.session() as stores:
        for user_id in user_ids:
            members.append(
                stores.members.create(
                    Member(channel_id=channel.id, external_id=user_id, display_name=user_id)
                )
            )
    return members


def remove_member(data_manager, member):
    with data_manager.session() as stores:
        stores.members.delete(member.id)


def flagged(data_manager, channel):
    with data_manager.session() as stores:
        members = stores.members.list_active_by_channel(channel.id)
    return [m.external_id for m in members if m.is_last_presenter]


class TestNextPresenter:
    def test_no_members_raises(self, data_manager, channel):
        engine = RotationEngine(data_manager)
        with pytest.raises(NoActiveMembersError):
            engine.next_presenter(channel.id)

    def test_first_member_when_nobody_flagged(self, data_manager, channel):
        add_members(data_manager, channel, "A", "B", "C")
        engine = RotationEngine(data_manager)

        assert engine.next_presenter(channel.id).external_id == "A"

    def test_round_robin_wraps(self, data_manager, channel):
        members = add_members(data_manager, channel, "A", "B", "C")
        engine = RotationEngine(data_manager)

        seen = []
        for _ in range(len(members) * 2):
            member = engine.next_presenter(channel.id)
            seen.append(member.external_id)
            engine.record_presentation(channel.id, member.id)

        assert seen == ["A", "B", "C", "A", "B", "C"]

    def test_next_after_index_i_is_i_plus_one_mod_n(self, data_manager, channel):
        members = add_members(data_manager, channel, "A", "B", "C", "D")
        engine = RotationEngine(data_manager)

        for i, member in enumerate(members):
            engine.record_presentation(channel.id, member.id)
            expected = members[(i + 1) % len(members)]
            assert engine.next_presenter(channel.id).id == expected.id

    def test_single_member_always_next(self, data_manager, channel):
        (only,) = add_members(data_manager, channel, "A")
        engine = RotationEngine(data_manager)

        assert engine.next_presenter(channel.id).id == only.id
        engine.record_presentation(channel.id, only.id)
        assert engine.next_presenter(channel.id).id == only.id

    def test_inactive_members_are_skipped(self, data_manager, channel):
        a, b, c = add_members(data_manager, channel, "A", "B", "C")
        with data_manager.session() as stores:
            stored = stores.members.get_by_channel_and_external_id(channel.id, "B")
            stored.is_active = False

        engine = RotationEngine(data_manager)
        engine.record_presentation(channel.id, a.id)

        assert engine.next_presenter(channel.id).id == c.id

    def test_other_channels_do_not_interfere(self, data_manager, channel):
        add_members(data_manager, channel, "A", "B")
        with data_manager.session() as stores:
            other = stores.channels.create(Channel(external_id="C2", name="other"))
        (x,) = add_members(data_manager, other, "X")

        engine = RotationEngine(data_manager)
        engine.record_presentation(other.id, x.id)

        assert engine.next_presenter(channel.id).external_id == "A"
        assert flagged(data_manager, channel) == []


class TestRemovalScenario:
    def test_removing_unflagged_member_keeps_cursor(self, data_manager, channel):
        """[A, B, C], A presented, B removed: next is C."""
        a, b, c = add_members(data_manager, channel, "A", "B", "C")
        engine = RotationEngine(data_manager)

        assert engine.next_presenter(channel.id).id == a.id
        engine.record_presentation(channel.id, a.id)
        assert engine.next_presenter(channel.id).id == b.id

        remove_member(data_manager, b)

        assert engine.next_presenter(channel.id).id == c.id

    def test_removing_flagged_member_restarts_at_first(self, data_manager, channel):
        """[A, B, C], B presented, B removed: restart at A, not C."""
        a, b, c = add_members(data_manager, channel, "A", "B", "C")
        engine = RotationEngine(data_manager)
        engine.record_presentation(channel.id, b.id)

        remove_member(data_manager, b)

        assert engine.next_presenter(channel.id).id == a.id

    def test_removing_last_in_order_while_flagged(self, data_manager, channel):
        a, b, c = add_members(data_manager, channel, "A", "B", "C")
        engine = RotationEngine(data_manager)
        engine.record_presentation(channel.id, c.id)

        remove_member(data_manager, c)

        assert engine.next_presenter(channel.id).id == a.id


class TestRecordPresentation:
    def test_exactly_one_flag_after_record(self, data_manager, channel):
        a, b, c = add_members(data_manager, channel, "A", "B", "C")
        engine = RotationEngine(data_manager)

        engine.record_presentation(channel.id, a.id)
        assert flagged(data_manager, channel) == ["A"]

        engine.record_presentation(channel.id, c.id)
        assert flagged(data_manager, channel) == ["C"]

    def test_unknown_member_rolls_back(self, data_manager, channel):
        a, b = add_members(data_manager, channel, "A", "B")
        engine = RotationEngine(data_manager)
        engine.record_presentation(channel.id, a.id)

        with pytest.raises(Exception):
            engine.record_presentation(channel.id, 9999)

        # The clear step was rolled back with the failed set
        assert flagged(data_manager, channel) == ["A"]

    def test_member_of_other_channel_rejected(self, data_manager, channel):
        (x,) = add_members(data_manager, channel, "X")
        with data_manager.session() as stores:
            other = stores.channels.create(Channel(external_id="C2", name="other"))
        a, b = add_members(data_manager, other, "A", "B")
        engine = RotationEngine(data_manager)
        engine.record_presentation(channel.id, x.id)
        engine.record_presentation(other.id, a.id)

        with pytest.raises(MemberNotFoundError):
            engine.record_presentation(channel.id, b.id)

        assert flagged(data_manager, other) == ["A"]
        assert flagged(data_manager, channel) == ["X"]

    def test_current_presenter(self, data_manager, channel):
        a, b = add_members(data_manager, channel, "A", "B")
        engine = RotationEngine(data_manager)

        assert engine.current_presenter(channel.id) is None
        engine.record_presentation(channel.id, b.id)
        assert engine.current_presenter(channel.id).id == b.id
