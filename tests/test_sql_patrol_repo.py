import pytest
from zastepy.adapters.sql.patrol_repo import SqlPatrolRepository
from zastepy.adapters.system.password_auth import PasswordAuthGate
from zastepy.domain.errors import MemberNotFoundError, PatrolAlreadyExistsError, PatrolNotFoundError
from zastepy.domain.patrol import Member, MemberId, PatrolId, PatrolRecord
from zastepy.services.patrol_service import PatrolService


WILKI = PatrolId("wilki")


class RecordingNotifier:
    def __init__(self):
        self.tables = []
    def subscribe(self, callback):
        return lambda: None
    def publish(self, table):
        self.tables.append(table)


@pytest.fixture
def tmp_repo(tmp_path):
    """Repozytorium na świeżej tymczasowej bazie, z jednym zastępem."""
    repo = SqlPatrolRepository(tmp_path / "zastepy.db")
    repo.add_patrol(PatrolRecord(WILKI, "Wilki", "#ff6b6b"), "auuu")
    return repo


def make_member(member_id: str, name: str = "Ala", stopien: int = 0, funkcja: int = 0) -> Member:
    return Member(MemberId(member_id), name, stopien, funkcja)


def test_add_and_get_patrol(tmp_repo):
    record = tmp_repo.get_patrol(WILKI)

    assert record == PatrolRecord(WILKI, "Wilki", "#ff6b6b")
    assert tmp_repo.get_patrol(PatrolId("nope")) is None
    assert tmp_repo.get_password(WILKI) == "auuu"
    assert tmp_repo.get_password(PatrolId("nope")) is None


def test_add_duplicate_patrol_raises(tmp_repo):
    with pytest.raises(PatrolAlreadyExistsError):
        tmp_repo.add_patrol(PatrolRecord(WILKI, "Wilki 2", "#000000"), "x")


def test_list_patrols_keeps_insertion_order(tmp_repo):
    tmp_repo.add_patrol(PatrolRecord(PatrolId("flamingi"), "Flamingi", "#ff9ff3"), "rozowe")

    assert [p.patrol_id for p in tmp_repo.list_patrols()] == ["wilki", "flamingi"]


def test_upsert_task_inserts_then_updates(tmp_repo):
    tmp_repo.upsert_task(WILKI, "l1-t1", 1)
    tmp_repo.upsert_task(WILKI, "l1-t1", 3)
    tmp_repo.upsert_task(WILKI, "l2-t3", 1)

    assert tmp_repo.task_counters(WILKI) == {"l1-t1": 3, "l2-t3": 1}


def test_upsert_task_for_missing_patrol_raises(tmp_repo):
    with pytest.raises(PatrolNotFoundError):
        tmp_repo.upsert_task(PatrolId("nope"), "l1-t1", 1)


def test_member_lifecycle(tmp_repo):
    tmp_repo.add_member(WILKI, make_member("m-1", "Ala"))
    tmp_repo.add_member(WILKI, make_member("m-2", "Bartek"))

    tmp_repo.update_member_tallies(WILKI, MemberId("m-1"), 4, 2)
    tmp_repo.remove_member(WILKI, MemberId("m-2"))

    assert tmp_repo.list_members(WILKI) == [make_member("m-1", "Ala", 4, 2)]


def test_member_operations_on_missing_member_raise(tmp_repo):
    with pytest.raises(MemberNotFoundError):
        tmp_repo.remove_member(WILKI, MemberId("nope"))
    with pytest.raises(MemberNotFoundError):
        tmp_repo.update_member_tallies(WILKI, MemberId("nope"), 1, 1)
    with pytest.raises(PatrolNotFoundError):
        tmp_repo.add_member(PatrolId("nope"), make_member("m-9"))


def test_member_of_other_patrol_is_not_touched(tmp_repo):
    tmp_repo.add_patrol(PatrolRecord(PatrolId("flamingi"), "Flamingi", "#ff9ff3"), "rozowe")
    tmp_repo.add_member(PatrolId("flamingi"), make_member("f-1", "Ola"))

    with pytest.raises(MemberNotFoundError):
        tmp_repo.remove_member(WILKI, MemberId("f-1"))
    assert len(tmp_repo.list_members(PatrolId("flamingi"))) == 1


def test_writes_publish_change_notifications(tmp_path):
    notifier = RecordingNotifier()
    repo = SqlPatrolRepository(tmp_path / "zastepy.db", notifier=notifier)
    repo.add_patrol(PatrolRecord(WILKI, "Wilki", "#ff6b6b"), "auuu")

    repo.upsert_task(WILKI, "l1-t1", 2)
    repo.add_member(WILKI, make_member("m-1"))
    repo.update_member_tallies(WILKI, MemberId("m-1"), 1, 1)
    repo.remove_member(WILKI, MemberId("m-1"))

    assert notifier.tables == ["tasks", "members", "members", "members"]


def test_data_survives_new_repository_instance(tmp_path):
    path = tmp_path / "nested" / "zastepy.db"
    repo = SqlPatrolRepository(path)
    repo.add_patrol(PatrolRecord(WILKI, "Wilki", "#ff6b6b"), "auuu")
    repo.upsert_task(WILKI, "l1-t1", 4)

    reopened = SqlPatrolRepository(str(path))

    assert reopened.task_counters(WILKI) == {"l1-t1": 4}


def test_service_on_sql_repository(tmp_repo):
    service = PatrolService(tmp_repo, PasswordAuthGate(tmp_repo), _Ids())
    assert service.sign_in(WILKI, "auuu")

    member_id = service.add_member(WILKI, "Ala").members[-1].member_id
    service.update_member_tasks(WILKI, member_id, 15, 5)
    service.update_task(WILKI, 0, "l1-t1", 4)

    reloaded = PatrolService(tmp_repo, PasswordAuthGate(tmp_repo), _Ids()).get_patrol(WILKI)
    assert reloaded.levels[0].tasks[0].current == 4
    assert reloaded.levels[0].tasks[1].current == 20
    assert reloaded.levels[0].tasks[1].completed
    assert not reloaded.levels[0].is_completed


class _Ids:
    def new_id(self) -> str:
        return "m-1"
