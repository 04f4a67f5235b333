import json
import threading

import pytest

from linksaver.errors import StorageError
from linksaver.models import Link
from linksaver.storage import JsonFileRepository, is_permutation


def make_link(user_id, link_id, **kw):
    return Link(
        id=link_id,
        user_id=user_id,
        url=kw.get("url", "http://example.com"),
        title="example.com",
        favicon="http://example.com/favicon.ico",
        summary="s",
        tags=kw.get("tags", []),
    )


def test_missing_file_is_created_empty(tmp_path):
    path = tmp_path / "data" / "db.json"
    repo = JsonFileRepository(path)

    assert repo.list_links(1) == []
    assert json.loads(path.read_text()) == {"users": [], "links": []}


def test_document_uses_camel_case_keys(tmp_path):
    path = tmp_path / "db.json"
    repo = JsonFileRepository(path)
    repo.add_user("a@example.com", "hash")
    repo.add_link(make_link(1, 100))

    data = json.loads(path.read_text())

    assert data["users"] == [{"id": 1, "email": "a@example.com", "passwordHash": "hash"}]
    assert data["links"][0]["userId"] == 1
    assert data["links"][0]["order"] == 0


def test_reads_existing_document(tmp_path):
    path = tmp_path / "db.json"
    path.write_text(json.dumps({
        "users": [{"id": 1, "email": "a@example.com", "passwordHash": "h"}],
        "links": [
            {"id": 2, "userId": 1, "url": "u", "title": "t", "favicon": "f",
             "summary": "s", "tags": [], "order": 1},
            {"id": 1, "userId": 1, "url": "u", "title": "t", "favicon": "f",
             "summary": "s", "tags": [], "order": 0},
        ],
    }))
    repo = JsonFileRepository(path)

    assert repo.get_user_by_email("a@example.com").id == 1
    assert [link.id for link in repo.list_links(1)] == [1, 2]


def test_corrupt_document_raises_storage_error(tmp_path):
    path = tmp_path / "db.json"
    path.write_text("{not json")

    with pytest.raises(StorageError):
        JsonFileRepository(path).list_links(1)


def test_add_user_rejects_duplicate(tmp_path):
    repo = JsonFileRepository(tmp_path / "db.json")

    assert repo.add_user("a@example.com", "h").id == 1
    assert repo.add_user("a@example.com", "h") is None


def test_add_link_assigns_order_and_unique_id(tmp_path):
    repo = JsonFileRepository(tmp_path / "db.json")
    repo.add_link(make_link(2, 500))

    first = repo.add_link(make_link(1, 500))
    second = repo.add_link(make_link(1, 500))

    assert (first.id, first.order) == (501, 0)
    assert (second.id, second.order) == (502, 1)


def test_delete_link_checks_owner(tmp_path):
    repo = JsonFileRepository(tmp_path / "db.json")
    repo.add_link(make_link(1, 10))

    assert not repo.delete_link(2, 10)
    assert repo.delete_link(1, 10)
    assert not repo.delete_link(1, 10)


def test_set_link_order_leaves_store_untouched_on_rejection(tmp_path):
    path = tmp_path / "db.json"
    repo = JsonFileRepository(path)
    for link_id in (1, 2, 3):
        repo.add_link(make_link(1, link_id))
    before = path.read_text()

    assert not repo.set_link_order(1, [3, 2])
    assert path.read_text() == before


def test_no_temp_files_left_behind(tmp_path):
    repo = JsonFileRepository(tmp_path / "db.json")
    repo.add_user("a@example.com", "h")

    assert [p.name for p in tmp_path.iterdir()] == ["db.json"]


@pytest.mark.parametrize(
    "ordered,expected",
    [([1, 2, 3], True), ([3, 1, 2], True), ([1, 2], False), ([1, 1, 2], False), ([1, 2, 4], False)],
)
def test_is_permutation(ordered, expected):
    links = [make_link(1, i) for i in (1, 2, 3)]

    assert is_permutation(ordered, links) is expected


def test_concurrent_add_link_keeps_every_write(tmp_path):
    repo = JsonFileRepository(tmp_path / "db.json")
    start = threading.Barrier(20)

    def worker(n):
        start.wait()
        repo.add_link(make_link(1, 1000 + n))

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(20)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    links = repo.list_links(1)
    assert sorted(link.order for link in links) == list(range(20))
    assert len({link.id for link in links}) == 20
