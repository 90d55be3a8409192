import json

from app.services.response_cache import ResponseCache


class FakeClock:
    def __init__(self, now=1_000_000.0):
        self.now = now

    def __call__(self):
        return self.now


def test_write_then_read(tmp_path):
    cache = ResponseCache(str(tmp_path), clock=FakeClock())
    cache.write("toggl", [{"id": 1}])
    entry = cache.read("toggl")
    assert entry.payload == [{"id": 1}]
    assert entry.fetched_at == 1_000_000.0
    assert cache.path_for("toggl").name == "toggl_cache.json"


def test_fresh_within_ttl_and_stale_after(tmp_path):
    clock = FakeClock()
    cache = ResponseCache(str(tmp_path), ttl_seconds=600, clock=clock)
    cache.write("toggl", [{"id": 1}])

    clock.now += 599
    assert cache.should_use_cache("toggl", is_custom_range=False, force_refresh=False)

    clock.now += 1
    assert not cache.should_use_cache("toggl", is_custom_range=False, force_refresh=False)


def test_custom_range_and_force_always_miss(tmp_path):
    cache = ResponseCache(str(tmp_path), clock=FakeClock())
    cache.write("tempo", [])
    assert not cache.should_use_cache("tempo", is_custom_range=True, force_refresh=False)
    assert not cache.should_use_cache("tempo", is_custom_range=False, force_refresh=True)
    assert cache.should_use_cache("tempo", is_custom_range=False, force_refresh=False)


def test_missing_file_is_a_miss(tmp_path):
    cache = ResponseCache(str(tmp_path / "nowhere"))
    assert cache.read("toggl") is None
    assert not cache.should_use_cache("toggl", False, False)


def test_corrupt_file_is_a_miss(tmp_path):
    cache = ResponseCache(str(tmp_path), clock=FakeClock())
    cache.path_for("toggl").write_text("{not json", encoding="utf-8")
    assert cache.read("toggl") is None

    cache.path_for("toggl").write_text(json.dumps({"payload": "nope"}), encoding="utf-8")
    assert cache.read("toggl") is None


def test_write_replaces_whole_document(tmp_path):
    clock = FakeClock()
    cache = ResponseCache(str(tmp_path), clock=clock)
    cache.write("toggl", [{"id": 1}, {"id": 2}])
    clock.now += 10
    cache.write("toggl", [{"id": 3}])

    entry = cache.read("toggl")
    assert entry.payload == [{"id": 3}]
    assert entry.fetched_at == clock.now
    assert [p.name for p in tmp_path.iterdir()] == ["toggl_cache.json"]


def test_separate_instances_share_one_snapshot(tmp_path):
    clock = FakeClock()
    first = ResponseCache(str(tmp_path), clock=clock)
    second = ResponseCache(str(tmp_path), clock=clock)

    first.write("tempo", [{"tempoWorklogId": 1}])
    clock.now += 5
    second.write("tempo", [{"tempoWorklogId": 2}])

    assert first.read("tempo").payload == [{"tempoWorklogId": 2}]
    assert first.read("tempo").fetched_at == clock.now
    assert sorted(p.name for p in tmp_path.iterdir()) == ["tempo_cache.json"]
