from engagesdk.engage_cache import EngagementCache


def test_put_get_and_persist(tmp_path):
    path = tmp_path / "engage.json"
    cache = EngagementCache(path)
    assert cache.has("dp") is False
    assert cache.get("dp") is None

    cache.put("dp", '{"parameters":{"a":1}}')
    assert "dp" in cache
    assert len(cache) == 1

    reopened = EngagementCache(path)
    assert reopened.get("dp") == '{"parameters":{"a":1}}'


def test_put_overwrites_and_reset_clears(tmp_path):
    path = tmp_path / "engage.json"
    cache = EngagementCache(path)
    cache.put("dp", "{}")
    cache.put("dp", '{"x":2}')
    assert cache.get("dp") == '{"x":2}'

    assert EngagementCache(path, reset=True).has("dp") is False
    assert EngagementCache(path).has("dp") is False


def test_corrupt_file_is_ignored(tmp_path):
    path = tmp_path / "engage.json"
    path.write_text("{not json", encoding="utf-8")
    cache = EngagementCache(path)
    assert len(cache) == 0
    cache.put("dp", "{}")
    assert EngagementCache(path).get("dp") == "{}"
