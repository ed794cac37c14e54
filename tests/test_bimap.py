from hlpseudopeer.bimap import LruBiMap


def test_lookup_both_ways():
    bimap = LruBiMap(10)
    bimap.insert(b"hash-a", 1)
    bimap.insert(b"hash-b", 2)
    assert bimap.get_by_left(b"hash-a") == 1
    assert bimap.get_by_right(2) == b"hash-b"
    assert len(bimap) == 2


def test_missing_entries():
    bimap = LruBiMap(10)
    assert bimap.get_by_left("nope") is None
    assert bimap.get_by_right(42) is None


def test_eviction_removes_both_directions():
    bimap = LruBiMap(2)
    bimap.insert("a", 1)
    bimap.insert("b", 2)
    bimap.insert("c", 3)
    assert bimap.get_by_left("a") is None
    assert bimap.get_by_right(1) is None
    assert bimap.get_by_left("c") == 3
    assert len(bimap) == 2


def test_reinsert_refreshes_key():
    bimap = LruBiMap(2)
    bimap.insert("a", 1)
    bimap.insert("b", 2)
    bimap.insert("a", 1)
    bimap.insert("c", 3)
    assert bimap.get_by_left("a") == 1
    assert bimap.get_by_left("b") is None
    assert bimap.get_by_right(2) is None


def test_reinsert_with_new_value_updates_left():
    bimap = LruBiMap(4)
    bimap.insert("a", 1)
    bimap.insert("a", 5)
    assert bimap.get_by_left("a") == 5
    assert bimap.get_by_right(5) == "a"
    assert len(bimap) == 1


def test_size_never_exceeds_limit():
    bimap = LruBiMap(3)
    for number in range(20):
        bimap.insert(f"h{number}", number)
        assert len(bimap) <= 3
    assert bimap.get_by_right(19) == "h19"