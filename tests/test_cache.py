import json

from fakeredis import FakeRedis


class TestCounters:
    async def test_incr_sets_expiry(self, store, redis_client):
        assert await store.incr("counter", 60) == 1
        assert await store.incr("counter", 60) == 2
        assert 0 < await redis_client.ttl("counter") <= 60

    async def test_decr_and_read(self, store):
        await store.incr("counter", 60)
        await store.incr("counter", 60)
        await store.decr("counter")
        assert await store.get_int("counter") == 1

    async def test_missing_or_garbage_counter_reads_zero(self, store):
        assert await store.get_int("missing") == 0
        await store.set("garbage", "abc")
        assert await store.get_int("garbage") == 0


class TestUpdateListItem:
    async def test_skips_undecodable_elements_without_shifting(self, store, redis_client):
        await redis_client.rpush("items", "not json", json.dumps({"id": "a"}), json.dumps({"id": "b"}))

        def mark_b(item):
            return {**item, "seen": True} if item["id"] == "b" else None

        stored = await store.update_list_item("items", mark_b)

        assert stored == {"id": "b", "seen": True}
        raw = await redis_client.lrange("items", 0, -1)
        assert raw[0] == "not json"
        assert json.loads(raw[1]) == {"id": "a"}
        assert json.loads(raw[2]) == {"id": "b", "seen": True}

    async def test_no_match_leaves_list_untouched(self, store, redis_client):
        await redis_client.rpush("items", json.dumps({"id": "a"}))
        assert await store.update_list_item("items", lambda item: None) is None
        assert await redis_client.lrange("items", 0, -1) == [json.dumps({"id": "a"})]

    async def test_concurrent_push_retries_against_new_positions(self, store, redis_client, redis_server):
        await redis_client.rpush("items", json.dumps({"id": "a"}))
        other_writer = FakeRedis(server=redis_server, decode_responses=True)
        calls = []

        def mark(item):
            calls.append(item["id"])
            if len(calls) == 1:
                # Another request prepends while this read-modify-write is in flight
                other_writer.lpush("items", json.dumps({"id": "new"}))
            return {**item, "seen": True} if item["id"] == "a" else None

        await store.update_list_item("items", mark)

        items = [json.loads(raw) for raw in await redis_client.lrange("items", 0, -1)]
        assert items == [{"id": "new"}, {"id": "a", "seen": True}]
        assert calls == ["a", "new", "a"]
