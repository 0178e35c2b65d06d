from utils.cache import PokedexCache


class TestPokedexCache:
    def test_entity_reachable_under_every_key(self):
        cache = PokedexCache()
        view = {"id": 25, "name": "Pikachu"}

        cache.set_entity(view, ["pikachu", "25", ""])

        assert cache.get_entity("pikachu") is view
        assert cache.get_entity("25") is view
        assert cache.get_stats()["entities"] == 2

    def test_hits_and_misses(self):
        cache = PokedexCache()

        assert cache.get_entity("pikachu") is None
        cache.set_entity({"id": 25}, ["pikachu"])
        cache.get_entity("pikachu")

        stats = cache.get_stats()
        assert stats["hits"] == 1
        assert stats["misses"] == 1
        assert stats["hit_rate"] == "50.0%"

    def test_peek_does_not_count(self):
        cache = PokedexCache()

        cache.peek_entity("pikachu")

        assert cache.get_stats()["misses"] == 0

    def test_tables_are_independent(self):
        cache = PokedexCache()
        cache.set_generation(1, [{"id": 1}])
        cache.set_type_relations("grass", {"weaknesses": frozenset({"fire"})})

        assert cache.get_generation(2) is None
        assert cache.get_type_relations("fire") is None
        assert cache.get_type_relations("grass")["weaknesses"] == {"fire"}

    def test_master_list_starts_unbuilt(self):
        cache = PokedexCache()
        assert cache.master_list is None
        assert cache.get_stats()["master_list"] == 0

        cache.set_master_list([{"name": "bulbasaur", "id": 1}])

        assert cache.master_list == [{"name": "bulbasaur", "id": 1}]

    def test_empty_stats(self):
        stats = PokedexCache().get_stats()

        assert stats["hit_rate"] == "0.0%"
