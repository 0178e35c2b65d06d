import asyncio
import copy
import os
import sys
from collections import Counter

import pytest

# Add project root to python path so we can import modules
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from utils.aggregator import PokedexAggregator  # noqa: E402
from utils.api_clients import PokeAPIClient, UpstreamError  # noqa: E402
from utils.cache import PokedexCache  # noqa: E402

BASE = "https://pokeapi.test/api/v2"


def pokemon_record(pokemon_id, name, types, species_id=None, **overrides):
    species_id = species_id or pokemon_id
    record = {
        "id": pokemon_id,
        "name": name,
        "height": 7,
        "weight": 69,
        "sprites": {
            "front_default": f"https://img.test/sprites/{pokemon_id}.png",
            "other": {
                "official-artwork": {
                    "front_default": f"https://img.test/artwork/{pokemon_id}.png"
                }
            },
        },
        "types": [
            {"slot": slot, "type": {"name": t, "url": f"{BASE}/type/{t}/"}}
            for slot, t in enumerate(types, start=1)
        ],
        "stats": [
            {"base_stat": 45, "effort": 0, "stat": {"name": "hp"}},
            {"base_stat": 49, "effort": 0, "stat": {"name": "attack"}},
            {"base_stat": 65, "effort": 1, "stat": {"name": "special-attack"}},
        ],
        "abilities": [
            {"ability": {"name": "overgrow"}, "is_hidden": False},
            {"ability": {"name": "leaf-guard"}, "is_hidden": True},
        ],
        "moves": [
            {"move": {"name": "vine-whip"}},
            {"move": {"name": "razor-leaf"}},
            {"move": {"name": "tackle"}},
        ],
        "species": {"name": name.split("-")[0], "url": f"{BASE}/pokemon-species/{species_id}/"},
    }
    record.update(overrides)
    return record


def species_record(species_id, name, chain_id, varieties=(), genus="Seed Pokémon"):
    return {
        "id": species_id,
        "name": name,
        "genera": [
            {"genus": "Pokémon Graine", "language": {"name": "fr"}},
            {"genus": genus, "language": {"name": "en"}},
        ],
        "evolution_chain": {"url": f"{BASE}/evolution-chain/{chain_id}/"},
        "varieties": [
            {"is_default": True, "pokemon": {"name": name, "url": f"{BASE}/pokemon/{species_id}/"}}
        ]
        + [
            {"is_default": False, "pokemon": {"name": v_name, "url": f"{BASE}/pokemon/{v_id}/"}}
            for v_name, v_id in varieties
        ],
        "gender_rate": 1,
        "egg_groups": [{"name": "monster"}, {"name": "plant"}],
        "hatch_counter": 20,
    }


def type_record(name, double_from=(), double_to=(), half_from=(), no_from=()):
    def refs(names):
        return [{"name": n, "url": f"{BASE}/type/{n}/"} for n in names]

    return {
        "name": name,
        "damage_relations": {
            "double_damage_from": refs(double_from),
            "double_damage_to": refs(double_to),
            "half_damage_from": refs(half_from),
            "half_damage_to": [],
            "no_damage_from": refs(no_from),
            "no_damage_to": [],
        },
    }


def chain_link(species_id, name, evolves_to=(), **detail):
    return {
        "species": {"name": name, "url": f"{BASE}/pokemon-species/{species_id}/"},
        "evolution_details": [detail] if detail else [],
        "evolves_to": list(evolves_to),
    }


def build_resources():
    """Canned upstream data keyed by absolute URL."""
    resources = {}

    def add(kind, record, *identifiers):
        for identifier in identifiers:
            resources[f"{BASE}/{kind}/{identifier}/"] = record

    # Pokemon
    add("pokemon", pokemon_record(1, "bulbasaur", ["grass", "poison"]), 1, "bulbasaur")
    add("pokemon", pokemon_record(2, "ivysaur", ["grass", "poison"]), 2, "ivysaur")
    add("pokemon", pokemon_record(3, "venusaur", ["grass", "poison"]), 3, "venusaur")
    add(
        "pokemon",
        pokemon_record(10033, "venusaur-mega", ["grass", "poison"], species_id=3),
        10033,
        "venusaur-mega",
    )
    add("pokemon", pokemon_record(52, "meowth", ["normal"]), 52, "meowth")
    add(
        "pokemon",
        pokemon_record(10107, "meowth-alola", ["dark"], species_id=52),
        10107,
        "meowth-alola",
    )
    add("pokemon", pokemon_record(132, "ditto", ["normal"]), 132, "ditto")
    # Persian (53), Galarian Meowth (10161) and Venusaur Gmax (10195) are
    # deliberately missing upstream.

    # Species
    add(
        "pokemon-species",
        species_record(1, "bulbasaur", 1),
        1,
        "bulbasaur",
    )
    add("pokemon-species", species_record(2, "ivysaur", 1), 2, "ivysaur")
    add(
        "pokemon-species",
        species_record(
            3, "venusaur", 1, varieties=[("venusaur-mega", 10033), ("venusaur-gmax", 10195)]
        ),
        3,
        "venusaur",
    )
    add(
        "pokemon-species",
        species_record(
            52,
            "meowth",
            22,
            varieties=[("meowth-alola", 10107), ("meowth-galar", 10161), ("meowth-gmax", 10199)],
            genus="Scratch Cat Pokémon",
        ),
        52,
        "meowth",
    )
    add(
        "pokemon-species",
        species_record(53, "persian", 22, genus="Classy Cat Pokémon"),
        53,
        "persian",
    )
    add(
        "pokemon-species",
        species_record(132, "ditto", 66, genus="Transform Pokémon"),
        132,
        "ditto",
    )

    # Types
    add(
        "type",
        type_record(
            "grass",
            double_from=["fire", "ice", "poison", "flying", "bug"],
            double_to=["water", "ground", "rock"],
            half_from=["ground", "water", "grass", "electric"],
        ),
        "grass",
    )
    add(
        "type",
        type_record(
            "poison",
            double_from=["ground", "psychic"],
            double_to=["grass", "fairy"],
            half_from=["fighting", "poison", "bug", "grass", "fairy"],
        ),
        "poison",
    )
    add("type", type_record("normal", double_from=["fighting"], no_from=["ghost"]), "normal")

    # Evolution chains
    add(
        "evolution-chain",
        {
            "id": 1,
            "chain": chain_link(
                1,
                "bulbasaur",
                [
                    chain_link(
                        2,
                        "ivysaur",
                        [
                            chain_link(
                                3,
                                "venusaur",
                                trigger={"name": "level-up"},
                                min_level=32,
                            )
                        ],
                        trigger={"name": "level-up"},
                        min_level=16,
                    )
                ],
            ),
        },
        1,
    )
    add(
        "evolution-chain",
        {
            "id": 22,
            "chain": chain_link(
                52,
                "meowth",
                [chain_link(53, "persian", trigger={"name": "level-up"}, min_level=28)],
            ),
        },
        22,
    )
    add("evolution-chain", {"id": 66, "chain": chain_link(132, "ditto")}, 66)

    # Generations (member order scrambled on purpose)
    add(
        "generation",
        {
            "id": 1,
            "name": "generation-i",
            "pokemon_species": [
                {"name": name, "url": f"{BASE}/pokemon-species/{species_id}/"}
                for name, species_id in [
                    ("ditto", 132),
                    ("venusaur", 3),
                    ("persian", 53),
                    ("bulbasaur", 1),
                    ("meowth", 52),
                    ("ivysaur", 2),
                ]
            ],
        },
        1,
    )

    # Species index
    resources[f"{BASE}/pokemon-species?limit=1500"] = {
        "count": 6,
        "results": [
            {"name": name, "url": f"{BASE}/pokemon-species/{species_id}/"}
            for name, species_id in [
                ("bulbasaur", 1),
                ("ivysaur", 2),
                ("venusaur", 3),
                ("meowth", 52),
                ("persian", 53),
                ("ditto", 132),
            ]
        ],
    }
    return resources


class FakePokeAPIClient(PokeAPIClient):
    """
    PokeAPIClient serving canned records instead of talking HTTP.

    URLs missing from `resources` answer 404; URLs in `failing` answer 500.
    Every request is counted per URL in `calls`.
    """

    def __init__(self, resources=None, latency=0.0):
        super().__init__(base_url=BASE)
        self.resources = build_resources() if resources is None else resources
        self.failing = set()
        self.latency = latency
        self.calls = Counter()

    async def _get_json(self, kind, identifier, url):
        self.request_count += 1
        self.calls[url] += 1
        await asyncio.sleep(self.latency)

        if url in self.failing:
            self.failure_count += 1
            raise UpstreamError(kind, identifier, status=500)
        if url not in self.resources:
            self.failure_count += 1
            raise UpstreamError(kind, identifier, status=404)
        return copy.deepcopy(self.resources[url])


@pytest.fixture
def fake_client():
    return FakePokeAPIClient()


@pytest.fixture
def cache():
    return PokedexCache()


@pytest.fixture
def aggregator(fake_client, cache):
    return PokedexAggregator(fake_client, cache)
