import random
from datetime import datetime, timedelta

from mealpick.models import Recipe
from mealpick.services.recipe_store import RecipeStore, curated_overlap, inferred_hits


def test_curated_overlap_counts_exact_tags():
    assert curated_overlap(["Main Dish", "Easy"], ["Main Dish", "Easy", "Vegan"]) == 2
    assert curated_overlap(["main dish"], ["Main Dish"]) == 0
    assert curated_overlap(None, ["Main Dish"]) == 0


def test_inferred_hits_is_case_insensitive_substring():
    ai_tags = ["Weeknight Friendly", "crowd pleaser", "weeknight friendly"]
    assert inferred_hits(ai_tags, ["weeknight"]) == 2
    assert inferred_hits(ai_tags, ["CROWD", "weeknight"]) == 3
    assert inferred_hits(ai_tags, []) == 0
    assert inferred_hits(None, ["x"]) == 0


def test_find_by_tag_overlap_orders_by_count(db_session, make_recipe):
    make_recipe("One", tags=["Easy"])
    make_recipe("Two", tags=["Easy", "Main Dish"])
    make_recipe("None", tags=["Dessert"])

    matches = RecipeStore(db_session).find_by_tag_overlap(["Easy", "Main Dish"])

    assert [m.recipe.name for m in matches] == ["Two", "One"]
    assert [m.match_count for m in matches] == [2, 1]


def test_find_by_inferred_tag_like_ranks_curated_first(db_session, make_recipe):
    make_recipe("Inferred Only", tags=[], ai_tags=["fast", "fast", "fast"])
    make_recipe("Curated", tags=["Easy"], ai_tags=["fast"])

    ranked = RecipeStore(db_session).find_by_inferred_tag_like(["fast"], ["Easy"])

    assert [m.recipe.name for m in ranked] == ["Curated", "Inferred Only"]
    assert (ranked[1].match_count, ranked[1].inferred_count) == (0, 3)


def test_list_recipes_filters_by_tag(db_session, make_recipe):
    make_recipe("B Soup", tags=["Soup"])
    make_recipe("A Soup", tags=["Soup", "Easy"])
    make_recipe("Cake", tags=["Dessert"])

    store = RecipeStore(db_session)
    assert [r.name for r in store.list_recipes(tag="Soup")] == ["A Soup", "B Soup"]
    assert [r.name for r in store.list_recipes(limit=1, offset=1)] == ["B Soup"]


def test_get_random_empty_store(db_session):
    assert RecipeStore(db_session).get_random(random.Random(1)) is None


def test_append_inferred_tags_appends_in_order(db_session, make_recipe):
    recipe = make_recipe("Tacos", ai_tags=["crowd pleaser"])
    store = RecipeStore(db_session)

    assert store.append_inferred_tags(recipe.id, ["taco night", "crowd pleaser"])

    db_session.refresh(recipe)
    assert recipe.ai_tags == ["crowd pleaser", "taco night", "crowd pleaser"]


def test_append_to_missing_recipe_returns_false(db_session):
    assert RecipeStore(db_session).append_inferred_tags("nope", ["x"]) is False


def test_append_failure_is_reported_not_raised(db_session, make_recipe, monkeypatch):
    recipe = make_recipe("Tacos")
    store = RecipeStore(db_session)

    def boom(tags):
        raise RuntimeError("db went away")

    monkeypatch.setattr(store, "_append_expr", boom)
    assert store.append_inferred_tags(recipe.id, ["x"]) is False


def test_concurrent_appends_from_stale_sessions_all_land(session_factory, make_recipe):
    recipe = make_recipe("Curry", ai_tags=["base"])

    first, second = session_factory(), session_factory()
    # Sequential on purpose: the in-memory SQLite pool cannot interleave two
    # writers. Both sessions hold a copy loaded before either write, so a
    # read-modify-write append would drop the first batch.
    assert len(first.get(Recipe, recipe.id).ai_tags) == 1
    assert len(second.get(Recipe, recipe.id).ai_tags) == 1

    RecipeStore(first).append_inferred_tags(recipe.id, [f"a{i}" for i in range(6)])
    RecipeStore(second).append_inferred_tags(recipe.id, [f"b{i}" for i in range(6)])

    check = session_factory()
    final = check.get(Recipe, recipe.id).ai_tags
    assert len(final) == 13
    assert final[0] == "base"
    assert set(final[1:]) == {f"a{i}" for i in range(6)} | {f"b{i}" for i in range(6)}


def test_touch_metadata_never_moves_backwards(db_session, make_recipe):
    recipe = make_recipe("Curry")
    store = RecipeStore(db_session)
    later = datetime(2026, 3, 2, 12, 0, 0)
    earlier = later - timedelta(hours=1)

    store.touch_inferred_metadata(recipe.id, when=later)
    store.touch_inferred_metadata(recipe.id, when=earlier)

    db_session.refresh(recipe)
    assert recipe.ai_tags_updated_at.replace(tzinfo=None) == later


def test_replace_tags_leaves_ai_tags_alone(db_session, make_recipe):
    recipe = make_recipe("Curry", tags=["Dinner"], ai_tags=["cozy", "spicy kick"])

    assert RecipeStore(db_session).replace_tags(recipe.id, ["Main Dish", "Indian"])

    db_session.refresh(recipe)
    assert recipe.tags == ["Main Dish", "Indian"]
    assert recipe.ai_tags == ["cozy", "spicy kick"]


def test_ai_tag_metadata(db_session, make_recipe):
    recipe = make_recipe("Curry", ai_tags=["a", "a", "b"])
    assert recipe.ai_tag_metadata == {"last_updated": None, "count": 3}
