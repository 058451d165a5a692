"""Tests for seed data generation."""

from __future__ import annotations

from airc.language import parse
from airc.language.blocks import DbField, OptionalType, ScalarType
from airc.transpiler.context import extract_context
from airc.transpiler.seed import generate_seed_file, sample_value


BLOG_SOURCE = """\
@app:blog
@db{
  Post{id:int:primary:auto,title:str:required,user_id:int}
  User{id:int:primary:auto,email:str:required}
}
"""


def test_seed_deletes_children_before_parents() -> None:
    """Wipe order should be the reverse of creation order."""
    seed = generate_seed_file(extract_context(parse(BLOG_SOURCE)))

    assert seed.index("await prisma.post.deleteMany();") < seed.index("await prisma.user.deleteMany();")
    assert seed.index("const user1 = await prisma.user.create(") < seed.index("const post1 = await prisma.post.create(")


def test_seed_children_reference_captured_parent_ids() -> None:
    """FK values should use the ids of the records created for the parent."""
    seed = generate_seed_file(extract_context(parse(BLOG_SOURCE)))

    assert "user_id: user1.id" in seed
    assert "user_id: user3.id" in seed
    assert "email: 'user2@example.com'" in seed
    assert "title: 'Post 1'" in seed


def test_seed_unrelated_models_use_create_many() -> None:
    """Models outside any relation should be seeded in one createMany call."""
    seed = generate_seed_file(extract_context(parse("@app:x\n@db{\n  Note{id:int:primary:auto,body:str}\n}")))

    assert "await prisma.note.createMany({" in seed
    assert "{ body: 'Sample body for note 1.' }," in seed


def test_sample_value_name_rules() -> None:
    """Field names should pick realistic sample values."""
    assert sample_value(DbField("email", ScalarType("str")), "User", 1) == "'user1@example.com'"
    assert sample_value(DbField("price", ScalarType("float")), "Item", 2) == "39.98"
    assert sample_value(DbField("rating", ScalarType("int")), "Review", 3) == "5"


def test_sample_value_type_fallbacks() -> None:
    """Unknown names should fall back to a value of the field type."""
    assert sample_value(DbField("count2", ScalarType("int")), "X", 2) == "20"
    assert sample_value(DbField("active", ScalarType("bool")), "X", 2) == "true"
    assert sample_value(DbField("label", ScalarType("str")), "X", 1) == "'Sample label 1'"


def test_sample_value_optional_first_record_is_null() -> None:
    """Optional fields should be null on the first record only."""
    field = DbField("nickname", OptionalType(ScalarType("str")))

    assert sample_value(field, "User", 1) == "null"
    assert sample_value(field, "User", 2) == "'Sample nickname 2'"
