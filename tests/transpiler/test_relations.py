"""Tests for relation resolution and seed ordering."""

from __future__ import annotations

from airc.language import parse
from airc.language.blocks import DbBlock
from airc.transpiler.relations import RelationGraph, ResolvedRelation, relation_name, resolve_relations, seed_order


def db_block(body: str) -> DbBlock:
    block = parse(f"@app:x\n@db{{\n{body}\n}}").blocks[0]
    assert isinstance(block, DbBlock)
    return block


def test_resolve_relations_implicit_fk_fields() -> None:
    """*_id, *Id and #Model fields should produce child-to-parent edges."""
    db = db_block(
        "  User{id:int:primary:auto,email:str}\n"
        "  Post{id:int:primary:auto,user_id:int,title:str}\n"
        "  Comment{id:int:primary:auto,postId:int,author:?#User}"
    )

    graph = resolve_relations(db)

    assert [edge.describe() for edge in graph.edges] == [
        "Post.user_id -> User",
        "Comment.postId -> Post",
        "Comment.author -> User",
    ]
    assert graph.edges[2].optional is True
    assert graph.edges[0].optional is False


def test_resolve_relations_declared_relation_wins() -> None:
    """Declared relations should set direction and referential action."""
    db = db_block(
        "  User{id:int:primary:auto}\n"
        "  Post{id:int:primary:auto,owner:int}\n"
        "  @relation(Post.owner<>User.id:set-null)"
    )

    graph = resolve_relations(db)

    (edge,) = graph.edges
    assert (edge.child_model, edge.fk_field, edge.parent_model) == ("Post", "owner", "User")
    assert edge.on_delete == "setNull"
    assert edge.optional is True


def test_resolve_relations_many_to_many() -> None:
    """Two list fields joined by a relation should be many-to-many."""
    db = db_block(
        "  Post{id:int:primary:auto,tags:[#Tag]}\n"
        "  Tag{id:int:primary:auto,posts:[#Post]}\n"
        "  @relation(Post.tags<>Tag.posts)"
    )

    graph = resolve_relations(db)

    assert len(graph.many_to_many) == 1
    assert graph.many_to_many[0].model_a == "Post"
    assert graph.related_models() == frozenset({"Post", "Tag"})


def test_resolve_relations_without_db() -> None:
    """No @db block should give an empty graph."""
    assert resolve_relations(None) == RelationGraph()


def test_seed_order_parents_first() -> None:
    """Parents should be created before children and deleted after them."""
    graph = RelationGraph(
        (
            ResolvedRelation("Comment", "post_id", "Post", False),
            ResolvedRelation("Post", "user_id", "User", False),
        )
    )

    order = seed_order(["Comment", "Post", "User"], graph)

    assert order.creation == ("User", "Post", "Comment")
    assert order.deletion == ("Comment", "Post", "User")
    assert order.broken == ()
    assert order.unresolved == ()


def test_seed_order_independent_models_are_lexical() -> None:
    """Models without edges should be ordered by name."""
    order = seed_order(["Zebra", "Apple", "Mango"], RelationGraph())

    assert order.creation == ("Apple", "Mango", "Zebra")


def test_seed_order_breaks_optional_edge() -> None:
    """A cycle with an optional edge should drop that edge."""
    optional = ResolvedRelation("B", "a_id", "A", True)
    graph = RelationGraph((ResolvedRelation("A", "b_id", "B", False), optional))

    order = seed_order(["A", "B"], graph)

    assert order.creation == ("B", "A")
    assert order.broken == (optional,)
    assert order.unresolved == ()


def test_seed_order_breaks_lexically_first_optional_edge() -> None:
    """With several optional edges the lexically first one should go."""
    first = ResolvedRelation("A", "b_id", "B", True)
    graph = RelationGraph((ResolvedRelation("B", "a_id", "A", True), first))

    order = seed_order(["B", "A"], graph)

    assert order.broken == (first,)
    assert order.creation == ("A", "B")


def test_seed_order_unbreakable_cycle() -> None:
    """A cycle of required edges should be appended and reported."""
    graph = RelationGraph(
        (
            ResolvedRelation("Author", "book_id", "Book", False),
            ResolvedRelation("Book", "author_id", "Author", False),
        )
    )

    order = seed_order(["Publisher", "Book", "Author"], graph)

    assert order.creation == ("Publisher", "Author", "Book")
    assert order.unresolved == ("Author", "Book")


def test_seed_order_ignores_self_reference() -> None:
    """Self-referencing models should not block themselves."""
    graph = RelationGraph((ResolvedRelation("Category", "parent_id", "Category", True),))

    assert seed_order(["Category"], graph).creation == ("Category",)


def test_relation_name() -> None:
    """FK fields should name their relation field after the parent."""
    assert relation_name(ResolvedRelation("Post", "user_id", "User", False)) == "user"
    assert relation_name(ResolvedRelation("Post", "authorId", "User", False)) == "author"
    assert relation_name(ResolvedRelation("Post", "owner", "User", False)) == "ownerRef"
