"""Tests for database models and schema."""

import uuid

from sqlalchemy.dialects import postgresql
from sqlalchemy.schema import CreateTable

from safekids.models import Base, Post, User


class TestPostModel:
    def test_create_instance(self):
        author_id = uuid.uuid4()
        post = Post(author_id=author_id, text="Dark alley", image="dark.png", likes_count=2)
        assert post.author_id == author_id
        assert post.text == "Dark alley"
        assert post.likes_count == 2

    def test_search_vector_is_generated(self):
        ddl = str(CreateTable(Post.__table__).compile(dialect=postgresql.dialect()))
        assert "TSVECTOR" in ddl
        assert "GENERATED ALWAYS AS (to_tsvector('simple', coalesce(text, ''))) STORED" in ddl

    def test_search_vector_gin_index(self):
        index = next(i for i in Post.__table__.indexes if i.name == "ix_posts_search_vector")
        assert index.dialect_options["postgresql"]["using"] == "gin"

    def test_author_foreign_key(self):
        fks = {fk.target_fullname for fk in Post.__table__.foreign_keys}
        assert fks == {"users.id"}


class TestUserModel:
    def test_create_instance(self):
        user = User(username="searcher", email="s@example.com", profile_image="me.png")
        assert user.username == "searcher"
        assert user.profile_image == "me.png"


def test_metadata_tables():
    assert set(Base.metadata.tables) == {"users", "posts"}
