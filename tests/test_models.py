"""Tests for the user model."""

from conftest import make_user


class TestUser:
    def test_with_favorite_returns_copy(self):
        user = make_user(1)
        favorite = user.with_favorite(True)

        assert favorite.is_favorite is True
        assert user.is_favorite is False
        assert favorite.uuid == user.uuid

    def test_full_name(self):
        assert make_user(5).name.full == "First5 Last5"
