"""
Discory Backend — Analytics & Profile Stats Tests
==================================================
"""

import pytest

from discory.exceptions import ConflictError, ForbiddenError, ValidationError
from discory.schemas.account import ProfileUpdateRequest
from discory.schemas.vinyl import VinylCreate
from discory.services.analytics_service import analytics_service
from discory.services.user_service import user_service
from discory.services.vinyl_service import vinyl_service


class TestCollectionAnalytics:
    @pytest.mark.asyncio
    async def test_breakdown(self, db, make_account, make_vinyl):
        alice = await make_account("alice")
        await make_vinyl(alice, artist="Miles Davis", genre="Jazz", release_year=1959, rating=5)
        await make_vinyl(alice, artist="Miles Davis", genre="Jazz", release_year=1970, rating=4)
        await vinyl_service.add_vinyl(
            db, alice.id, VinylCreate(title="Homogenic", artist="Björk", genre="Electronic")
        )

        result = await analytics_service.collection_analytics(db, alice.id, alice.id)

        assert result.total == 3
        assert (result.by_genre[0].label, result.by_genre[0].count) == ("Jazz", 2)
        assert (result.top_artists[0].label, result.top_artists[0].count) == ("Miles Davis", 2)
        assert [b.label for b in result.by_year] == ["1970", "1959"]
        assert result.average_rating == 4.5
        assert result.added_last_7_days == 1

    @pytest.mark.asyncio
    async def test_private_collection(self, db, make_account):
        alice = await make_account("alice")
        carol = await make_account("carol", is_public=False)
        with pytest.raises(ForbiddenError):
            await analytics_service.collection_analytics(db, alice.id, carol.id)


class TestPersonalAndCompare:
    @pytest.mark.asyncio
    async def test_personal_stats(self, db, make_account, make_vinyl):
        alice = await make_account("alice")
        await make_vinyl(alice, genre="Jazz", minute=1)
        await make_vinyl(alice, artist="Björk", genre="Electronic", minute=9)

        stats = await analytics_service.personal_stats(db, alice.id)

        assert (stats.total, stats.distinct_genres, stats.distinct_artists) == (2, 2, 2)
        assert stats.average_rating is None
        assert stats.first_added.minute == 1
        assert stats.last_added.minute == 9

    @pytest.mark.asyncio
    async def test_empty_personal_stats(self, db, make_account):
        alice = await make_account("alice")
        stats = await analytics_service.personal_stats(db, alice.id)
        assert stats.total == 0
        assert stats.first_added is None

    @pytest.mark.asyncio
    async def test_compare(self, db, make_account, make_vinyl):
        alice = await make_account("alice")
        bob = await make_account("bob")
        await make_vinyl(alice, artist="Miles Davis", genre="Jazz")
        await make_vinyl(alice, artist="Björk", genre="Electronic")
        await make_vinyl(bob, artist="Miles Davis", genre="Jazz")

        result = await analytics_service.compare(db, alice.id, alice.id, bob.id)

        assert (result.total_a, result.total_b) == (2, 1)
        assert (result.common_genres, result.common_artists) == (1, 1)
        assert result.model_dump(by_alias=True)["commonArtists"] == 1

    @pytest.mark.asyncio
    async def test_compare_requires_both(self, db, make_account):
        alice = await make_account("alice")
        with pytest.raises(ValidationError, match="userId1 and userId2 are required"):
            await analytics_service.compare(db, alice.id, alice.id, None)


class TestProfiles:
    @pytest.mark.asyncio
    async def test_profile_stats(self, db, make_account, make_vinyl):
        alice = await make_account("alice")
        await make_vinyl(alice, artist="Prince (2)", genre="Funk")
        await make_vinyl(alice, artist="Prince", genre="Funk")
        await make_vinyl(alice, artist="Sade", genre="Soul")

        stats = await user_service.profile_stats(db, alice.id, alice.id)

        assert stats.total == 3
        assert (stats.by_genre[0].genre, stats.by_genre[0].count) == ("Funk", 2)
        assert (stats.top_artists[0].artist, stats.top_artists[0].count) == ("Prince", 2)

    @pytest.mark.asyncio
    async def test_update_profile(self, db, make_account):
        alice = await make_account("alice")
        await make_account("bob")

        updated = await user_service.update_profile(
            db, alice.id, ProfileUpdateRequest(bio="Crate digger", isPublic=False)
        )
        assert updated.bio == "Crate digger"
        assert updated.is_public is False

        with pytest.raises(ConflictError, match="Username already taken"):
            await user_service.update_profile(db, alice.id, ProfileUpdateRequest(username="bob"))
        with pytest.raises(ValidationError):
            await user_service.update_profile(db, alice.id, ProfileUpdateRequest(username="  "))
