"""Integration tests for registration and binary placement."""

import pytest

from app.repositories.genealogy_repository import GenealogyRepository
from app.services.participant_service import ParticipantService
from app.services.placement.tree_walker import TreeWalker
from app.utils.exceptions import ParticipantNotFoundError


async def edge_of(session, user):
    edge = await GenealogyRepository(session).get_by_user(user.id)
    return edge.parent_id, edge.position


class TestRegistration:
    """Registration places newcomers and creates their rows."""

    @pytest.mark.asyncio
    async def test_first_participant_is_self_sponsored_root(self, session, register):
        root = await register("root")

        edge = await GenealogyRepository(session).get_by_user(root.id)
        assert edge.parent_id is None
        assert edge.position is None
        assert edge.sponsor_id == root.id
        assert len(root.referral_code) == 8

    @pytest.mark.asyncio
    async def test_unknown_sponsor_code(self, session, register):
        await register("root")

        with pytest.raises(ParticipantNotFoundError):
            await ParticipantService(session).register(
                name="Ghost",
                email="ghost@example.com",
                sponsor_referral_code="NOPE0000",
            )

    @pytest.mark.asyncio
    async def test_no_sponsor_fills_tree_breadth_first(self, session, register):
        root = await register("root")
        first = await register("first")
        second = await register("second")
        third = await register("third")

        assert await edge_of(session, first) == (root.id, "left")
        assert await edge_of(session, second) == (root.id, "right")
        assert await edge_of(session, third) == (first.id, "left")


class TestSponsorPlacement:
    """Placement under a sponsor alternates subtrees along the spines."""

    @pytest.mark.asyncio
    async def test_alternating_spines(self, session, register):
        sponsor = await register("sponsor")
        b = await register("b", sponsor=sponsor)
        c = await register("c", sponsor=sponsor)
        d = await register("d", sponsor=sponsor)
        e = await register("e", sponsor=sponsor)
        f = await register("f", sponsor=sponsor)

        assert await edge_of(session, b) == (sponsor.id, "left")
        assert await edge_of(session, c) == (sponsor.id, "right")
        # Downline 2 -> left spine, 3 -> right spine, 4 -> left again
        assert await edge_of(session, d) == (b.id, "left")
        assert await edge_of(session, e) == (c.id, "right")
        assert await edge_of(session, f) == (d.id, "left")

    @pytest.mark.asyncio
    async def test_unverified_spine_falls_back_to_root(self, session, register):
        sponsor = await register("sponsor")
        await register("b", sponsor=sponsor, is_verified=False)
        await register("c", sponsor=sponsor)
        d = await register("d", sponsor=sponsor)

        parent_id, position = await edge_of(session, d)
        assert parent_id is None
        assert position is None

    @pytest.mark.asyncio
    async def test_sponsor_chain_and_ancestors(self, session, register):
        a = await register("a")
        b = await register("b", sponsor=a)
        c = await register("c", sponsor=b)

        walker = TreeWalker(session)
        assert await walker.sponsor_chain(c.id) == [b.id, a.id]
        assert await walker.binary_ancestors(c.id) == [
            (b.id, "left"),
            (a.id, "left"),
        ]
        assert sorted(await walker.sponsor_downline_ids(a.id)) == [b.id, c.id]
        assert await GenealogyRepository(session).count_direct_referrals(a.id) == 1
