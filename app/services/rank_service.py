"""
Rank service.

Evaluates each participant against the rank ladder from three metrics:
direct referrals, active pack value and the stake volume of the whole
referral downline. Promotion and demotion both follow the evaluation, so
re-running is a no-op when nothing changed.

Read-only with respect to money: the bonus distributors depend on this
service, never the other way round.
"""

import math
from dataclasses import dataclass, field
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from app.config.rank_ladder import (
    UNRANKED,
    RankConfig,
    find_next_rank,
    find_qualifying_rank,
    get_rank_percent,
)
from app.models.user_rank import UserRank
from app.repositories.genealogy_repository import GenealogyRepository
from app.repositories.stake_repository import StakeRepository
from app.repositories.user_rank_repository import UserRankRepository
from app.repositories.user_repository import UserRepository
from app.services.base_service import ZERO, BaseService
from app.services.placement.tree_walker import TreeWalker


@dataclass
class RankEvaluation:
    """Metrics and target rank of a participant."""

    direct_referrals: int
    pack_amount: Decimal
    team_volume: Decimal
    target_rank: str | None
    target_percent: Decimal


@dataclass
class PromotionResult:
    """Outcome of a single auto-promotion."""

    user_id: int
    promoted: bool
    demoted: bool
    rank: str
    percent: Decimal


@dataclass
class RankProgress:
    """Progress toward the next rank above the current one."""

    current_rank: str
    current_percent: Decimal
    direct_referrals: int
    pack_amount: Decimal
    team_volume: Decimal
    next_rank: str | None
    progress_percent: int
    remaining: dict[str, Decimal | int] = field(default_factory=dict)


def compute_progress(
    direct_referrals: int,
    pack_amount: Decimal,
    team_volume: Decimal,
    target: RankConfig | None,
) -> tuple[int, dict[str, Decimal | int]]:
    """
    Progress percent toward target and what is still missing.

    Progress is the weakest of the three threshold ratios, floored to a
    whole percent and clamped to 0..100. Without a target rank the
    participant is at the top of the ladder (100%).

    Returns:
        Tuple of (progress_percent, remaining)
    """
    if target is None:
        return 100, {}

    ratio = min(
        Decimal(direct_referrals) / Decimal(target.min_directs),
        pack_amount / target.min_pack_value,
        team_volume / target.min_team_volume,
    )
    percent = max(0, min(100, math.floor(ratio * 100)))
    remaining: dict[str, Decimal | int] = {
        "directs": max(0, target.min_directs - direct_referrals),
        "pack_amount": max(ZERO, target.min_pack_value - pack_amount),
        "team_volume": max(ZERO, target.min_team_volume - team_volume),
    }
    return percent, remaining


class RankService(BaseService):
    """Rank evaluation and promotion."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize rank service."""
        super().__init__(session)
        self.rank_repo = UserRankRepository(session)
        self.genealogy_repo = GenealogyRepository(session)
        self.stake_repo = StakeRepository(session)
        self.user_repo = UserRepository(session)
        self.walker = TreeWalker(session)

    async def ensure_rank_row(self, user_id: int) -> UserRank:
        """Rank row of a participant, created unranked on first use."""
        return await self.rank_repo.ensure(user_id)

    async def get_rank_percent(self, user_id: int) -> Decimal:
        """Stored override percent (0 for unranked)."""
        return await self.rank_repo.get_percent(user_id)

    async def get_rank_percent_map(
        self, user_ids: list[int]
    ) -> dict[int, Decimal]:
        """Stored override percents for many participants."""
        return await self.rank_repo.get_percent_map(user_ids)

    async def get_team_volume(self, user_id: int) -> Decimal:
        """Stake volume (any status) of the transitive referral downline."""
        downline = await self.walker.sponsor_downline_ids(user_id)
        return await self.stake_repo.sum_amount_for_users(downline)

    async def evaluate(self, user_id: int) -> RankEvaluation:
        """
        Evaluate a participant against the ladder.

        Args:
            user_id: Participant ID

        Returns:
            RankEvaluation with the highest fully-qualified rank
        """
        direct_referrals = await self.genealogy_repo.count_direct_referrals(
            user_id
        )
        pack_amount = await self.stake_repo.sum_active_amount(user_id)
        team_volume = await self.get_team_volume(user_id)

        target = find_qualifying_rank(direct_referrals, pack_amount, team_volume)
        return RankEvaluation(
            direct_referrals=direct_referrals,
            pack_amount=pack_amount,
            team_volume=team_volume,
            target_rank=target.key if target else None,
            target_percent=target.percent if target else ZERO,
        )

    async def set_user_rank(
        self, user_id: int, rank: str, percent: Decimal | None = None
    ) -> UserRank:
        """
        Store a rank, taking its ladder percent unless one is given.

        Args:
            user_id: Participant ID
            rank: Rank key
            percent: Explicit override percent

        Returns:
            Updated rank row
        """
        row = await self.ensure_rank_row(user_id)
        row.rank = rank
        row.override_percent = (
            percent if percent is not None else get_rank_percent(rank)
        )
        await self.session.flush()
        return row

    async def auto_promote(self, user_id: int) -> PromotionResult:
        """
        Move a participant to their evaluated rank.

        Demotes to unranked when nothing qualifies and the stored percent
        is above zero; otherwise promotes or demotes to the target when
        its percent differs from the stored one.

        Args:
            user_id: Participant ID

        Returns:
            PromotionResult
        """
        current = await self.ensure_rank_row(user_id)
        current_percent = Decimal(str(current.override_percent or 0))
        evaluation = await self.evaluate(user_id)

        promoted = demoted = False
        if evaluation.target_rank is None:
            if current_percent > 0:
                current = await self.set_user_rank(user_id, UNRANKED, ZERO)
                demoted = True
        elif evaluation.target_percent < current_percent:
            current = await self.set_user_rank(
                user_id, evaluation.target_rank, evaluation.target_percent
            )
            demoted = True
        elif evaluation.target_percent > current_percent:
            current = await self.set_user_rank(
                user_id, evaluation.target_rank, evaluation.target_percent
            )
            promoted = True

        if promoted or demoted:
            self.logger.info(
                "Rank changed",
                extra={
                    "user_id": user_id,
                    "rank": current.rank,
                    "percent": str(current.override_percent),
                    "promoted": promoted,
                },
            )

        return PromotionResult(
            user_id=user_id,
            promoted=promoted,
            demoted=demoted,
            rank=current.rank,
            percent=Decimal(str(current.override_percent)),
        )

    async def get_rank_progress(self, user_id: int) -> RankProgress:
        """
        Current rank and progress toward the next one.

        Args:
            user_id: Participant ID

        Returns:
            RankProgress
        """
        current = await self.ensure_rank_row(user_id)
        current_percent = Decimal(str(current.override_percent or 0))
        evaluation = await self.evaluate(user_id)
        next_rank = find_next_rank(current_percent)

        progress, remaining = compute_progress(
            evaluation.direct_referrals,
            evaluation.pack_amount,
            evaluation.team_volume,
            next_rank,
        )
        return RankProgress(
            current_rank=current.rank,
            current_percent=current_percent,
            direct_referrals=evaluation.direct_referrals,
            pack_amount=evaluation.pack_amount,
            team_volume=evaluation.team_volume,
            next_rank=next_rank.key if next_rank else None,
            progress_percent=progress,
            remaining=remaining,
        )

    async def auto_promote_all(self) -> dict:
        """
        Auto-promote every participant, committing per participant.

        A failure for one participant is logged, rolled back and collected;
        the sweep continues with the next one.

        Returns:
            Dict with users, promoted, demoted and errors
        """
        user_ids = await self.user_repo.get_all_ids()
        promoted = demoted = 0
        errors: list[dict] = []

        for user_id in user_ids:
            try:
                result = await self.auto_promote(user_id)
                await self.commit()
            except Exception as e:
                await self.rollback()
                self.logger.exception(
                    "Rank promotion failed", extra={"user_id": user_id}
                )
                errors.append({"user_id": user_id, "error": str(e)})
                continue
            promoted += int(result.promoted)
            demoted += int(result.demoted)

        return {
            "users": len(user_ids),
            "promoted": promoted,
            "demoted": demoted,
            "errors": errors,
        }
