"""
Power pass-up distributor.

Walks the sponsor chain from the staker and pays each upline the marginal
difference between its rank percent and the highest percent already
allocated below it. Uplines at or below the running baseline are skipped
and leave the baseline untouched; whatever the chain never reaches stays
with the company.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from app.config.constants import SPONSOR_CHAIN_DEPTH
from app.models.enums import TransactionType
from app.repositories.genealogy_repository import GenealogyRepository
from app.repositories.stake_reward_repository import StakeRewardRepository
from app.repositories.transaction_repository import TransactionRepository
from app.repositories.user_repository import UserRepository
from app.services.base_service import ZERO, BaseService
from app.services.placement.tree_walker import TreeWalker
from app.services.rank_service import RankService
from app.services.reward_cap_service import RewardCapService
from app.services.wallet_service import WalletService
from app.utils.money import to_money


HUNDRED = Decimal("100")


@dataclass
class PassUpAllocation:
    """One sponsor's share of a pass-up."""

    sponsor_id: int
    percent: Decimal
    amount: Decimal


@dataclass
class PassUpResult:
    """Outcome of a pass-up distribution."""

    distributed: Decimal = ZERO
    allocations: list[PassUpAllocation] = field(default_factory=list)
    baseline_percent: Decimal = ZERO


def compute_passup_allocations(
    chain: list[int],
    rank_percents: Mapping[int, Decimal],
    core_amount: Decimal,
) -> PassUpResult:
    """
    Uncapped pass-up allocations along a sponsor chain.

    Args:
        chain: Sponsor IDs, closest first
        rank_percents: Override percent per sponsor (missing = 0)
        core_amount: Core amount being passed up

    Returns:
        PassUpResult with one allocation per rank-increasing sponsor

    Example:
        Percents [5, 25, 40, 15, 70] on $100 give 5, 20, 15, 0, 30.
    """
    result = PassUpResult()
    if core_amount <= 0:
        return result

    for sponsor_id in chain:
        sponsor_percent = rank_percents.get(sponsor_id, ZERO)
        if sponsor_percent <= result.baseline_percent:
            continue
        override = sponsor_percent - result.baseline_percent
        amount = to_money(core_amount * override / HUNDRED)
        if amount > 0:
            result.allocations.append(
                PassUpAllocation(sponsor_id, override, amount)
            )
            result.distributed += amount
        result.baseline_percent = sponsor_percent

    return result


def compute_override_percent_for_target(
    chain: list[int],
    target_id: int,
    rank_percents: Mapping[int, Decimal],
) -> Decimal:
    """Override percent target_id would earn on this chain (0 if none)."""
    baseline = ZERO
    for sponsor_id in chain:
        sponsor_percent = rank_percents.get(sponsor_id, ZERO)
        if sponsor_percent <= baseline:
            continue
        if sponsor_id == target_id:
            return sponsor_percent - baseline
        baseline = sponsor_percent
    return ZERO


def chain_from_pointers(
    origin_id: int,
    sponsor_by_user: Mapping[int, int | None],
    max_levels: int = SPONSOR_CHAIN_DEPTH,
) -> list[int]:
    """Sponsor chain resolved from an in-memory pointer map."""
    chain: list[int] = []
    visited = {origin_id}
    current = origin_id
    while len(chain) < max_levels:
        sponsor_id = sponsor_by_user.get(current)
        if sponsor_id is None or sponsor_id in visited:
            break
        chain.append(sponsor_id)
        visited.add(sponsor_id)
        current = sponsor_id
    return chain


class PowerPassUpDistributor(BaseService):
    """Rank-difference override distribution of core rewards."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize power pass-up distributor."""
        super().__init__(session)
        self.walker = TreeWalker(session)
        self.rank_service = RankService(session)
        self.cap_service = RewardCapService(session)
        self.wallet_service = WalletService(session)
        self.transaction_repo = TransactionRepository(session)
        self.genealogy_repo = GenealogyRepository(session)
        self.reward_repo = StakeRewardRepository(session)
        self.user_repo = UserRepository(session)

    async def distribute(
        self,
        origin_user_id: int,
        core_amount: Decimal,
        reference_id: int | str | None = None,
    ) -> PassUpResult:
        """
        Pay the pass-up of a core amount up the sponsor chain.

        The baseline advances after every rank-increasing sponsor whether
        its payment was full, clamped or zero.

        Args:
            origin_user_id: Staker whose reward is being credited
            core_amount: Core portion not retained by the staker
            reference_id: Stake reward ID

        Returns:
            PassUpResult with the amounts actually credited
        """
        result = PassUpResult()
        if core_amount <= 0:
            return result

        names = await self.user_repo.get_names([origin_user_id])
        origin_label = names.get(origin_user_id, f"User {origin_user_id}")
        chain = await self.walker.sponsor_chain(origin_user_id, SPONSOR_CHAIN_DEPTH)

        for sponsor_id in chain:
            sponsor_percent = await self.rank_service.get_rank_percent(sponsor_id)
            if sponsor_percent <= result.baseline_percent:
                continue

            override = sponsor_percent - result.baseline_percent
            earned = to_money(core_amount * override / HUNDRED)
            result.baseline_percent = sponsor_percent
            if earned <= 0:
                continue

            allowed = await self.cap_service.clamp_incentive(sponsor_id, earned)
            if allowed <= 0:
                continue

            await self.wallet_service.credit(sponsor_id, allowed)
            await self.transaction_repo.record(
                sponsor_id,
                TransactionType.POWER_PASSUP,
                allowed,
                reference_type="stake_reward",
                reference_id=reference_id,
                description=(
                    f"Power Pass-Up from {origin_label} ({override}% override)"
                ),
            )
            result.allocations.append(
                PassUpAllocation(sponsor_id, override, allowed)
            )
            result.distributed += allowed

        self.logger.debug(
            "Power pass-up distributed",
            extra={
                "origin_user_id": origin_user_id,
                "core_amount": str(core_amount),
                "distributed": str(result.distributed),
                "allocations": len(result.allocations),
            },
        )
        return result

    async def simulate(
        self, origin_user_id: int, core_amount: Decimal
    ) -> PassUpResult:
        """Same walk as distribute, without caps or credits."""
        chain = await self.walker.sponsor_chain(origin_user_id, SPONSOR_CHAIN_DEPTH)
        percents = await self.rank_service.get_rank_percent_map(chain)
        return compute_passup_allocations(chain, percents, core_amount)

    async def _sponsor_pointer_map(
        self, seed_ids: list[int], max_levels: int = SPONSOR_CHAIN_DEPTH
    ) -> dict[int, int | None]:
        """Sponsor pointers for seeds and their uplines, one query per level."""
        pointers: dict[int, int | None] = {}
        seen: set[int] = set()
        frontier = set(seed_ids)

        for _ in range(max_levels + 1):
            ids = [i for i in frontier if i not in seen]
            if not ids:
                break
            seen.update(ids)
            level = await self.genealogy_repo.get_sponsor_pointers(ids)
            pointers.update(level)
            frontier = {s for s in level.values() if s is not None and s not in seen}

        return pointers

    async def calculate_potential(self, user_id: int) -> dict:
        """
        Pass-up this participant would earn from pending downline rewards.

        Args:
            user_id: Upline participant

        Returns:
            Dict with potential_bonuses, pending_rewards and per-staker
            breakdown
        """
        downline = await self.walker.sponsor_downline_ids(user_id)
        pending = await self.reward_repo.get_pending_core_by_user(downline)
        if not pending:
            return {
                "potential_bonuses": ZERO,
                "pending_rewards": 0,
                "breakdown": [],
            }

        staker_ids = list(pending)
        pointers = await self._sponsor_pointer_map(staker_ids)
        universe = {s for s in pointers.values() if s is not None}
        universe.update(staker_ids)
        universe.add(user_id)
        percents = await self.rank_service.get_rank_percent_map(list(universe))
        names = await self.user_repo.get_names(staker_ids)

        total = ZERO
        reward_count = 0
        breakdown = []
        for staker_id in staker_ids:
            chain = chain_from_pointers(staker_id, pointers)
            percent = compute_override_percent_for_target(chain, user_id, percents)
            if percent <= 0:
                continue
            core_total, count = pending[staker_id]
            bonus = to_money(core_total * percent / HUNDRED)
            if bonus <= 0:
                continue
            total += bonus
            reward_count += count
            breakdown.append(
                {
                    "staker_id": staker_id,
                    "staker_name": names.get(staker_id),
                    "percent": percent,
                    "pending_core": core_total,
                    "potential_bonus": bonus,
                    "reward_count": count,
                }
            )

        return {
            "potential_bonuses": total,
            "pending_rewards": reward_count,
            "breakdown": breakdown,
        }

    async def calculate_potential_received(self, user_id: int) -> dict:
        """
        Pass-up the upline would receive from this participant's own
        pending rewards.

        Args:
            user_id: Staker

        Returns:
            Dict with the allocation shape, pending count and totals
        """
        pending = await self.reward_repo.get_pending_core_by_user([user_id])
        core_total, count = pending.get(user_id, (ZERO, 0))

        chain = await self.walker.sponsor_chain(user_id, SPONSOR_CHAIN_DEPTH)
        percents = await self.rank_service.get_rank_percent_map(chain)
        shape = compute_passup_allocations(chain, percents, core_total)

        return {
            "potential_received_bonuses": shape.distributed,
            "pending_rewards_count": count,
            "total_override_percent": shape.baseline_percent,
            "allocations": [
                {
                    "sponsor_id": a.sponsor_id,
                    "percent": a.percent,
                    "amount": a.amount,
                }
                for a in shape.allocations
            ],
        }
