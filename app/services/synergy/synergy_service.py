"""
Synergy service.

Daily binary-cycle settlement: matches left and right team volume in
$100 pairs and pays a rate that depends on the participant's top active
pack. Payouts are bounded twice: by a daily ceiling equal to the
participant's active principal and by the shared incentive cap.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from app.config.constants import CYCLE_SIZE, SYNERGY_RATES
from app.config.energy_packs import get_highest_pack
from app.models.enums import PlacementPosition, TransactionType
from app.models.team_volume import TeamVolume
from app.repositories.genealogy_repository import GenealogyRepository
from app.repositories.stake_repository import StakeRepository
from app.repositories.team_cycle_repository import TeamCycleRepository
from app.repositories.team_volume_repository import TeamVolumeRepository
from app.repositories.transaction_repository import TransactionRepository
from app.services.base_service import ZERO, BaseService
from app.services.reward_cap_service import RewardCapService
from app.services.synergy.cycle_settlement import (
    cycles_available,
    flush_weaker_leg,
    plan_settlement,
)
from app.services.wallet_service import WalletService
from app.utils.datetime_utils import utc_today


INELIGIBLE_REASON = "Need 1 active direct on each side"


def _percent_label(rate: Decimal) -> str:
    percent = rate * 100
    if percent == percent.to_integral_value():
        return str(int(percent))
    return f"{percent.normalize():f}"


@dataclass
class Eligibility:
    """Synergy eligibility of a participant."""

    eligible: bool
    left_active: bool
    right_active: bool
    reasons: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "eligible": self.eligible,
            "reasons": list(self.reasons),
            "left_active": self.left_active,
            "right_active": self.right_active,
        }


@dataclass
class CycleResult:
    """Outcome of one participant's settlement."""

    cycles: int = 0
    reward: Decimal = ZERO
    eligible: bool = False
    ineligible: bool = False
    cap_reached: bool = False
    pack_type: str | None = None

    def to_dict(self) -> dict:
        return {
            "cycles": self.cycles,
            "reward": self.reward,
            "eligible": self.eligible,
            "ineligible": self.ineligible,
            "cap_reached": self.cap_reached,
            "pack_type": self.pack_type,
        }


class SynergyService(BaseService):
    """Binary volume ledger and daily cycle settlement."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize synergy service."""
        super().__init__(session)
        self.volume_repo = TeamVolumeRepository(session)
        self.cycle_repo = TeamCycleRepository(session)
        self.genealogy_repo = GenealogyRepository(session)
        self.stake_repo = StakeRepository(session)
        self.transaction_repo = TransactionRepository(session)
        self.cap_service = RewardCapService(session)
        self.wallet_service = WalletService(session)

    async def ensure_volume_row(self, user_id: int) -> TeamVolume:
        """Volume row of a participant, created zeroed on first use."""
        return await self.volume_repo.ensure(user_id)

    async def reset_daily_if_needed(
        self, row: TeamVolume, today: date | None = None
    ) -> TeamVolume:
        """
        Zero daily_paid when the row was last reset on another day.

        Args:
            row: Volume row
            today: UTC calendar date

        Returns:
            The same row, refreshed in place
        """
        today = today or utc_today()
        if row.last_reset_date == today:
            return row
        row.daily_paid = ZERO
        row.last_reset_date = today
        await self.session.flush()
        return row

    async def _has_active_direct_on_side(self, user_id: int, side: str) -> bool:
        child_id = await self.genealogy_repo.get_child_id(
            user_id, side, member_filter="verified"
        )
        if child_id is None:
            return False
        return await self.stake_repo.has_active_stake(child_id)

    async def get_eligibility(self, user_id: int) -> Eligibility:
        """
        Check for a verified, staking binary child on both sides.

        Args:
            user_id: Participant ID

        Returns:
            Eligibility
        """
        left_active = await self._has_active_direct_on_side(
            user_id, PlacementPosition.LEFT.value
        )
        right_active = await self._has_active_direct_on_side(
            user_id, PlacementPosition.RIGHT.value
        )
        eligible = left_active and right_active
        return Eligibility(
            eligible=eligible,
            left_active=left_active,
            right_active=right_active,
            reasons=[] if eligible else [INELIGIBLE_REASON],
        )

    async def get_rate_and_cap(
        self, user_id: int
    ) -> tuple[Decimal, str | None, Decimal]:
        """
        Synergy rate and daily ceiling.

        Returns:
            Tuple of (rate, pack_type, daily_cap); the cap is the total
            active principal
        """
        highest = get_highest_pack(
            await self.stake_repo.get_active_pack_types(user_id)
        )
        rate = SYNERGY_RATES.get(highest, ZERO) if highest else ZERO
        cap = await self.stake_repo.sum_active_amount(user_id)
        return rate, highest.value if highest else None, cap

    async def _write_carries(
        self,
        row: TeamVolume,
        left_carry: Decimal,
        right_carry: Decimal,
    ) -> None:
        row.left_volume = ZERO
        row.right_volume = ZERO
        row.left_carry = left_carry
        row.right_carry = right_carry
        await self.session.flush()

    async def process_user_cycles(
        self, user_id: int, run_date: date | None = None
    ) -> CycleResult:
        """
        Settle one participant's cycles for a day.

        Flushes only; the caller commits.

        Args:
            user_id: Participant ID
            run_date: UTC calendar date (default today)

        Returns:
            CycleResult
        """
        run_date = run_date or utc_today()
        row = await self.volume_repo.get_by_user(user_id, for_update=True)
        if row is None:
            row = await self.ensure_volume_row(user_id)
        row = await self.reset_daily_if_needed(row, run_date)

        left_total = row.left_total
        right_total = row.right_total
        if left_total < CYCLE_SIZE or right_total < CYCLE_SIZE:
            return CycleResult()

        rate, pack_type, cap = await self.get_rate_and_cap(user_id)
        eligibility = await self.get_eligibility(user_id)
        if not eligibility.eligible:
            return CycleResult(ineligible=True, pack_type=pack_type)
        if rate <= 0 or cap <= 0:
            return CycleResult(pack_type=pack_type)

        daily_paid = Decimal(str(row.daily_paid or 0))
        plan = plan_settlement(
            left_total, right_total, rate, max(ZERO, cap - daily_paid)
        )
        if plan.cap_reached:
            await self._write_carries(row, plan.left_carry, plan.right_carry)
            return CycleResult(eligible=True, cap_reached=True, pack_type=pack_type)

        allowed = await self.cap_service.clamp_incentive(user_id, plan.reward)
        if allowed <= 0:
            left_carry, right_carry = flush_weaker_leg(left_total, right_total)
            await self._write_carries(row, left_carry, right_carry)
            return CycleResult(eligible=True, cap_reached=True, pack_type=pack_type)

        await self._write_carries(row, plan.left_carry, plan.right_carry)
        row.daily_paid = daily_paid + allowed
        row.last_reset_date = run_date

        await self.cycle_repo.create(
            user_id=user_id,
            cycle_date=run_date,
            cycles=plan.cycles,
            left_used=plan.used_volume,
            right_used=plan.used_volume,
            weaker_leg_volume=plan.used_volume,
            reward_amount=allowed,
            rate_used=rate,
            pack_type=pack_type,
            status="completed",
        )

        await self.wallet_service.credit(user_id, allowed)
        await self.transaction_repo.record(
            user_id,
            TransactionType.SYNERGY_FLOW,
            allowed,
            reference_type="team_cycle",
            reference_id=f"{user_id}-{run_date.isoformat()}",
            description=(
                f"Synergy Flow payout ({plan.cycles} cycles @ "
                f"{_percent_label(rate)}%)"
            ),
            meta={"cycles": plan.cycles, "planned": str(plan.reward)},
        )

        self.logger.info(
            "Synergy cycles paid",
            extra={
                "user_id": user_id,
                "cycles": plan.cycles,
                "reward": str(allowed),
                "capped": allowed < plan.reward,
            },
        )
        return CycleResult(
            cycles=plan.cycles,
            reward=allowed,
            eligible=True,
            pack_type=pack_type,
        )

    async def process_all_users(self, run_date: date | None = None) -> dict:
        """
        Settle every participant with a volume row, committing per user.

        One participant's failure is rolled back, logged and collected; the
        sweep continues.

        Args:
            run_date: UTC calendar date (default today)

        Returns:
            Dict with processed, cycles, rewards, cap_hits, ineligible and
            errors
        """
        run_date = run_date or utc_today()
        user_ids = await self.volume_repo.get_all_user_ids()

        processed = cycles = cap_hits = ineligible = 0
        rewards = ZERO
        errors: list[dict] = []

        for user_id in user_ids:
            try:
                result = await self.process_user_cycles(user_id, run_date)
                await self.commit()
            except Exception as e:
                await self.rollback()
                self.logger.exception(
                    "Synergy settlement failed", extra={"user_id": user_id}
                )
                errors.append({"user_id": user_id, "error": str(e)})
                continue

            processed += 1
            cycles += result.cycles
            rewards += result.reward
            cap_hits += int(result.cap_reached)
            ineligible += int(result.ineligible)

        return {
            "processed": processed,
            "cycles": cycles,
            "rewards": str(rewards),
            "cap_hits": cap_hits,
            "ineligible": ineligible,
            "errors": errors,
        }

    async def get_user_summary(
        self, user_id: int, today: date | None = None
    ) -> dict:
        """
        Volume, carry, rate and eligibility snapshot.

        Args:
            user_id: Participant ID
            today: UTC calendar date shown in the summary

        Returns:
            Summary dict
        """
        today = today or utc_today()
        row = await self.ensure_volume_row(user_id)
        rate, pack_type, cap = await self.get_rate_and_cap(user_id)
        eligibility = await self.get_eligibility(user_id)

        left_total = row.left_total
        right_total = row.right_total
        daily_paid = Decimal(str(row.daily_paid or 0))

        return {
            "user_id": user_id,
            "left_total": left_total,
            "right_total": right_total,
            "left_carry": Decimal(str(row.left_carry or 0)),
            "right_carry": Decimal(str(row.right_carry or 0)),
            "daily_paid": daily_paid,
            "last_reset_date": row.last_reset_date,
            "rate": rate,
            "pack_type": pack_type,
            "cap": cap,
            "per_cycle_reward": CYCLE_SIZE * rate if rate else ZERO,
            "cycles_available": cycles_available(left_total, right_total),
            "remaining_cap": max(ZERO, cap - daily_paid),
            "today": today.isoformat(),
            "eligible": eligibility.eligible,
            "eligibility_reasons": eligibility.reasons,
            "left_active_direct": eligibility.left_active,
            "right_active_direct": eligibility.right_active,
        }

    async def get_user_history(
        self, user_id: int, limit: int = 20, offset: int = 0
    ) -> list:
        """Settlement history of a participant, newest first."""
        return await self.cycle_repo.get_user_history(user_id, limit, offset)

    async def get_all_history(self, limit: int = 50, offset: int = 0) -> list[dict]:
        """Platform-wide settlement history with participant names."""
        rows = await self.cycle_repo.get_all_history(limit, offset)
        return [
            {
                "id": cycle.id,
                "user_id": cycle.user_id,
                "name": name,
                "email": email,
                "cycle_date": cycle.cycle_date,
                "cycles": cycle.cycles,
                "reward_amount": cycle.reward_amount,
                "rate_used": cycle.rate_used,
                "pack_type": cycle.pack_type,
                "status": cycle.status,
            }
            for cycle, name, email in rows
        ]
