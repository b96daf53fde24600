"""
Participant service.

Registration places a newcomer into the binary tree and creates the rows
every other component expects to exist: the placement edge, a main
wallet and an unranked rank row.
"""

import secrets
import string
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.enums import UserRole
from app.models.genealogy import Genealogy
from app.models.user import User
from app.repositories.genealogy_repository import GenealogyRepository
from app.repositories.user_rank_repository import UserRankRepository
from app.repositories.user_repository import UserRepository
from app.services.base_service import BaseService, transaction
from app.services.placement import PlacementFinder
from app.services.wallet_service import WalletService
from app.utils.exceptions import CompensationError, ParticipantNotFoundError


REFERRAL_CODE_LENGTH = 8
REFERRAL_CODE_ALPHABET = string.ascii_uppercase + string.digits
MAX_CODE_ATTEMPTS = 10


@dataclass
class RegistrationResult:
    """Newly registered participant and its placement."""

    user: User
    genealogy: Genealogy
    sponsor_id: int | None


def generate_referral_code() -> str:
    """Random 8-character uppercase alphanumeric code."""
    return "".join(
        secrets.choice(REFERRAL_CODE_ALPHABET)
        for _ in range(REFERRAL_CODE_LENGTH)
    )


class ParticipantService(BaseService):
    """Participant registration and administration."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize participant service."""
        super().__init__(session)
        self.user_repo = UserRepository(session)
        self.genealogy_repo = GenealogyRepository(session)
        self.rank_repo = UserRankRepository(session)
        self.wallet_service = WalletService(session)
        self.placement_finder = PlacementFinder(session)

    async def _unique_referral_code(self) -> str:
        for _ in range(MAX_CODE_ATTEMPTS):
            code = generate_referral_code()
            if not await self.user_repo.referral_code_exists(code):
                return code
        raise CompensationError(
            "Could not generate a unique referral code"
        )

    @transaction
    async def register(
        self,
        name: str,
        email: str,
        sponsor_referral_code: str | None = None,
        is_verified: bool = True,
        role: UserRole = UserRole.USER,
    ) -> RegistrationResult:
        """
        Register a participant and place them in the tree.

        Args:
            name: Display name
            email: Unique email
            sponsor_referral_code: Referral code of the sponsor
            is_verified: Verification flag
            role: Participant role

        Returns:
            RegistrationResult

        Raises:
            ParticipantNotFoundError: Unknown sponsor referral code
        """
        sponsor: User | None = None
        if sponsor_referral_code:
            sponsor = await self.user_repo.get_by_referral_code(
                sponsor_referral_code
            )
            if sponsor is None:
                raise ParticipantNotFoundError(
                    f"No participant with referral code {sponsor_referral_code}"
                )

        placement = await self.placement_finder.find_position(
            sponsor.id if sponsor else None
        )

        user = await self.user_repo.create(
            name=name.strip(),
            email=email.strip().lower(),
            referral_code=await self._unique_referral_code(),
            role=str(role),
            is_verified=is_verified,
            is_active=True,
        )

        genealogy = await self.genealogy_repo.create(
            user_id=user.id,
            parent_id=placement.parent_id,
            # Roots registered without a sponsor sponsor themselves
            sponsor_id=sponsor.id if sponsor else user.id,
            position=placement.position,
        )
        await self.wallet_service.ensure_wallet(user.id)
        await self.rank_repo.ensure(user.id)

        self.logger.info(
            "Participant registered",
            extra={
                "user_id": user.id,
                "sponsor_id": sponsor.id if sponsor else None,
                "parent_id": placement.parent_id,
                "position": placement.position,
            },
        )
        return RegistrationResult(
            user=user,
            genealogy=genealogy,
            sponsor_id=sponsor.id if sponsor else None,
        )

    @transaction
    async def deactivate(self, user_id: int) -> User:
        """
        Deactivate a participant; nothing is deleted.

        Raises:
            ParticipantNotFoundError: Unknown user
        """
        user = await self.user_repo.update(user_id, is_active=False)
        if user is None:
            raise ParticipantNotFoundError(f"User {user_id} not found")
        self.logger.info("Participant deactivated", extra={"user_id": user_id})
        return user
