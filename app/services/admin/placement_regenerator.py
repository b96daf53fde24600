"""
Placement regenerator.

Rebuilds the whole binary tree from creation order, placing every user
under their sponsor with the registration algorithm. Sponsor links are
taken from the current genealogy; when none exist a linear chain in
creation order stands in. Active users are placed before inactive ones
and subtree searches only walk through active users.
"""

import json
from dataclasses import asdict, dataclass
from datetime import datetime
from pathlib import Path

from sqlalchemy.ext.asyncio import AsyncSession

from app.config.settings import settings
from app.models.user import User
from app.repositories.genealogy_repository import GenealogyRepository
from app.repositories.user_repository import UserRepository
from app.services.base_service import BaseService, transaction
from app.services.placement.placement_finder import (
    ROOT_PLACEMENT,
    PlacementFinder,
)
from app.utils.datetime_utils import ensure_aware, utc_now
from app.utils.exceptions import TreeInconsistencyError


BACKUP_PREFIX = "genealogy-backup-"


@dataclass
class RegenerationResult:
    """Counts reported by a regeneration run."""

    total_users: int = 0
    active_users: int = 0
    inactive_users: int = 0
    root_users: int = 0
    placed_users: int = 0
    sponsor_links: int = 0
    linear_fallback: bool = False
    restored_records: int = 0
    backup_file: str | None = None
    dry_run: bool = False

    def to_dict(self) -> dict:
        return asdict(self)


def _iso(value: datetime | None) -> str | None:
    return ensure_aware(value).isoformat() if value else None


def _parse_dt(value: str | None) -> datetime:
    if not value:
        return utc_now()
    return ensure_aware(datetime.fromisoformat(value))


class PlacementRegenerator(BaseService):
    """Operator procedure: regenerate the placement tree."""

    def __init__(
        self, session: AsyncSession, backup_dir: str | Path | None = None
    ) -> None:
        """
        Initialize placement regenerator.

        Args:
            session: Database session
            backup_dir: Backup directory (default settings.backup_dir)
        """
        super().__init__(session)
        self.backup_dir = Path(backup_dir or settings.backup_dir)
        self.genealogy_repo = GenealogyRepository(session)
        self.user_repo = UserRepository(session)
        self.finder = PlacementFinder(
            session, member_filter="active", count_filter="active"
        )

    # ---- backups --------------------------------------------------------

    def latest_backup(self) -> Path | None:
        """Most recent backup file, by name."""
        if not self.backup_dir.is_dir():
            return None
        backups = sorted(self.backup_dir.glob(f"{BACKUP_PREFIX}*.json"))
        return backups[-1] if backups else None

    async def create_backup(self) -> Path:
        """
        Write the current genealogy, with user details, to a JSON file.

        Returns:
            Path of the backup file
        """
        self.backup_dir.mkdir(parents=True, exist_ok=True)
        stamp = utc_now().strftime("%Y-%m-%dT%H-%M-%S-%fZ")
        path = self.backup_dir / f"{BACKUP_PREFIX}{stamp}.json"

        users = {u.id: u for u in await self.user_repo.get_all_by_creation()}
        records = []
        for edge in await self.genealogy_repo.get_all_edges():
            user = users.get(edge.user_id)
            records.append(
                {
                    "user_id": edge.user_id,
                    "parent_id": edge.parent_id,
                    "sponsor_id": edge.sponsor_id,
                    "position": edge.position,
                    "created_at": _iso(edge.created_at),
                    "updated_at": _iso(edge.updated_at),
                    "name": user.name if user else None,
                    "email": user.email if user else None,
                    "user_created_at": _iso(user.created_at) if user else None,
                    "is_active": user.is_active if user else None,
                }
            )

        path.write_text(json.dumps(records, indent=2), encoding="utf-8")
        self.logger.info(
            "Genealogy backup written",
            extra={"path": str(path), "records": len(records)},
        )
        return path

    @transaction
    async def restore_backup(self, path: Path) -> int:
        """
        Replace the genealogy table with a backup's contents.

        Returns:
            Number of restored records
        """
        records = json.loads(path.read_text(encoding="utf-8"))
        await self.genealogy_repo.delete_all()
        for record in records:
            await self.genealogy_repo.create(
                user_id=record["user_id"],
                parent_id=record.get("parent_id"),
                sponsor_id=record.get("sponsor_id"),
                position=record.get("position"),
                created_at=_parse_dt(record.get("created_at")),
                updated_at=_parse_dt(record.get("updated_at")),
            )
        self.logger.info(
            "Genealogy restored from backup",
            extra={"path": str(path), "records": len(records)},
        )
        return len(records)

    # ---- regeneration ---------------------------------------------------

    async def build_sponsor_map(
        self, users: list[User]
    ) -> tuple[dict[int, int], bool]:
        """
        Sponsor of each user, from genealogy or a creation-order chain.

        Self-sponsorship is ignored.

        Returns:
            Tuple of (sponsor map, linear_fallback)
        """
        sponsor_map = {
            edge.user_id: edge.sponsor_id
            for edge in await self.genealogy_repo.get_all_edges()
            if edge.sponsor_id is not None and edge.sponsor_id != edge.user_id
        }
        if sponsor_map:
            return sponsor_map, False

        self.logger.warning(
            "No sponsor links found, reconstructing a linear chain by "
            "creation order"
        )
        chain = {
            user.id: previous.id for previous, user in zip(users, users[1:])
        }
        return chain, True

    async def regenerate(
        self,
        dry_run: bool = False,
        backup: bool = False,
        restore_from_backup: bool = False,
    ) -> RegenerationResult:
        """
        Regenerate the placement tree.

        Args:
            dry_run: Report what would happen without writing
            backup: Write a JSON backup before regenerating
            restore_from_backup: First restore the most recent backup

        Returns:
            RegenerationResult
        """
        result = RegenerationResult(dry_run=dry_run)

        if restore_from_backup and not dry_run:
            latest = self.latest_backup()
            if latest is None:
                self.logger.warning("No genealogy backup found to restore")
            else:
                result.restored_records = await self.restore_backup(latest)

        if backup and not dry_run:
            result.backup_file = str(await self.create_backup())

        users = await self.user_repo.get_all_by_creation()
        sponsor_map, result.linear_fallback = await self.build_sponsor_map(users)
        result.sponsor_links = len(sponsor_map)

        active = [u for u in users if u.is_active]
        inactive = [u for u in users if not u.is_active]
        result.total_users = len(users)
        result.active_users = len(active)
        result.inactive_users = len(inactive)
        ordered = active + inactive

        if dry_run:
            known_ids = {u.id for u in users}
            for user in ordered:
                if sponsor_map.get(user.id) not in known_ids:
                    result.root_users += 1
                result.placed_users += 1
            return result

        await self._place_all(ordered, sponsor_map, result)
        self.logger.info(
            "Placement regenerated", extra=result.to_dict()
        )
        return result

    @transaction
    async def _place_all(
        self,
        ordered: list[User],
        sponsor_map: dict[int, int],
        result: RegenerationResult,
    ) -> None:
        known_ids = {u.id for u in ordered}
        await self.genealogy_repo.delete_all()

        for index, user in enumerate(ordered, start=1):
            sponsor_id = sponsor_map.get(user.id)
            if sponsor_id not in known_ids:
                sponsor_id = None

            placement = ROOT_PLACEMENT
            if sponsor_id is None:
                result.root_users += 1
            else:
                try:
                    placement = await self.finder.find_under_sponsor(sponsor_id)
                except TreeInconsistencyError as e:
                    self.logger.warning(
                        "Placement failed, placing as root",
                        extra={"user_id": user.id, "error": str(e)},
                    )

            await self.genealogy_repo.create(
                user_id=user.id,
                parent_id=placement.parent_id,
                sponsor_id=sponsor_id,
                position=placement.position,
                created_at=user.created_at,
                updated_at=utc_now(),
            )
            result.placed_users += 1

            if index % 50 == 0:
                self.logger.info(f"Placed {index}/{len(ordered)} users")
