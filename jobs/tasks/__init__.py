"""
Daily batch actors.

Importing this package registers the broker and every actor, so a worker
is started with ``dramatiq jobs.tasks``.
"""

from jobs.broker import broker  # noqa: F401
from jobs.tasks.core_harvest import run_core_harvest
from jobs.tasks.rank_promotion import run_rank_promotion
from jobs.tasks.reward_crediting import run_reward_crediting
from jobs.tasks.synergy_flow import run_synergy_flow

__all__ = [
    "run_core_harvest",
    "run_rank_promotion",
    "run_reward_crediting",
    "run_synergy_flow",
]
