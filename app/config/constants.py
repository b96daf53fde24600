"""
Compensation plan constants.

Central location for rates and limits shared across services.
"""

from decimal import Decimal

from app.config.energy_packs import PackType


# Catalyst bonus: percent of the origin stake paid per sponsor level (1-9)
CATALYST_LEVEL_RATES: list[Decimal] = [
    Decimal("0.09"),
    Decimal("0.03"),
    Decimal("0.01"),
    Decimal("0.005"),
    Decimal("0.005"),
    Decimal("0.0025"),
    Decimal("0.0025"),
    Decimal("0.0025"),
    Decimal("0.0025"),
]

# Synergy flow rate per cycle, by the participant's highest active pack
SYNERGY_RATES: dict[PackType, Decimal] = {
    PackType.SPARK: Decimal("0.05"),
    PackType.PULSE: Decimal("0.06"),
    PackType.CHARGE: Decimal("0.08"),
    PackType.QUANTUM: Decimal("0.10"),
}

# $100 left + $100 right = 1 cycle
CYCLE_SIZE = Decimal("100")

# Harvest pool: share of daily platform sales, and per-stake daily ceiling
HARVEST_POOL_RATE = Decimal("0.20")
HARVEST_DAILY_CAP_RATE = Decimal("0.05")

# Pending rewards must be claimed within this window
REWARD_CLAIM_WINDOW_HOURS = 24

# Sponsor-chain depth for catalyst and power pass-up walks
SPONSOR_CHAIN_DEPTH = 9

# Sponsor levels re-evaluated for rank after a stake
RANK_PROMOTION_CHAIN_DEPTH = 20

# Daily batch job names
JOB_CORE_HARVEST = "core_harvest"
JOB_REWARD_CREDIT = "reward_credit"
JOB_SYNERGY_FLOW = "synergy_flow"
JOB_RANK_PROMOTE = "rank_promote"

DAILY_JOB_NAMES = (
    JOB_CORE_HARVEST,
    JOB_REWARD_CREDIT,
    JOB_SYNERGY_FLOW,
    JOB_RANK_PROMOTE,
)

DEFAULT_CURRENCY = "USD"
MAIN_WALLET = "main"
