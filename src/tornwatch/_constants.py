"""Internal constants shared across the package."""

API_V1_URL = "https://api.torn.com"
API_V2_URL = "https://api.torn.com/v2"
DISCORD_API_URL = "https://discord.com/api/v10"
USER_AGENT = "tornwatch/0.3"

# Torn error codes: https://www.torn.com/api.html#errors
RATE_LIMIT_CODES: frozenset[int] = frozenset({5})
AUTH_ERROR_CODES: frozenset[int] = frozenset({1, 2, 10, 13, 18})

# ------------------------------------------------------------------
# Travel
# ------------------------------------------------------------------

DESTINATIONS: tuple[str, ...] = (
    "Mexico",
    "Cayman Islands",
    "Canada",
    "Hawaii",
    "United Kingdom",
    "Argentina",
    "Switzerland",
    "Japan",
    "China",
    "UAE",
    "South Africa",
)

# One-way flight durations in seconds, indexed like DESTINATIONS.
TRAVEL_TIMES: dict[str, tuple[int, ...]] = {
    "standard_economy": (1560, 2100, 2460, 8040, 9540, 10020, 10500, 13500, 14520, 16260, 17820),
    "standard_business": (480, 660, 720, 2400, 2880, 3000, 3180, 4080, 4320, 4860, 5340),
    "airstrip": (1080, 1500, 1740, 5640, 6660, 7020, 7380, 9480, 10140, 11400, 12480),
    "private": (780, 1080, 1200, 4020, 4800, 4980, 5280, 6780, 7260, 8100, 8940),
}

# Padding applied to both ends of an arrival window.
TRAVEL_PAD = 0.03

# ------------------------------------------------------------------
# Icon feed ids
# ------------------------------------------------------------------

ICON_DONATOR = 3
ICON_RACING_ACTIVE = 17
ICON_RACING_FINISHED = 18
ICON_EDUCATION = 19
ICON_BANK_INVESTMENT = 29
ICON_BOOSTER_COOLDOWN: tuple[int, ...] = (39, 40, 41, 42, 43)
ICON_MEDICAL_COOLDOWN: tuple[int, ...] = (44, 45, 46, 47, 48)
ICON_DRUG_COOLDOWN: tuple[int, ...] = (49, 50, 51, 52, 53)
ICON_ALCOHOL_COOLDOWN: tuple[int, ...] = (60,)
ICON_ORGANIZED_CRIME: tuple[int, ...] = (85, 86)

# ------------------------------------------------------------------
# Faction / self tracking
# ------------------------------------------------------------------

RESPECT_MILESTONE_STEP = 100_000
ROSTER_GUARD_MIN_MEMBERS = 10
ROSTER_GUARD_MAX_MISSING_RATIO = 0.5
DEFAULT_CHAIN_THRESHOLDS: tuple[int, ...] = (120, 60, 30)
DEFAULT_CHAIN_MIN = 10
DEFAULT_OFFLINE_HOURS = 24
DEFAULT_ADDICTION_THRESHOLD = -5

# ------------------------------------------------------------------
# Links used in notifications
# ------------------------------------------------------------------

LINK_GYM = "https://www.torn.com/gym.php"
LINK_CRIMES = "https://www.torn.com/crimes.php"
LINK_DRUGS = "https://www.torn.com/item.php#drugs-items"
LINK_HOME = "https://www.torn.com/index.php"
LINK_BOOSTERS = "https://www.torn.com/item.php#boosters-items"
LINK_ALCOHOL = "https://www.torn.com/item.php#alcohol-items"
LINK_MEDICAL = "https://www.torn.com/factions.php?step=your&type=1#armoury-medical"
LINK_FACTION_MAIN = "https://www.torn.com/factions.php?step=your#/"


def profile_link(user_id: int | str) -> str:
    return f"https://www.torn.com/profiles.php?XID={user_id}"


def faction_link(faction_id: int | str) -> str:
    return f"https://www.torn.com/factions.php?step=profile&ID={faction_id}"
