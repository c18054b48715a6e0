"""
Giveaway System Configuration
All configurable parameters for the giveaway bot
"""

import os

# Discord
DISCORD_TOKEN = os.getenv("DISCORD_TOKEN", "")
COMMAND_PREFIX = os.getenv("COMMAND_PREFIX", "!")

# Persistence: DATABASE_URL wins over the JSON state file when set
GIVEAWAY_STATE_FILE = os.getenv("GIVEAWAY_STATE_FILE", "state.json")
DATABASE_URL = os.getenv("DATABASE_URL", "")

# Default reaction for giveaways created with "default"
GIVEAWAY_DEFAULT_SYMBOL = os.getenv("GIVEAWAY_DEFAULT_SYMBOL", "👍")

# Retry limits
GIVEAWAY_RESOLVE_MAX_ATTEMPTS = int(os.getenv("GIVEAWAY_RESOLVE_MAX_ATTEMPTS", "3"))
GIVEAWAY_ID_MAX_ATTEMPTS = int(os.getenv("GIVEAWAY_ID_MAX_ATTEMPTS", "1000"))

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE", "")
