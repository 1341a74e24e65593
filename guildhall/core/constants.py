"""Global constants for the guildhall application."""

# Collection names
USERS_COLLECTION = "users"
GUILD_COLLECTION = "guild"
GUILD_SETTINGS_DOC = "settings"
FEED_COLLECTION = "feed"
MERCHANT_FEED_COLLECTION = "feedMerchants"
TRADE_COLLECTION = "trade"
TRADE_ITEMS_COLLECTION = "tradeItems"
MERCHANTS_COLLECTION = "tradeMerchants"
GUILD_LOANS_COLLECTION = "guildLoans"
MERCHANT_LOANS_COLLECTION = "merchantLoans"
GOLD_DONATIONS_COLLECTION = "guilddonate"
CASH_DONATIONS_COLLECTION = "guilddonatecash"
SPLIT_BILLS_COLLECTION = "splitBills"
TOURNAMENTS_COLLECTION = "tournaments"
EVENTS_COLLECTION = "events"
EVENT_PARTICIPANTS_COLLECTION = "participants"
PARTIES_COLLECTION = "parties"

# Defaults for app.config
DEFAULT_GUILD_NAME = "GalaxyCat"
DEFAULT_SPLIT_BILL_TTL_DAYS = 7
DEFAULT_TOURNAMENT_MAX_PARTICIPANTS = 32
DEFAULT_FEED_PAGE_SIZE = 50

# Time
MS_PER_MINUTE = 60 * 1000
MS_PER_HOUR = 60 * MS_PER_MINUTE
MS_PER_DAY = 24 * MS_PER_HOUR

# Stamp exchange used by the split calculator
CASH_PER_STAMP = 35
CASH_PER_BAHT = 39
