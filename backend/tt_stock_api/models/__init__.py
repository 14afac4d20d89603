from tt_stock_api.models.token_blacklist import TokenBlacklistEntry
from tt_stock_api.models.user import User

__all__ = [
    "TokenBlacklistEntry",
    "User",
]
