from models.base_model import Base
from models.user import User, UserStatus
from models.refresh_token import RefreshToken
from models.db_storage import DBStorage
from models.user_store import UserStore
from models.token_store import RefreshTokenStore

__all__ = [
    "Base",
    "User",
    "UserStatus",
    "RefreshToken",
    "DBStorage",
    "UserStore",
    "RefreshTokenStore",
]
