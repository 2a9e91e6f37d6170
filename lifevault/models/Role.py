from enum import Enum

class Role(str, Enum):
    OWNER = "owner"
    NOMINEE = "nominee"
    ADMIN = "admin"

# Role claim carried by setup tokens; never persisted on a user
SETUP_ROLE = "temp"
