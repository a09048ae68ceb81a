# Usage:
#   python Scripts/make_admin.py admin@example.com
# Prints a bearer token carrying the game_admin role (allows ?impersonate=)

import sys

from lms_manager.core.game_config import ROLE_GAME_ADMIN
from lms_manager.core.security import create_access_token

if len(sys.argv) != 2:
    print("Usage: python Scripts/make_admin.py <email>")
    sys.exit(1)

email = sys.argv[1].strip().lower()
print(create_access_token({"sub": email, "roles": [ROLE_GAME_ADMIN]}))
