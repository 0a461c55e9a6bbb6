ROLE_USER = "USER"
ROLE_ADMIN = "ADMIN"

# API role name -> stored role name
API_ROLES = {"user": ROLE_USER, "admin": ROLE_ADMIN}


def stored_role_name(api_role):
    if not isinstance(api_role, str):
        return None
    return API_ROLES.get(api_role.strip().lower())
