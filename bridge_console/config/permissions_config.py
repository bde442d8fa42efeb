"""
Permissions and Roles Configuration
This config defines the permission matrix for every console resource and the
roles that hold them. The resolver in core/permissions.py reads ROLE_PERMISSIONS;
/auth/me exposes the same names to the frontend.
"""

# Define resources and their actions
MODULES = {
    "clients": {
        "resource": "clients",
        "actions": ["create", "read", "update", "delete"],
        "description": "Client companies"
    },
    "licenses": {
        "resource": "licenses",
        "actions": ["create", "read", "update", "delete"],
        "description": "Software licenses"
    },
    "equipment": {
        "resource": "equipment",
        "actions": ["create", "read", "update", "delete"],
        "description": "Hardware equipment"
    },
    "reports": {
        "resource": "reports",
        "actions": ["read", "export"],
        "description": "Dashboard and statistics"
    },
    "users": {
        "resource": "users",
        "actions": ["create", "read", "update", "delete", "validate"],
        "description": "Console user accounts"
    },
}

# Role definitions: which actions each role holds on each resource.
# "*" means every action declared for the resource.
ROLE_TYPES = {
    "admin": {
        "view_all": True,
        "grants": {
            "clients": ["*"],
            "licenses": ["*"],
            "equipment": ["*"],
            "reports": ["*"],
            "users": ["*"],
        },
        "description": "Full access to every client's data"
    },
    "technician": {
        "view_all": True,
        "grants": {
            "clients": ["create", "read", "update"],
            "licenses": ["create", "read", "update"],
            "equipment": ["create", "read", "update"],
            "reports": ["read"],
        },
        "description": "Manages data for every client, cannot delete"
    },
    "client": {
        "view_all": False,
        "grants": {
            "clients": ["read"],
            "licenses": ["read"],
            "equipment": ["read"],
            "reports": ["read"],
        },
        "description": "Read-only access to the user's own client"
    },
    "unverified": {
        "view_all": False,
        "grants": {},
        "description": "Signed up, waiting for an administrator to validate the account"
    },
}

DEFAULT_ROLE = "unverified"


def get_permission_matrix():
    """
    Returns a dictionary with all permissions and the roles holding them
    Format: {
        "permissions": [
            {"name": "clients:create", "resource": "clients", "action": "create", "description": "..."},
            ...
        ],
        "roles": [
            {"name": "admin", "view_all": True, "description": "...", "permissions": ["clients:create", ...]},
            ...
        ]
    }
    """
    permissions = []
    roles = []

    for module_config in MODULES.values():
        resource = module_config["resource"]
        for action in module_config["actions"]:
            permissions.append({
                "name": f"{resource}:{action}",
                "resource": resource,
                "action": action,
                "description": f"{action.capitalize()} {module_config['description'].lower()}"
            })

    for role_name, role_config in ROLE_TYPES.items():
        role_permissions = []
        for resource, actions in role_config["grants"].items():
            declared = MODULES[resource]["actions"]
            granted = declared if "*" in actions else [a for a in actions if a in declared]
            role_permissions.extend(f"{resource}:{action}" for action in granted)

        roles.append({
            "name": role_name,
            "view_all": role_config["view_all"],
            "description": role_config["description"],
            "permissions": sorted(role_permissions)
        })

    return {
        "permissions": permissions,
        "roles": roles
    }


# Export the matrix for the resolver
PERMISSION_MATRIX = get_permission_matrix()

ROLE_PERMISSIONS = {role["name"]: frozenset(role["permissions"]) for role in PERMISSION_MATRIX["roles"]}
ROLE_VIEW_ALL = {role["name"]: role["view_all"] for role in PERMISSION_MATRIX["roles"]}
