"""Role-based permission table.

The table maps role -> action -> set of resource names. It is loaded once at
startup, validated, and frozen; changing it requires a restart.
"""
import logging
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping, Union

import yaml

logger = logging.getLogger("issuetracker-core.permissions")

ACTIONS = frozenset({"read", "create", "update", "delete"})

METHOD_ACTIONS: Mapping[str, str] = MappingProxyType({
    "GET": "read",
    "POST": "create",
    "PATCH": "update",
    "DELETE": "delete",
})


class PermissionConfigError(ValueError):
    """Raised when the permission source is malformed."""
    pass


def action_from_method(method: str) -> str:
    """
    Map a transport verb to a canonical action name.

    Args:
        method: HTTP method, e.g. "GET"

    Returns:
        "read", "create", "update" or "delete"; "" for any other verb
    """
    return METHOD_ACTIONS.get(method.upper(), "")


class PermissionTable:
    """Immutable role -> action -> resources lookup."""

    def __init__(self, roles: Mapping[str, Mapping[str, frozenset[str]]]):
        self._roles = MappingProxyType({
            role: MappingProxyType(dict(actions)) for role, actions in roles.items()
        })

    @property
    def roles(self) -> Mapping[str, Mapping[str, frozenset[str]]]:
        return self._roles

    def has_permission(self, role: str, action: str, resource: str) -> bool:
        """Return True iff role exists, has action, and action covers resource."""
        actions = self._roles.get(role)
        if actions is None:
            return False
        resources = actions.get(action)
        if resources is None:
            return False
        return resource in resources

    @classmethod
    def from_mapping(cls, data: Any) -> "PermissionTable":
        """
        Validate raw parsed data and freeze it into a table.

        Args:
            data: Parsed `{role: {action: [resource, ...]}}` structure

        Returns:
            PermissionTable

        Raises:
            PermissionConfigError: If any level has the wrong shape
        """
        if not isinstance(data, dict):
            raise PermissionConfigError("permission source must be a mapping of roles")

        roles: dict[str, dict[str, frozenset[str]]] = {}
        for role, actions in data.items():
            if not isinstance(role, str) or not role:
                raise PermissionConfigError(f"role names must be non-empty strings, got {role!r}")
            if actions is None:
                actions = {}
            if not isinstance(actions, dict):
                raise PermissionConfigError(f"role '{role}' must map actions to resource lists")

            frozen: dict[str, frozenset[str]] = {}
            for action, resources in actions.items():
                if action not in ACTIONS:
                    raise PermissionConfigError(
                        f"role '{role}' has unknown action {action!r}; expected one of {sorted(ACTIONS)}"
                    )
                if not isinstance(resources, list):
                    raise PermissionConfigError(f"role '{role}' action '{action}' must be a list of resources")
                for resource in resources:
                    if not isinstance(resource, str) or not resource:
                        raise PermissionConfigError(
                            f"role '{role}' action '{action}' has invalid resource {resource!r}"
                        )
                frozen[action] = frozenset(resources)
            roles[role] = frozen

        return cls(roles)


def load_permissions(path: Union[str, Path]) -> PermissionTable:
    """
    Load the permission table from a YAML (or JSON) file.

    Args:
        path: Path to the permission file

    Returns:
        PermissionTable

    Raises:
        PermissionConfigError: If the file is missing, unparsable or malformed
    """
    path = Path(path)
    try:
        data = yaml.safe_load(path.read_text())
    except OSError as e:
        raise PermissionConfigError(f"cannot read permission file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise PermissionConfigError(f"cannot parse permission file {path}: {e}") from e

    table = PermissionTable.from_mapping(data)
    logger.info(f"Loaded permissions for {len(table.roles)} roles from {path}")
    return table
