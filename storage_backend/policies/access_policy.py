from dataclasses import dataclass, field
from enum import Enum

# Resolved by the identity pool at request time, never expanded here.
SELF_TOKEN = "${cognito-identity.amazonaws.com:sub}"

PUBLIC_PREFIX = "public/"
PROTECTED_PREFIX = "protected/"
PRIVATE_PREFIX = "private/"

GET_OBJECT = "s3:GetObject"
PUT_OBJECT = "s3:PutObject"
DELETE_OBJECT = "s3:DeleteObject"
LIST_BUCKET = "s3:ListBucket"

READ_ACTIONS = (GET_OBJECT,)
READ_WRITE_ACTIONS = (PUT_OBJECT, GET_OBJECT, DELETE_OBJECT)


class IdentityRole(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED = "authenticated"


@dataclass(frozen=True)
class PermissionStatement:
    actions: tuple[str, ...]
    resource: str
    # s3:prefix values a ListBucket statement is limited to
    list_prefixes: tuple[str, ...] | None = None
    effect: str = "Allow"

    @property
    def conditions(self) -> dict | None:
        """A fresh IAM condition block, or None when the statement is unconditioned."""
        if self.list_prefixes is None:
            return None
        return {"StringLike": {"s3:prefix": list(self.list_prefixes)}}

    def to_dict(self) -> dict:
        """Render as an IAM policy statement."""
        statement = {
            "Effect": self.effect,
            "Action": list(self.actions),
            "Resource": self.resource,
        }
        conditions = self.conditions
        if conditions:
            statement["Condition"] = conditions
        return statement


@dataclass(frozen=True)
class PolicyDocument:
    role: IdentityRole
    statements: tuple[PermissionStatement, ...] = field(default_factory=tuple)

    def resources(self) -> set[str]:
        return {s.resource for s in self.statements}

    def actions_for(self, resource: str) -> set[str]:
        """All actions granted on ``resource`` across every statement."""
        granted = set()
        for statement in self.statements:
            if statement.resource == resource:
                granted.update(statement.actions)
        return granted

    def list_prefixes(self) -> set[str]:
        """Prefixes the role may enumerate through ``s3:ListBucket``."""
        prefixes = set()
        for statement in self.statements:
            if LIST_BUCKET in statement.actions and statement.list_prefixes:
                prefixes.update(statement.list_prefixes)
        return prefixes

    def to_dict(self) -> dict:
        return {
            "Version": "2012-10-17",
            "Statement": [s.to_dict() for s in self.statements],
        }


def container_arn(container_name: str) -> str:
    return f"arn:aws:s3:::{container_name}"


def object_arn(container_name: str, key_pattern: str) -> str:
    return f"{container_arn(container_name)}/{key_pattern}"


def _list_statement(container_name: str, prefixes: list[str]) -> PermissionStatement:
    return PermissionStatement(
        actions=(LIST_BUCKET,),
        resource=container_arn(container_name),
        list_prefixes=tuple(prefixes),
    )


def _shared_list_prefixes() -> list[str]:
    return [
        PUBLIC_PREFIX,
        f"{PUBLIC_PREFIX}*",
        PROTECTED_PREFIX,
        f"{PROTECTED_PREFIX}*",
    ]


def unauthenticated_policy(container_name: str) -> PolicyDocument:
    """Guests read ``public/`` and ``protected/`` and may list only those."""
    return PolicyDocument(
        role=IdentityRole.UNAUTHENTICATED,
        statements=(
            PermissionStatement(
                actions=READ_ACTIONS,
                resource=object_arn(container_name, f"{PUBLIC_PREFIX}*"),
            ),
            PermissionStatement(
                actions=READ_ACTIONS,
                resource=object_arn(container_name, f"{PROTECTED_PREFIX}*"),
            ),
            _list_statement(container_name, _shared_list_prefixes()),
        ),
    )


def authenticated_policy(container_name: str) -> PolicyDocument:
    """
    Signed-in users get read/write/delete on ``public/`` and on their own
    ``protected/`` and ``private/`` segments, plus read on every
    ``protected/`` segment.
    """
    own_protected = f"{PROTECTED_PREFIX}{SELF_TOKEN}/"
    own_private = f"{PRIVATE_PREFIX}{SELF_TOKEN}/"
    return PolicyDocument(
        role=IdentityRole.AUTHENTICATED,
        statements=(
            PermissionStatement(
                actions=READ_WRITE_ACTIONS,
                resource=object_arn(container_name, f"{PUBLIC_PREFIX}*"),
            ),
            PermissionStatement(
                actions=READ_WRITE_ACTIONS,
                resource=object_arn(container_name, f"{own_protected}*"),
            ),
            PermissionStatement(
                actions=READ_WRITE_ACTIONS,
                resource=object_arn(container_name, f"{own_private}*"),
            ),
            # Any signed-in user can read any other user's protected data.
            PermissionStatement(
                actions=READ_ACTIONS,
                resource=object_arn(container_name, f"{PROTECTED_PREFIX}*"),
            ),
            _list_statement(
                container_name,
                _shared_list_prefixes() + [own_private, f"{own_private}*"],
            ),
        ),
    )


def build_access_policies(container_name: str) -> dict[IdentityRole, PolicyDocument]:
    return {
        IdentityRole.UNAUTHENTICATED: unauthenticated_policy(container_name),
        IdentityRole.AUTHENTICATED: authenticated_policy(container_name),
    }
