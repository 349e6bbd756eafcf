import logging

from constructs import Construct
from aws_cdk import (
    RemovalPolicy,
    aws_iam as iam,
    aws_s3 as s3,
)

from storage_backend.policies.access_policy import (
    PUBLIC_PREFIX,
    PermissionStatement,
    IdentityRole,
    PolicyDocument,
    build_access_policies,
)

logger = logging.getLogger(__name__)

HTTP_METHOD_MAP = {
    "GET": s3.HttpMethods.GET,
    "PUT": s3.HttpMethods.PUT,
    "HEAD": s3.HttpMethods.HEAD,
    "POST": s3.HttpMethods.POST,
    "DELETE": s3.HttpMethods.DELETE,
}

REMOVAL_POLICY_MAP = {
    "destroy": RemovalPolicy.DESTROY,
    "retain": RemovalPolicy.RETAIN,
}

DEFAULT_ALLOWED_ORIGINS = ["http://localhost:3000"]
DEFAULT_ALLOWED_METHODS = ["GET", "POST", "PUT", "DELETE"]

POLICY_DESCRIPTIONS = {
    IdentityRole.UNAUTHENTICATED:
        "managed policy to allow usage of Storage Library for unauth",
    IdentityRole.AUTHENTICATED:
        "managed Policy to allow usage of storage library for auth",
}


class StorageConstruct(Construct):
    """Product bucket plus the managed policies that scope each identity role to it."""

    def __init__(
        self,
        scope: Construct,
        id: str,
        *,
        cfg: dict,
        unauthenticated_role: iam.IRole,
        authenticated_role: iam.IRole,
    ) -> None:
        super().__init__(scope, id)

        self.bucket_cfg = cfg.get("bucket", {}) or {}
        self.cors_cfg = cfg.get("cors", {}) or {}
        self.public_read = bool(self.bucket_cfg.get("publicRead", True))

        self.bucket = self._create_bucket()
        if self.public_read:
            self._grant_public_read()

        self.policies = build_access_policies(self.bucket.bucket_name)
        self.unauth_policy = self._create_managed_policy(
            "mangedPolicyForAmplifyUnauth",
            self.policies[IdentityRole.UNAUTHENTICATED],
            unauthenticated_role,
        )
        self.auth_policy = self._create_managed_policy(
            "mangedPolicyForAmplifyAuth",
            self.policies[IdentityRole.AUTHENTICATED],
            authenticated_role,
        )

    def _resolve_removal_policy(self) -> RemovalPolicy:
        name = str(self.bucket_cfg.get("removalPolicy", "destroy")).lower()
        removal_policy = REMOVAL_POLICY_MAP.get(name)
        if removal_policy is None:
            raise ValueError(
                f"Unsupported removalPolicy '{name}'. "
                f"Choose one of: {list(REMOVAL_POLICY_MAP.keys())}"
            )
        return removal_policy

    def _build_cors_rule(self) -> s3.CorsRule:
        methods = []
        for method in self.cors_cfg.get("allowedMethods") or DEFAULT_ALLOWED_METHODS:
            http_method = HTTP_METHOD_MAP.get(str(method).upper())
            if http_method is None:
                raise ValueError(
                    f"Unsupported CORS method '{method}'. "
                    f"Choose one of: {list(HTTP_METHOD_MAP.keys())}"
                )
            methods.append(http_method)

        origins = self.cors_cfg.get("allowedOrigins") or DEFAULT_ALLOWED_ORIGINS
        logger.info("Bucket CORS allows origins %s", origins)
        return s3.CorsRule(
            allowed_methods=methods,
            allowed_origins=origins,
            allowed_headers=self.cors_cfg.get("allowedHeaders") or ["*"],
        )

    def _create_bucket(self) -> s3.Bucket:
        removal_policy = self._resolve_removal_policy()
        # auto-delete is only valid on buckets CloudFormation may destroy
        auto_delete = (
            bool(self.bucket_cfg.get("autoDeleteObjects", True))
            and removal_policy == RemovalPolicy.DESTROY
        )
        if self.public_read:
            block_public_access = s3.BlockPublicAccess(
                block_public_acls=True,
                ignore_public_acls=True,
                block_public_policy=False,
                restrict_public_buckets=False,
            )
        else:
            block_public_access = s3.BlockPublicAccess.BLOCK_ALL

        return s3.Bucket(
            self, "s3-bucket",
            bucket_name=self.bucket_cfg.get("name") or None,
            removal_policy=removal_policy,
            auto_delete_objects=auto_delete,
            block_public_access=block_public_access,
            cors=[self._build_cors_rule()],
        )

    def _grant_public_read(self) -> None:
        self.bucket.add_to_resource_policy(
            iam.PolicyStatement(
                effect=iam.Effect.ALLOW,
                actions=["s3:GetObject"],
                principals=[iam.AnyPrincipal()],
                resources=[self.bucket.arn_for_objects(f"{PUBLIC_PREFIX}*")],
            )
        )

    def _create_managed_policy(
        self, id: str, document: PolicyDocument, role: iam.IRole
    ) -> iam.ManagedPolicy:
        return iam.ManagedPolicy(
            self, id,
            description=POLICY_DESCRIPTIONS[document.role],
            statements=[to_policy_statement(s) for s in document.statements],
            roles=[role],
        )


def to_policy_statement(statement: PermissionStatement) -> iam.PolicyStatement:
    """Convert a model statement into its CDK form."""
    return iam.PolicyStatement(
        effect=iam.Effect.ALLOW if statement.effect == "Allow" else iam.Effect.DENY,
        actions=list(statement.actions),
        resources=[statement.resource],
        conditions=statement.conditions,
    )
