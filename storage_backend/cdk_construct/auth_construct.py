from constructs import Construct
from aws_cdk import (
    aws_cognito as cognito,
    aws_iam as iam,
)

COGNITO_IDENTITY = "cognito-identity.amazonaws.com"


class AuthConstruct(Construct):
    """User pool, admin group, app client and the identity pool with its two roles."""

    def __init__(self, scope: Construct, id: str, *, cfg: dict) -> None:
        super().__init__(scope, id)

        self.user_pool_cfg = cfg.get("userPool", {}) or {}
        self.identity_pool_cfg = cfg.get("identityPool", {}) or {}

        self.user_pool = self._create_user_pool()
        self.admin_group = self._create_admin_group()
        self.user_pool_client = cognito.UserPoolClient(
            self, "UserPoolClient", user_pool=self.user_pool,
        )
        self.identity_pool = self._create_identity_pool()

        self.unauthenticated_role = self._create_identity_role("unauthenticated")
        self.authenticated_role = self._create_identity_role("authenticated")
        self._attach_roles()

    def _create_user_pool(self) -> cognito.UserPool:
        return cognito.UserPool(
            self, "ProductTestUserPool",
            self_sign_up_enabled=self.user_pool_cfg.get("selfSignUpEnabled", True),
            account_recovery=cognito.AccountRecovery.PHONE_AND_EMAIL,
            user_verification=cognito.UserVerificationConfig(
                email_style=cognito.VerificationEmailStyle.CODE,
            ),
            auto_verify=cognito.AutoVerifiedAttrs(email=True),
            standard_attributes=cognito.StandardAttributes(
                email=cognito.StandardAttribute(required=True, mutable=True),
            ),
        )

    def _create_admin_group(self) -> cognito.CfnUserPoolGroup:
        return cognito.CfnUserPoolGroup(
            self, "ProductUserPoolGroup",
            user_pool_id=self.user_pool.user_pool_id,
            group_name=self.user_pool_cfg.get("adminGroupName", "Admin"),
            description=self.user_pool_cfg.get(
                "adminGroupDescription", "Admin users for the ProductTestAPI"
            ),
        )

    def _create_identity_pool(self) -> cognito.CfnIdentityPool:
        return cognito.CfnIdentityPool(
            self, "IdentityDemoPool",
            identity_pool_name=self.identity_pool_cfg.get(
                "name", "identityDemoForProductData"
            ),
            allow_unauthenticated_identities=self.identity_pool_cfg.get(
                "allowUnauthenticatedIdentities", True
            ),
            cognito_identity_providers=[
                cognito.CfnIdentityPool.CognitoIdentityProviderProperty(
                    client_id=self.user_pool_client.user_pool_client_id,
                    provider_name=self.user_pool.user_pool_provider_name,
                )
            ],
        )

    def _create_identity_role(self, amr: str) -> iam.Role:
        """Role assumable only through this identity pool for the given amr claim."""
        return iam.Role(
            self, f"{amr.capitalize()}Role",
            assumed_by=iam.FederatedPrincipal(
                COGNITO_IDENTITY,
                conditions={
                    "StringEquals": {
                        f"{COGNITO_IDENTITY}:aud": self.identity_pool.ref
                    },
                    "ForAnyValue:StringLike": {
                        f"{COGNITO_IDENTITY}:amr": amr
                    },
                },
                assume_role_action="sts:AssumeRoleWithWebIdentity",
            ),
            description=f"Identity pool role for {amr} identities",
        )

    def _attach_roles(self) -> None:
        cognito.CfnIdentityPoolRoleAttachment(
            self, "IdentityPoolRoleAttachment",
            identity_pool_id=self.identity_pool.ref,
            roles={
                "authenticated": self.authenticated_role.role_arn,
                "unauthenticated": self.unauthenticated_role.role_arn,
            },
        )
