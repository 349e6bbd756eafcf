from constructs import Construct
from aws_cdk import Stack, CfnOutput

from storage_backend.cdk_construct.auth_construct import AuthConstruct
from storage_backend.cdk_construct.storage_construct import StorageConstruct


class StorageBackendStack(Stack):
    def __init__(self, scope: Construct, construct_id: str, *, cfg: dict, **kwargs) -> None:
        super().__init__(scope, construct_id, **kwargs)

        self.auth = AuthConstruct(self, "Auth", cfg=cfg)
        self.storage = StorageConstruct(
            self,
            "Storage",
            cfg=cfg,
            unauthenticated_role=self.auth.unauthenticated_role,
            authenticated_role=self.auth.authenticated_role,
        )

        self._create_outputs()

    def _create_outputs(self) -> None:
        """Values the client application reads to configure its storage library."""
        CfnOutput(self, "ProductBucketName", value=self.storage.bucket.bucket_name)
        CfnOutput(self, "ProductBucketRegion", value=self.region)
        CfnOutput(self, "UserPoolId", value=self.auth.user_pool.user_pool_id)
        CfnOutput(
            self, "UserPoolClientId",
            value=self.auth.user_pool_client.user_pool_client_id,
        )
        CfnOutput(self, "IdentityPoolId", value=self.auth.identity_pool.ref)
