import copy

import aws_cdk as cdk
import pytest
from aws_cdk.assertions import Template

from storage_backend.stacks.storage_backend_stack import StorageBackendStack

BASE_CFG = {
    "stackName": "AppsyncWithS3BackendStack",
    "stage": "test",
    "userPool": {"adminGroupName": "Admin"},
    "identityPool": {"name": "identityDemoForProductData"},
    "bucket": {"removalPolicy": "destroy", "autoDeleteObjects": True, "publicRead": True},
    "cors": {"allowedOrigins": ["http://localhost:3000"]},
}


@pytest.fixture()
def cfg() -> dict:
    return copy.deepcopy(BASE_CFG)


@pytest.fixture()
def synth():
    def _synth(cfg: dict) -> Template:
        app = cdk.App()
        stack = StorageBackendStack(
            app,
            cfg["stackName"],
            cfg=cfg,
            env=cdk.Environment(account="123456789012", region="us-east-1"),
        )
        return Template.from_stack(stack)

    return _synth


@pytest.fixture()
def template(synth, cfg) -> Template:
    return synth(cfg)
