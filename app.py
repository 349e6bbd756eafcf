#!/usr/bin/env python
import logging
import os

import aws_cdk as cdk
from storage_backend.config.load import load_config, validate_config
from storage_backend.stacks.storage_backend_stack import StorageBackendStack

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO"),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = cdk.App()

cfg = validate_config(load_config(app))

env = cdk.Environment(
    account=cfg.get("awsAccount") or os.getenv("CDK_DEFAULT_ACCOUNT"),
    region=cfg.get("awsRegion") or os.getenv("CDK_DEFAULT_REGION"),
)

StorageBackendStack(
    app,
    cfg["stackName"],
    cfg=cfg,
    env=env,
)

app.synth()
