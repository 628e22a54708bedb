# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: MIT-0

import aws_cdk as cdk
import os

from stacks.infra_pipeline import Pipeline
from stacks.infra_web_app import WebApp
from util.config import DeploymentConfig

app = cdk.App()

APP_PREFIX = 'cf-locked-web-app'
PIPELINE_STACK_NAME = f"{APP_PREFIX}-pipeline"
WEB_APP_STACK_NAME = f"{APP_PREFIX}-web-app"

# Reads LOG_LEVEL, DOMAIN_NAME, APP_IMAGE and the pipeline source settings
# from the environment or a .env file
config = DeploymentConfig.from_env()

# CloudFront certificates must be issued in us-east-1, so everything deploys there
env = cdk.Environment(
    account=os.environ.get("CDK_DEFAULT_ACCOUNT"),
    region="us-east-1",
)

# The pipeline stack creates:
#   - Self-mutating CodePipeline sourced from a CodeStar connection
#   - Deployment stage with the web app stack below
# `cdk deploy -c direct=true` skips the pipeline and deploys the web app stack:
#   - VPC with public subnets and an ALB security group
#   - ECS Fargate service behind an ALB that only forwards requests carrying
#     the CloudFront origin header secret (403 otherwise)
#   - CloudFront distribution with the ALB as origin
#   - Custom resource that writes the secret header onto the CloudFront origin
if app.node.try_get_context("direct") in ("true", True):
    WebApp(app, WEB_APP_STACK_NAME, config=config, env=env)
else:
    Pipeline(app, PIPELINE_STACK_NAME, config=config, env=env)

app.synth()
