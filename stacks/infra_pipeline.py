# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: MIT-0

from constructs import Construct
from aws_cdk import (
    Environment,
    Stack,
    aws_iam as iam,
    pipelines,
)

from stacks.infra_web_app import WebAppStage
from util.config import DeploymentConfig


class Pipeline(Stack):
    def __init__(self, scope: Construct, construct_id: str, config: DeploymentConfig,
                 env: Environment, **kwargs) -> None:
        # Fail before any construct exists
        config.require_pipeline_source()

        super().__init__(scope, construct_id, env=env, **kwargs)

        pipeline = pipelines.CodePipeline(
            self,
            "pipeline",
            synth=pipelines.CodeBuildStep(
                "synth",
                input=pipelines.CodePipelineSource.connection(
                    config.github_repo,
                    config.github_branch,
                    connection_arn=config.connection_arn,
                ),
                # Synth in CodeBuild sees the same settings as the local synth
                env=config.as_environment(),
                commands=[
                    "npm install -g aws-cdk",
                    "pip install .",
                    "cdk synth",
                ],
                # Allows HostedZone.from_lookup during synth
                role_policy_statements=[
                    iam.PolicyStatement(
                        actions=["sts:AssumeRole"],
                        resources=["*"],
                        conditions={
                            "StringEquals": {
                                "iam:ResourceTag/aws-cdk:bootstrap-role": "lookup",
                            }
                        },
                    )
                ],
            ),
            self_mutation=True,
        )

        pipeline.add_stage(WebAppStage(self, "web-app", config=config, env=env))
