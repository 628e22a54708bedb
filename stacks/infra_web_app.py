# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: MIT-0

from typing import Optional

from constructs import Construct
from aws_cdk import CfnOutput, Stack, Stage

from stacks.infra_cdn import Cdn
from stacks.infra_compute import Compute
from stacks.infra_network import Network
from util.config import DeploymentConfig
from util.edge_auth import EdgeAuthorizationRule
from util.secret_util import ORIGIN_HEADER_NAME, generate_secret


class WebApp(Stack):
    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        config: DeploymentConfig,
        header_secret: Optional[str] = None,
        **kwargs,
    ) -> None:
        super().__init__(scope, construct_id, **kwargs)

        # New secret on every synth unless the caller pins one
        self.header_secret = header_secret or generate_secret()
        edge_rule = EdgeAuthorizationRule(ORIGIN_HEADER_NAME, self.header_secret)

        network = Network(self, "network")

        compute = Compute(
            self,
            "compute",
            vpc=network.vpc,
            alb_security_group=network.alb_security_group,
            edge_rule=edge_rule,
            app_image=config.app_image,
        )

        cdn = Cdn(
            self,
            "cdn",
            alb=compute.alb,
            header_name=ORIGIN_HEADER_NAME,
            header_value=self.header_secret,
            domain_name=config.domain_name,
            log_level=config.log_level,
        )

        CfnOutput(self, "distributionDomain", value=cdn.distribution.domain_name,
                  description="CloudFront Domain")


class WebAppStage(Stage):
    def __init__(self, scope: Construct, construct_id: str, config: DeploymentConfig, **kwargs) -> None:
        super().__init__(scope, construct_id, **kwargs)
        WebApp(self, "resources", config=config)
