# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: MIT-0

from constructs import Construct
from aws_cdk import aws_ec2 as ec2


class Network(Construct):
    def __init__(self, scope: Construct, construct_id: str) -> None:
        super().__init__(scope, construct_id)

        # Public subnets only, no NAT gateways: tasks pull images over their public IP
        self.vpc = ec2.Vpc(
            self,
            "vpc",
            subnet_configuration=[
                ec2.SubnetConfiguration(
                    cidr_mask=24,
                    name="public-subnet",
                    subnet_type=ec2.SubnetType.PUBLIC,
                )
            ],
            max_azs=2,
            nat_gateways=0,
        )

        # The ALB is reachable from anywhere on port 80.
        # Requests that did not come through CloudFront are refused by the listener rules.
        self.alb_security_group = ec2.SecurityGroup(
            self,
            "alb-security-group",
            vpc=self.vpc,
            description="Security Group for ALB",
        )
        self.alb_security_group.add_ingress_rule(ec2.Peer.any_ipv4(), ec2.Port.tcp(80))
