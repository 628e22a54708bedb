# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: MIT-0

from constructs import Construct
from aws_cdk import (
    aws_ec2 as ec2,
    aws_ecs as ecs,
    aws_elasticloadbalancingv2 as elbv2,
)

from util.edge_auth import EdgeAuthorizationRule

CONTAINER_PORT = 3000


class Compute(Construct):
    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        vpc: ec2.IVpc,
        alb_security_group: ec2.ISecurityGroup,
        edge_rule: EdgeAuthorizationRule,
        app_image: str,
    ) -> None:
        super().__init__(scope, construct_id)

        cluster = ecs.Cluster(self, "cluster", vpc=vpc)

        self.alb = elbv2.ApplicationLoadBalancer(
            self,
            "alb",
            vpc=vpc,
            vpc_subnets=ec2.SubnetSelection(subnet_type=ec2.SubnetType.PUBLIC),
            internet_facing=True,
            security_group=alb_security_group,
        )

        task = ecs.FargateTaskDefinition(
            self,
            "task",
            memory_limit_mib=2048,
            cpu=1024,
            runtime_platform=ecs.RuntimePlatform(
                operating_system_family=ecs.OperatingSystemFamily.LINUX,
                cpu_architecture=ecs.CpuArchitecture.X86_64,
            ),
        )
        task.add_container(
            "app-container",
            image=ecs.ContainerImage.from_registry(app_image),
            container_name="app",
            port_mappings=[ecs.PortMapping(container_port=CONTAINER_PORT, host_port=CONTAINER_PORT)],
            logging=ecs.LogDrivers.aws_logs(stream_prefix="app"),
        )

        task_security_group = ec2.SecurityGroup(self, "task-security-group", vpc=vpc)

        self.service = ecs.FargateService(
            self,
            "service",
            cluster=cluster,
            task_definition=task,
            assign_public_ip=True,
            desired_count=1,
            vpc_subnets=ec2.SubnetSelection(subnet_type=ec2.SubnetType.PUBLIC),
            security_groups=[task_security_group],
        )

        scaling = self.service.auto_scale_task_count(max_capacity=10)
        scaling.scale_on_cpu_utilization("cpu-scaling", target_utilization_percent=50)

        target_group = elbv2.ApplicationTargetGroup(
            self,
            "target-group",
            vpc=vpc,
            port=CONTAINER_PORT,
            protocol=elbv2.ApplicationProtocol.HTTP,
            targets=[self.service],
            health_check=elbv2.HealthCheck(
                path="/",
                protocol=elbv2.Protocol.HTTP,
                port=str(CONTAINER_PORT),
            ),
        )

        # Default 403, forward only when the CloudFront origin header carries the secret
        listener = self.alb.add_listener(
            "listener",
            port=80,
            protocol=elbv2.ApplicationProtocol.HTTP,
            open=True,
            default_action=edge_rule.default_action(),
        )
        edge_rule.install(listener, [target_group])
