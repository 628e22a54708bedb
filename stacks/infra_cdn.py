# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: MIT-0

import os
import time

from constructs import Construct
from aws_cdk import (
    CustomResource,
    Duration,
    Stack,
    aws_certificatemanager as acm,
    aws_cloudfront as cloudfront,
    aws_cloudfront_origins as origins,
    aws_elasticloadbalancingv2 as elbv2,
    aws_iam as iam,
    aws_lambda,
    aws_logs as logs,
    aws_route53 as route53,
    aws_route53_targets as route53_targets,
    custom_resources as cr,
)

DEFAULT_ORIGIN_ID = 'default-origin'
ORIGIN_HEADER_ASSET = os.path.join(os.path.dirname(__file__), '..', 'lambda', 'origin_header')


class Cdn(Construct):
    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        alb: elbv2.IApplicationLoadBalancer,
        header_name: str,
        header_value: str,
        domain_name: str = '',
        log_level: str = 'INFO',
    ) -> None:
        super().__init__(scope, construct_id)

        account_id = Stack.of(self).account

        certificate = None
        hosted_zone = None
        if domain_name:
            hosted_zone = route53.HostedZone.from_lookup(
                self, "hosted-zone", domain_name=domain_name)
            certificate = acm.Certificate(
                self,
                "certificate",
                domain_name=domain_name,
                validation=acm.CertificateValidation.from_dns(hosted_zone),
            )

        # CloudFront distribution
        # The ALB origin is HTTP only, viewers are redirected to HTTPS at the edge.
        # The secret origin header is attached after creation by the custom resource below.
        self.distribution = cloudfront.Distribution(
            self,
            "cloudfront",
            minimum_protocol_version=cloudfront.SecurityPolicyProtocol.TLS_V1_2_2021,
            default_behavior=cloudfront.BehaviorOptions(
                origin=origins.LoadBalancerV2Origin(
                    alb,
                    http_port=80,
                    protocol_policy=cloudfront.OriginProtocolPolicy.HTTP_ONLY,
                    origin_id=DEFAULT_ORIGIN_ID,
                ),
                viewer_protocol_policy=cloudfront.ViewerProtocolPolicy.REDIRECT_TO_HTTPS,
                cache_policy=cloudfront.CachePolicy.CACHING_DISABLED,
                allowed_methods=cloudfront.AllowedMethods.ALLOW_GET_HEAD_OPTIONS,
                origin_request_policy=cloudfront.OriginRequestPolicy.ALL_VIEWER,
            ),
            domain_names=[domain_name] if domain_name else None,
            certificate=certificate,
            price_class=cloudfront.PriceClass.PRICE_CLASS_100,
        )

        if hosted_zone:
            alias_target = route53.RecordTarget.from_alias(
                route53_targets.CloudFrontTarget(self.distribution))
            route53.ARecord(self, "a-record", zone=hosted_zone, target=alias_target)
            route53.AaaaRecord(self, "aaaa-record", zone=hosted_zone, target=alias_target)

        # Role for the origin header Lambda, scoped to this distribution
        origin_header_role = iam.Role(
            self,
            "origin-header-fn-role",
            assumed_by=iam.ServicePrincipal("lambda.amazonaws.com"),
            inline_policies={
                "cloudfront-policy": iam.PolicyDocument(
                    statements=[
                        iam.PolicyStatement(
                            actions=[
                                "cloudfront:GetDistribution",
                                "cloudfront:GetDistributionConfig",
                                "cloudfront:UpdateDistribution",
                            ],
                            resources=[
                                f"arn:aws:cloudfront::{account_id}:distribution/{self.distribution.distribution_id}"
                            ],
                        )
                    ]
                )
            },
            managed_policies=[
                iam.ManagedPolicy.from_aws_managed_policy_name(
                    "service-role/AWSLambdaBasicExecutionRole")
            ],
        )

        origin_header_fn = aws_lambda.Function(
            self,
            "origin-header-fn",
            description="Attaches the origin secret header to the CloudFront distribution",
            runtime=aws_lambda.Runtime.PYTHON_3_12,
            architecture=aws_lambda.Architecture.ARM_64,
            handler="origin_header.lambda_handler",
            code=aws_lambda.Code.from_asset(ORIGIN_HEADER_ASSET),
            timeout=Duration.minutes(1),
            role=origin_header_role,
            environment={"LOG_LEVEL": log_level},
        )

        provider = cr.Provider(
            self,
            "origin-header-provider",
            on_event_handler=origin_header_fn,
            log_retention=logs.RetentionDays.ONE_WEEK,
        )

        # Nonce changes on every synth so each deploy sends an Update, even with a pinned
        # secret, and the header is put back after CloudFormation rewrites the distribution
        self.origin_header = CustomResource(
            self,
            "origin-header",
            service_token=provider.service_token,
            properties={
                "Nonce": str(time.time()),
                "DistributionId": self.distribution.distribution_id,
                "Origins": [
                    {
                        "OriginId": DEFAULT_ORIGIN_ID,
                        "CustomHeaders": [
                            {"HeaderName": header_name, "HeaderValue": header_value}
                        ],
                    }
                ],
            },
        )
