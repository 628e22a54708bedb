# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: MIT-0

# Locks the ALB to CloudFront: anything without the shared header gets a 403
# from the listener itself, so the containers never see unrouted traffic.

from dataclasses import dataclass
from enum import Enum
from typing import List, Mapping

from aws_cdk import aws_elasticloadbalancingv2 as elbv2


class EdgeDecision(Enum):
    FORWARD = 'forward'
    DENY = 'deny'


@dataclass(frozen=True)
class EdgeAuthorizationRule:
    header_name: str
    secret: str
    priority: int = 1
    deny_status_code: int = 403

    def default_action(self) -> elbv2.ListenerAction:
        return elbv2.ListenerAction.fixed_response(self.deny_status_code)

    def install(
        self,
        listener: elbv2.ApplicationListener,
        target_groups: List[elbv2.IApplicationTargetGroup],
    ) -> None:
        # Priority 1 so no other rule can forward the same path first
        listener.add_action(
            'ForwardFromCloudFront',
            action=elbv2.ListenerAction.forward(target_groups),
            conditions=[
                elbv2.ListenerCondition.http_header(self.header_name, [self.secret])
            ],
            priority=self.priority,
        )

    def evaluate(self, headers: Mapping[str, str]) -> EdgeDecision:
        """
        Simulates the listener against a request's headers.
        Like an ALB http-header condition, both the header name and the value
        compare case-insensitively.
        """
        wanted = self.header_name.lower()
        for name, value in headers.items():
            if name.lower() == wanted and value.lower() == self.secret.lower():
                return EdgeDecision.FORWARD
        return EdgeDecision.DENY
