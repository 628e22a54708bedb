# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: MIT-0

import copy
from types import SimpleNamespace

import pytest

from reconciler import ConcurrencyConflict, NotFound, ValidationError


class FakeDistributionStore:
    """In-memory stand-in for CloudFront's get/update distribution config with ETags."""

    def __init__(self):
        self.distributions = {}
        self.gets = 0
        self.puts = []
        # Callables run at the start of put(), each one simulating another writer
        self.concurrent_writers = []

    def add(self, distribution_id, config, etag='ETAG1'):
        self.distributions[distribution_id] = (copy.deepcopy(config), etag)

    def config(self, distribution_id):
        return copy.deepcopy(self.distributions[distribution_id][0])

    def etag(self, distribution_id):
        return self.distributions[distribution_id][1]

    def modify(self, distribution_id, mutate):
        config, etag = self.distributions[distribution_id]
        config = copy.deepcopy(config)
        mutate(config)
        self.distributions[distribution_id] = (config, self._next(etag))

    def get(self, distribution_id):
        self.gets += 1
        if distribution_id not in self.distributions:
            raise NotFound(f'CloudFront distribution {distribution_id} not found')
        config, etag = self.distributions[distribution_id]
        return copy.deepcopy(config), etag

    def put(self, distribution_id, config, version_tag):
        if self.concurrent_writers:
            self.concurrent_writers.pop(0)(self)
        if distribution_id not in self.distributions:
            raise NotFound(f'CloudFront distribution {distribution_id} not found')
        current_config, current_etag = self.distributions[distribution_id]
        if version_tag != current_etag:
            raise ConcurrencyConflict(f'ETag {version_tag} is stale, current is {current_etag}')
        for origin in config['Origins']['Items']:
            names = [h['HeaderName'].lower() for h in origin.get('CustomHeaders', {}).get('Items', [])]
            if len(names) != len(set(names)):
                raise ValidationError(f"Duplicate custom headers on origin {origin['Id']}")
        new_etag = self._next(current_etag)
        self.distributions[distribution_id] = (copy.deepcopy(config), new_etag)
        self.puts.append((distribution_id, copy.deepcopy(config), version_tag))
        return new_etag

    @staticmethod
    def _next(etag):
        return f'ETAG{int(etag[4:]) + 1}'


def make_distribution_config(*origins):
    return {
        'CallerReference': 'cdk-caller-reference',
        'Aliases': {'Quantity': 1, 'Items': ['app.example.com']},
        'DefaultRootObject': '',
        'Origins': {'Quantity': len(origins), 'Items': list(origins)},
        'OriginGroups': {'Quantity': 0},
        'DefaultCacheBehavior': {
            'TargetOriginId': 'default-origin',
            'ViewerProtocolPolicy': 'redirect-to-https',
            'CachePolicyId': '4135ea2d-6df8-44a3-9df3-4b5a84be39ad',
            'OriginRequestPolicyId': '216adef6-5c7f-47e4-b989-5492eafa07d3',
            'Compress': True,
        },
        'CacheBehaviors': {'Quantity': 0},
        'Comment': '',
        'PriceClass': 'PriceClass_100',
        'Enabled': True,
        'ViewerCertificate': {
            'ACMCertificateArn': 'arn:aws:acm:us-east-1:123456789012:certificate/abc',
            'SSLSupportMethod': 'sni-only',
            'MinimumProtocolVersion': 'TLSv1.2_2021',
        },
        'HttpVersion': 'http2',
        'IsIPV6Enabled': True,
    }


def make_origin(origin_id, headers=(), domain_name=None):
    return {
        'Id': origin_id,
        'DomainName': domain_name or f'{origin_id}.example.com',
        'OriginPath': '',
        'CustomHeaders': {
            'Quantity': len(headers),
            'Items': [{'HeaderName': n, 'HeaderValue': v} for n, v in headers],
        },
        'CustomOriginConfig': {
            'HTTPPort': 80,
            'HTTPSPort': 443,
            'OriginProtocolPolicy': 'http-only',
            'OriginReadTimeout': 30,
            'OriginKeepaliveTimeout': 5,
        },
        'ConnectionAttempts': 3,
        'ConnectionTimeout': 10,
    }


@pytest.fixture
def store():
    return FakeDistributionStore()


@pytest.fixture
def lambda_context():
    return SimpleNamespace(log_group_name='/aws/lambda/origin-header-fn')
