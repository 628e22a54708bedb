# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: MIT-0

# Attaches custom origin headers to an existing CloudFront distribution.
# The distribution ID only exists after CloudFront is created, so the header
# is written afterwards by reading the full config, replacing the headers of
# the targeted origins, and writing it back with the ETag from the read.

import copy
import logging
import os
import time
from dataclasses import dataclass
from typing import Tuple

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

logger = logging.getLogger(__name__)
logger.setLevel(os.environ.get('LOG_LEVEL', 'INFO'))

MAX_ATTEMPTS = 5
BASE_DELAY = 0.5
MAX_DELAY = 8.0


class ReconciliationError(Exception):
    # Retryable errors send reconcile() back to a fresh read
    retryable = False


class NotFound(ReconciliationError):
    pass


class ConcurrencyConflict(ReconciliationError):
    retryable = True


class ValidationError(ReconciliationError):
    pass


class StoreUnavailable(ReconciliationError):
    pass


@dataclass(frozen=True)
class OriginHeaders:
    origin_id: str
    headers: Tuple[Tuple[str, str], ...]

    def as_custom_headers(self):
        return {
            'Quantity': len(self.headers),
            'Items': [{'HeaderName': name, 'HeaderValue': value} for name, value in self.headers],
        }


@dataclass(frozen=True)
class ReconciliationRequest:
    distribution_id: str
    origins: Tuple[OriginHeaders, ...]

    @classmethod
    def from_triples(cls, distribution_id, triples):
        grouped = {}
        for origin_id, name, value in triples:
            grouped.setdefault(origin_id, []).append((name, value))
        return cls(
            distribution_id=distribution_id,
            origins=tuple(OriginHeaders(o, tuple(h)) for o, h in grouped.items()),
        )

    @classmethod
    def from_properties(cls, properties):
        distribution_id = properties.get('DistributionId')
        if not distribution_id or not isinstance(distribution_id, str):
            raise ValidationError('ResourceProperties.DistributionId is required')

        origins = properties.get('Origins')
        if not isinstance(origins, list):
            raise ValidationError('ResourceProperties.Origins must be a list')

        # An origin listed with no headers still gets its headers cleared
        grouped = {}
        for origin in origins:
            try:
                headers = grouped.setdefault(origin['OriginId'], [])
                for header in origin.get('CustomHeaders') or []:
                    headers.append((header['HeaderName'], header['HeaderValue']))
            except (KeyError, TypeError, AttributeError) as e:
                raise ValidationError(f'Malformed origin entry in ResourceProperties: {e!r}') from e

        return cls(
            distribution_id=distribution_id,
            origins=tuple(OriginHeaders(o, tuple(h)) for o, h in grouped.items()),
        )

    def headers_by_origin(self):
        return {o.origin_id: o for o in self.origins}


class DistributionConfigStore:
    """
    get/put of a distribution config guarded by its ETag.
    Client errors are translated into ReconciliationError subclasses.
    """

    def __init__(self, client=None):
        self.client = client or boto3.client(
            'cloudfront',
            config=Config(connect_timeout=5, read_timeout=20, retries={'max_attempts': 3}),
        )

    def get(self, distribution_id):
        try:
            response = self.client.get_distribution_config(Id=distribution_id)
        except (ClientError, BotoCoreError) as e:
            raise _translate(e, distribution_id) from e
        return response['DistributionConfig'], response['ETag']

    def put(self, distribution_id, config, version_tag):
        try:
            response = self.client.update_distribution(
                Id=distribution_id,
                IfMatch=version_tag,
                DistributionConfig=config,
            )
        except (ClientError, BotoCoreError) as e:
            raise _translate(e, distribution_id) from e
        return response.get('ETag', '')


def _translate(error, distribution_id):
    if not isinstance(error, ClientError):
        return StoreUnavailable(f'CloudFront unavailable for {distribution_id}: {error}')

    code = error.response.get('Error', {}).get('Code', '')
    message = error.response.get('Error', {}).get('Message', str(error))
    status = error.response.get('ResponseMetadata', {}).get('HTTPStatusCode', 0)

    if code == 'NoSuchDistribution':
        return NotFound(f'CloudFront distribution {distribution_id} not found')
    if code == 'PreconditionFailed':
        return ConcurrencyConflict(
            f'Distribution {distribution_id} was modified since it was read: {message}')
    if 400 <= status < 500 and not code.startswith('Throttl'):
        return ValidationError(f'CloudFront rejected the config for {distribution_id} ({code}): {message}')
    return StoreUnavailable(f'CloudFront error for {distribution_id} ({code}): {message}')


def apply_origin_headers(config, request):
    # Copy of config with only the targeted origins' CustomHeaders replaced.
    # Unknown origin ids in the request are ignored.
    updated = copy.deepcopy(config)
    wanted = request.headers_by_origin()

    for origin in updated.get('Origins', {}).get('Items', []):
        match = wanted.get(origin.get('Id'))
        if match is not None:
            logger.debug('Replacing custom headers on origin %s', match.origin_id)
            origin['CustomHeaders'] = match.as_custom_headers()

    return updated


class OriginHeaderReconciler:
    def __init__(self, store: DistributionConfigStore,
                 max_attempts: int = MAX_ATTEMPTS,
                 base_delay: float = BASE_DELAY,
                 max_delay: float = MAX_DELAY,
                 sleep=time.sleep) -> None:
        if max_attempts < 1:
            raise ValueError('max_attempts must be at least 1')
        self.store = store
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.sleep = sleep

    def reconcile(self, request):
        """
        Read-modify-write of the distribution config.
        Retryable errors start over from the read, the written config is returned.
        """
        attempt = 1
        while True:
            try:
                return self._attempt(request)
            except ReconciliationError as e:
                if not e.retryable:
                    raise
                if attempt >= self.max_attempts:
                    logger.error('Giving up on %s after %d attempts: %s',
                                 request.distribution_id, attempt, e)
                    raise
                delay = self._backoff(attempt)
                logger.warning('Retrying %s in %.1fs (attempt %d/%d): %s',
                               request.distribution_id, delay, attempt, self.max_attempts, e)
                self.sleep(delay)
                attempt += 1

    def _attempt(self, request):
        config, version_tag = self.store.get(request.distribution_id)
        logger.info('Read distribution %s at ETag %s', request.distribution_id, version_tag)

        updated = apply_origin_headers(config, request)
        new_tag = self.store.put(request.distribution_id, updated, version_tag)
        logger.info('Updated distribution %s, new ETag %s', request.distribution_id, new_tag)
        return updated

    def _backoff(self, attempt):
        return min(self.base_delay * (2 ** (attempt - 1)), self.max_delay)


def masked(properties):
    # Header values are secrets, keep them out of the logs
    safe = copy.deepcopy(dict(properties or {}))
    for origin in safe.get('Origins') or []:
        if not isinstance(origin, dict):
            continue
        for header in origin.get('CustomHeaders') or []:
            if isinstance(header, dict) and 'HeaderValue' in header:
                header['HeaderValue'] = '****'
    return safe
