# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: MIT-0

import secrets
import string

from util.errors import EntropySourceUnavailable

# Shared between CloudFront (sends it) and the ALB listener rule (matches it)
ORIGIN_HEADER_NAME = 'X-From-CloudFront'
SECRET_LENGTH = 12
ALPHABET = string.ascii_uppercase + string.ascii_lowercase + string.digits


def generate_secret(length: int = SECRET_LENGTH) -> str:
    """
    Returns a random alphanumeric string used as the origin header value.

    Each byte from the OS CSPRNG is reduced modulo the alphabet size. The value
    is generated at synth time, so every deployment gets a new secret.
    """
    if isinstance(length, bool) or not isinstance(length, int) or length <= 0:
        raise ValueError(f'Secret length must be a positive integer, got {length!r}')

    try:
        random_bytes = secrets.token_bytes(length)
    except (NotImplementedError, OSError) as e:
        raise EntropySourceUnavailable(
            'No secure random source available to generate the origin header secret') from e

    return ''.join(ALPHABET[b % len(ALPHABET)] for b in random_bytes)
