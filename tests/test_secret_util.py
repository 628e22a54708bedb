# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: MIT-0

import string

import pytest

from util import secret_util
from util.errors import EntropySourceUnavailable
from util.secret_util import ALPHABET, generate_secret


def test_alphabet_is_62_alphanumerics():
    assert len(ALPHABET) == 62
    assert set(ALPHABET) == set(string.ascii_letters + string.digits)


@pytest.mark.parametrize('length', [1, 12, 64])
def test_secret_length_and_alphabet(length):
    secret = generate_secret(length)

    assert len(secret) == length
    assert set(secret) <= set(ALPHABET)


def test_default_length_is_12():
    assert len(generate_secret()) == 12


def test_secrets_are_distinct():
    assert len({generate_secret(12) for _ in range(1000)}) == 1000


def test_bytes_map_modulo_alphabet(monkeypatch):
    monkeypatch.setattr(secret_util.secrets, 'token_bytes', lambda n: bytes([0, 25, 26, 61, 62, 255]))

    assert generate_secret(6) == 'AZa9AH'


@pytest.mark.parametrize('length', [0, -1, 1.5, '12', True, None])
def test_invalid_length(length):
    with pytest.raises(ValueError):
        generate_secret(length)


def test_missing_entropy_source(monkeypatch):
    def no_entropy(n):
        raise NotImplementedError('no urandom')

    monkeypatch.setattr(secret_util.secrets, 'token_bytes', no_entropy)

    with pytest.raises(EntropySourceUnavailable):
        generate_secret(12)
