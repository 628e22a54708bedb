# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: MIT-0

# Errors raised while synthesizing the app, before anything is deployed.
# Reconciliation errors live with the Lambda code in lambda/origin_header.


class DeploymentError(Exception):
    pass


class FatalConfigError(DeploymentError):
    """A required deployment parameter is missing or invalid."""


class EntropySourceUnavailable(DeploymentError):
    """The operating system could not supply random bytes for the header secret."""
