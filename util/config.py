# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: MIT-0

import logging
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from util.errors import FatalConfigError

DEFAULT_APP_IMAGE = 'public.ecr.aws/nginx/nginx:latest'

# Environment variables the pipeline source cannot do without
PIPELINE_SOURCE_VARS = {
    'connection_arn': 'CONNECTION_ARN',
    'github_repo': 'GITHUB_REPO',
    'github_branch': 'GITHUB_BRANCH',
}


@dataclass(frozen=True)
class DeploymentConfig:
    log_level: str = 'INFO'
    domain_name: str = ''
    app_image: str = DEFAULT_APP_IMAGE
    connection_arn: Optional[str] = None
    github_repo: Optional[str] = None
    github_branch: Optional[str] = None

    @classmethod
    def from_env(cls, environ=None):
        # A .env file next to app.py fills in anything not already exported
        if environ is None:
            load_dotenv()
            environ = os.environ

        log_level = environ.get('LOG_LEVEL', 'INFO').upper()
        if not isinstance(logging.getLevelName(log_level), int):
            raise FatalConfigError(f'LOG_LEVEL {log_level!r} is not a valid log level')

        return cls(
            log_level=log_level,
            domain_name=environ.get('DOMAIN_NAME', ''),
            app_image=environ.get('APP_IMAGE') or DEFAULT_APP_IMAGE,
            connection_arn=environ.get('CONNECTION_ARN') or None,
            github_repo=environ.get('GITHUB_REPO') or None,
            github_branch=environ.get('GITHUB_BRANCH') or None,
        )

    def as_environment(self):
        fields = {
            'log_level': 'LOG_LEVEL',
            'domain_name': 'DOMAIN_NAME',
            'app_image': 'APP_IMAGE',
            **PIPELINE_SOURCE_VARS,
        }
        return {var: getattr(self, field) for field, var in fields.items() if getattr(self, field)}

    def require_pipeline_source(self):
        missing = [var for field, var in PIPELINE_SOURCE_VARS.items()
                   if not getattr(self, field)]
        if missing:
            raise FatalConfigError(
                f"Missing required pipeline configuration: {', '.join(missing)}")
