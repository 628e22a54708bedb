# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: MIT-0

# onEvent handler for the origin header custom resource.
# Create and Update write the custom headers onto the distribution's origins.
# Delete does nothing: the headers go away with the distribution itself.

import json
import logging
import os

from reconciler import (
    DistributionConfigStore,
    OriginHeaderReconciler,
    ReconciliationError,
    ReconciliationRequest,
    masked,
)

logger = logging.getLogger()
logger.setLevel(os.environ.get('LOG_LEVEL', 'INFO'))


def handle_event(event, context, reconciler):
    """
    Returns the response for one lifecycle event. Nothing is kept between calls.
    Failures come back as Status FAILED with a Reason rather than an exception.
    """
    request_type = event.get('RequestType')
    response = {
        'StackId': event.get('StackId'),
        'RequestId': event.get('RequestId'),
        'LogicalResourceId': event.get('LogicalResourceId'),
        # Reuse the id CloudFormation already holds so an Update is not a replacement
        'PhysicalResourceId': event.get('PhysicalResourceId') or context.log_group_name,
        'Status': 'SUCCESS',
    }

    try:
        if request_type in ('Create', 'Update'):
            logger.info('Updating CloudFront distribution custom headers')
            request = ReconciliationRequest.from_properties(event.get('ResourceProperties') or {})
            reconciler.reconcile(request)
            logger.info('CloudFront distribution (%s) updated with custom headers for origins %s',
                        request.distribution_id, [o.origin_id for o in request.origins])
        elif request_type == 'Delete':
            logger.info('Not handling Delete')
        else:
            raise ReconciliationError(f'Unsupported RequestType {request_type!r}')
    except ReconciliationError as e:
        logger.error('Error updating CloudFront distribution: %s', e)
        response['Status'] = 'FAILED'
        response['Reason'] = str(e)

    return response


def lambda_handler(event, context):
    safe_event = dict(event, ResourceProperties=masked(event.get('ResourceProperties')))
    if 'OldResourceProperties' in event:
        safe_event['OldResourceProperties'] = masked(event['OldResourceProperties'])
    logger.info('Event received: %s', json.dumps(safe_event))

    reconciler = OriginHeaderReconciler(DistributionConfigStore())
    response = handle_event(event, context, reconciler)
    logger.info('Response: %s', json.dumps(response))

    # The Provider framework only reports FAILED to CloudFormation when the handler raises
    if response['Status'] == 'FAILED':
        raise RuntimeError(response['Reason'])
    return response
