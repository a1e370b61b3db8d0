"""Invoke the deployed export Lambda and interpret its response."""

import json
from typing import Any, Dict, Optional, Tuple
from botocore.exceptions import ClientError

from ..config import config
from ..utils.aws_helpers import get_boto3_client
from ..utils.logger import get_logger

logger = get_logger(__name__)


def invoke_export_function(
    function_name: Optional[str] = None,
    payload: Optional[Dict[str, Any]] = None,
    region: Optional[str] = None
) -> Tuple[bool, Any]:
    """
    Invoke the export function synchronously.

    Args:
        function_name: Lambda function name. Defaults to config.
        payload: Event payload, {} by default.
        region: AWS region.

    Returns:
        (ok, body): ok is True when the function returned statusCode 200;
        body is the decoded response body (or error text).
    """
    function_name = function_name or config.lambda_.function_name
    lambda_client = get_boto3_client('lambda', region=region)

    logger.info(f"Testing Lambda function {function_name}...")
    try:
        response = lambda_client.invoke(
            FunctionName=function_name,
            InvocationType='RequestResponse',
            Payload=json.dumps(payload or {}).encode('utf-8')
        )
    except ClientError as e:
        logger.error(f"❌ Could not invoke {function_name}: {e}")
        return False, str(e)

    raw = response['Payload'].read().decode('utf-8')
    if response.get('FunctionError'):
        logger.error(f"❌ Lambda function failed: {raw}")
        return False, raw

    try:
        result = json.loads(raw)
    except json.JSONDecodeError:
        logger.error(f"❌ Lambda returned a non-JSON response: {raw}")
        return False, raw

    body = result.get('body') if isinstance(result, dict) else result
    if isinstance(body, str):
        try:
            body = json.loads(body)
        except json.JSONDecodeError:
            pass

    if isinstance(result, dict) and result.get('statusCode') == 200:
        logger.info("✅ Lambda function working correctly!")
        logger.info(f"Response: {body}")
        return True, body

    logger.error(f"❌ Lambda function failed: {raw}")
    return False, body
