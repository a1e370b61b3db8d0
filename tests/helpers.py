"""Shared test constants and builders."""

from botocore.exceptions import ClientError

PRODUCER_ACCOUNT_ID = '111111111111'
CONSUMER_ACCOUNT_ID = '222222222222'


def client_error(code: str, operation: str = 'Operation') -> ClientError:
    """Build a botocore ClientError with the given error code."""
    return ClientError({'Error': {'Code': code, 'Message': f'{code} raised'}}, operation)
