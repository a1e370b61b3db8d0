"""Unit tests for invoking the export Lambda."""

import io
import json
from unittest.mock import Mock, patch

from tests.helpers import client_error
from connect_analytics.lambda_export.invoke import invoke_export_function


def invoke_response(payload, function_error=None):
    response = {'StatusCode': 200, 'Payload': io.BytesIO(json.dumps(payload).encode('utf-8'))}
    if function_error:
        response['FunctionError'] = function_error
    return response


@patch('connect_analytics.lambda_export.invoke.get_boto3_client')
class TestInvokeExportFunction:

    def test_success_decodes_body(self, mock_get_client):
        lambda_client = Mock()
        lambda_client.invoke.return_value = invoke_response({
            'statusCode': 200,
            'body': json.dumps({'row_count': 12, 's3_uri': 's3://bucket/exports/users/users.csv'})
        })
        mock_get_client.return_value = lambda_client

        ok, body = invoke_export_function('connect-analytics-users-export')

        assert ok is True
        assert body['row_count'] == 12
        kwargs = lambda_client.invoke.call_args.kwargs
        assert kwargs['FunctionName'] == 'connect-analytics-users-export'
        assert kwargs['InvocationType'] == 'RequestResponse'
        assert json.loads(kwargs['Payload']) == {}

    def test_error_status(self, mock_get_client):
        mock_get_client.return_value.invoke.return_value = invoke_response({
            'statusCode': 500,
            'body': json.dumps({'error': 'Export failed'})
        })

        ok, body = invoke_export_function('connect-analytics-users-export')

        assert ok is False
        assert body == {'error': 'Export failed'}

    def test_function_error(self, mock_get_client):
        mock_get_client.return_value.invoke.return_value = invoke_response(
            {'errorMessage': 'Task timed out after 300.00 seconds'}, function_error='Unhandled'
        )

        ok, _ = invoke_export_function('connect-analytics-users-export')

        assert ok is False

    def test_invoke_client_error(self, mock_get_client):
        mock_get_client.return_value.invoke.side_effect = client_error('ResourceNotFoundException', 'Invoke')

        ok, body = invoke_export_function('missing-function')

        assert ok is False
        assert 'ResourceNotFoundException' in body

    def test_payload_forwarded(self, mock_get_client):
        mock_get_client.return_value.invoke.return_value = invoke_response({'statusCode': 200, 'body': '{}'})

        invoke_export_function('connect-analytics-users-export', {'table': 'contacts_link'})

        kwargs = mock_get_client.return_value.invoke.call_args.kwargs
        assert json.loads(kwargs['Payload']) == {'table': 'contacts_link'}
