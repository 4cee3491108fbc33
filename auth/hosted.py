"""Client for the hosted authentication and wallet service.

The service owns account creation, credential checks, access tokens and
transaction signing. This client only shapes requests and responses.
"""
import logging
from typing import Any, Dict, List, Optional

import requests

from config import settings_conf
from contract import Call, ExecutionResult

logger = logging.getLogger(__name__)


class HostedServiceError(Exception):
    """Raised when the hosted service fails or answers with an error payload"""
    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class HostedAuthClient:
    """Hosted auth/wallet service client for one application"""

    def __init__(self, app_id: str, base_url: Optional[str] = None, timeout: float = 30):
        self.app_id = app_id
        self.base_url = (base_url or settings_conf['auth_service_url']).rstrip('/')
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers['content-type'] = 'application/json'

    def _post(self, path: str, body: Dict[str, Any], bearer: str) -> Dict[str, Any]:
        """POST to the service and return the decoded payload
        
        Raises:
            HostedServiceError: On transport errors, error status or error payload
        """
        url = f"{self.base_url}{path}"
        try:
            response = self.session.post(
                url,
                json=body,
                headers={'Authorization': f"Bearer {bearer}"},
                timeout=self.timeout
            )
        except requests.exceptions.RequestException as e:
            raise HostedServiceError(f"Request to {path} failed: {str(e)}") from e
        
        try:
            payload = response.json()
        except ValueError:
            payload = {}
        if not isinstance(payload, dict):
            payload = {'data': payload}
        
        if response.status_code >= 400 or payload.get('error'):
            message = payload.get('message') or payload.get('error') or response.reason
            raise HostedServiceError(str(message), response.status_code)
        
        return payload
    
    def sign_in(self, email: str, password: str, network: str, org_secret: str) -> Dict[str, Any]:
        """Authenticate a user
        
        Returns:
            Dict containing access_token, wallet_address and email
        """
        payload = self._post(
            '/auth/login',
            {'email': email, 'password': password, 'network': network, 'app_id': self.app_id},
            org_secret
        )
        data = payload.get('data', payload)
        try:
            return {
                'access_token': data['authData']['accessToken'],
                'wallet_address': data['wallet']['address'],
                'email': data.get('email', email)
            }
        except (KeyError, TypeError) as e:
            raise HostedServiceError(f"Unexpected sign-in response: missing {e}") from e
    
    def sign_up(self, email: str, password: str, network: str, org_secret: str) -> Dict[str, Any]:
        """Register a user and create their wallet
        
        Returns:
            Dict containing email, wallet_address and created_at
        """
        payload = self._post(
            '/auth/register',
            {'email': email, 'password': password, 'network': network, 'app_id': self.app_id},
            org_secret
        )
        data = payload.get('data', payload)
        try:
            return {
                'email': data.get('email', email),
                'wallet_address': data['wallet']['address'],
                'created_at': data.get('created_at')
            }
        except (KeyError, TypeError) as e:
            raise HostedServiceError(f"Unexpected sign-up response: missing {e}") from e
    
    def execute_calls(
        self,
        wallet_address: str,
        network: str,
        access_token: str,
        calls: List[Call]
    ) -> ExecutionResult:
        """Sign and submit calls as one transaction"""
        payload = self._post(
            '/execute',
            {
                'address': wallet_address,
                'network': network,
                'app_id': self.app_id,
                'calls': [call.model_dump(by_alias=True) for call in calls]
            },
            access_token
        )
        data = payload.get('data', payload)
        tx_hash = data.get('txHash') if isinstance(data, dict) else None
        if not tx_hash:
            raise HostedServiceError("Transaction failed: no transaction hash returned")
        return ExecutionResult(tx_hash=tx_hash, access_token=data.get('accessToken'))
