"""RPC module for interacting with Starknet nodes"""
import logging
import threading
import requests
from typing import Any, Dict, List, Optional
from config import settings_conf, SUPPORTED_NETWORKS

logger = logging.getLogger(__name__)

class RPCError(Exception):
    """Base exception for RPC errors"""
    def __init__(self, message: str, code: Optional[int] = None, method: Optional[str] = None):
        self.code = code
        self.method = method
        super().__init__(f"RPC Error [{code}] in {method}: {message}" if code else message)

class NodeConnectionError(RPCError):
    """Raised when connection to node fails"""
    pass

class ContractError(RPCError):
    """Node-reported error codes and messages
    
    Common error codes:
    20     - Contract not found
    21     - Requested entrypoint does not exist in the contract
    24     - Block not found
    29     - Transaction hash not found
    40     - Contract error (execution reverted)
    41     - Transaction execution error
    -32601 - Method not found
    -32602 - Invalid params
    """
    # Map of known node error codes to human-readable messages
    ERROR_MESSAGES = {
        20: "Contract not found",
        21: "Requested entrypoint does not exist in the contract",
        24: "Block not found",
        29: "Transaction hash not found",
        40: "Contract error",
        41: "Transaction execution error",
        -32601: "Method not found",
        -32602: "Invalid params",
    }
    
    def __init__(self, message: str, code: int, method: str, data: Any = None):
        self.data = data
        # Get standard message for known error codes
        standard_msg = self.ERROR_MESSAGES.get(code, "Unknown error")
        # Combine standard message with specific message if different
        full_msg = f"{standard_msg} - {message}" if message != standard_msg else message
        super().__init__(full_msg, code, method)

class RPCMethod:
    """Descriptor class for RPC methods"""
    def __init__(self, method_name: str):
        self.method_name = method_name
    
    def __get__(self, obj, objtype=None):
        if obj is None:
            return self
        
        def caller(*args) -> Any:
            return obj._call_method(self.method_name, *args)
        
        return caller

def rpc_url_for(network: str) -> str:
    """Resolve the node URL configured for a network
    
    Raises:
        ValueError: If the network is not supported
    """
    if network not in SUPPORTED_NETWORKS:
        raise ValueError(f"Unsupported network: {network}")
    return settings_conf[f'rpc_url_{network}']

class StarknetRPC:
    """Starknet JSON-RPC client bound to one network"""
    
    def __init__(self, network: str, url: Optional[str] = None, timeout: Optional[float] = None):
        """Initialize RPC client for a network
        
        Args:
            network: Network name, one of SUPPORTED_NETWORKS
            url: Optional node URL, defaults to the configured one for the network
            timeout: Optional request timeout in seconds
        """
        self.network = network
        self.url = url or rpc_url_for(network)
        self.timeout = timeout or settings_conf['rpc_timeout']
        
        self.session = requests.Session()
        self.session.headers['content-type'] = 'application/json'
        
        # Request ID counter, shared by worker threads
        self._request_id = 0
        self._id_lock = threading.Lock()
    
    def _get_request_id(self) -> int:
        """Get unique request ID"""
        with self._id_lock:
            self._request_id += 1
            return self._request_id
    
    def _call_method(self, method: str, *args) -> Any:
        """Make RPC call to the node
        
        Args:
            method: RPC method name
            *args: Method arguments
            
        Returns:
            Response from node
            
        Raises:
            NodeConnectionError: Connection to node failed or response was malformed
            ContractError: Node returned an error object
        """
        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": list(args),
            "id": self._get_request_id()
        }
        
        try:
            response = self.session.post(self.url, json=payload, timeout=self.timeout)
            
            # Try to parse response even if status code is error
            result = response.json()
            
            # Check for RPC error
            if 'error' in result and result['error'] is not None:
                error = result['error']
                raise ContractError(
                    error.get('message', 'Unknown error'),
                    error.get('code', -1),
                    method,
                    error.get('data')
                )
            
            # Now check for HTTP errors after we've tried to parse potential error response
            response.raise_for_status()
                
            return result['result']
            
        except requests.exceptions.Timeout as e:
            raise NodeConnectionError(
                f"Request timed out after {self.timeout} seconds"
            ) from e
        except requests.exceptions.ConnectionError as e:
            raise NodeConnectionError(
                f"Failed to connect to {self.network} node at {self.url}"
            ) from e
        except requests.exceptions.HTTPError as e:
            raise NodeConnectionError(
                f"HTTP error occurred: {str(e)}"
            ) from e
        except requests.exceptions.RequestException as e:
            raise NodeConnectionError(
                f"Request failed: {str(e)}"
            ) from e
        except (KeyError, ValueError, TypeError) as e:
            raise NodeConnectionError(
                f"Invalid response format: {str(e)}"
            ) from e
    
    def call_contract(
        self,
        contract_address: str,
        entry_point_selector: str,
        calldata: Optional[List[str]] = None,
        block_id: Any = "latest"
    ) -> List[str]:
        """Run a read-only contract call
        
        Returns:
            The flat list of felts (hex strings) the entrypoint returned
        """
        request = {
            "contract_address": contract_address,
            "entry_point_selector": entry_point_selector,
            "calldata": list(calldata or [])
        }
        return self.starknet_call(request, block_id)
    
    # Define RPC methods as descriptors
    starknet_call = RPCMethod('starknet_call')
    starknet_blockNumber = RPCMethod('starknet_blockNumber')
    starknet_chainId = RPCMethod('starknet_chainId')

# One client per network, created on first use
_clients: Dict[str, StarknetRPC] = {}
_clients_lock = threading.Lock()

def get_client(network: str) -> StarknetRPC:
    """Get the shared client for a network"""
    with _clients_lock:
        if network not in _clients:
            _clients[network] = StarknetRPC(network)
            logger.info(f"Created RPC client for {network} at {_clients[network].url}")
        return _clients[network]

# Export all methods and error types
__all__ = [
    # Error types
    'RPCError',
    'NodeConnectionError',
    'ContractError',
    
    # Client
    'StarknetRPC',
    'RPCMethod',
    'get_client',
    'rpc_url_for'
]
