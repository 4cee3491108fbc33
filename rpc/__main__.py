"""Command line interface for testing RPC functionality"""
import sys
from config import settings_conf
from . import get_client, NodeConnectionError, ContractError

def test_rpc(network: str):
    """Test various RPC scenarios"""
    client = get_client(network)
    try:
        print(f"\nTesting {network} node at {client.url}:")
        print("-" * 50)
        
        print("1. Testing starknet_chainId:")
        chain_id = client.starknet_chainId()
        print(f"  Success! Chain id: {chain_id}")
        
        print("\n2. Testing starknet_blockNumber:")
        block_number = client.starknet_blockNumber()
        print(f"  Success! Current block: {block_number}")
        
        print("\nTesting error scenarios:")
        print("-" * 50)
        
        print("\n3. Testing call against a missing contract:")
        try:
            client.call_contract("0x1", "0x1", [])
            print("  Error: Should have raised an exception!")
        except ContractError as e:
            print(f"  Success! Got expected error: {e}")
        
    except NodeConnectionError as e:
        print(f"\nFailed to connect to {network} node:")
        print(f"  {str(e)}")
        
    except ContractError as e:
        print(f"\nNode Error [{e.code}] in {e.method}:")
        print(f"  {str(e)}")

if __name__ == "__main__":
    test_rpc(sys.argv[1] if len(sys.argv) > 1 else settings_conf['network'])
