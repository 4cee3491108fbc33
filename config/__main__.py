"""Command line interface for testing configuration loading"""
from . import settings_conf, load_env_secrets
from pathlib import Path

def main():
    """Display loaded configuration"""
    print("\nSettings Configuration:")
    print("-" * 50)
    for key, value in settings_conf.items():
        print(f"{key}: {value}")
        
    print("\nSecrets:")
    print("-" * 50)
    for key, value in load_env_secrets().items():
        print(f"{key}: {'set' if value else 'MISSING'}")
        
    # Save example configuration file
    examples_dir = Path("examples")
    examples_dir.mkdir(exist_ok=True)
    
    with open(examples_dir / "settings.conf.example", "w") as f:
        f.write("""[DEFAULT]
# Ledger network: sepolia or mainnet
network = sepolia
# Price contract address
contract_address = 0x0
rpc_url_mainnet = https://starknet-mainnet.public.blastapi.io/rpc/v0_7
rpc_url_sepolia = https://starknet-sepolia.public.blastapi.io/rpc/v0_7
rpc_timeout = 10
# Hosted auth/wallet service
auth_service_url = https://services.cavos.xyz/api/v1/external
# Geocoding: nominatim or static
geocoder = nominatim
geocoding_country = Argentina
session_file = ~/.fernet_barato/session.json
host = 0.0.0.0
port = 8000
# Allowed browser origins, comma separated
cors_origins = *
""")

if __name__ == "__main__":
    main()
