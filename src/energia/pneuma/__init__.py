"""
Pneuma - On-chain interaction layer for the energy-factory contract.

Provides the endpoint catalog, argument codec, request builder, artifact
loader and gateway client for the MultiversX proxy REST API.

Encoding, addresses and transaction signing come from multiversx-sdk;
the gateway itself is reached through a thin httpx client.
"""
